"""External clients: OpenAI-compatible reasoning/vision endpoint and Figma REST API."""
