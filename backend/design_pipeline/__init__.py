"""Design-to-component analysis pipeline.

Subpackages:
- nodes: Pipeline stages (structural extraction, spatial analysis, semantic
  grouping, visual validation, style mapping)
- integrations: External clients (reasoning/vision model, Figma REST API)
- prompts: Prompt templates for the grouping and validation calls
- reporting: Stage comparison metrics and text report
"""
