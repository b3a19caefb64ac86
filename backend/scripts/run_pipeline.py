#!/usr/bin/env python3
"""Run the design analysis pipeline from the command line.

Usage:
    # Saved node tree (file, nodes or bare-node JSON):
    python scripts/run_pipeline.py --design-file data/checkout.json

    # With a rendered screenshot for visual validation (path or URL):
    python scripts/run_pipeline.py --design-file data/checkout.json --image data/checkout.png

    # Straight from Figma:
    python scripts/run_pipeline.py --figma-url "https://www.figma.com/design/xxx/yyy?node-id=1-2"

    # Write the full result as JSON:
    python scripts/run_pipeline.py --design-file data/checkout.json --output result.json

Requires:
    - OPENAI_API_KEY env var (otherwise both model stages use their fallbacks)
    - FIGMA_TOKEN env var (Figma mode only)
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Union

from design_pipeline.exceptions import NoExtractableStructureError
from design_pipeline.integrations.figma_client import FigmaClient, FigmaClientError
from design_pipeline.logging_config import get_pipeline_logger
from design_pipeline.pipeline import DesignAnalysisPipeline, PipelineResult
from design_pipeline.reporting import generate_analysis_report


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Design-to-component analysis pipeline")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--design-file", help="Path to a saved Figma node-tree JSON file")
    source.add_argument("--figma-url", help="Figma design URL or file key")
    parser.add_argument(
        "--image", default=None,
        help="Rendered screenshot for visual validation (file path or http(s) URL)",
    )
    parser.add_argument("--output", default=None, help="Write the full result JSON here")
    return parser.parse_args(argv)


def load_image(value: Optional[str]) -> Union[str, bytes, None]:
    if not value:
        return None
    if value.startswith(("http://", "https://", "data:")):
        return value
    return Path(value).read_bytes()


def print_summary(result: PipelineResult) -> None:
    print(f"\n=== {result.file_name or 'Untitled'} ===")
    print(
        f"Descriptors: {len(result.descriptors)}  "
        f"Groups: {len(result.grouping.groups)}  "
        f"Components: {len(result.mapped_components)}"
    )
    if result.grouping.used_fallback or result.analysis.used_fallback:
        print("(degraded: at least one stage used its heuristic fallback)")
    for mc in result.mapped_components:
        content = f" \"{mc.content}\"" if mc.content else ""
        print(f"  - {mc.target_component:<12} {mc.name}{content}")
    print()
    print(generate_analysis_report(result.comparison))


async def main(argv=None) -> int:
    args = parse_args(argv)
    get_pipeline_logger()

    pipeline = DesignAnalysisPipeline()
    try:
        if args.figma_url:
            figma = FigmaClient()
            try:
                result = await pipeline.run_figma(figma, args.figma_url)
            finally:
                await figma.close()
        else:
            tree = json.loads(Path(args.design_file).read_text(encoding="utf-8"))
            result = await pipeline.run(tree, image=load_image(args.image))
    except (NoExtractableStructureError, FigmaClientError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await pipeline.close()

    print_summary(result)
    if args.output:
        Path(args.output).write_text(
            result.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        print(f"\nResult written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
