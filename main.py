"""
main.py — command-line entry point.

Runs one photo through the analysis pipeline and prints the model's raw
answer to stdout.

Usage:
  python main.py meal.jpg
  python main.py meal.jpg --provider openai --timeout 60
  python main.py meal.jpg --prompt "List the foods on this plate as JSON"
"""
from __future__ import annotations

import argparse
import asyncio
import base64
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import config
from errors import AppError, user_friendly_message
from image_analyzer import analyze_image
from providers.manager import build_adapter

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "Identify the dish in this photo, estimate its total weight in grams and "
    "its calories, carbohydrates, protein, fat and fiber. "
    "Return ONLY a JSON object, or just \"NO\" if there is no food in the photo."
)


def _configure_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyse a meal photo with a vision model.")
    parser.add_argument("photo", type=Path, help="path to the image file")
    parser.add_argument("--prompt", default=DEFAULT_PROMPT, help="instruction text sent with the image")
    parser.add_argument("--provider", default=None, help="google | openai | anthropic (default: AI_PROVIDER)")
    parser.add_argument("--timeout", type=float, default=config.AI_REQUEST_TIMEOUT,
                        help="give up after this many seconds")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> str:
    image_data = base64.b64encode(args.photo.read_bytes()).decode("ascii")
    adapter = build_adapter(args.provider)
    logger.info("Analysing %s with %s", args.photo, adapter.display_name)
    return await analyze_image(image_data, args.prompt, adapter=adapter, timeout=args.timeout)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging()
    try:
        result = asyncio.run(run(args))
    except (AppError, OSError) as exc:
        print(f"Error: {user_friendly_message(exc)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
