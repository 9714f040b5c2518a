#!/usr/bin/env python3
"""
Slidesmith - Terminal Deck Generator

Runs the generation pipeline in-process (no server) and prints the deck.

Usage:
    python tools/generate_deck_cli.py "Renewable energy" [--backend LMStudio] [--file notes.pdf] [--json]
"""

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import get_settings
from src.core.deck_generator import DeckGenerator
from src.core.errors import SlidesmithError

# ANSI color codes
COLORS = {
    'reset': '\033[0m',
    'red': '\033[91m',
    'green': '\033[92m',
    'yellow': '\033[93m',
    'cyan': '\033[96m',
    'gray': '\033[90m',
}

def color(text, color_name):
    return f"{COLORS.get(color_name, '')}{text}{COLORS['reset']}"


def describe_slide(index, slide):
    content = slide.content
    kind = color(f"[{content.kind}]", 'gray')
    title = slide.title or f"Slide {index}"
    print(f"  {color(f'{index:>2}.', 'cyan')} {title} {kind}")
    if slide.image_query:
        print(f"      {color('image:', 'gray')} {slide.image_query}")
    if content.kind == "images":
        for image in content.images:
            print(f"      {color('-', 'gray')} {image.url} ({image.width}x{image.height})")


async def main(topic, backend, file_path=None, raw_json=False):
    settings = get_settings()
    generator = DeckGenerator.from_settings(settings)

    print(color(f"Generating deck for '{topic}' with {backend}...", 'yellow'))

    try:
        deck = await generator.generate(topic, backend, document_path=file_path)
    except SlidesmithError as e:
        print(color(f"FAILED ({e.status_code}): {e.user_message}", 'red'))
        print(color(f"  {type(e).__name__}: {e}", 'gray'))
        return 1

    if raw_json:
        print(json.dumps(deck.to_response(), indent=2))
        return 0

    meta = deck.metadata
    print(color(
        f"{meta.slide_count} slides ({meta.image_slide_count} image slides) "
        f"from {meta.backend_used} in {meta.generation_time_ms} ms",
        'green'
    ))
    for index, slide in enumerate(deck.slides, 1):
        describe_slide(index, slide)
    return 0


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Slidesmith deck generator")
    parser.add_argument("topic", help="Presentation topic")
    parser.add_argument("--backend", default="Gemini", help="Gemini or LMStudio (default: Gemini)")
    parser.add_argument("--file", default=None, help="Source document (.pdf, .docx, .txt)")
    parser.add_argument("--json", action="store_true", help="Print the deck JSON")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.topic, args.backend, args.file, args.json)))
