"""
Quick local test helper: runs the background remover on a local image and
writes an RGBA PNG to disk. This bypasses the HTTP and upload layers.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from bgremove_service.pipeline import remove_background_from_path
from bgremove_service.remover import RembgBackgroundRemover


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove the background of a local image")
    parser.add_argument("--input", required=True, help="Path to the input image")
    parser.add_argument("--output", required=True, help="Path to write the RGBA PNG")
    parser.add_argument("--model", default="u2net", help="rembg model name")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    input_path = Path(args.input)
    output_path = Path(args.output)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    png_bytes = remove_background_from_path(input_path, RembgBackgroundRemover(args.model))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(png_bytes)
    print(f"Wrote RGBA output to {output_path}")


if __name__ == "__main__":
    main()
