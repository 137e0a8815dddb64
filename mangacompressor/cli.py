"""Command line entry point for compressing CBZ files."""

from __future__ import annotations

import argparse
import re
import sys
import zipfile

from .cbz import process_cbz_file

_RESIZE_RE = re.compile(r"\s*([+-]?\d+)x\s*([+-]?\d+)")


def parse_resize(value: str) -> tuple[int, int]:
    """Parse a '<width>x<height>' size; an empty string gives (0, 0)."""
    if not value:
        return (0, 0)
    match = _RESIZE_RE.match(value)
    if match is None:
        raise ValueError(f"invalid size {value!r}")
    return (int(match.group(1)), int(match.group(2)))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mangacompressor",
        description="Compress the pages of CBZ files.",
    )
    parser.add_argument(
        "--files", "-files", dest="files", default="",
        help="Comma-separated list of CBZ files to modify (e.g., file1.cbz,file2.cbz)",
    )
    parser.add_argument(
        "--binarize", "-binarize", dest="binarize", type=int, default=-1,
        help="Binarization threshold percentage (0-100)",
    )
    parser.add_argument(
        "--resize", "-resize", dest="resize", default="1236x1648",
        help="New size of the images (<width>x<height>)",
    )
    parser.add_argument(
        "--max-inner-rects", "-max-inner-rects", dest="max_inner_rects", type=int, default=9,
        help="If more inner rectangles than this are found, the original image is used",
    )
    parser.add_argument(
        "--min-content", "-min-content", dest="min_content", type=int, default=10,
        help="If less than this % of the image is content, the original image is used (0-100)",
    )
    parser.add_argument(
        "--output", "-output", dest="output", default=".",
        help="Directory to save modified CBZ files",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Process every CBZ file named on the command line."""
    args = _build_parser().parse_args(argv)

    if not args.files:
        raise SystemExit("You must provide a list of CBZ files using the --files flag")
    if args.binarize < -1 or args.binarize > 100:
        raise SystemExit("Threshold must be between 0 and 100")
    try:
        width, height = parse_resize(args.resize)
    except ValueError as exc:
        raise SystemExit(f"Invalid format for resize argument: {exc}") from exc

    for name in args.files.split(","):
        cbz_file = name.strip()
        print(f"Processing CBZ file: {cbz_file}")
        try:
            output_path = process_cbz_file(
                cbz_file,
                args.binarize,
                width,
                height,
                args.max_inner_rects,
                args.min_content,
                args.output,
            )
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            print(f"Error processing {cbz_file}: {exc}")
        else:
            print(f"Successfully created: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())