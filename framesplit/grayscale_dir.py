"""
Batch grayscale: every *.bmp under an input directory (recursively) is
converted into the same relative path under the output directory.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from framesplit.grayscale import GrayscaleConverter
from framesplit.split_video import setup_logging

log = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "grayscale_dir.log"


def find_bitmaps(input_dir: Path) -> list[Path]:
    return sorted(
        p for p in input_dir.rglob("*")
        if p.is_file() and p.suffix.lower() == ".bmp"
    )


def convert_tree(input_dir: Path, output_dir: Path, converter: Optional[GrayscaleConverter] = None) -> int:
    """Returns the number of files converted."""
    converter = converter or GrayscaleConverter()
    output_dir.mkdir(parents=True, exist_ok=True)

    files = find_bitmaps(input_dir)
    for f in files:
        converter.convert_image(f, output_dir / f.relative_to(input_dir))

    return len(files)


def main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="framesplit-gray",
        description="Grayscale all BMP files of a directory tree.",
    )
    p.add_argument("input_dir", type=Path, help="directory with bmp files (subdirectories included)")
    p.add_argument("output_dir", type=Path, help="output directory, created when missing")
    p.add_argument("--log-file", default=DEFAULT_LOG_FILE, help="log file path")
    args = p.parse_args(argv)

    setup_logging(args.log_file)

    input_dir = args.input_dir.resolve()
    if not input_dir.is_dir():
        log.error(f"Input directory not found: {input_dir}")
        return 1

    log.info("Processing...")
    try:
        count = convert_tree(input_dir, args.output_dir.resolve())
    except OSError:
        log.exception(f"Failed to convert {input_dir}")
        return 1

    log.info(f"{count} files processed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
