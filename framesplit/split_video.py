"""
Split a video into images sampled every --step seconds.

Writes 000001.<ext>, 000002.<ext>, ... into the output directory.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from framesplit.config import SplitConfig, parse_duration
from framesplit.encoding import ImageFormat, supported_formats
from framesplit.errors import FrameSplitError
from framesplit.frame_source import FrameSource

log = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "split_video.log"
DEFAULT_STEP = "0:00:00:00.040"


def setup_logging(log_file: str | Path, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )


def write_frames(source: FrameSource, output_dir: Path, image_format: ImageFormat) -> int:
    """Drains the source into numbered files. Returns the number written."""
    output_dir.mkdir(parents=True, exist_ok=True)

    frame_no = 0
    while not source.is_exhausted():
        data = source.next_frame()
        if data is None:
            break

        frame_no += 1
        out_path = output_dir / f"{frame_no:06d}.{image_format.extension}"
        out_path.unlink(missing_ok=True)
        out_path.write_bytes(data)

        if frame_no % 100 == 0:
            log.info(f"{frame_no}/{source.frame_count} frames written")

    return frame_no


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="framesplit-split",
        description="Extract frames from a video file at a fixed time step.",
        epilog="Durations: seconds (2.5) or [d:|d.][hh:]mm:ss[.fff]",
    )
    p.add_argument("-i", "--input", required=True, type=Path, help="input video file")
    p.add_argument("-o", "--output", required=True, type=Path,
                   help="output directory, created when missing")
    p.add_argument("-f", "--format", default="bmp",
                   help=f"image format: {', '.join(supported_formats())} (default: bmp)")
    p.add_argument("--rotate", action="store_true", help="turn frames upside down")
    p.add_argument("--gray", action="store_true", help="grayscale frames")
    p.add_argument("--start", default="0", help="first sample time (default: 0)")
    p.add_argument("--end", default=None, help="stop time (default: end of video)")
    p.add_argument("--step", default=DEFAULT_STEP,
                   help=f"time between samples (default: {DEFAULT_STEP})")
    p.add_argument("--log-file", default=DEFAULT_LOG_FILE, help="log file path")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p


def config_from_args(args: argparse.Namespace) -> SplitConfig:
    return SplitConfig(
        image_format=ImageFormat.parse(args.format),
        rotate=args.rotate,
        grayscale=args.gray,
        start_sec=parse_duration(args.start),
        end_sec=parse_duration(args.end) if args.end is not None else float("inf"),
        step_sec=parse_duration(args.step),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    try:
        config = config_from_args(args)
    except FrameSplitError as e:
        log.error(f"Invalid arguments: {e}")
        return 1

    video: Path = args.input.resolve()
    if not video.is_file():
        log.error(f"Input video file was not found: {video}")
        return 1

    log.info("Processing...")
    try:
        with FrameSource().open(video, config) as source:
            count = write_frames(source, args.output.resolve(), config.image_format)
    except (FrameSplitError, OSError):
        log.exception(f"Failed to split {video.name}")
        return 1

    log.info(f"Done. {count} frames written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
