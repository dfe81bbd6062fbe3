"""
ffmpeg availability check and stream metadata dump.
"""

import sys

from framesplit.decoder import FfmpegDecoder, check_ffmpeg
from framesplit.errors import FrameSplitError


def main() -> None:
    print("Python:", sys.version.split()[0])

    if not check_ffmpeg():
        print("ERROR: ffmpeg / ffprobe not available")
        sys.exit(1)

    print("ffmpeg OK")

    if len(sys.argv) != 2:
        print("Usage: framesplit-probe <video_file>")
        sys.exit(1)

    try:
        meta = FfmpegDecoder().probe(sys.argv[1])
    except (FrameSplitError, OSError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Stream:     #{meta.stream_index}")
    print(f"Resolution: {meta.width}x{meta.height}")
    print(f"Frame size: {meta.buffer_size} bytes")
    print(f"Duration:   {meta.stream_length_sec:.2f}s")


if __name__ == "__main__":
    main()
