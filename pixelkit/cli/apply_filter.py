import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..errors import PixelKitError
from ..pipeline.filters import FILTER_PRESETS, apply_filter, list_filters
from ..services.image_service import ImageService

# Load environment variables first
load_dotenv()

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelkit-filter",
        description="Apply a named filter preset to an image file or a folder of images.",
    )
    parser.add_argument("input", nargs="?", type=Path, help="image file or folder")
    parser.add_argument("output", nargs="?", type=Path, help="output file, or folder when input is a folder")
    parser.add_argument("-f", "--filter", dest="filter_name", help="preset name (see --list)")
    parser.add_argument("--list", action="store_true", help="print available presets and exit")
    parser.add_argument("-r", "--recursive", action="store_true", help="recurse into sub-folders")
    parser.add_argument(
        "--log-level",
        default=os.getenv("PIXELKIT_LOG_LEVEL", "INFO"),
        help="logging level (default: $PIXELKIT_LOG_LEVEL or INFO)",
    )
    return parser


def _run_folder(image_service: ImageService, src: Path, dst: Path, filter_name: str, recursive: bool) -> int:
    dst.mkdir(parents=True, exist_ok=True)
    processed = 0
    for path, buffer in image_service.stream_folder(src, recursive=recursive):
        target = dst / path.relative_to(src)
        target.parent.mkdir(parents=True, exist_ok=True)
        image_service.save(apply_filter(buffer, filter_name), target)
        processed += 1
    logger.info(f"Processed {processed} image(s) from {src} into {dst}")
    return processed


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.list:
        for name in list_filters():
            print(f"{name:12s} {FILTER_PRESETS[name].description}")
        return 0

    if args.input is None or args.output is None or not args.filter_name:
        build_parser().print_usage(sys.stderr)
        logger.error("input, output and --filter are required (or use --list)")
        return 2

    image_service = ImageService()
    try:
        if args.input.is_dir():
            _run_folder(image_service, args.input, args.output, args.filter_name, args.recursive)
        else:
            buffer = image_service.load(args.input)
            image_service.save(apply_filter(buffer, args.filter_name), args.output)
    except (PixelKitError, FileNotFoundError, NotADirectoryError) as err:
        logger.error(f"{type(err).__name__}: {err}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
