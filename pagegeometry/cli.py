#!/usr/bin/env python3
"""
Command-line interface for pagegeometry.

Usage:
    # Print the EXIF orientation of photos
    pagegeometry orientation IMG_0001.jpg IMG_0002.jpg

    # Rotate upright, downscale and re-encode with a quality profile
    pagegeometry normalize IMG_0001.jpg --output page.jpg --profile share

    # Detect the page in an upright image and warp it to a rectangle
    pagegeometry rectify page.jpg --output cropped.jpg

    # Both steps
    pagegeometry process IMG_0001.jpg --output page.jpg
"""

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _output_path(input_path: Path, output: str | None, media_type: str, suffix: str) -> Path:
    """Output path with an extension matching media_type."""
    from .capture import ensure_extension

    if output:
        path = Path(output)
    else:
        path = input_path.with_name(f"{input_path.stem}_{suffix}{input_path.suffix}")
    return path.with_name(ensure_extension(path.name, media_type))


def cmd_orientation(args: argparse.Namespace) -> int:
    """Print EXIF orientation tags."""
    from .exif import read_exif_orientation

    status = 0
    for name in args.inputs:
        path = Path(name)
        if not path.exists():
            print(f"Input file not found: {path}", file=sys.stderr)
            status = 1
            continue
        tag = read_exif_orientation(path.read_bytes())
        print(f"{path}: {tag if tag is not None else 'unknown'}")
    return status


def cmd_normalize(args: argparse.Namespace) -> int:
    """Normalize orientation and size only."""
    from .capture import guess_media_type, normalize_capture

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 1

    result = normalize_capture(
        input_path.read_bytes(),
        guess_media_type(input_path.name),
        args.profile,
        filename=input_path.name,
    )

    output_path = _output_path(input_path, args.output, result.media_type, "upright")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.data)

    print(f"✓ Normalized {input_path.name}: {result.surface.width}x{result.surface.height} "
          f"(orientation {result.orientation})")
    print(f"  Output: {output_path}")
    return 0


def cmd_rectify(args: argparse.Namespace) -> int:
    """Rectify an already upright image."""
    from .capture import encode_for_profile, guess_media_type
    from .config import GeometryConfig, get_profile
    from .rectify import rectify_document
    from .surface import decode_surface

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 1

    surface = decode_surface(input_path.read_bytes())
    result = rectify_document(surface, config=GeometryConfig(detection_max_edge=args.detection_edge or None))

    profile = get_profile("default")
    media_type = guess_media_type(args.output or input_path.name) or profile.media_type
    output_path = _output_path(input_path, args.output, media_type, "page")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(encode_for_profile(result.surface, media_type, profile))

    if result.success:
        print(f"✓ Document rectified: {result.surface.width}x{result.surface.height}")
    else:
        print(f"⚠ {result.message}; wrote original image")
    print(f"  Output: {output_path}")
    return 0


def cmd_process(args: argparse.Namespace) -> int:
    """Run orientation normalization followed by rectification."""
    from .capture import guess_media_type
    from .config import GeometryConfig, PipelineConfig
    from .pipeline import PagePipeline

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 1

    config = PipelineConfig(
        profile=args.profile,
        rectify=not args.no_rectify,
        geometry=GeometryConfig(detection_max_edge=args.detection_edge or None),
    )
    pipeline = PagePipeline(config)
    result = pipeline.process(
        input_path.read_bytes(),
        guess_media_type(input_path.name),
        filename=input_path.name,
    )

    output_path = _output_path(input_path, args.output, result.media_type, "page")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.data)

    print(f"✓ Processed {input_path.name}: {result.surface.width}x{result.surface.height}")
    if result.rectification is not None and not result.rectified:
        print(f"  ⚠ {result.rectification.message}")
    print(f"  Output: {output_path}")
    return 0


def _add_detection_edge(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--detection-edge",
        type=int,
        default=1000,
        help="Long edge of the detection working copy (0 to disable, default: 1000)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    from .config import PROFILES
    from .errors import PageGeometryError

    parser = argparse.ArgumentParser(
        prog="pagegeometry",
        description="Straighten and crop photographed pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # orientation command
    p_orientation = subparsers.add_parser(
        "orientation",
        help="Print EXIF orientation tags",
    )
    p_orientation.add_argument("inputs", nargs="+", help="Image files")
    p_orientation.set_defaults(func=cmd_orientation)

    # normalize command
    p_normalize = subparsers.add_parser(
        "normalize",
        help="Rotate upright and re-encode with a quality profile",
    )
    p_normalize.add_argument("input", help="Input image")
    p_normalize.add_argument("-o", "--output", help="Output image (default: <input>_upright)")
    p_normalize.add_argument("-p", "--profile", choices=sorted(PROFILES), default="default",
                             help="Quality profile (default: default)")
    p_normalize.set_defaults(func=cmd_normalize)

    # rectify command
    p_rectify = subparsers.add_parser(
        "rectify",
        help="Detect the page and correct perspective",
    )
    p_rectify.add_argument("input", help="Input image (already upright)")
    p_rectify.add_argument("-o", "--output", help="Output image (default: <input>_page)")
    _add_detection_edge(p_rectify)
    p_rectify.set_defaults(func=cmd_rectify)

    # process command (both pipelines)
    p_process = subparsers.add_parser(
        "process",
        help="Normalize orientation, then rectify",
    )
    p_process.add_argument("input", help="Input image")
    p_process.add_argument("-o", "--output", help="Output image (default: <input>_page)")
    p_process.add_argument("-p", "--profile", choices=sorted(PROFILES), default="default",
                           help="Quality profile (default: default)")
    p_process.add_argument("--no-rectify", action="store_true", help="Skip document rectification")
    _add_detection_edge(p_process)
    p_process.set_defaults(func=cmd_process)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        return args.func(args)
    except PageGeometryError as e:
        print(f"\n✗ Failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
