"""Command line access to conversion and placement operations."""
import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__, config, native, operations
from .context import image_layout, resolve_preset
from .errors import GraphicsKitError
from .formats import ImageFormat
from .geometry import Size
from .loaders import load_image
from .log import LEVELS, configure_logging
from .validation import validate_source_path

LOGGER = logging.getLogger(__name__)


def _add_io(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("source", help="Image to read")
    parser.add_argument("destination", help="File to write; the extension picks the format")
    parser.add_argument(
        "--format",
        choices=[fmt.name.lower() for fmt in ImageFormat],
        help="Output format, overriding the destination extension",
    )
    parser.add_argument("--quality", type=float, default=config.DEFAULT_QUALITY, help="Compression quality in [0, 1]")


def _add_size(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("width", type=float, help="Target width in pixels")
    parser.add_argument("height", type=float, help="Target height in pixels")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="graphicskit",
        description="Convert, resize and place images",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log", default="warning", choices=sorted(LEVELS), help="Log level")
    p.add_argument("--log-dir", default=None, help="Directory for the rotating log file (default: cwd)")
    commands = p.add_subparsers(dest="command", required=True)

    _add_io(commands.add_parser("convert", help="Re-encode an image"))

    for name, text in (
        ("resize", "Stretch an image to a size"),
        ("embed", "Fit an image inside a canvas"),
        ("fill", "Fill a size with an image, cropping the overflow"),
    ):
        sub = commands.add_parser(name, help=text)
        _add_io(sub)
        _add_size(sub)

    square = commands.add_parser("square", help="Make an image square")
    _add_io(square)
    square.add_argument("--fill", action="store_true", help="Crop to the shorter side instead of padding")

    info = commands.add_parser("info", help="Describe an image and its bitmap layout")
    info.add_argument("source", help="Image to inspect")
    return p


def _describe(source: str) -> str:
    path = validate_source_path(source)
    image = load_image(path)
    layout = image_layout(image)
    preset = resolve_preset(layout.bits_per_component, layout.color_space.model, layout.has_alpha)
    width, height = image.size
    lines = [
        f"path: {path}",
        f"size: {width}x{height}",
        f"mode: {image.mode}",
        f"color space: {layout.color_space.name}",
        f"bits per component: {layout.bits_per_component}",
        f"alpha: {layout.alpha_info.name.lower()}",
        f"context preset: {preset.bits_per_pixel} bpp, {preset.bits_per_component} bpc, "
        f"{preset.color_model.name.lower()}, {preset.alpha_info.name.lower()}",
    ]
    return "\n".join(lines)


def run(args: argparse.Namespace) -> None:
    if args.command == "info":
        print(_describe(args.source))
        return

    path = validate_source_path(args.source)
    image = load_image(path)
    if args.command == "resize":
        result = operations.resized(image, Size(args.width, args.height))
    elif args.command == "embed":
        result = operations.embed(image, Size(args.width, args.height))
    elif args.command == "fill":
        result = operations.fill(image, Size(args.width, args.height))
    elif args.command == "square":
        result = operations.fill_in_square(image) if args.fill else operations.embed_in_square(image)
    else:
        result = image

    fmt = ImageFormat[args.format.upper()] if args.format else None
    written = native.write(result, args.destination, fmt, args.quality)
    LOGGER.info("%s %s -> %s", args.command, path, written)
    print(written)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log, args.log_dir)
    try:
        run(args)
    except (GraphicsKitError, ValueError) as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0
