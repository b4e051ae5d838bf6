"""Command-line entry point for running the photo pipelines locally."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from photos import s3
from photos.exceptions import PhotosError
from photos.sources import LocalDirSink, source_for
from photos.variants.constants import DEFAULT_THUMB_SIZE, EXIF_ORIENTATION_TAG
from photos.variants.plan import build_plan
from photos.variants.schemas import VariantConfig
from photos.variants.service import derive_variants

logger = logging.getLogger("photos.cli")


def _add_derive_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input",
        required=True,
        help="Path or http(s) URL of the source image",
    )
    parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="Directory the derived images are written to",
    )
    parser.add_argument(
        "--formats",
        default="",
        help='Comma separated list of output formats, e.g. "jpeg,webp,png" (default "jpeg,webp")',
    )
    parser.add_argument(
        "--dims",
        default="",
        help="List of output boxes formatted as name1:width1,height1;name2:width2,height2",
    )
    parser.add_argument(
        "--thumb-size",
        type=int,
        default=DEFAULT_THUMB_SIZE,
        help="Size of the square thumbnail in pixels (default 128)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Number of variants derived in parallel",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Download timeout in seconds when --input is a URL",
    )


def _add_cleanup_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dest", required=True, help="Destination bucket")
    parser.add_argument("--prefix", required=True, help="Folder of the objects to delete")
    parser.add_argument("--max-keys", type=int, default=1000, help="List page size")
    parser.add_argument("--region", default=None, help="AWS region of the bucket")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list what would be deleted",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Derive resized image variants or clean up derived images.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    derive_parser = subparsers.add_parser(
        "derive", help="Derive orig, resized variants and a thumbnail from one image"
    )
    _add_derive_arguments(derive_parser)

    cleanup_parser = subparsers.add_parser(
        "cleanup", help="Delete every object under a prefix of the destination bucket"
    )
    _add_cleanup_arguments(cleanup_parser)

    metadata_parser = subparsers.add_parser("metadata", help="Print image metadata")
    metadata_parser.add_argument("path", type=Path, help="Image file")

    return parser.parse_args(argv)


def _run_derive(args: argparse.Namespace) -> int:
    if args.thumb_size <= 0 or args.workers <= 0:
        print("Error: --thumb-size and --workers must be positive", file=sys.stderr)
        return 2
    try:
        config = VariantConfig(
            plan=build_plan(args.dims, args.formats),
            thumb_size=args.thumb_size,
            max_workers=args.workers,
        )
        result = derive_variants(
            source_for(args.input, timeout=args.timeout),
            LocalDirSink(args.output),
            config,
        )
    except PhotosError as exc:
        print(f"Error processing image: {exc}", file=sys.stderr)
        return 1

    print(result.status)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    for failure in result.failures:
        print(f"Error: {failure.spec.filename}: {failure.reason}", file=sys.stderr)
    return 0 if result.ok else 1


def _run_cleanup(args: argparse.Namespace) -> int:
    prefix = args.prefix.strip("/")
    if not prefix:
        print("Error: refusing to delete from the bucket root", file=sys.stderr)
        return 2
    print(f"dest={args.dest}, prefix={prefix}")
    try:
        client = s3.get_s3_client(args.region)
        objects = s3.list_objects(client, args.dest, f"{prefix}/", args.max_keys)
        print("WOULD DELETE:" if args.dry_run else "DELETING:")
        for obj in objects:
            print(f"key={obj['key']}, size={obj['size']}")
        if objects and not args.dry_run:
            s3.delete_keys(client, args.dest, [obj["key"] for obj in objects])
    except PhotosError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def _run_metadata(args: argparse.Namespace) -> int:
    try:
        with Image.open(args.path) as img:
            exif = img.getexif()
            print(f"format: {img.format}")
            print(f"size: {img.width}x{img.height}")
            print(f"mode: {img.mode}")
            print(f"orientation: {exif.get(EXIF_ORIENTATION_TAG, 1)}")
            print(f"exif: {len(exif) > 0}")
            print(f"icc_profile: {'icc_profile' in img.info}")
    except (OSError, UnidentifiedImageError) as exc:
        print(f"Error reading {args.path}: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    if args.command == "derive":
        return _run_derive(args)
    if args.command == "cleanup":
        return _run_cleanup(args)
    return _run_metadata(args)


if __name__ == "__main__":
    sys.exit(main())
