"""
AWS Lambda handler — Image Variants

Triggered by S3 PutObject events on the source (raw upload) bucket, directly
or through an SQS queue.

Flow:
  1. Downloads the original image from S3.
  2. Normalizes it (auto-orient, strip metadata, JPEG) -> orig.jpeg.
  3. Derives one image per configured box x format, fitted inside the box.
  4. Creates a square JPEG thumbnail.
  5. Uploads everything to DESTINATION_BUCKET under the source key's folder:
       <source>/media/images/tags/bread/orig.jpg
       -> <destination>/media/images/tags/bread/{orig.jpeg,1200.webp,...,thumbnail.jpeg}

Environment variables:
  DESTINATION_BUCKET  — S3 bucket for derived images (required)
  DIMENSIONS          — "label:width,height;..." (default: 6 breakpoints)
  FORMATS             — "jpeg,webp,..." (default: jpeg,webp)
  THUMB_SIZE          — thumbnail size in pixels (default: 128)
  MAX_WORKERS         — parallel variant derivations (default: 4)
"""
from __future__ import annotations

import logging

from photos import s3
from photos.config import load_settings
from photos.events import object_ref, s3_records
from photos.exceptions import ConfigError, EventError, PhotosError
from photos.sources import S3Sink, S3Source
from photos.variants.schemas import VariantConfig
from photos.variants.service import derive_variants

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — derives variants for every uploaded object in the event."""
    try:
        records = s3_records(event)
    except EventError as exc:
        logger.error("Malformed event: %s", exc)
        return {"statusCode": 200, "results": [{"status": "Error", "message": f"Error: {exc}"}]}

    try:
        settings = load_settings()
        logger.setLevel(settings.log_level)
        if not settings.destination_bucket:
            raise ConfigError("environment variable DESTINATION_BUCKET not set")
        config = settings.variant_config()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return {
            "statusCode": 200,
            "results": [{"status": "Error", "message": f"Error: {exc}"} for _ in records],
        }

    client = s3.get_s3_client(settings.aws_region or None)
    results = [
        _process_image(record, client, settings.destination_bucket, config)
        for record in records
    ]
    return {"statusCode": 200, "results": results}


def _process_image(record: dict, client: object, destination_bucket: str, config: VariantConfig) -> dict:
    """Process a single image upload."""
    key = record.get("s3", {}).get("object", {}).get("key", "")
    try:
        ref = object_ref(record)
        key = ref.key
        # root-level keys are refused here too, cleanup could never remove their artifacts
        prefix = s3.destination_prefix(ref.key)
        logger.info("Processing image: s3://%s/%s (prefix=%r)", ref.bucket, ref.key, prefix)

        result = derive_variants(
            S3Source(client, ref.bucket, ref.key),
            S3Sink(client, destination_bucket, prefix),
            config,
        )
    except PhotosError as exc:
        logger.error("Error processing image %s: %s", key, exc)
        return {"status": "Error", "key": key, "message": f"Error: {exc}"}
    except Exception as exc:
        logger.exception("Unexpected error processing image %s", key)
        return {"status": "Error", "key": key, "message": f"Error: {exc}"}

    return {
        "status": "Success" if result.ok else "Partial",
        "message": result.status,
        "key": ref.key,
        "destination": f"s3://{destination_bucket}/{s3.join_key(prefix, '')}",
        "artifacts": result.filenames,
        "failed": [
            {"file": failure.spec.filename, "reason": failure.reason}
            for failure in result.failures
        ],
        "warnings": result.warnings,
    }
