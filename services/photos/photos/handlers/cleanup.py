"""
AWS Lambda handler — Derived Image Cleanup

Triggered by S3 ObjectRemoved events on the source (raw upload) bucket.

A deleted source object is a single file, e.g. media/images/tags/bread/orig.jpeg.
Its derived images share its folder in the destination bucket:
  media/images/tags/bread/1200.webp
  media/images/tags/bread/1200.jpeg
  media/images/tags/bread/992.webp ...
so everything under media/images/tags/bread/ is deleted there.

Environment variables:
  DESTINATION_BUCKET  — bucket holding the derived images (required)
  MAX_KEYS            — list page size (default: 1000)
  CLEANUP_FILENAME    — when set, delete only <folder>/<CLEANUP_FILENAME>
"""
from __future__ import annotations

import logging

from photos import s3
from photos.config import Settings, load_settings
from photos.events import object_ref, s3_records
from photos.exceptions import ConfigError, EventError, PhotosError
from photos.variants.service import purge_derived

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — deletes derived images for every removed source object."""
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
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return {
            "statusCode": 200,
            "results": [{"status": "Error", "message": f"Error: {exc}"} for _ in records],
        }

    client = s3.get_s3_client(settings.aws_region or None)
    results = [_cleanup(record, client, settings) for record in records]
    return {"statusCode": 200, "results": results}


def _cleanup(record: dict, client: object, settings: Settings) -> dict:
    """Delete the derived family of a single removed object."""
    key = record.get("s3", {}).get("object", {}).get("key", "")
    try:
        ref = object_ref(record)
        key = ref.key
        deleted = purge_derived(
            client,
            settings.destination_bucket,
            ref.key,
            page_size=settings.max_keys,
            filename=settings.cleanup_filename or None,
        )
    except PhotosError as exc:
        logger.error("Error deleting derived images of %s from %s: %s", key, settings.destination_bucket, exc)
        return {"status": "Error", "key": key, "message": f"Error: {exc}"}
    except Exception as exc:
        logger.exception("Unexpected error deleting derived images of %s", key)
        return {"status": "Error", "key": key, "message": f"Error: {exc}"}

    logger.info("Deleted %d object(s) derived from %s", len(deleted), key)
    return {"status": "Success", "key": key, "deleted": deleted}
