"""
AWS S3 utilities — object download, upload, listing and bulk delete.

Key layout:
  Source bucket:       media/images/tags/bread/orig.jpg
  Destination bucket:  media/images/tags/bread/orig.jpeg
                       media/images/tags/bread/1200.webp
                       media/images/tags/bread/thumbnail.jpeg  ...

Derived objects live in the folder of the source object, so the folder
prefix is all that is needed to find (and delete) the whole family.
"""
from __future__ import annotations

import functools
import logging
from collections.abc import Iterable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from photos.exceptions import EventError, SourceError, StorageError

logger = logging.getLogger(__name__)

# Long-lived cache headers for derived images (keys never change content)
CACHE_CONTROL = "max-age=31536000"

# DeleteObjects accepts at most 1000 keys per request
_DELETE_BATCH_SIZE = 1000


@functools.lru_cache(maxsize=None)
def get_s3_client(region_name: str | None = None) -> Any:
    """Return a process-wide S3 client (re-used across warm Lambda invocations)."""
    if region_name:
        return boto3.client("s3", region_name=region_name)
    return boto3.client("s3")


# ── Keys ─────────────────────────────────────────────────────────────────────

def split_key(key: str) -> tuple[str, str]:
    """Separate folder from filename.

    media/images/tags/bread/orig.jpg -> ("media/images/tags/bread", "orig.jpg")
    orig.jpg                         -> ("", "orig.jpg")
    """
    if not key or key.endswith("/"):
        raise EventError(f"no filename found in object key: {key!r}")
    prefix, _, filename = key.rpartition("/")
    return prefix, filename


def destination_prefix(key: str) -> str:
    """Folder holding every object derived from ``key``.

    Refuses root-level keys: their folder would be the whole bucket.
    """
    prefix, _ = split_key(key)
    if not prefix:
        raise EventError(f"refusing to use the bucket root as prefix for key: {key!r}")
    return prefix


def join_key(prefix: str, filename: str) -> str:
    return f"{prefix}/{filename}" if prefix else filename


# ── Objects ──────────────────────────────────────────────────────────────────

def fetch_object(client: Any, bucket: str, key: str) -> bytes:
    """Download an object's bytes. Missing or empty objects raise SourceError."""
    try:
        response = client.get_object(Bucket=bucket, Key=key)
        data: bytes = response["Body"].read()
    except ClientError as exc:
        error_code = exc.response.get("Error", {}).get("Code", "")
        if error_code in ("404", "NoSuchKey"):
            raise SourceError(f"s3://{bucket}/{key} does not exist") from exc
        raise StorageError(f"get_object failed for s3://{bucket}/{key}: {exc}") from exc
    except BotoCoreError as exc:
        raise StorageError(f"get_object failed for s3://{bucket}/{key}: {exc}") from exc
    if not data:
        raise SourceError(f"s3://{bucket}/{key} is empty")
    logger.info("Downloaded s3://%s/%s (%d bytes)", bucket, key, len(data))
    return data


def put_object(client: Any, bucket: str, key: str, data: bytes, content_type: str) -> str:
    """Upload ``data`` and return its s3:// URL."""
    try:
        client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl=CACHE_CONTROL,
        )
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"put_object failed for s3://{bucket}/{key}: {exc}") from exc
    logger.info("Uploaded s3://%s/%s (%d bytes)", bucket, key, len(data))
    return f"s3://{bucket}/{key}"


def list_objects(client: Any, bucket: str, prefix: str, page_size: int = 1000) -> list[dict]:
    """Every object under ``prefix`` as {"key", "size"} dicts, across all pages."""
    objects: list[dict] = []
    params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": page_size}
    try:
        while True:
            response = client.list_objects_v2(**params)
            for item in response.get("Contents", []):
                objects.append({"key": item["Key"], "size": item.get("Size", 0)})
            if not response.get("IsTruncated"):
                break
            params["ContinuationToken"] = response["NextContinuationToken"]
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"list_objects_v2 failed for s3://{bucket}/{prefix}: {exc}") from exc
    return objects


def list_keys(client: Any, bucket: str, prefix: str, page_size: int = 1000) -> list[str]:
    return [obj["key"] for obj in list_objects(client, bucket, prefix, page_size)]


def delete_keys(client: Any, bucket: str, keys: Iterable[str]) -> list[str]:
    """Delete ``keys`` in batches. Returns the deleted keys.

    Raises StorageError when S3 rejects the request or reports per-key errors.
    """
    keys = list(keys)
    deleted: list[str] = []
    for start in range(0, len(keys), _DELETE_BATCH_SIZE):
        batch = keys[start:start + _DELETE_BATCH_SIZE]
        try:
            response = client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": False},
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"delete_objects failed in s3://{bucket}: {exc}") from exc
        errors = response.get("Errors", [])
        if errors:
            details = ", ".join(f"{e.get('Key')}: {e.get('Code')}" for e in errors)
            raise StorageError(f"could not delete from s3://{bucket}: {details}")
        deleted.extend(item["Key"] for item in response.get("Deleted", []))
    for key in deleted:
        logger.info("Deleted s3://%s/%s", bucket, key)
    return deleted
