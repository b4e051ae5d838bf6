"""
Pipeline drivers — glue between sources, the variant engine and sinks.

Used by the Lambda handlers and by the command line.
"""
from __future__ import annotations

import logging
from typing import Any

from photos import s3
from photos.sources import Sink, Source
from photos.variants.engine import ImageVariantEngine
from photos.variants.schemas import DerivationResult, VariantConfig

logger = logging.getLogger(__name__)


def derive_variants(source: Source, sink: Sink, config: VariantConfig) -> DerivationResult:
    """Fetch the source, derive every artifact and write the successful ones.

    SourceError / ProcessingError propagate before anything is written.
    Variant failures are left in the returned result for the caller to report.
    """
    data = source.fetch()
    result = ImageVariantEngine(config).derive(data)
    for artifact in result.artifacts:
        sink.write(artifact)
    logger.info(
        "Derived %d artifact(s) from %s: %s",
        len(result.artifacts), source.describe(), result.status,
    )
    return result


def purge_derived(
    client: Any,
    bucket: str,
    source_key: str,
    *,
    page_size: int = 1000,
    filename: str | None = None,
) -> list[str]:
    """Delete the objects derived from ``source_key`` in ``bucket``.

    By default the whole folder of the source key is removed. With
    ``filename`` only ``<folder>/<filename>`` is deleted.
    """
    prefix = s3.destination_prefix(source_key)
    if filename:
        keys = [s3.join_key(prefix, filename)]
    else:
        keys = s3.list_keys(client, bucket, f"{prefix}/", page_size)
    if not keys:
        logger.info("Nothing to delete under s3://%s/%s/", bucket, prefix)
        return []
    return s3.delete_keys(client, bucket, keys)
