"""
Where source bytes come from and where derived artifacts go.

Sources: S3 object, local file, HTTP(S) URL.
Sinks:   S3 folder, local directory.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

import requests

from photos import s3
from photos.exceptions import SourceError, StorageError
from photos.variants.schemas import DerivedArtifact

logger = logging.getLogger(__name__)


class Source(Protocol):
    def fetch(self) -> bytes: ...

    def describe(self) -> str: ...


class Sink(Protocol):
    def write(self, artifact: DerivedArtifact) -> str: ...


# ── Sources ──────────────────────────────────────────────────────────────────

class S3Source:
    def __init__(self, client: Any, bucket: str, key: str) -> None:
        self.client = client
        self.bucket = bucket
        self.key = key

    def fetch(self) -> bytes:
        return s3.fetch_object(self.client, self.bucket, self.key)

    def describe(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class LocalFileSource:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def fetch(self) -> bytes:
        try:
            data = self.path.read_bytes()
        except OSError as exc:
            raise SourceError(f"Error loading file: {self.path}: {exc}") from exc
        if not data:
            raise SourceError(f"{self.path} is empty")
        return data

    def describe(self) -> str:
        return str(self.path)


class HttpSource:
    def __init__(self, url: str, timeout: float = 30.0) -> None:
        self.url = url
        self.timeout = timeout

    def fetch(self) -> bytes:
        try:
            resp = requests.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise SourceError(f"Error downloading {self.url}: {exc}") from exc
        if not resp.content:
            raise SourceError(f"{self.url} returned no content")
        logger.info("Downloaded %s (%d bytes)", self.url, len(resp.content))
        return resp.content

    def describe(self) -> str:
        return self.url


def source_for(location: str, timeout: float = 30.0) -> Source:
    """Pick a source from a CLI-style location: http(s) URL or local path."""
    if location.startswith(("http://", "https://")):
        return HttpSource(location, timeout=timeout)
    return LocalFileSource(location)


# ── Sinks ────────────────────────────────────────────────────────────────────

class S3Sink:
    """Uploads artifacts into ``prefix`` of ``bucket``."""

    def __init__(self, client: Any, bucket: str, prefix: str) -> None:
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def write(self, artifact: DerivedArtifact) -> str:
        key = s3.join_key(self.prefix, artifact.path)
        return s3.put_object(self.client, self.bucket, key, artifact.data, artifact.content_type)


class LocalDirSink:
    """Writes artifacts into a local directory, creating it on first use."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def write(self, artifact: DerivedArtifact) -> str:
        target = self.directory / artifact.path
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            target.write_bytes(artifact.data)
        except OSError as exc:
            raise StorageError(f"Error writing {target}: {exc}") from exc
        logger.info("Wrote %s (%d bytes)", target, len(artifact.data))
        return str(target)
