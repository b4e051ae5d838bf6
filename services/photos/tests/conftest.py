import io
import json
from collections.abc import Generator

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from photos import s3
from photos.variants.constants import EXIF_ORIENTATION_TAG


_ENV_VARS = (
    "DESTINATION_BUCKET",
    "AWS_REGION",
    "DIMENSIONS",
    "FORMATS",
    "THUMB_SIZE",
    "MAX_WORKERS",
    "MAX_KEYS",
    "CLEANUP_FILENAME",
    "LOG_LEVEL",
)


class FakeS3Client:
    """In-memory stand-in for the handful of boto3 S3 calls the pipeline makes."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], dict] = {}
        self.list_calls: list[dict] = []
        self.delete_calls: list[list[str]] = []

    def add(self, bucket: str, key: str, data: bytes, content_type: str = "image/jpeg") -> None:
        self.objects[(bucket, key)] = {"Body": data, "ContentType": content_type}

    def keys(self, bucket: str) -> list[str]:
        return sorted(key for (b, key) in self.objects if b == bucket)

    def get_object(self, Bucket: str, Key: str) -> dict:
        if (Bucket, Key) not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        obj = self.objects[(Bucket, Key)]
        return {"Body": io.BytesIO(obj["Body"]), "ContentType": obj["ContentType"]}

    def put_object(self, Bucket: str, Key: str, Body: bytes, **kwargs) -> dict:
        self.objects[(Bucket, Key)] = {"Body": Body, **kwargs}
        return {}

    def list_objects_v2(
        self,
        Bucket: str,
        Prefix: str = "",
        MaxKeys: int = 1000,
        ContinuationToken: str | None = None,
    ) -> dict:
        self.list_calls.append({"Prefix": Prefix, "MaxKeys": MaxKeys, "ContinuationToken": ContinuationToken})
        keys = [key for key in self.keys(Bucket) if key.startswith(Prefix)]
        start = int(ContinuationToken or 0)
        page = keys[start:start + MaxKeys]
        response: dict = {
            "Contents": [{"Key": key, "Size": len(self.objects[(Bucket, key)]["Body"])} for key in page],
            "IsTruncated": start + MaxKeys < len(keys),
        }
        if response["IsTruncated"]:
            response["NextContinuationToken"] = str(start + MaxKeys)
        return response

    def delete_objects(self, Bucket: str, Delete: dict) -> dict:
        keys = [obj["Key"] for obj in Delete["Objects"]]
        self.delete_calls.append(keys)
        for key in keys:
            self.objects.pop((Bucket, key), None)
        return {"Deleted": [{"Key": key} for key in keys]}


def make_image(
    width: int,
    height: int,
    fmt: str = "JPEG",
    mode: str = "RGB",
    orientation: int | None = None,
    exif_tags: dict[int, object] | None = None,
) -> bytes:
    """Encode a synthetic image with a gradient so resampling has work to do."""
    gradient = Image.linear_gradient("L").resize((width, height))
    img = Image.merge("RGB", (gradient, gradient.transpose(Image.Transpose.FLIP_LEFT_RIGHT), gradient))
    if mode != "RGB":
        img = img.convert(mode)
    params: dict = {}
    if orientation is not None or exif_tags:
        exif = Image.Exif()
        for tag, value in (exif_tags or {}).items():
            exif[tag] = value
        if orientation is not None:
            exif[EXIF_ORIENTATION_TAG] = orientation
        params["exif"] = exif.tobytes()
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def s3_event(bucket: str, key: str, event_name: str = "ObjectCreated:Put") -> dict:
    return {
        "Records": [
            {
                "eventSource": "aws:s3",
                "eventName": event_name,
                "s3": {"bucket": {"name": bucket}, "object": {"key": key}},
            }
        ]
    }


def sqs_event(*s3_events: dict) -> dict:
    return {
        "Records": [
            {"eventSource": "aws:sqs", "body": json.dumps(event)}
            for event in s3_events
        ]
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_s3(monkeypatch: pytest.MonkeyPatch) -> Generator[FakeS3Client, None, None]:
    client = FakeS3Client()
    monkeypatch.setattr(s3, "get_s3_client", lambda region_name=None: client)
    yield client


@pytest.fixture(scope="session")
def large_jpeg() -> bytes:
    return make_image(4000, 3000)


@pytest.fixture
def small_jpeg() -> bytes:
    return make_image(640, 480)
