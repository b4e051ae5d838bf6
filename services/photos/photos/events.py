"""
S3 event parsing shared by the Lambda handlers.

Handlers receive either S3 notifications directly or S3 notifications
wrapped in SQS messages; both are flattened into plain S3 records here.
"""
from __future__ import annotations

import json
import urllib.parse
from dataclasses import dataclass

from photos.exceptions import EventError


@dataclass(frozen=True)
class ObjectRef:
    bucket: str
    key: str
    event_name: str = ""


def s3_records(event: dict) -> list[dict]:
    """Flatten direct and SQS-wrapped S3 records. Raises EventError on a bad SQS body."""
    records = []
    for record in event.get("Records", []):
        # SQS wrapper: unwrap the S3 event from the SQS message body
        if record.get("eventSource") == "aws:sqs":
            try:
                body = json.loads(record.get("body") or "{}")
            except json.JSONDecodeError as exc:
                raise EventError(f"malformed SQS message body: {exc}") from exc
            if not isinstance(body, dict):
                raise EventError("malformed SQS message body: not a JSON object")
            records.extend(body.get("Records", []))
        else:
            records.append(record)
    return records


def object_ref(record: dict) -> ObjectRef:
    """Bucket and (URL-decoded) key of one S3 record."""
    s3_info = record.get("s3", {})
    bucket = s3_info.get("bucket", {}).get("name", "")
    key = urllib.parse.unquote_plus(s3_info.get("object", {}).get("key", ""))
    if not bucket or not key:
        raise EventError("Missing bucket or key")
    return ObjectRef(bucket=bucket, key=key, event_name=record.get("eventName", ""))
