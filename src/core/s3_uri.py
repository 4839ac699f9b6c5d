"""S3 URI parsing helpers.

This module parses object URIs used as upload sources.
It keeps URI validation behavior consistent for the CLI and SDK.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import IngestError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 object location."""

    bucket: str
    key: str


def is_s3_uri(uri: str) -> bool:
    """Return whether a source string addresses an S3 object."""
    return uri.startswith("s3://")


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.

    Returns:
        Parsed bucket and key pair.

    Raises:
        IngestError: If bucket or key is missing.
    """
    stripped_uri = uri.removeprefix("s3://")
    bucket, _, key = stripped_uri.partition("/")
    if not bucket or not key or key.endswith("/"):
        raise IngestError(
            f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
            "Provide both a bucket and an object key."
        )
    return S3Location(bucket=bucket, key=key)
