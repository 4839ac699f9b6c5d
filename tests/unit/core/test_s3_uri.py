"""Unit tests for S3 URI parsing."""

from __future__ import annotations

import pytest

from core.errors import IngestError
from core.s3_uri import is_s3_uri, parse_s3_uri


def test_parse_s3_uri_splits_bucket_and_key() -> None:
    """Parser should split the first path segment as bucket."""
    location = parse_s3_uri("s3://exports/team-a/session.zip")

    assert (location.bucket, location.key) == ("exports", "team-a/session.zip")
    assert is_s3_uri("s3://exports/team-a/session.zip")


@pytest.mark.parametrize("uri", ["s3://exports", "s3:///key.json", "s3://exports/folder/"])
def test_parse_s3_uri_rejects_incomplete_uris(uri: str) -> None:
    """Parser should reject URIs without a bucket or object key."""
    with pytest.raises(IngestError):
        parse_s3_uri(uri)
