"""Unit tests for upload source readers."""

from __future__ import annotations

import io
from dataclasses import replace

import pytest

from core.config import PitchStoreConfig
from core.errors import IngestError
from ingest import upload_source
from ingest.upload_source import read_upload_source


class _FakeS3Client:
    def __init__(self) -> None:
        self.requests: list[tuple[str, str]] = []

    def get_object(self, Bucket: str, Key: str) -> dict:
        self.requests.append((Bucket, Key))
        return {"Body": io.BytesIO(b'{"session_id": "s3"}')}


def test_read_local_file_infers_content_type(tmp_path) -> None:
    """Local ZIP files should be tagged as archives."""
    archive_path = tmp_path / "export.zip"
    archive_path.write_bytes(b"PK\x03\x04")

    source = read_upload_source(str(archive_path), PitchStoreConfig.from_env())

    assert source.content_type == "application/zip" and source.body == b"PK\x03\x04"


def test_explicit_content_type_wins(tmp_path) -> None:
    """Explicit content types should override extension inference."""
    json_path = tmp_path / "session.zip"
    json_path.write_bytes(b"{}")

    source = read_upload_source(str(json_path), PitchStoreConfig.from_env(), "application/json")

    assert source.content_type == "application/json"


def test_missing_local_file_raises(tmp_path) -> None:
    """Missing local sources should fail with guidance."""
    with pytest.raises(IngestError, match="does not exist"):
        read_upload_source(str(tmp_path / "absent.json"), PitchStoreConfig.from_env())


def test_read_s3_object(monkeypatch: pytest.MonkeyPatch) -> None:
    """S3 sources should download the object body."""
    client = _FakeS3Client()
    monkeypatch.setattr(upload_source, "_create_s3_client", lambda config: client)
    config = replace(PitchStoreConfig.from_env(), s3_region="us-east-1")

    source = read_upload_source("s3://exports/team/session.json", config)

    assert client.requests == [("exports", "team/session.json")]
    assert source.body == b'{"session_id": "s3"}'
    assert source.content_type == "application/json"
