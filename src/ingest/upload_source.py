"""Upload source readers for the CLI and SDK.

This module loads upload bytes from a local file or an S3 object
and infers a content-type hint from the source name.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.config import PitchStoreConfig
from core.errors import DependencyError, IngestError
from core.s3_uri import is_s3_uri, parse_s3_uri


@dataclass(frozen=True)
class UploadSource:
    """Raw upload bytes with their content-type hint."""

    body: bytes
    content_type: str


def read_upload_source(
    source_uri: str,
    config: PitchStoreConfig,
    content_type: str | None = None,
) -> UploadSource:
    """Load an upload from a local path or ``s3://`` URI.

    Args:
        source_uri: Local file path or S3 object URI.
        config: Runtime configuration for S3 session defaults.
        content_type: Optional explicit content type.

    Returns:
        Upload bytes and content type.

    Raises:
        IngestError: If the source cannot be read.
    """
    hint = content_type or _guess_content_type(source_uri)
    if is_s3_uri(source_uri):
        return UploadSource(body=_read_s3_object(source_uri, config), content_type=hint)
    source_path = Path(source_uri).expanduser()
    if not source_path.is_file():
        raise IngestError(
            f"Failed to read upload at {source_path}: file does not exist. "
            "Provide a session JSON file or tracker ZIP export."
        )
    return UploadSource(body=source_path.read_bytes(), content_type=hint)


def _guess_content_type(source_uri: str) -> str:
    """Return a content-type hint derived from the file extension."""
    if source_uri.lower().endswith(".zip"):
        return "application/zip"
    return "application/json"


def _read_s3_object(source_uri: str, config: PitchStoreConfig) -> bytes:
    """Download one object body from S3.

    Args:
        source_uri: S3 object URI.
        config: Runtime config containing optional profile/region.

    Returns:
        Object bytes.

    Raises:
        IngestError: If the download fails.
    """
    location = parse_s3_uri(source_uri)
    s3_client = _create_s3_client(config)
    try:
        return s3_client.get_object(Bucket=location.bucket, Key=location.key)["Body"].read()
    except Exception as error:
        raise IngestError(
            f"Failed to download upload from {source_uri}: {error}. "
            "Check AWS credentials and that the object exists."
        ) from error


def _create_s3_client(config: PitchStoreConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.

    Raises:
        DependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise DependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to ingest from s3:// sources."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")
