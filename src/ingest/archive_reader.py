"""Upload body decoding for JSON documents and ZIP exports.

A tracker export is a ZIP archive holding a session summary (or a
session manifest) plus optional ``pitch_<n>/manifest.json`` detail
files. This module unpacks such archives into the same document shape
a plain JSON upload has, merging per-pitch detail by position.
"""

from __future__ import annotations

import io
import json
import re
import zipfile
import zlib
from typing import Any

from core.constants import (
    ENRICHMENT_FIELD_NAMES,
    JSON_DOCUMENT_EXTENSION,
    MANIFEST_FILE_NAME,
    SESSION_SUMMARY_FILE_NAME,
    ZIP_LOCAL_FILE_SIGNATURE,
)
from core.errors import MissingSessionDataError, ParseError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

_PITCH_DETAIL_PATH = re.compile(r"(?:^|/)pitch_(\d+)/manifest\.json$")


def read_upload(body: bytes, content_type: str | None = None) -> dict[str, Any]:
    """Decode an upload body into a session document.

    Args:
        body: Raw request bytes.
        content_type: Declared content type, used as an archive hint.

    Returns:
        Session document prior to field normalization.

    Raises:
        ParseError: If the body is not a readable document or archive.
        MissingSessionDataError: If an archive has no session document.
    """
    if is_archive(body) or "zip" in (content_type or "").lower():
        return read_archive_session(body)
    return parse_json_document(body)


def is_archive(body: bytes) -> bool:
    """Return whether a body starts with the ZIP local-file signature."""
    return body[:4] == ZIP_LOCAL_FILE_SIGNATURE


def parse_json_document(body: bytes) -> dict[str, Any]:
    """Parse a plain JSON upload.

    Args:
        body: Raw request bytes.

    Returns:
        Parsed JSON object.

    Raises:
        ParseError: If the body is not UTF-8 JSON with an object root.
    """
    try:
        payload = json.loads(body.decode("utf-8-sig"))
    except UnicodeDecodeError as error:
        raise ParseError(
            f"Failed to parse file: body is not UTF-8 text ({error.reason})"
        ) from error
    except json.JSONDecodeError as error:
        raise ParseError(
            f"Failed to parse file: {error.msg} at line {error.lineno} column {error.colno}"
        ) from error
    except (ValueError, RecursionError) as error:
        raise ParseError(f"Failed to parse file: {error}") from error
    if not isinstance(payload, dict):
        raise ParseError("Failed to parse file: expected a JSON object at the top level")
    return payload


def extract_archive_documents(body: bytes) -> dict[str, Any]:
    """Parse every JSON entry of a ZIP archive.

    Entries that fail to decode are logged and skipped so that one
    corrupt auxiliary file does not abort the extraction.

    Args:
        body: Raw archive bytes.

    Returns:
        Parsed documents keyed by full entry path, in archive order.

    Raises:
        ParseError: If the archive itself cannot be read.
    """
    documents: dict[str, Any] = {}
    try:
        with zipfile.ZipFile(io.BytesIO(body)) as archive:
            for entry in archive.infolist():
                if entry.is_dir() or not entry.filename.endswith(JSON_DOCUMENT_EXTENSION):
                    continue
                try:
                    raw_entry = archive.read(entry)
                    documents[entry.filename] = json.loads(raw_entry.decode("utf-8-sig"))
                except (
                    ValueError,
                    RuntimeError,
                    NotImplementedError,
                    zipfile.BadZipFile,
                    zlib.error,
                ) as error:
                    _LOGGER.warning("archive_entry_skipped", entry=entry.filename, error=str(error))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as error:
        raise ParseError(f"Failed to extract ZIP contents: {error}") from error
    return documents


def read_archive_session(body: bytes) -> dict[str, Any]:
    """Build a session document from a tracker ZIP export.

    Args:
        body: Raw archive bytes.

    Returns:
        Session document with per-pitch detail merged in.

    Raises:
        ParseError: If the archive cannot be read.
        MissingSessionDataError: If no session document is present.
    """
    documents = extract_archive_documents(body)
    session_path = _find_session_document(documents)
    if session_path is None:
        raise MissingSessionDataError(
            "ZIP file must contain either manifest.json or session_summary.json"
        )
    session = documents[session_path]
    if not isinstance(session, dict):
        raise MissingSessionDataError(f"No valid session data found in ZIP entry {session_path}")
    session = dict(session)
    details = _pitch_detail_documents(documents)
    pitches = session.get("pitches")
    if details and isinstance(pitches, list):
        session["pitches"] = merge_pitch_details(pitches, details)
    _LOGGER.info(
        "archive_session_extracted",
        session_entry=session_path,
        json_entries=len(documents),
        pitch_detail_files=len(details),
    )
    return session


def merge_pitch_details(pitches: list[Any], details: list[dict[str, Any]]) -> list[Any]:
    """Overlay enrichment fields from detail files onto summary pitches.

    Pitches and detail files are paired by position. Summary fields are
    kept unless the detail file supplies a value for the same field.

    Args:
        pitches: Pitch list from the session document.
        details: Per-pitch detail documents in pitch order.

    Returns:
        New pitch list with enrichment applied.
    """
    merged: list[Any] = []
    for index, pitch in enumerate(pitches):
        if index >= len(details) or not isinstance(pitch, dict):
            merged.append(pitch)
            continue
        merged.append({**pitch, **_enrichment_fields(details[index])})
    return merged


def _find_session_document(documents: dict[str, Any]) -> str | None:
    """Return the path of the session summary, else the session manifest."""
    for path in documents:
        if _entry_name(path) == SESSION_SUMMARY_FILE_NAME:
            return path
    manifests = [
        path
        for path in documents
        if _entry_name(path) == MANIFEST_FILE_NAME and not _PITCH_DETAIL_PATH.search(path)
    ]
    if not manifests:
        return None
    return min(manifests, key=lambda path: path.count("/"))


def _entry_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _pitch_detail_documents(documents: dict[str, Any]) -> list[dict[str, Any]]:
    """Collect per-pitch detail documents ordered by pitch number."""
    numbered: list[tuple[int, str]] = []
    for path in documents:
        match = _PITCH_DETAIL_PATH.search(path)
        if match and isinstance(documents[path], dict):
            numbered.append((int(match.group(1)), path))
    return [documents[path] for _, path in sorted(numbered)]


def _enrichment_fields(detail: dict[str, Any]) -> dict[str, Any]:
    """Pick the non-null enrichment values from a detail document."""
    fields: dict[str, Any] = {}
    for name in ENRICHMENT_FIELD_NAMES:
        value = detail.get(name)
        if value is None and name == "rotation_rpm":
            value = detail.get("rpm")
        if value is not None:
            fields[name] = value
    return fields
