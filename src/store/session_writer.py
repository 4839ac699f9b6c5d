"""Session persistence with compensating rollback.

The session record is written first, then pitch records are submitted
as sequential single-partition transactions. When any pitch batch
fails the session record is deleted again so a listing never exposes
a session whose pitches are incomplete.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

from core.constants import TABLE_TRANSACTION_LIMIT
from core.errors import StoreError, TransactionFailedError
from core.logging_config import get_logger
from core.types import NormalizedPitch, NormalizedSession, WriteResult
from store.table_client import SessionTables, TableEntity
from store.table_filters import ensure_safe_identifier
from store.table_keys import to_table_key

_LOGGER = get_logger(__name__)

_PITCH_FIELDS = (
    ("speed", "speed"),
    ("run", "run"),
    ("rise", "rise"),
    ("zone", "zone"),
    ("zoneRow", "zone_row"),
    ("zoneCol", "zone_col"),
    ("isStrike", "is_strike"),
    ("rotationRpm", "rotation_rpm"),
    ("spinAxis", "spin_axis"),
    ("spinEfficiency", "spin_efficiency"),
    ("confidence", "confidence"),
    ("plateX", "plate_x"),
    ("plateZ", "plate_z"),
    ("releaseHeight", "release_height"),
    ("releaseSide", "release_side"),
    ("extension", "extension"),
)


class SessionWriter:
    """Writes one session and its pitches as a compensated unit."""

    def __init__(self, tables: SessionTables) -> None:
        self._tables = tables

    def write(
        self,
        user_id: str,
        session: NormalizedSession,
        raw_payload: Mapping[str, Any],
    ) -> WriteResult:
        """Persist a normalized session for its owner.

        Args:
            user_id: Owning identity, used as the session partition.
            session: Normalized session with pitches.
            raw_payload: Original upload payload kept for audit.

        Returns:
            Final session key, pitch count, and batch count.

        Raises:
            UnsafeIdentifierError: If the user id or the sanitized session
                key fails the allow-list.
            StoreError: If the session record cannot be written.
            TransactionFailedError: If a pitch batch failed and the
                session record was rolled back.
        """
        ensure_safe_identifier(user_id, "userId")
        session_key = to_table_key(session.session_id)
        ensure_safe_identifier(session_key, "sessionKey")
        session_entity = build_session_entity(user_id, session_key, session, raw_payload)
        self._tables.sessions.upsert_entity(session_entity)
        pitch_entities = [
            build_pitch_entity(session_key, session.session_id, pitch) for pitch in session.pitches
        ]
        batches = list(chunk_entities(pitch_entities, TABLE_TRANSACTION_LIMIT))
        batches_completed = 0
        try:
            for batch in batches:
                self._tables.pitches.submit_transaction(batch)
                batches_completed += 1
        except StoreError as error:
            _LOGGER.error(
                "pitch_batch_failed",
                user_id=user_id,
                session_id=session.session_id,
                session_key=session_key,
                batches_completed=batches_completed,
                total_batches=len(batches),
                error=str(error),
            )
            self._compensate(user_id, session_key)
            raise TransactionFailedError(
                "Transaction failed: unable to save all pitch data. "
                "The session write has been rolled back.",
                batches_completed=batches_completed,
                total_batches=len(batches),
            ) from error
        _LOGGER.info(
            "session_written",
            user_id=user_id,
            session_key=session_key,
            pitch_records=len(pitch_entities),
            batches_submitted=batches_completed,
        )
        return WriteResult(
            session_id=session.session_id,
            session_key=session_key,
            pitch_count=session_entity["pitchCount"],
            batches_submitted=batches_completed,
        )

    def _compensate(self, user_id: str, session_key: str) -> None:
        """Delete the session record after a failed pitch write."""
        try:
            self._tables.sessions.delete_entity(user_id, session_key)
        except StoreError as cleanup_error:
            _LOGGER.critical(
                "session_compensation_failed",
                user_id=user_id,
                session_key=session_key,
                error=str(cleanup_error),
            )
            return
        _LOGGER.info("session_compensated", user_id=user_id, session_key=session_key)


def build_session_entity(
    user_id: str,
    session_key: str,
    session: NormalizedSession,
    raw_payload: Mapping[str, Any],
) -> TableEntity:
    """Build the session table entity.

    Args:
        user_id: Owning identity.
        session_key: Sanitized session row key.
        session: Normalized session.
        raw_payload: Original upload payload.

    Returns:
        Entity without null-valued properties.
    """
    heatmap = json.dumps(session.heatmap) if session.heatmap is not None else None
    return _drop_nulls(
        {
            "PartitionKey": user_id,
            "RowKey": session_key,
            "sessionId": session.session_id,
            "sessionName": session.session_name,
            "startedAt": session.started_at,
            "createdAt": _utc_timestamp(),
            "pitchCount": session.pitch_count,
            "strikes": session.strikes,
            "balls": session.balls,
            "heatmap": heatmap,
            "raw": json.dumps(raw_payload),
        }
    )


def build_pitch_entity(session_key: str, session_id: str, pitch: NormalizedPitch) -> TableEntity:
    """Build one pitch table entity under the session partition.

    Args:
        session_key: Sanitized session key used as partition.
        session_id: Unsanitized session identifier.
        pitch: Normalized pitch.

    Returns:
        Entity without null-valued properties.
    """
    entity: TableEntity = {
        "PartitionKey": session_key,
        "RowKey": to_table_key(pitch.pitch_id),
        "sessionId": session_id,
        "pitchId": pitch.pitch_id,
    }
    for entity_field, pitch_field in _PITCH_FIELDS:
        entity[entity_field] = getattr(pitch, pitch_field)
    entity["raw"] = json.dumps(dict(pitch.raw))
    return _drop_nulls(entity)


def chunk_entities(entities: list[TableEntity], size: int) -> Iterator[list[TableEntity]]:
    """Yield consecutive batches of at most ``size`` entities."""
    for start in range(0, len(entities), size):
        yield entities[start : start + size]


def _drop_nulls(entity: TableEntity) -> TableEntity:
    """Remove properties the table store cannot hold."""
    return {key: value for key, value in entity.items() if value is not None}


def _utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with milliseconds."""
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return timestamp.replace("+00:00", "Z")
