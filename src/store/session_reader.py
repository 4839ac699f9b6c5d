"""Session listing and detail queries.

Identifiers are allow-listed before they are placed in a filter so
that every query is an exact, injection-free partition lookup.
"""

from __future__ import annotations

import json
from typing import Any

from core.errors import NotFoundError
from core.types import SessionDetail, SessionSummary
from store.table_client import SessionTables, TableEntity
from store.table_filters import ensure_safe_identifier, partition_filter
from store.table_keys import to_table_key

_PITCH_RESPONSE_FIELDS = (
    "speed",
    "run",
    "rise",
    "zone",
    "zoneRow",
    "zoneCol",
    "isStrike",
    "rotationRpm",
    "spinAxis",
    "spinEfficiency",
    "confidence",
    "plateX",
    "plateZ",
    "releaseHeight",
    "releaseSide",
    "extension",
)


class SessionReader:
    """Reads stored sessions for one identity at a time."""

    def __init__(self, tables: SessionTables) -> None:
        self._tables = tables

    def list_sessions(self, user_id: str) -> list[SessionSummary]:
        """List session summaries owned by a user, newest first.

        Args:
            user_id: Owning identity.

        Returns:
            Summaries sorted by descending ``createdAt`` string.

        Raises:
            UnsafeIdentifierError: If the user id fails the allow-list.
        """
        ensure_safe_identifier(user_id, "userId")
        entities = self._tables.sessions.query_entities(partition_filter(user_id))
        summaries = [_summary_from_entity(entity) for entity in entities]
        return sorted(summaries, key=lambda item: item.created_at or "", reverse=True)

    def get_session(self, user_id: str, session_id: str) -> SessionDetail:
        """Load one session and all of its pitches.

        Args:
            user_id: Owning identity.
            session_id: Session identifier as supplied by the caller.

        Returns:
            Session summary and pitch rows ordered by row key.

        Raises:
            UnsafeIdentifierError: If an identifier fails the allow-list.
            NotFoundError: If the session does not exist for the user.
        """
        session_key = to_table_key(session_id)
        ensure_safe_identifier(user_id, "userId")
        ensure_safe_identifier(session_key, "sessionKey")
        entity = self._tables.sessions.get_entity(user_id, session_key)
        if entity is None:
            raise NotFoundError("Session not found")
        pitch_entities = self._tables.pitches.query_entities(partition_filter(session_key))
        pitches = tuple(_pitch_from_entity(item) for item in pitch_entities)
        summary = _summary_from_entity(entity, fallback_pitch_count=len(pitches))
        return SessionDetail(session=summary, pitches=pitches)


def _summary_from_entity(entity: TableEntity, fallback_pitch_count: int = 0) -> SessionSummary:
    """Convert a session entity into a summary row."""
    heatmap = entity.get("heatmap")
    return SessionSummary(
        session_id=entity.get("sessionId") or entity["RowKey"],
        session_key=entity["RowKey"],
        created_at=entity.get("createdAt"),
        pitch_count=entity.get("pitchCount") or fallback_pitch_count,
        session_name=entity.get("sessionName") or None,
        started_at=entity.get("startedAt") or None,
        strikes=entity.get("strikes"),
        balls=entity.get("balls"),
        heatmap=json.loads(heatmap) if heatmap else None,
    )


def _pitch_from_entity(entity: TableEntity) -> dict[str, Any]:
    """Convert a pitch entity into a response row."""
    pitch: dict[str, Any] = {"pitchId": entity.get("pitchId") or entity["RowKey"]}
    for field_name in _PITCH_RESPONSE_FIELDS:
        pitch[field_name] = entity.get(field_name)
    return pitch
