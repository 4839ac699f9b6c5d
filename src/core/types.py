"""Shared typed models.

This module defines immutable data models used by ingest, store,
SDK, and API layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class NormalizedPitch:
    """Canonical pitch record produced from any wire format.

    Attributes:
        pitch_id: Supplied or generated pitch identifier.
        speed: Release speed in mph.
        run: Horizontal break in inches.
        rise: Vertical break in inches.
        zone: Strike-zone cell 1-9.
        zone_row: Raw zone grid row.
        zone_col: Raw zone grid column.
        is_strike: Strike call.
        raw: Original per-pitch payload.
    """

    pitch_id: str
    speed: Any = None
    run: Any = None
    rise: Any = None
    zone: Any = None
    zone_row: Any = None
    zone_col: Any = None
    is_strike: Any = None
    rotation_rpm: Any = None
    spin_axis: Any = None
    spin_efficiency: Any = None
    confidence: Any = None
    plate_x: Any = None
    plate_z: Any = None
    release_height: Any = None
    release_side: Any = None
    extension: Any = None
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NormalizedSession:
    """Canonical session record with its normalized pitches.

    Attributes:
        session_id: Supplied or generated session identifier.
        session_name: Optional display name.
        started_at: Optional ISO-8601 start timestamp.
        pitch_count: Explicit count, or the pitch list length.
        strikes: Optional strike total.
        balls: Optional ball total.
        heatmap: Optional 3x3 zone grid.
        pitches: Normalized pitches in input order.
    """

    session_id: str
    session_name: str | None
    started_at: str | None
    pitch_count: int
    strikes: Any
    balls: Any
    heatmap: Any
    pitches: tuple[NormalizedPitch, ...]


@dataclass(frozen=True)
class ContractResult:
    """Outcome of a session contract check.

    Attributes:
        ok: Whether the payload conforms.
        error: Summary message when not ok.
        details: Ordered violations with path, rule, and message.
    """

    ok: bool
    error: str | None = None
    details: tuple[dict[str, Any], ...] | None = None


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a successful session write.

    Attributes:
        session_id: Session identifier as supplied or generated.
        session_key: Sanitized row key of the session record.
        pitch_count: Pitch count stored on the session record.
        batches_submitted: Number of pitch transactions submitted.
    """

    session_id: str
    session_key: str
    pitch_count: int
    batches_submitted: int


@dataclass(frozen=True)
class SessionSummary:
    """Session listing row without pitch detail."""

    session_id: str
    session_key: str
    created_at: str | None
    pitch_count: int
    session_name: str | None
    started_at: str | None
    strikes: Any = None
    balls: Any = None
    heatmap: Any = None


@dataclass(frozen=True)
class SessionDetail:
    """Session summary together with every stored pitch."""

    session: SessionSummary
    pitches: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class Identity:
    """Authenticated caller identity.

    Attributes:
        user_id: Stable user identifier used as the session partition.
        user_details: Display detail such as an email address.
        principal: Decoded principal payload.
    """

    user_id: str
    user_details: str
    principal: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RateLimitStatus:
    """Admission state for one identity after a request.

    Attributes:
        allowed: Whether the request is admitted.
        remaining: Requests left in the current window.
        reset_time: Epoch seconds when the window ends.
    """

    allowed: bool
    remaining: int
    reset_time: float
