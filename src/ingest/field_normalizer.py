"""Field reconciliation for session uploads.

Trackers and older exports name the same measurements differently.
This module resolves snake_case, camelCase, and legacy aliases into
one canonical session and pitch shape and derives missing values.
Normalization never fails; absent fields become None.
"""

from __future__ import annotations

import time
from typing import Any, Mapping

from core.types import NormalizedPitch, NormalizedSession

_ENRICHMENT_ALIASES = {
    "rotation_rpm": ("rotation_rpm", "rotationRpm", "rpm"),
    "spin_axis": ("spin_axis", "spinAxis"),
    "spin_efficiency": ("spin_efficiency", "spinEfficiency"),
    "confidence": ("confidence",),
    "plate_x": ("plate_x", "plateX"),
    "plate_z": ("plate_z", "plateZ"),
    "release_height": ("release_height", "releaseHeight"),
    "release_side": ("release_side", "releaseSide"),
    "extension": ("extension",),
}


def zone_index_from_row_col(row: Any, col: Any) -> int | None:
    """Convert zone grid coordinates into a zone index.

    Coordinates in ``[0, 2]`` are read as 0-based and coordinates in
    ``[1, 3]`` as 1-based; the 0-based reading wins where both apply.

    Args:
        row: Grid row.
        col: Grid column.

    Returns:
        Zone index 1-9, or None for missing, fractional, or
        out-of-range input.
    """
    if not _is_number(row) or not _is_number(col):
        return None
    if 0 <= row <= 2 and 0 <= col <= 2:
        return int(row * 3 + col + 1)
    if 1 <= row <= 3 and 1 <= col <= 3:
        return int((row - 1) * 3 + col)
    return None


def normalize_pitch(pitch: Mapping[str, Any], index: int) -> NormalizedPitch:
    """Normalize one pitch into the canonical shape.

    Args:
        pitch: Raw pitch mapping in any supported naming style.
        index: Zero-based position, used for generated ids.

    Returns:
        Canonical pitch that keeps the original mapping as ``raw``.
    """
    zone_row = _first_present(pitch, "zone_row", "zoneRow")
    zone_col = _first_present(pitch, "zone_col", "zoneCol")
    zone = pitch.get("zone")
    if zone is None:
        zone = zone_index_from_row_col(zone_row, zone_col)
    enrichment = {
        name: _first_present(pitch, *aliases) for name, aliases in _ENRICHMENT_ALIASES.items()
    }
    return NormalizedPitch(
        pitch_id=_first_truthy_id(pitch, "pitch_id", "pitchId", "id") or f"pitch-{index + 1}",
        speed=_first_present(pitch, "speed_mph", "speedMph", "speed"),
        run=_first_present(pitch, "run_in", "runIn", "run"),
        rise=_first_present(pitch, "rise_in", "riseIn", "rise"),
        zone=zone,
        zone_row=zone_row,
        zone_col=zone_col,
        is_strike=_first_present(pitch, "is_strike", "isStrike"),
        raw=pitch,
        **enrichment,
    )


def extract_session(payload: Mapping[str, Any]) -> NormalizedSession:
    """Normalize a session document and all of its pitches.

    Args:
        payload: Session document from a JSON upload or archive.

    Returns:
        Canonical session. A missing id becomes ``session-<epoch ms>``
        and a missing pitch count becomes the pitch list length.
    """
    session_id = _first_truthy_id(payload, "session_id", "sessionId", "id")
    if session_id is None:
        session_id = f"session-{int(time.time() * 1000)}"
    raw_pitches = payload.get("pitches")
    pitches = tuple(
        normalize_pitch(pitch if isinstance(pitch, Mapping) else {}, index)
        for index, pitch in enumerate(raw_pitches if isinstance(raw_pitches, list) else [])
    )
    pitch_count = _first_present(payload, "pitch_count", "pitchCount")
    return NormalizedSession(
        session_id=session_id,
        session_name=_first_truthy(payload, "session_name", "sessionName"),
        started_at=_first_truthy(payload, "started_at", "startedAt"),
        pitch_count=pitch_count if pitch_count is not None else len(pitches),
        strikes=payload.get("strikes"),
        balls=payload.get("balls"),
        heatmap=payload.get("heatmap"),
        pitches=pitches,
    )


def _first_present(source: Mapping[str, Any], *names: str) -> Any:
    """Return the first alias whose value is not None."""
    for name in names:
        value = source.get(name)
        if value is not None:
            return value
    return None


def _first_truthy(source: Mapping[str, Any], *names: str) -> Any:
    """Return the first alias with a truthy value, else None."""
    for name in names:
        value = source.get(name)
        if value:
            return value
    return None


def _first_truthy_id(source: Mapping[str, Any], *names: str) -> str | None:
    """Return the first truthy identifier alias as a string."""
    value = _first_truthy(source, *names)
    return str(value) if value is not None else None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return float(value).is_integer()
