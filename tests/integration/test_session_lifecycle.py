"""Integration tests for the upload, listing, and detail workflow."""

from __future__ import annotations

import base64
import io
import json
import zipfile
from dataclasses import replace

from api.identity import resolve_identity
from api.session_service import build_service
from core.config import PitchStoreConfig
from tests.fixture_paths import fixture_path


def _principal_header(user_id: str) -> dict[str, str]:
    principal = json.dumps({"userId": user_id, "userDetails": f"{user_id}@example.com"})
    return {"x-ms-client-principal": base64.b64encode(principal.encode("utf-8")).decode("ascii")}


def _tracker_export() -> bytes:
    summary = {
        "session_id": "tracker/2024-05-02",
        "session_name": "Live BP",
        "pitches": [{"speed_mph": 68.0 + index, "zone": 1 + index % 9} for index in range(120)],
    }
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("export/session_summary.json", json.dumps(summary))
        for index in range(1, 121):
            detail = {"rotation_rpm": 2000 + index, "plate_x": index / 100}
            archive.writestr(f"export/pitch_{index}/manifest.json", json.dumps(detail))
    return buffer.getvalue()


def test_session_lifecycle_through_local_store(tmp_path) -> None:
    """JSON and ZIP uploads should be listed and read back per user."""
    config = replace(
        PitchStoreConfig.from_env(),
        data_root=tmp_path,
        table_connection_string=None,
        environment="development",
        local_dev_user_id=None,
    )
    service = build_service(config, start_sweeper=False)
    owner = resolve_identity(_principal_header("owner-1"), config)
    stranger = resolve_identity(_principal_header("stranger-2"), config)
    try:
        json_body = fixture_path("sessions/bullpen_camel.json").read_bytes()
        first = service.upload(owner, json_body, "application/json")
        second = service.upload(owner, _tracker_export(), "application/zip")
        listing = service.list_sessions(owner)
        detail = service.get_session(owner, "tracker/2024-05-02")
        foreign = service.get_session(stranger, "tracker/2024-05-02")
    finally:
        service.close()

    assert (first.status, second.status) == (201, 201)
    assert second.body == {"sessionId": "tracker/2024-05-02", "pitchCount": 120}
    assert {row["sessionId"] for row in listing.body["sessions"]} == {
        "bullpen-2024-05-01",
        "tracker/2024-05-02",
    }
    assert detail.body["session"]["sessionKey"] == "tracker_2024-05-02"
    assert len(detail.body["pitches"]) == 120
    assert detail.body["pitches"][0]["rotationRpm"] == 2001
    assert foreign.status == 404
