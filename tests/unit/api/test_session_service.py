"""Unit tests for session request handlers."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from api.rate_governor import RateGovernor
from api.session_service import SessionService, build_service
from core.config import PitchStoreConfig
from core.errors import ConfigError, StoreError
from core.types import Identity
from store.local_table import LocalTableStore
from store.session_sdk import PitchStoreClient

_CALLER = Identity(user_id="user-1", user_details="pitcher@example.com")


def _config(tmp_path) -> PitchStoreConfig:
    return replace(
        PitchStoreConfig.from_env(),
        data_root=tmp_path,
        table_connection_string=None,
        environment="development",
        local_dev_user_id=None,
    )


def _service(tmp_path, max_requests: int = 100, table_factory=None) -> SessionService:
    client = PitchStoreClient(_config(tmp_path), table_factory)
    return SessionService(client, RateGovernor(max_requests=max_requests))


def _upload_body(session_id: str = "s1") -> bytes:
    payload = {
        "session_id": session_id,
        "session_name": "Bullpen",
        "pitches": [{"pitch_id": "p1", "speed_mph": 70.2, "zone_row": 1, "zone_col": 1}],
    }
    return json.dumps(payload).encode("utf-8")


def test_requests_without_identity_are_unauthorized(tmp_path) -> None:
    """Every handler should answer 401 for anonymous callers."""
    service = _service(tmp_path)

    assert service.upload(None, _upload_body(), "application/json").status == 401
    assert service.list_sessions(None).status == 401
    assert service.get_session(None, "s1").status == 401


def test_upload_returns_created(tmp_path) -> None:
    """A valid upload should return 201 with rate-limit headers."""
    response = _service(tmp_path).upload(_CALLER, _upload_body(), "application/json")

    assert response.status == 201
    assert response.body == {"sessionId": "s1", "pitchCount": 1}
    assert response.headers["X-RateLimit-Remaining"] == "99"


def test_invalid_upload_returns_details(tmp_path) -> None:
    """Contract failures should be answered with 400 and details."""
    response = _service(tmp_path).upload(_CALLER, b'{"pitches": []}', "application/json")

    assert response.status == 400
    assert response.body["error"] == "Schema validation failed"
    assert response.body["details"][0]["rule"] == "required"


def test_unparseable_upload_returns_bad_request(tmp_path) -> None:
    """Malformed bodies should be answered with 400."""
    response = _service(tmp_path).upload(_CALLER, b"{oops", "application/json")

    assert response.status == 400 and response.body["error"].startswith("Failed to parse file")


def test_list_and_detail_after_upload(tmp_path) -> None:
    """Uploaded sessions should be listed and readable in detail."""
    service = _service(tmp_path)
    service.upload(_CALLER, _upload_body("s1"), "application/json")

    listing = service.list_sessions(_CALLER)
    detail = service.get_session(_CALLER, "s1")

    assert listing.status == 200
    assert [row["sessionId"] for row in listing.body["sessions"]] == ["s1"]
    assert listing.body["sessions"][0]["sessionName"] == "Bullpen"
    assert detail.status == 200
    assert detail.body["session"]["pitchCount"] == 1
    assert detail.body["pitches"][0]["zone"] == 5


def test_unknown_session_returns_not_found(tmp_path) -> None:
    """Reading a session that does not exist should return 404."""
    response = _service(tmp_path).get_session(_CALLER, "missing")

    assert (response.status, response.body) == (404, {"error": "Session not found"})


def test_unsafe_session_id_returns_bad_request(tmp_path) -> None:
    """Identifiers that fail the allow-list should return 400."""
    response = _service(tmp_path).get_session(_CALLER, "s1' or '1'='1")

    assert response.status == 400
    assert response.body["error"] == "Invalid sessionKey: contains unsafe characters"


def test_rate_limited_caller_gets_429(tmp_path) -> None:
    """Callers over their quota should be answered before any work."""
    service = _service(tmp_path, max_requests=1)
    service.list_sessions(_CALLER)

    response = service.list_sessions(_CALLER)

    assert response.status == 429 and "Retry-After" in response.headers


def test_store_failures_return_generic_error(tmp_path) -> None:
    """Storage failures should be answered with a generic 500."""

    def broken_factory(config, table_name):
        raise StoreError("connection to 10.1.2.3 refused")

    response = _service(tmp_path, table_factory=broken_factory).list_sessions(_CALLER)

    assert (response.status, response.body) == (500, {"error": "An internal server error occurred"})


def test_build_service_uses_local_tables(tmp_path) -> None:
    """The service builder should wire a working local backend."""
    service = build_service(
        _config(tmp_path),
        table_factory=lambda config, name: LocalTableStore(config.data_root, name),
        start_sweeper=False,
    )
    try:
        assert service.upload(_CALLER, _upload_body(), None).status == 201
    finally:
        service.close()


def test_build_service_refuses_invalid_production_config(tmp_path) -> None:
    """Production without a table connection should not start."""
    config = replace(_config(tmp_path), environment="production")

    with pytest.raises(ConfigError):
        build_service(config, start_sweeper=False)


class _RejectingPitchTable(LocalTableStore):
    """Local table that refuses every transaction."""

    def submit_transaction(self, entities) -> None:
        raise StoreError("simulated batch failure")


def test_failed_pitch_batch_returns_generic_error(tmp_path) -> None:
    """A rolled-back upload should be answered with 500 and leave no session."""

    def factory(config, table_name):
        if table_name == "Pitches":
            return _RejectingPitchTable(config.data_root, table_name)
        return LocalTableStore(config.data_root, table_name)

    service = _service(tmp_path, table_factory=factory)

    response = service.upload(_CALLER, _upload_body("s1"), "application/json")

    assert (response.status, response.body) == (500, {"error": "An internal server error occurred"})
    assert service.list_sessions(_CALLER).body == {"sessions": []}
    assert service.get_session(_CALLER, "s1").status == 404


def test_unreadable_session_id_is_rejected_on_upload(tmp_path) -> None:
    """Uploads whose session could never be read back should get 400."""
    service = _service(tmp_path)

    response = service.upload(_CALLER, _upload_body("2024-05-01T10:00:00Z"), "application/json")

    assert response.status == 400
    assert response.body == {"error": "Invalid sessionKey: contains unsafe characters"}
    assert service.list_sessions(_CALLER).body == {"sessions": []}


def test_missing_schema_returns_generic_error(tmp_path) -> None:
    """A broken schema deployment should not leak its path to callers."""
    config = replace(_config(tmp_path), schema_path=tmp_path / "secret" / "missing.schema.json")
    service = SessionService(PitchStoreClient(config), RateGovernor())

    response = service.upload(_CALLER, _upload_body(), "application/json")

    assert (response.status, response.body) == (500, {"error": "An internal server error occurred"})
