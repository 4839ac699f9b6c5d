"""Session entry points for an HTTP adapter.

Each handler authenticates the caller, applies admission control,
runs one SDK operation, and maps the outcome to an ``ApiResponse``.
"""

from __future__ import annotations

from typing import Any

from api.rate_governor import RateGovernor
from api.responses import ApiResponse, error_response, json_response, unauthorized
from core.config import PitchStoreConfig, validate_environment_or_raise
from core.logging_config import configure_logging, get_logger
from core.types import Identity, SessionSummary
from store.session_sdk import PitchStoreClient
from store.table_client import TableFactory

_LOGGER = get_logger(__name__)


class SessionService:
    """Upload, listing, and detail handlers sharing one client and governor."""

    def __init__(self, client: PitchStoreClient, governor: RateGovernor) -> None:
        """Create service.

        Args:
            client: Shared SDK client owning the table handles.
            governor: Shared per-identity rate governor.
        """
        self._client = client
        self._governor = governor

    def upload(
        self,
        identity: Identity | None,
        body: bytes,
        content_type: str | None,
    ) -> ApiResponse:
        """Handle a session upload.

        Args:
            identity: Resolved caller.
            body: JSON document or ZIP export bytes.
            content_type: Declared content type.

        Returns:
            201 with ``sessionId`` and ``pitchCount`` on success.
        """
        if identity is None:
            return unauthorized()
        decision = self._governor.apply_rate_limit(identity)
        if not decision.allowed and decision.response is not None:
            return decision.response
        try:
            result = self._client.upload(identity.user_id, body, content_type)
        except Exception as error:
            return error_response(error, "upload_session")
        body_out = {"sessionId": result.session_id, "pitchCount": result.pitch_count}
        return json_response(201, body_out, decision.headers)

    def list_sessions(self, identity: Identity | None) -> ApiResponse:
        """Handle a session listing for the caller, newest first."""
        if identity is None:
            return unauthorized()
        decision = self._governor.apply_rate_limit(identity)
        if not decision.allowed and decision.response is not None:
            return decision.response
        try:
            summaries = self._client.list_sessions(identity.user_id)
        except Exception as error:
            return error_response(error, "list_sessions")
        sessions = [_listing_row(summary) for summary in summaries]
        return json_response(200, {"sessions": sessions}, decision.headers)

    def get_session(self, identity: Identity | None, session_id: str) -> ApiResponse:
        """Handle a session detail request.

        Args:
            identity: Resolved caller.
            session_id: Session identifier from the request path.

        Returns:
            200 with the session summary and pitches, or 404.
        """
        if identity is None:
            return unauthorized()
        decision = self._governor.apply_rate_limit(identity)
        if not decision.allowed and decision.response is not None:
            return decision.response
        try:
            detail = self._client.get_session(identity.user_id, session_id)
        except Exception as error:
            return error_response(error, "get_session")
        body = {"session": _detail_row(detail.session), "pitches": list(detail.pitches)}
        return json_response(200, body, decision.headers)

    def close(self) -> None:
        """Release background resources."""
        self._governor.close()


def build_service(
    config: PitchStoreConfig | None = None,
    table_factory: TableFactory | None = None,
    start_sweeper: bool = True,
) -> SessionService:
    """Construct the service with its shared resources.

    Args:
        config: Optional runtime configuration.
        table_factory: Optional table backend override.
        start_sweeper: Whether to start the rate-limit sweeper thread.

    Returns:
        Ready service; call ``close`` at shutdown.

    Raises:
        ConfigError: If the environment is not usable.
    """
    resolved = validate_environment_or_raise(config or PitchStoreConfig.from_env())
    configure_logging(resolved.log_level)
    governor = RateGovernor()
    if start_sweeper:
        governor.start_sweeper()
    _LOGGER.info(
        "session_service_started",
        environment=resolved.environment,
        storage="azure" if resolved.table_connection_string else "local",
    )
    return SessionService(PitchStoreClient(resolved, table_factory), governor)


def _listing_row(summary: SessionSummary) -> dict[str, Any]:
    return {
        "sessionId": summary.session_id,
        "sessionKey": summary.session_key,
        "createdAt": summary.created_at,
        "pitchCount": summary.pitch_count,
        "sessionName": summary.session_name,
        "startedAt": summary.started_at,
    }


def _detail_row(summary: SessionSummary) -> dict[str, Any]:
    row = _listing_row(summary)
    row.update(strikes=summary.strikes, balls=summary.balls, heatmap=summary.heatmap)
    return row
