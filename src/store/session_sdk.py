"""Python SDK for session operations.

This module exposes high-level APIs for uploading, listing, and
reading sessions backed by the configured table store.
"""

from __future__ import annotations

from core.config import PitchStoreConfig
from core.types import SessionDetail, SessionSummary, WriteResult
from ingest.contract_validator import SessionContractValidator
from ingest.pipeline import ingest_upload
from ingest.upload_source import read_upload_source
from store.session_reader import SessionReader
from store.table_client import TableClientProvider, TableFactory


class PitchStoreClient:
    """Primary SDK entry point for session workflows.

    One client owns the cached table handles and the contract
    validator; share it across request handlers.
    """

    def __init__(
        self,
        config: PitchStoreConfig | None = None,
        table_factory: TableFactory | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            table_factory: Optional table backend override.
        """
        self._config = config or PitchStoreConfig.from_env()
        self._tables = TableClientProvider(self._config, table_factory)
        self._validator = SessionContractValidator(self._config.schema_path)

    @property
    def config(self) -> PitchStoreConfig:
        """Return the runtime configuration."""
        return self._config

    def upload(self, user_id: str, body: bytes, content_type: str | None = None) -> WriteResult:
        """Ingest raw upload bytes for a user.

        Args:
            user_id: Owning identity.
            body: JSON document or ZIP export bytes.
            content_type: Declared content type.

        Returns:
            Persisted session id and pitch count.
        """
        return ingest_upload(user_id, body, content_type, self._validator, self._tables)

    def ingest(
        self,
        user_id: str,
        source_uri: str,
        content_type: str | None = None,
    ) -> WriteResult:
        """Ingest an upload read from a local path or S3 URI.

        Args:
            user_id: Owning identity.
            source_uri: Local file path or ``s3://bucket/key``.
            content_type: Optional explicit content type.

        Returns:
            Persisted session id and pitch count.
        """
        source = read_upload_source(source_uri, self._config, content_type)
        return self.upload(user_id, source.body, source.content_type)

    def list_sessions(self, user_id: str) -> list[SessionSummary]:
        """List a user's sessions, newest first."""
        return SessionReader(self._tables.get_tables()).list_sessions(user_id)

    def get_session(self, user_id: str, session_id: str) -> SessionDetail:
        """Load one session with all pitches.

        Raises:
            NotFoundError: If the session does not exist for the user.
        """
        return SessionReader(self._tables.get_tables()).get_session(user_id, session_id)

