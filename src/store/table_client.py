"""Table store interface and cached client handle.

This module defines the partitioned table operations the writer and
reader rely on, and owns the once-initialized pair of table handles.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from core.config import PitchStoreConfig
from core.constants import PITCH_TABLE_NAME, SESSION_TABLE_NAME
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

TableEntity = dict[str, Any]


class TableStore(Protocol):
    """Operations on one partitioned key-value table."""

    def create_table(self) -> None:
        """Create the table, ignoring an existing one."""

    def upsert_entity(self, entity: TableEntity) -> None:
        """Insert or fully replace one entity."""

    def get_entity(self, partition_key: str, row_key: str) -> TableEntity | None:
        """Return one entity, or None when absent."""

    def delete_entity(self, partition_key: str, row_key: str) -> None:
        """Delete one entity; deleting an absent entity is not an error."""

    def query_entities(self, query_filter: str) -> list[TableEntity]:
        """Return entities matching a filter expression, ordered by key."""

    def submit_transaction(self, entities: list[TableEntity]) -> None:
        """Atomically upsert entities that share one partition."""


@dataclass(frozen=True)
class SessionTables:
    """Session and pitch table handles used together."""

    sessions: TableStore
    pitches: TableStore


TableFactory = Callable[[PitchStoreConfig, str], TableStore]


def open_table_store(config: PitchStoreConfig, table_name: str) -> TableStore:
    """Open a table on the configured backend.

    Args:
        config: Runtime configuration.
        table_name: Table identifier.

    Returns:
        Azure-backed table when a connection string is configured,
        otherwise a local file-backed table under the data root.
    """
    if config.table_connection_string:
        from store.azure_table import AzureTableStore

        return AzureTableStore.from_connection_string(config.table_connection_string, table_name)
    from store.local_table import LocalTableStore

    return LocalTableStore(config.data_root, table_name)


class TableClientProvider:
    """Lazily creates and caches the session and pitch tables.

    Concurrent first calls converge on a single pair of handles;
    a failed initialization is not cached so the next call retries.
    """

    def __init__(self, config: PitchStoreConfig, factory: TableFactory | None = None) -> None:
        """Create provider.

        Args:
            config: Runtime configuration.
            factory: Optional table factory override.
        """
        self._config = config
        self._factory = factory or open_table_store
        self._lock = threading.Lock()
        self._tables: SessionTables | None = None

    def get_tables(self) -> SessionTables:
        """Return cached table handles, creating tables on first use.

        Returns:
            Shared session and pitch table handles.

        Raises:
            StoreError: If a table cannot be created.
        """
        tables = self._tables
        if tables is not None:
            return tables
        with self._lock:
            if self._tables is None:
                sessions = self._factory(self._config, SESSION_TABLE_NAME)
                pitches = self._factory(self._config, PITCH_TABLE_NAME)
                sessions.create_table()
                pitches.create_table()
                self._tables = SessionTables(sessions=sessions, pitches=pitches)
                _LOGGER.info(
                    "table_clients_initialized",
                    backend="azure" if self._config.table_connection_string else "local",
                )
            return self._tables
