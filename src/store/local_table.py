"""File-backed table store for local development.

Each table is one JSON document under ``<data_root>/tables`` mapping
partition keys to rows. Transactions follow the remote store's rules:
one partition, at most 100 operations, unique row keys, all or nothing.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

from core.constants import TABLE_TRANSACTION_LIMIT, TABLES_DIR_NAME
from core.errors import StoreError
from store.table_client import TableEntity
from store.table_filters import parse_partition_filter

TableRows = dict[str, dict[str, TableEntity]]


class LocalTableStore:
    """Partitioned table persisted as a JSON file."""

    def __init__(self, data_root: Path, table_name: str) -> None:
        """Create a local table handle.

        Args:
            data_root: Root directory for local table files.
            table_name: Table identifier.
        """
        self._table_name = table_name
        self._table_path = data_root / TABLES_DIR_NAME / f"{table_name}.json"
        self._lock = threading.Lock()

    @property
    def table_path(self) -> Path:
        """Return the backing file path."""
        return self._table_path

    def create_table(self) -> None:
        """Create the backing file when it does not exist."""
        with self._lock:
            if self._table_path.exists():
                return
            self._table_path.parent.mkdir(parents=True, exist_ok=True)
            self._write_rows({})

    def upsert_entity(self, entity: TableEntity) -> None:
        """Insert or replace one entity.

        Args:
            entity: Entity with ``PartitionKey`` and ``RowKey``.
        """
        partition_key, row_key = _entity_keys(entity)
        with self._lock:
            rows = self._read_rows()
            rows.setdefault(partition_key, {})[row_key] = dict(entity)
            self._write_rows(rows)

    def get_entity(self, partition_key: str, row_key: str) -> TableEntity | None:
        """Return one entity, or None when absent."""
        with self._lock:
            entity = self._read_rows().get(partition_key, {}).get(row_key)
        return dict(entity) if entity is not None else None

    def delete_entity(self, partition_key: str, row_key: str) -> None:
        """Delete one entity if present."""
        with self._lock:
            rows = self._read_rows()
            partition = rows.get(partition_key, {})
            if row_key not in partition:
                return
            del partition[row_key]
            if not partition:
                del rows[partition_key]
            self._write_rows(rows)

    def query_entities(self, query_filter: str) -> list[TableEntity]:
        """Return every entity in the partition named by the filter.

        Args:
            query_filter: Exact-partition filter expression.

        Returns:
            Entities ordered by row key.

        Raises:
            StoreError: If the filter is not an exact-partition filter.
        """
        partition_key = parse_partition_filter(query_filter)
        if partition_key is None:
            raise StoreError(
                f"Unsupported filter for local table {self._table_name}: '{query_filter}'. "
                "Only exact PartitionKey filters are supported locally."
            )
        with self._lock:
            partition = self._read_rows().get(partition_key, {})
        return [dict(partition[row_key]) for row_key in sorted(partition)]

    def submit_transaction(self, entities: list[TableEntity]) -> None:
        """Atomically upsert one partition's entities.

        Args:
            entities: Entities sharing one partition key.

        Raises:
            StoreError: If the batch breaks transaction rules.
        """
        _check_transaction(self._table_name, entities)
        with self._lock:
            rows = self._read_rows()
            for entity in entities:
                partition_key, row_key = _entity_keys(entity)
                rows.setdefault(partition_key, {})[row_key] = dict(entity)
            self._write_rows(rows)

    def _read_rows(self) -> TableRows:
        """Load the table document.

        Returns:
            Partition to row mapping.

        Raises:
            StoreError: If the table is missing or unreadable.
        """
        if not self._table_path.exists():
            raise StoreError(
                f"Local table {self._table_name} not found at {self._table_path}. "
                "Create the table before reading or writing entities."
            )
        try:
            payload: Any = json.loads(self._table_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise StoreError(
                f"Failed to parse local table at {self._table_path}: {error.msg}. "
                "Remove the corrupt file and re-upload sessions."
            ) from error
        if not isinstance(payload, dict):
            raise StoreError(
                f"Failed to parse local table at {self._table_path}: "
                "expected JSON object at top level."
            )
        return payload

    def _write_rows(self, rows: TableRows) -> None:
        """Replace the table document atomically.

        Args:
            rows: Partition to row mapping.

        Raises:
            StoreError: If the file cannot be written.
        """
        temp_path = self._table_path.with_suffix(".json.tmp")
        try:
            payload = json.dumps(rows, indent=2, sort_keys=True) + "\n"
            temp_path.write_text(payload, encoding="utf-8")
            os.replace(temp_path, self._table_path)
        except OSError as error:
            raise StoreError(
                f"Failed to persist local table at {self._table_path}: {error}. "
                "Check write permissions and available disk space."
            ) from error


def _entity_keys(entity: TableEntity) -> tuple[str, str]:
    """Return the partition and row key of an entity.

    Raises:
        StoreError: If either key is missing.
    """
    partition_key = entity.get("PartitionKey")
    row_key = entity.get("RowKey")
    if not isinstance(partition_key, str) or not isinstance(row_key, str):
        raise StoreError("Table entities require string PartitionKey and RowKey values.")
    return partition_key, row_key


def _check_transaction(table_name: str, entities: list[TableEntity]) -> None:
    """Apply remote transaction rules to a local batch.

    Args:
        table_name: Table identifier for messages.
        entities: Batch entities.

    Raises:
        StoreError: If the batch is empty, too large, spans partitions,
            or repeats a row key.
    """
    if not entities:
        raise StoreError(f"Transaction on {table_name} must contain at least one operation.")
    if len(entities) > TABLE_TRANSACTION_LIMIT:
        raise StoreError(
            f"Transaction on {table_name} has {len(entities)} operations; "
            f"the limit is {TABLE_TRANSACTION_LIMIT}."
        )
    keys = [_entity_keys(entity) for entity in entities]
    if len({partition_key for partition_key, _ in keys}) != 1:
        raise StoreError(f"Transaction on {table_name} must target a single partition.")
    row_keys = [row_key for _, row_key in keys]
    if len(set(row_keys)) != len(row_keys):
        raise StoreError(f"Transaction on {table_name} repeats a row key.")
