"""Azure Table Storage backend.

This module encapsulates azure-data-tables client creation and maps
SDK exceptions onto pitchstore store errors.
"""

from __future__ import annotations

from typing import Any

from core.errors import DependencyError, StoreError
from store.table_client import TableEntity


class AzureTableStore:
    """Table store backed by an Azure ``TableClient``."""

    def __init__(self, table_client: Any) -> None:
        """Wrap an existing SDK table client.

        Args:
            table_client: ``azure.data.tables.TableClient`` instance.
        """
        self._client = table_client

    @classmethod
    def from_connection_string(cls, connection_string: str, table_name: str) -> "AzureTableStore":
        """Create a table handle from a storage connection string.

        Args:
            connection_string: Azure storage connection string.
            table_name: Table identifier.

        Returns:
            Table store wrapper.

        Raises:
            DependencyError: If azure-data-tables is missing.
        """
        tables = _import_tables_sdk()
        service_client = tables.TableServiceClient.from_connection_string(
            conn_str=connection_string
        )
        return cls(service_client.get_table_client(table_name))

    def create_table(self) -> None:
        """Create the table; an existing table is left untouched."""
        from azure.core.exceptions import ResourceExistsError

        try:
            self._client.create_table()
        except ResourceExistsError:
            return
        except Exception as error:
            raise _store_error("create table", self._client.table_name, error) from error

    def upsert_entity(self, entity: TableEntity) -> None:
        """Insert or replace one entity."""
        tables = _import_tables_sdk()
        try:
            self._client.upsert_entity(entity, mode=tables.UpdateMode.REPLACE)
        except Exception as error:
            raise _store_error("upsert entity", self._client.table_name, error) from error

    def get_entity(self, partition_key: str, row_key: str) -> TableEntity | None:
        """Return one entity, or None when absent."""
        from azure.core.exceptions import ResourceNotFoundError

        try:
            return dict(self._client.get_entity(partition_key=partition_key, row_key=row_key))
        except ResourceNotFoundError:
            return None
        except Exception as error:
            raise _store_error("read entity", self._client.table_name, error) from error

    def delete_entity(self, partition_key: str, row_key: str) -> None:
        """Delete one entity; the service ignores absent entities."""
        try:
            self._client.delete_entity(partition_key=partition_key, row_key=row_key)
        except Exception as error:
            raise _store_error("delete entity", self._client.table_name, error) from error

    def query_entities(self, query_filter: str) -> list[TableEntity]:
        """Return entities matching a filter expression."""
        try:
            entities = [dict(entity) for entity in self._client.query_entities(query_filter)]
        except Exception as error:
            raise _store_error("query entities", self._client.table_name, error) from error
        return sorted(entities, key=lambda item: (item["PartitionKey"], item["RowKey"]))

    def submit_transaction(self, entities: list[TableEntity]) -> None:
        """Atomically upsert one partition's entities."""
        tables = _import_tables_sdk()
        operations = [
            ("upsert", entity, {"mode": tables.UpdateMode.REPLACE}) for entity in entities
        ]
        try:
            self._client.submit_transaction(operations)
        except Exception as error:
            raise _store_error("submit transaction", self._client.table_name, error) from error


def _import_tables_sdk() -> Any:
    """Import the azure-data-tables module.

    Raises:
        DependencyError: If the package is not installed.
    """
    try:
        from azure.data import tables
    except ImportError as error:
        raise DependencyError(
            "Azure table storage requires azure-data-tables, but it is not installed. "
            "Install azure-data-tables or unset TABLE_CONNECTION_STRING for local storage."
        ) from error
    return tables


def _store_error(action: str, table_name: str, error: Exception) -> StoreError:
    """Build a store error for a failed SDK call."""
    return StoreError(
        f"Failed to {action} on table {table_name}: {error}. "
        "Check the storage connection string and service availability."
    )
