"""Unit tests for the cached table client handle."""

from __future__ import annotations

import threading
from dataclasses import replace

import pytest

from core.config import PitchStoreConfig
from core.errors import StoreError
from store.local_table import LocalTableStore
from store.table_client import TableClientProvider, open_table_store


def test_open_table_store_uses_local_backend_without_connection(tmp_path) -> None:
    """No connection string should select the file-backed table."""
    config = replace(PitchStoreConfig.from_env(), data_root=tmp_path, table_connection_string=None)

    table = open_table_store(config, "Sessions")

    assert isinstance(table, LocalTableStore)
    assert table.table_path == tmp_path / "tables" / "Sessions.json"


def test_concurrent_first_calls_converge_on_one_handle(tmp_path) -> None:
    """Concurrent initializers should create exactly one pair of tables."""
    config = replace(PitchStoreConfig.from_env(), data_root=tmp_path, table_connection_string=None)
    created: list[str] = []
    created_lock = threading.Lock()

    def factory(factory_config: PitchStoreConfig, table_name: str) -> LocalTableStore:
        with created_lock:
            created.append(table_name)
        return LocalTableStore(factory_config.data_root, table_name)

    provider = TableClientProvider(config, factory)
    results: list[object] = []
    threads = [
        threading.Thread(target=lambda: results.append(provider.get_tables())) for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(created) == ["Pitches", "Sessions"]
    assert all(result is results[0] for result in results)
    assert (tmp_path / "tables" / "Pitches.json").is_file()


def test_failed_initialization_is_retried(tmp_path) -> None:
    """A failed first call should not poison later calls."""
    config = replace(PitchStoreConfig.from_env(), data_root=tmp_path, table_connection_string=None)
    attempts = {"count": 0}

    def factory(factory_config: PitchStoreConfig, table_name: str) -> LocalTableStore:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise StoreError("service unavailable")
        return LocalTableStore(factory_config.data_root, table_name)

    provider = TableClientProvider(config, factory)
    with pytest.raises(StoreError):
        provider.get_tables()

    assert provider.get_tables().sessions is not None
