"""Unit tests for core config parsing."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.config import (
    BUNDLED_SCHEMA_PATH,
    PitchStoreConfig,
    validate_environment,
    validate_environment_or_raise,
)
from core.errors import ConfigError


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove pitchstore variables leaking in from the host environment."""
    for name in (
        "PITCHSTORE_DATA_ROOT",
        "TABLE_CONNECTION_STRING",
        "AzureWebJobsStorage",
        "SESSION_SCHEMA_PATH",
        "PITCHSTORE_ENV",
        "LOCAL_DEV_USER_ID",
        "PITCHSTORE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("PITCHSTORE_DATA_ROOT", "./.tmp-pitchstore")

    config = PitchStoreConfig.from_env()

    assert config.data_root.name == ".tmp-pitchstore"


def test_from_env_defaults_to_local_development() -> None:
    """Config should default to development with the bundled schema."""
    config = PitchStoreConfig.from_env()

    assert config.environment == "development"
    assert config.table_connection_string is None
    assert config.schema_path == BUNDLED_SCHEMA_PATH
    assert BUNDLED_SCHEMA_PATH.is_file()


def test_from_env_falls_back_to_functions_storage(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should read AzureWebJobsStorage when no table connection is set."""
    monkeypatch.setenv("AzureWebJobsStorage", "UseDevelopmentStorage=true")

    config = PitchStoreConfig.from_env()

    assert config.table_connection_string == "UseDevelopmentStorage=true"


def test_from_env_raises_for_invalid_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for an unknown environment name."""
    monkeypatch.setenv("PITCHSTORE_ENV", "staging-ish")

    with pytest.raises(ConfigError):
        PitchStoreConfig.from_env()


def test_validate_environment_requires_connection_in_production(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Production startup should be blocked without a table connection."""
    monkeypatch.setenv("PITCHSTORE_ENV", "production")
    config = PitchStoreConfig.from_env()

    problems = validate_environment(config)

    assert len(problems) == 1 and "TABLE_CONNECTION_STRING" in problems[0]


def test_validate_environment_rejects_dev_bypass_in_production() -> None:
    """Production startup should be blocked when the dev bypass is set."""
    config = replace(
        PitchStoreConfig.from_env(),
        environment="production",
        table_connection_string="UseDevelopmentStorage=true",
        local_dev_user_id="dev-user",
    )

    with pytest.raises(ConfigError, match="LOCAL_DEV_USER_ID"):
        validate_environment_or_raise(config)


def test_validate_environment_accepts_development_defaults() -> None:
    """Development config should pass validation unchanged."""
    config = PitchStoreConfig.from_env()

    assert validate_environment_or_raise(config) is config


def test_from_env_reads_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should normalize the log level name."""
    monkeypatch.setenv("PITCHSTORE_LOG_LEVEL", "DEBUG")

    assert PitchStoreConfig.from_env().log_level == "debug"


def test_from_env_raises_for_invalid_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for an unknown log level."""
    monkeypatch.setenv("PITCHSTORE_LOG_LEVEL", "chatty")

    with pytest.raises(ConfigError, match="PITCHSTORE_LOG_LEVEL"):
        PitchStoreConfig.from_env()
