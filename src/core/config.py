"""Runtime configuration model for pitchstore.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_ENVIRONMENT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SCHEMA_FILE_NAME,
    PRODUCTION_ENVIRONMENT,
    SUPPORTED_ENVIRONMENTS,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import ConfigError

_SRC_ROOT = Path(__file__).resolve().parent.parent
BUNDLED_SCHEMA_PATH = _SRC_ROOT / "ingest" / "schemas" / DEFAULT_SCHEMA_FILE_NAME


@dataclass(frozen=True)
class PitchStoreConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the file-backed table store.
        table_connection_string: Azure Table Storage connection string.
            When unset, the local table store under ``data_root`` is used.
        schema_path: Session contract schema document path.
        environment: Deployment environment name.
        local_dev_user_id: Development-only identity bypass.
        s3_region: Optional default AWS region for S3 upload sources.
        s3_profile: Optional AWS profile for boto3 session initialization.
        log_level: Minimum structured log level.
    """

    data_root: Path
    table_connection_string: str | None
    schema_path: Path
    environment: str
    local_dev_user_id: str | None
    s3_region: str | None
    s3_profile: str | None
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def is_production(self) -> bool:
        """Return whether the config targets production."""
        return self.environment == PRODUCTION_ENVIRONMENT

    @classmethod
    def from_env(cls) -> "PitchStoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("PITCHSTORE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        connection_string = os.getenv("TABLE_CONNECTION_STRING") or os.getenv("AzureWebJobsStorage")
        schema_value = os.getenv("SESSION_SCHEMA_PATH")
        environment = _parse_environment(os.getenv("PITCHSTORE_ENV", DEFAULT_ENVIRONMENT))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            table_connection_string=connection_string or None,
            schema_path=Path(schema_value).expanduser() if schema_value else BUNDLED_SCHEMA_PATH,
            environment=environment,
            local_dev_user_id=os.getenv("LOCAL_DEV_USER_ID") or None,
            s3_region=os.getenv("PITCHSTORE_S3_REGION"),
            s3_profile=os.getenv("PITCHSTORE_S3_PROFILE"),
            log_level=_parse_log_level(os.getenv("PITCHSTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )


def validate_environment(config: PitchStoreConfig) -> list[str]:
    """Collect configuration problems that must block service startup.

    Args:
        config: Parsed runtime configuration.

    Returns:
        Human-readable problems; empty when the config is usable.
    """
    problems: list[str] = []
    if config.is_production and not config.table_connection_string:
        problems.append(
            "Missing required environment variable: TABLE_CONNECTION_STRING "
            "(or AzureWebJobsStorage) - Azure Table Storage connection string."
        )
    if config.is_production and config.local_dev_user_id:
        problems.append(
            "Development-only variable LOCAL_DEV_USER_ID is set in production. "
            "Remove it before starting the service."
        )
    return problems


def validate_environment_or_raise(config: PitchStoreConfig) -> PitchStoreConfig:
    """Validate config and raise when startup must be blocked.

    Args:
        config: Parsed runtime configuration.

    Returns:
        The same config when valid.

    Raises:
        ConfigError: If any problem is found.
    """
    problems = validate_environment(config)
    if problems:
        raise ConfigError("Environment validation failed: " + " ".join(problems))
    return config


def _parse_environment(raw_value: str) -> str:
    """Parse the deployment environment name.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Normalized environment name.

    Raises:
        ConfigError: If the value is not a supported environment.
    """
    environment = raw_value.strip().lower()
    if environment not in SUPPORTED_ENVIRONMENTS:
        raise ConfigError(
            "Invalid PITCHSTORE_ENV value: "
            f"expected one of {SUPPORTED_ENVIRONMENTS}, got '{raw_value}'. "
            "Set PITCHSTORE_ENV to a supported environment name."
        )
    return environment


def _parse_log_level(raw_value: str) -> str:
    """Parse the minimum log level name.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Lower-case level name.

    Raises:
        ConfigError: If the level is not supported.
    """
    level = raw_value.strip().lower()
    if level not in SUPPORTED_LOG_LEVELS:
        raise ConfigError(
            "Invalid PITCHSTORE_LOG_LEVEL value: "
            f"expected one of {SUPPORTED_LOG_LEVELS}, got '{raw_value}'. "
            "Set PITCHSTORE_LOG_LEVEL to a standard level name."
        )
    return level
