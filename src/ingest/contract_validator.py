"""Structural contract checks for session uploads.

The schema document is loaded once on first use. A failed load is
cached as well, so later calls report the same diagnostic without
touching the file system again.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from core.errors import ConfigError, ValidationError
from core.logging_config import get_logger
from core.types import ContractResult

_LOGGER = get_logger(__name__)

SCHEMA_VALIDATION_FAILED = "Schema validation failed"


class SessionContractValidator:
    """Validates pre-normalization payloads against a JSON schema."""

    def __init__(self, schema_path: Path) -> None:
        """Create validator.

        Args:
            schema_path: Path to the session summary schema document.
        """
        self._schema_path = schema_path
        self._lock = threading.Lock()
        self._validator: Draft202012Validator | None = None
        self._load_error: str | None = None

    def validate(self, payload: Any) -> ContractResult:
        """Check a payload against the session contract.

        Args:
            payload: Decoded upload document, before field normalization.

        Returns:
            ``ok`` result, or a failure with an error message and,
            for non-conforming payloads, violations ordered by path.
        """
        validator = self._load()
        if validator is None:
            return ContractResult(ok=False, error=self._load_error)
        violations = sorted(
            validator.iter_errors(payload),
            key=lambda item: (item.json_path, str(item.validator)),
        )
        if not violations:
            return ContractResult(ok=True)
        details = tuple(
            {"path": item.json_path, "rule": str(item.validator), "message": item.message}
            for item in violations
        )
        return ContractResult(ok=False, error=SCHEMA_VALIDATION_FAILED, details=details)

    def require_valid(self, payload: Any) -> None:
        """Raise when a payload does not conform.

        Args:
            payload: Decoded upload document.

        Raises:
            ValidationError: With violation details when non-conforming.
            ConfigError: If the schema document could not be loaded.
        """
        result = self.validate(payload)
        if not result.ok:
            if result.details is None:
                raise ConfigError(result.error or "Schema load failed")
            raise ValidationError(result.error or SCHEMA_VALIDATION_FAILED, result.details)

    def _load(self) -> Draft202012Validator | None:
        """Return the compiled validator, loading it on first use."""
        if self._validator is not None or self._load_error is not None:
            return self._validator
        with self._lock:
            if self._validator is None and self._load_error is None:
                try:
                    self._validator = _compile_schema(self._schema_path)
                except (OSError, ValueError, SchemaError) as error:
                    self._load_error = f"Schema load failed: {error}"
                    _LOGGER.error(
                        "contract_schema_load_failed",
                        schema_path=str(self._schema_path),
                        error=str(error),
                    )
                else:
                    _LOGGER.info("contract_schema_loaded", schema_path=str(self._schema_path))
        return self._validator


def _compile_schema(schema_path: Path) -> Draft202012Validator:
    """Read and check a schema document.

    Args:
        schema_path: Schema file path.

    Returns:
        Compiled validator.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a JSON object.
        SchemaError: If the document is not a valid schema.
    """
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise ValueError(f"schema at {schema_path} is not a JSON object")
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)
