"""Pitchstore exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each error carries the response status it maps to at the API edge.
"""

from __future__ import annotations

from typing import Any, Sequence

INTERNAL_ERROR_MESSAGE = "An internal server error occurred"


class PitchStoreError(Exception):
    """Base exception for all pitchstore failures."""

    status_code = 500

    @property
    def public_message(self) -> str:
        """Return the message that is safe to send to a caller."""
        if self.status_code >= 500:
            return INTERNAL_ERROR_MESSAGE
        return str(self)


class ConfigError(PitchStoreError):
    """Raised for invalid runtime configuration."""


class DependencyError(PitchStoreError):
    """Raised when an optional runtime dependency is missing."""


class IngestError(PitchStoreError):
    """Raised for upload decoding and extraction failures."""

    status_code = 400


class ParseError(IngestError):
    """Raised when an upload body cannot be parsed."""


class MissingSessionDataError(IngestError):
    """Raised when an archive has no recognizable session document."""


class ValidationError(PitchStoreError):
    """Raised when a payload does not conform to the session contract."""

    status_code = 400

    def __init__(self, message: str, details: Sequence[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = list(details or [])


class UnsafeIdentifierError(PitchStoreError):
    """Raised when an identifier fails the filter allow-list check."""

    status_code = 400


class StoreError(PitchStoreError):
    """Raised for table store read and write failures."""


class TransactionFailedError(StoreError):
    """Raised when pitch batches fail and the session write was rolled back."""

    def __init__(self, message: str, batches_completed: int, total_batches: int) -> None:
        super().__init__(message)
        self.batches_completed = batches_completed
        self.total_batches = total_batches


class NotFoundError(PitchStoreError):
    """Raised when a session does not exist for the calling identity."""

    status_code = 404
