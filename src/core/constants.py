"""Core constants used across pitchstore modules.

This module centralizes protocol limits, table names, and file conventions.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".pitchstore")
TABLES_DIR_NAME = "tables"
SESSION_TABLE_NAME = "Sessions"
PITCH_TABLE_NAME = "Pitches"
TABLE_TRANSACTION_LIMIT = 100
DEFAULT_ENVIRONMENT = "development"
PRODUCTION_ENVIRONMENT = "production"
SUPPORTED_ENVIRONMENTS = ("development", "test", "production")
DEFAULT_LOG_LEVEL = "info"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
ZIP_LOCAL_FILE_SIGNATURE = b"PK\x03\x04"
JSON_DOCUMENT_EXTENSION = ".json"
SESSION_SUMMARY_FILE_NAME = "session_summary.json"
MANIFEST_FILE_NAME = "manifest.json"
DEFAULT_SCHEMA_FILE_NAME = "session_summary.schema.json"
RATE_LIMIT_WINDOW_SECONDS = 60.0
RATE_LIMIT_MAX_REQUESTS = 100
RATE_LIMIT_SWEEP_INTERVAL_SECONDS = 300.0
PRINCIPAL_HEADER_NAME = "x-ms-client-principal"
ENRICHMENT_FIELD_NAMES = (
    "rotation_rpm",
    "spin_axis",
    "spin_efficiency",
    "confidence",
    "plate_x",
    "plate_z",
    "release_height",
    "release_side",
    "extension",
)
