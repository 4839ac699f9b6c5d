"""Public SDK surface for Pitchstore.

This module provides a stable import path for SDK and service users.
It re-exports the primary client, service builder, and typed models.
"""

from __future__ import annotations

from api.identity import decode_principal, resolve_identity
from api.rate_governor import RateGovernor
from api.responses import ApiResponse
from api.session_service import SessionService, build_service
from core.config import PitchStoreConfig
from core.types import (
    Identity,
    NormalizedPitch,
    NormalizedSession,
    SessionDetail,
    SessionSummary,
    WriteResult,
)
from ingest.archive_reader import read_upload
from ingest.contract_validator import SessionContractValidator
from ingest.field_normalizer import extract_session, zone_index_from_row_col
from store.session_sdk import PitchStoreClient
from store.table_keys import to_table_key

__all__ = [
    "ApiResponse",
    "Identity",
    "NormalizedPitch",
    "NormalizedSession",
    "PitchStoreClient",
    "PitchStoreConfig",
    "RateGovernor",
    "SessionContractValidator",
    "SessionDetail",
    "SessionService",
    "SessionSummary",
    "WriteResult",
    "build_service",
    "decode_principal",
    "extract_session",
    "read_upload",
    "resolve_identity",
    "to_table_key",
    "zone_index_from_row_col",
]
