"""Upload ingest orchestration.

This module runs one upload through decoding, the contract gate,
field normalization, and the compensated session write.
"""

from __future__ import annotations

from core.logging_config import get_logger
from core.types import WriteResult
from ingest.archive_reader import read_upload
from ingest.contract_validator import SessionContractValidator
from ingest.field_normalizer import extract_session
from store.session_writer import SessionWriter
from store.table_client import TableClientProvider

_LOGGER = get_logger(__name__)


def ingest_upload(
    user_id: str,
    body: bytes,
    content_type: str | None,
    validator: SessionContractValidator,
    table_provider: TableClientProvider,
) -> WriteResult:
    """Validate and persist one session upload.

    Nothing is written unless the decoded payload passes the contract.

    Args:
        user_id: Owning identity.
        body: Raw upload bytes.
        content_type: Declared content type.
        validator: Session contract validator.
        table_provider: Cached session and pitch table handles.

    Returns:
        Persisted session key and pitch count.

    Raises:
        ParseError: If the body cannot be decoded.
        MissingSessionDataError: If an archive lacks session content.
        ValidationError: If the payload does not conform.
        TransactionFailedError: If pitch batches failed and were rolled back.
    """
    payload = read_upload(body, content_type)
    validator.require_valid(payload)
    session = extract_session(payload)
    result = SessionWriter(table_provider.get_tables()).write(user_id, session, payload)
    _LOGGER.info(
        "session_upload_completed",
        user_id=user_id,
        session_id=result.session_id,
        pitch_count=result.pitch_count,
        batches_submitted=result.batches_submitted,
    )
    return result
