"""Caller identity resolution.

The hosting platform authenticates callers and forwards a base64 JSON
principal header. A development bypass user may be configured for
local work; it is refused in production.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Mapping

from core.config import PitchStoreConfig
from core.constants import PRINCIPAL_HEADER_NAME
from core.errors import ConfigError
from core.logging_config import get_logger
from core.types import Identity

_LOGGER = get_logger(__name__)


def resolve_identity(headers: Mapping[str, str], config: PitchStoreConfig) -> Identity | None:
    """Resolve the calling identity from request headers.

    Args:
        headers: Request headers; names are matched case-insensitively.
        config: Runtime configuration holding the dev bypass.

    Returns:
        Resolved identity, or None when the caller is unauthenticated
        or the principal header cannot be decoded.

    Raises:
        ConfigError: If the dev bypass is configured in production.
    """
    if config.local_dev_user_id:
        if config.is_production:
            raise ConfigError("Authentication bypass is not allowed in production")
        _LOGGER.warning("dev_identity_bypass", user_id=config.local_dev_user_id)
        return Identity(
            user_id=config.local_dev_user_id,
            user_details="Local Dev",
            principal={"userId": config.local_dev_user_id},
        )
    header = _header_value(headers, PRINCIPAL_HEADER_NAME)
    if not header:
        return None
    return decode_principal(header)


def decode_principal(header: str) -> Identity | None:
    """Decode a base64 JSON client principal.

    Args:
        header: Encoded principal header value.

    Returns:
        Identity whose user id falls back to the user details and
        then to ``anonymous``; None when the header is malformed.
    """
    try:
        principal = json.loads(base64.b64decode(header, validate=True).decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    if not isinstance(principal, dict):
        return None
    user_id = principal.get("userId") or principal.get("userDetails") or "anonymous"
    return Identity(
        user_id=str(user_id),
        user_details=str(principal.get("userDetails") or user_id),
        principal=principal,
    )


def _header_value(headers: Mapping[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None
