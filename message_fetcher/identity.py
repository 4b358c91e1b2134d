"""
Identity extraction from the credential token embedded in a message.

The token is decoded without signature verification; verification is
expected to have happened upstream of the stream.
"""

from collections.abc import Mapping
from typing import Any, Optional

import jwt

from .constants import CREDENTIALS_ATTRIBUTE, DEFAULT_TOKEN_KIND, SUBJECT_ID_CLAIM, TOKEN_ENCODING


def _lookup(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    return None


def extract_identity(
    message: Any,
    credentials_key: str,
    *,
    topic: str,
    log: Any,
    token_kind: str = DEFAULT_TOKEN_KIND,
) -> Optional[str]:
    """
    Safely extract the subject id from a message.

    Expects ``message[credentials_key]["credentials"][token_kind]["base64"]``
    to hold a JWT whose payload carries an ``account_id`` claim.

    Args:
        message: The decoded message
        credentials_key: Root attribute under which the credentials reside
        topic: Topic the message came from, for logging
        log: Logger with a ``warning`` method
        token_kind: Credential entry holding the token

    Returns:
        The subject id, or None when the message carries no usable identity
    """
    credentials = _lookup(_lookup(message, credentials_key), CREDENTIALS_ATTRIBUTE)
    token = _lookup(_lookup(credentials, token_kind), TOKEN_ENCODING)

    if not token or not isinstance(token, (str, bytes)):
        log.warning(
            "Bogus credentials provided, no identity in message",
            extra={"topic": topic, "credentials_key": credentials_key, "raw_message": message},
        )
        return None

    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        log.warning(
            "Bogus JWT token provided, could not decode",
            extra={"topic": topic, "jwt_token": token, "error": str(e)},
        )
        return None

    subject_id = payload.get(SUBJECT_ID_CLAIM) if isinstance(payload, Mapping) else None
    if not subject_id:
        log.warning(
            f"Bogus JWT token provided, no {SUBJECT_ID_CLAIM} claim",
            extra={"topic": topic, "jwt_token": token, "parsed": payload},
        )
        return None

    return str(subject_id)
