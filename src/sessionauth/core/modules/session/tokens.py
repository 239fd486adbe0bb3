"""Session token generation and token-to-identifier derivation.

A token is handed to the client and never persisted. The store only ever
sees the SHA-256 hex digest of the token, so a leaked sessions collection
cannot be replayed as credentials.
"""

import base64
import hashlib
import secrets

from sessionauth.core.modules.session.models import SessionId, SessionToken

TOKEN_BYTES = 20  # 160 bits of entropy


def generate_session_token() -> SessionToken:
    """Return a fresh random token as unpadded lowercase base32."""
    raw = secrets.token_bytes(TOKEN_BYTES)
    return SessionToken(base64.b32encode(raw).decode("ascii").lower().rstrip("="))


def derive_session_id(token: SessionToken | str) -> SessionId:
    """Return the lowercase hex SHA-256 digest of the token's UTF-8 bytes."""
    return SessionId(hashlib.sha256(token.encode("utf-8")).hexdigest())
