"""Short-lived Admin API tokens.

Ghost Admin keys have the form ``<id>:<secret>`` where the secret is hex.
Each request carries a fresh HS256 JWT whose header names the key id
(``kid``) and whose claims are scoped to the ``/admin/`` audience for five
minutes.
"""

import time
from typing import Optional

from jose import jwt
from jose.exceptions import JOSEError

from ghostpub.exceptions import AuthError, ConfigurationError


TOKEN_TTL_SECONDS = 5 * 60
AUDIENCE = "/admin/"


def split_api_key(api_key: Optional[str]) -> tuple[str, str]:
    """Return (key_id, secret), failing fast on anything not shaped id:secret."""
    if not api_key or not api_key.strip():
        raise ConfigurationError("Admin API key not configured")
    key_id, sep, secret = api_key.strip().partition(":")
    if not sep or not key_id or not secret:
        raise ConfigurationError("Invalid Admin API key format. Expected format: id:secret")
    return key_id, secret


def sign_admin_token(api_key: str, now: Optional[float] = None) -> str:
    """Build a signed `header.payload.signature` token for the Admin API."""
    key_id, secret = split_api_key(api_key)
    try:
        key = bytes.fromhex(secret)
    except ValueError as e:
        raise AuthError("Admin API secret is not valid hexadecimal") from e

    issued_at = int(time.time() if now is None else now)
    claims = {"iat": issued_at, "exp": issued_at + TOKEN_TTL_SECONDS, "aud": AUDIENCE}
    try:
        return jwt.encode(claims, key, algorithm="HS256", headers={"kid": key_id})
    except JOSEError as e:
        raise AuthError(f"Could not sign Admin API token: {e}") from e
