"""
Bearer token signing and decoding.

Tokens are HS256 JWTs carrying only the user id (``_id`` claim). They do not
expire; a token stays valid for as long as it is listed on its user, see
``auth.service.verify_token``. The secret is read from ``config.jwt_secret``
(env var: ``JWT_SECRET``) and nowhere else.
"""

from __future__ import annotations

import uuid

import jwt

from config.settings import config


class TokenError(Exception):
    """Raised when a token is malformed or its signature does not verify."""


def sign_token(user_id: uuid.UUID | str) -> str:
    """Create a signed token embedding ``user_id``."""
    payload = {"_id": str(user_id), "jti": uuid.uuid4().hex}
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_token(token: str) -> str:
    """
    Verify ``token`` and return the embedded user id.

    Raises ``TokenError`` on bad structure, bad signature or a missing claim.
    """
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise TokenError(str(exc)) from exc

    user_id = payload.get("_id")
    if not isinstance(user_id, str) or not user_id:
        raise TokenError("token has no subject")
    return user_id
