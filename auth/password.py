"""
Password hashing and verification.

bcrypt only looks at the first 72 bytes of its input and current releases
refuse anything longer, so ``MAX_PASSWORD_BYTES`` is enforced by the request
schemas before a password ever reaches ``hash_password``.
"""

from __future__ import annotations

import bcrypt

from config.settings import config

MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Salted bcrypt hash using ``config.bcrypt_rounds`` as the work factor."""
    salt = bcrypt.gensalt(rounds=config.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """True when ``password`` matches ``password_hash``; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
