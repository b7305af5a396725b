"""
Auth service — credential checks and the per-user token allow-list.

A signed token alone is not enough: ``verify_token`` also requires the exact
token string to still be stored for its user, which is what makes logout,
logout-everywhere and account deletion revoke access.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthError
from auth.password import hash_password, verify_password
from auth.tokens import TokenError, decode_token, sign_token
from database.helpers import get_user_by_email, to_uuid
from database.models import User, UserToken

logger = logging.getLogger(__name__)


class CredentialsNotFound(AuthError):
    """No account for the given email."""


class InvalidCredentials(AuthError):
    """Wrong password, bad signature, or a token no longer on the allow-list."""


def set_password(user: User, plaintext: str) -> bool:
    """
    Hash ``plaintext`` onto ``user`` unless it already matches the stored hash.

    Returns True when the stored hash changed.
    """
    if user.password and verify_password(plaintext, user.password):
        return False
    user.password = hash_password(plaintext)
    return True


async def issue_token(session: AsyncSession, user: User) -> str:
    """Sign a token for ``user`` and append it to the user's token list."""
    token = sign_token(user.id)
    session.add(UserToken(user_id=user.id, token=token))
    await session.flush()
    logger.debug("Issued token for %s", user.id)
    return token


async def list_tokens(session: AsyncSession, user: User) -> List[str]:
    """The user's currently valid tokens, oldest first."""
    result = await session.execute(
        select(UserToken.token)
        .where(UserToken.user_id == user.id)
        .order_by(UserToken.seq)
    )
    return list(result.scalars().all())


async def verify_token(session: AsyncSession, token: str) -> Tuple[User, str]:
    """Return ``(user, token)`` if ``token`` is validly signed and still issued."""
    try:
        user_id = decode_token(token)
    except TokenError as exc:
        raise InvalidCredentials(str(exc)) from exc

    uid = to_uuid(user_id)
    if uid is None:
        raise InvalidCredentials("malformed subject")

    result = await session.execute(
        select(User)
        .join(UserToken, UserToken.user_id == User.id)
        .where(User.id == uid, UserToken.token == token)
    )
    user = result.scalars().first()
    if user is None:
        raise InvalidCredentials("token not issued to any current user")
    return user, token


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if user is None:
        raise CredentialsNotFound("Unable to login")
    if not verify_password(password, user.password):
        raise InvalidCredentials("Unable to login")
    return user


async def revoke_token(session: AsyncSession, user: User, token: str) -> None:
    """Remove a single token from ``user``'s allow-list (logout)."""
    await session.execute(
        delete(UserToken).where(UserToken.user_id == user.id, UserToken.token == token)
    )


async def revoke_all_tokens(session: AsyncSession, user: User) -> int:
    """Remove every token of ``user`` (logout everywhere)."""
    result = await session.execute(delete(UserToken).where(UserToken.user_id == user.id))
    logger.debug("Revoked %d token(s) for %s", result.rowcount or 0, user.id)
    return result.rowcount or 0
