"""
FastAPI dependencies for authentication.

Provides ``db_session`` and ``get_auth_context`` dependencies that are used
across all protected routes. A request is either rejected here with the
uniform 401 or reaches the route with an ``AuthContext`` attached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthError
from auth.service import verify_token
from database.models import User
from database.session import get_db_session

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user: User
    token: str


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


async def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    session: AsyncSession = Depends(db_session),
) -> AuthContext:
    """
    Extract and verify the Bearer token, returning the authenticated user
    together with the token that was presented.
    """
    if credentials is None or not credentials.credentials:
        logger.debug("Rejected %s %s: missing bearer token", request.method, request.url.path)
        raise AuthError()

    try:
        user, token = await verify_token(session, credentials.credentials)
    except AuthError as exc:
        logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        # Every cause gets the same public message.
        raise AuthError() from exc

    request.state.user_id = str(user.id)
    return AuthContext(user=user, token=token)
