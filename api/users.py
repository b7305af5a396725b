"""
User routes — register, login, logout, profile.

Route prefix: /users
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import AuthError, ValidationError
from auth.dependencies import AuthContext, db_session, get_auth_context
from auth.service import (
    authenticate,
    issue_token,
    revoke_all_tokens,
    revoke_token,
    set_password,
)
from database.helpers import delete_user, email_taken
from database.models import User
from utils.schemas import (
    USER_UPDATABLE_FIELDS,
    AuthResponse,
    LoginRequest,
    UserCreate,
    UserOut,
    UserUpdate,
    disallowed_keys,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def _email_in_use() -> ValidationError:
    return ValidationError(
        "Email is already registered",
        errors=[{"field": "email", "message": "Email is already registered"}],
    )


async def _flush_user(session: AsyncSession) -> None:
    """Flush pending user changes, mapping the unique-email constraint to a 400."""
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise _email_in_use() from exc


@router.post("/users", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    req: UserCreate,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Register a new user and log them in."""
    if await email_taken(session, req.email):
        raise _email_in_use()

    user = User(name=req.name, email=req.email, age=req.age)
    set_password(user, req.password)
    session.add(user)
    await _flush_user(session)

    token = await issue_token(session, user)
    logger.info("Registered user %s (%s)", user.email, user.id)
    return {"user": user.to_dict(), "token": token}


@router.post("/users/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Login with email + password."""
    try:
        user = await authenticate(session, req.email, req.password)
    except AuthError as exc:
        logger.info("Failed login for %s: %s", req.email, type(exc).__name__)
        # Unknown email and wrong password look identical to the client.
        raise ValidationError("Unable to login") from exc

    token = await issue_token(session, user)
    logger.info("Login: %s (%s)", user.email, user.id)
    return {"user": user.to_dict(), "token": token}


@router.post("/users/logout")
async def logout(
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    await revoke_token(session, auth.user, auth.token)
    logger.info("Logout: %s", auth.user.id)
    return {"message": "Logged out"}


@router.post("/users/logoutAll")
async def logout_all(
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    revoked = await revoke_all_tokens(session, auth.user)
    logger.info("Logout everywhere: %s (%d token(s))", auth.user.id, revoked)
    return {"message": "Logged out of all sessions"}


@router.get("/users/me", response_model=UserOut)
async def me(auth: AuthContext = Depends(get_auth_context)) -> Dict[str, Any]:
    return auth.user.to_dict()


@router.patch("/users/me", response_model=UserOut)
async def update_me(
    body: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Update ``name``, ``email``, ``password`` and/or ``age``."""
    rejected = disallowed_keys(body, USER_UPDATABLE_FIELDS)
    if rejected:
        raise ValidationError(
            "Invalid updates!",
            errors=[{"field": key, "message": "Field is not updatable"} for key in rejected],
        )

    try:
        changes = UserUpdate.model_validate(body).model_dump(exclude_unset=True)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc

    user = auth.user
    if "email" in changes and await email_taken(session, changes["email"], exclude=user.id):
        raise _email_in_use()

    password = changes.pop("password", None)
    for field, value in changes.items():
        setattr(user, field, value)
    if password is not None:
        set_password(user, password)

    await _flush_user(session)
    return user.to_dict()


@router.delete("/users/me", response_model=UserOut)
async def delete_me(
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Delete the caller's account and every task it owns."""
    payload = auth.user.to_dict()
    await delete_user(session, auth.user)
    return payload
