"""
Pydantic schemas for request validation across the Task Manager API.

Field rules live here so that routes and services never re-implement them:
trimming, lower-casing, password strength, non-negative ages.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.password import MAX_PASSWORD_BYTES

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")

TASK_UPDATABLE_FIELDS = frozenset({"description", "completed"})
USER_UPDATABLE_FIELDS = frozenset({"name", "email", "password", "age"})


# ═══════════════════════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════════════════════


def _check_password(value: str) -> str:
    value = value.strip()
    if len(value) < 7:
        raise ValueError("Password must be at least 7 characters")
    if "password" in value.lower():
        raise ValueError('Password cannot contain "password"')
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def _check_description(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Description is required")
    return value


def _check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    return value


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    email: EmailStr
    password: str
    age: int = Field(default=0, ge=0)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class UserUpdate(BaseModel):
    """Partial update; keys outside ``USER_UPDATABLE_FIELDS`` are rejected before this runs."""

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name", "email", "password", "age", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return _check_name(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: Optional[str]) -> Optional[str]:
        return _check_password(value)


class LoginRequest(BaseModel):
    email: str
    password: str


# ═══════════════════════════════════════════════════════════════════════════════
# Tasks
# ═══════════════════════════════════════════════════════════════════════════════


class TaskCreate(BaseModel):
    # ``owner`` and any other unknown keys are dropped; owner comes from auth.
    model_config = ConfigDict(extra="ignore")

    description: str
    completed: bool = False

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str) -> str:
        return _check_description(value)


class TaskUpdate(BaseModel):
    description: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Description is required")
        return _check_description(value)

    @field_validator("completed")
    @classmethod
    def validate_completed(cls, value: Optional[bool]) -> Optional[bool]:
        if value is None:
            raise ValueError("Completed must be a boolean")
        return value


class TaskQuery(BaseModel):
    """Normalized ``GET /tasks`` query string."""

    completed: Optional[bool] = None
    limit: Optional[int] = None
    skip: Optional[int] = None
    sort_field: Optional[str] = None
    sort_desc: bool = False

    @classmethod
    def from_params(
        cls,
        completed: Optional[str] = None,
        limit: Optional[str] = None,
        skip: Optional[str] = None,
        sort_by: Optional[str] = None,
    ) -> "TaskQuery":
        sort_field, sort_desc = None, False
        if sort_by:
            field, _, direction = sort_by.partition(":")
            sort_field = field or None
            sort_desc = direction == "desc"
        return cls(
            completed=(completed == "true") if completed else None,
            limit=_positive_or_none(parse_int_prefix(limit)),
            skip=_positive_or_none(parse_int_prefix(skip)),
            sort_field=sort_field,
            sort_desc=sort_desc,
        )


def parse_int_prefix(value: Optional[str]) -> Optional[int]:
    """Leading-integer parse: ``"5"`` and ``"5abc"`` give 5, ``"abc"`` gives None."""
    if value is None:
        return None
    match = _INT_PREFIX.match(value)
    return int(match.group(1)) if match else None


def _positive_or_none(value: Optional[int]) -> Optional[int]:
    return value if value is not None and value > 0 else None


def disallowed_keys(body: Dict[str, Any], allowed: frozenset) -> List[str]:
    return sorted(key for key in body if key not in allowed)


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    age: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserOut
    token: str
