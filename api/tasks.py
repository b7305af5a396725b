"""
Task routes — CRUD over the authenticated user's own tasks.

Route prefix: /tasks
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import NotFoundError, UnexpectedError, ValidationError
from auth.dependencies import AuthContext, db_session, get_auth_context
from database.helpers import create_task, delete_task, get_task, list_tasks
from utils.schemas import (
    TASK_UPDATABLE_FIELDS,
    TaskCreate,
    TaskQuery,
    TaskUpdate,
    disallowed_keys,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_one(
    req: TaskCreate,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Create a task owned by the caller; any client-supplied owner is ignored."""
    task = await create_task(session, auth.user.id, req.model_dump())
    logger.debug("Task %s created for %s", task.id, auth.user.id)
    return task.to_dict()


@router.get("/tasks")
async def list_all(
    completed: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    skip: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> List[Dict[str, Any]]:
    """
    List the caller's tasks.

    ``?completed=true|false``, ``?limit=5&skip=10``, ``?sortBy=created_at:desc``.
    """
    query = TaskQuery.from_params(completed=completed, limit=limit, skip=skip, sort_by=sort_by)
    try:
        tasks = await list_tasks(session, auth.user.id, query)
    except SQLAlchemyError as exc:
        logger.exception("Listing tasks failed for %s", auth.user.id)
        raise UnexpectedError() from exc
    return [task.to_dict() for task in tasks]


@router.get("/tasks/{task_id}")
async def get_one(
    task_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    try:
        task = await get_task(session, auth.user.id, task_id)
    except SQLAlchemyError as exc:
        logger.exception("Loading task %s failed", task_id)
        raise UnexpectedError() from exc

    if task is None:
        raise NotFoundError("Task not found")
    return task.to_dict()


@router.patch("/tasks/{task_id}")
async def update_one(
    task_id: str,
    body: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Update ``description`` and/or ``completed``; any other key rejects the whole request."""
    rejected = disallowed_keys(body, TASK_UPDATABLE_FIELDS)
    if rejected:
        raise ValidationError(
            "Invalid updates!",
            errors=[{"field": key, "message": "Field is not updatable"} for key in rejected],
        )

    task = await get_task(session, auth.user.id, task_id)
    if task is None:
        raise NotFoundError("Task not found")

    try:
        changes = TaskUpdate.model_validate(body).model_dump(exclude_unset=True)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc

    for field, value in changes.items():
        setattr(task, field, value)
    await session.flush()
    return task.to_dict()


@router.delete("/tasks/{task_id}")
async def delete_one(
    task_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    try:
        deleted = await delete_task(session, auth.user.id, task_id)
    except SQLAlchemyError as exc:
        logger.exception("Deleting task %s failed", task_id)
        raise UnexpectedError() from exc

    if deleted is None:
        raise NotFoundError("Task not found")
    return deleted
