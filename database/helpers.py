"""
Database helper functions: owner-scoped task queries and user persistence.

Every task query filters on ``Task.owner`` explicitly; there is no implicit
user -> tasks relationship to walk.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Task, User, UserToken
from utils.schemas import TaskQuery

logger = logging.getLogger(__name__)

SORTABLE_TASK_FIELDS = {
    "description": Task.description,
    "completed": Task.completed,
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
}


def to_uuid(value: str | uuid.UUID) -> Optional[uuid.UUID]:
    """Parse ``value`` as a UUID, returning ``None`` when it is malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError):
        return None


# ── Users ──────────────────────────────────────────────────────────────


async def get_user_by_id(session: AsyncSession, user_id: str | uuid.UUID) -> Optional[User]:
    uid = to_uuid(user_id)
    if uid is None:
        return None
    result = await session.execute(select(User).where(User.id == uid))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.email == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def email_taken(session: AsyncSession, email: str, exclude: uuid.UUID | None = None) -> bool:
    stmt = select(func.count()).select_from(User).where(User.email == email)
    if exclude is not None:
        stmt = stmt.where(User.id != exclude)
    return (await session.execute(stmt)).scalar_one() > 0


async def delete_user(session: AsyncSession, user: User) -> int:
    """
    Remove ``user`` and every task it owns.

    Tasks and issued tokens go first so no row is left pointing at a missing
    owner; all statements run in the caller's transaction.
    """
    result = await session.execute(delete(Task).where(Task.owner == user.id))
    removed = result.rowcount or 0
    await session.execute(delete(UserToken).where(UserToken.user_id == user.id))
    await session.execute(delete(User).where(User.id == user.id))
    logger.info("Deleted user %s and %d task(s)", user.id, removed)
    return removed


# ── Tasks ──────────────────────────────────────────────────────────────


async def create_task(session: AsyncSession, owner: uuid.UUID, fields: Dict[str, Any]) -> Task:
    task = Task(owner=owner, **fields)
    session.add(task)
    await session.flush()
    return task


async def list_tasks(session: AsyncSession, owner: uuid.UUID, query: TaskQuery) -> List[Task]:
    stmt = select(Task).where(Task.owner == owner)

    if query.completed is not None:
        stmt = stmt.where(Task.completed.is_(query.completed))

    if query.sort_field:
        column = SORTABLE_TASK_FIELDS.get(query.sort_field)
        if column is None:
            logger.debug("Ignoring unknown sort field %r", query.sort_field)
        else:
            stmt = stmt.order_by(column.desc() if query.sort_desc else column.asc())

    if query.skip:
        stmt = stmt.offset(query.skip)
    if query.limit:
        stmt = stmt.limit(query.limit)

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_task(session: AsyncSession, owner: uuid.UUID, task_id: str) -> Optional[Task]:
    tid = to_uuid(task_id)
    if tid is None:
        return None
    result = await session.execute(
        select(Task).where(Task.id == tid, Task.owner == owner)
    )
    return result.scalar_one_or_none()


async def count_tasks(session: AsyncSession, owner: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Task).where(Task.owner == owner)
    )
    return result.scalar_one()


async def delete_task(session: AsyncSession, owner: uuid.UUID, task_id: str) -> Optional[Dict[str, Any]]:
    """
    Find-and-delete in one statement, scoped to ``owner``.

    Returns the deleted row as a dict, or ``None`` when nothing matched.
    """
    tid = to_uuid(task_id)
    if tid is None:
        return None
    result = await session.execute(
        delete(Task)
        .where(Task.id == tid, Task.owner == owner)
        .returning(*Task.__table__.columns)
        .execution_options(synchronize_session=False)
    )
    row = result.mappings().one_or_none()
    if row is None:
        return None
    return Task(**dict(row)).to_dict()
