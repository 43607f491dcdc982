# actionpipe/db/repo.py

import json
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select, delete, update, or_, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from actionpipe.core.config import settings
from actionpipe.db.models import (
    User,
    Task,
    TaskTemplate,
    Contact,
    MessageThread,
    Message,
    TraceEvent,
)


def _serialize_sqlite_value(value: Any) -> Any:
    """
    SQLite cannot bind dict/list directly into TEXT parameters.
    Convert dict/list to JSON string so commit never fails.

    NOTE:
    - Keep strings as-is.
    - Non-JSON values (datetimes, models) fall back to str().
    """
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return value


# ---- USERS ----

async def create_user(db: AsyncSession, user: User) -> User:
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()).limit(1))
    return res.scalar_one_or_none()


# ---- TASKS ----

async def create_task(db: AsyncSession, task: Task) -> Task:
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


async def list_tasks(db: AsyncSession, user_id: int, *, include_archived: bool = False) -> list[Task]:
    q = select(Task).where(Task.user_id == user_id)
    if not include_archived:
        q = q.where(Task.archived.is_(False))
    res = await db.execute(q.order_by(Task.created_at, Task.id))
    return list(res.scalars().all())


async def list_high_priority_tasks(db: AsyncSession, user_id: int) -> list[Task]:
    res = await db.execute(
        select(Task)
        .where(
            Task.user_id == user_id,
            Task.priority == "High",
            Task.completed.is_(False),
            Task.archived.is_(False),
        )
        .order_by(Task.scheduled_date, Task.id)
    )
    return list(res.scalars().all())


# ---- TEMPLATES ----

async def list_templates(db: AsyncSession, category: str | None = None) -> list[TaskTemplate]:
    q = select(TaskTemplate)
    if category:
        q = q.where(TaskTemplate.category == category)
    res = await db.execute(q.order_by(TaskTemplate.category, TaskTemplate.name))
    return list(res.scalars().all())


async def upsert_template(db: AsyncSession, tpl: TaskTemplate) -> TaskTemplate:
    res = await db.execute(select(TaskTemplate).where(TaskTemplate.name == tpl.name))
    existing = res.scalar_one_or_none()
    if existing:
        existing.description = tpl.description
        existing.category = tpl.category
        existing.tasks = tpl.tasks
        tpl = existing
    db.add(tpl)
    await db.commit()
    await db.refresh(tpl)
    return tpl


async def increment_template_usage(db: AsyncSession, template_id: int) -> None:
    await db.execute(
        update(TaskTemplate)
        .where(TaskTemplate.id == template_id)
        .values(usage_count=TaskTemplate.usage_count + 1)
    )
    await db.commit()


# ---- CONTACTS ----

async def add_contact(db: AsyncSession, contact: Contact) -> Contact:
    if contact.contact_user_id is None and contact.email:
        linked = await get_user_by_email(db, contact.email)
        if linked:
            contact.contact_user_id = linked.id
    db.add(contact)
    await db.commit()
    await db.refresh(contact)
    return contact


async def find_contacts(db: AsyncSession, owner_user_id: int, query: str, limit: int = 10) -> list[Contact]:
    q = (query or "").strip()
    if not q:
        return []
    like = f"%{q}%"
    res = await db.execute(
        select(Contact)
        .where(
            Contact.owner_user_id == owner_user_id,
            or_(
                Contact.display_name.ilike(like),
                Contact.email.ilike(like),
                Contact.title.ilike(like),
                Contact.department.ilike(like),
                Contact.aliases_csv.ilike(like),
            ),
        )
        .order_by(Contact.updated_at.desc(), Contact.id.desc())
        .limit(limit)
    )
    return list(res.scalars().all())


async def get_contact_by_id(db: AsyncSession, owner_user_id: int, contact_id: int) -> Contact | None:
    res = await db.execute(
        select(Contact).where(Contact.owner_user_id == owner_user_id, Contact.id == contact_id)
    )
    return res.scalar_one_or_none()


# ---- MESSAGES ----

async def find_or_create_thread(db: AsyncSession, user_a: int, user_b: int, title: str | None = None) -> MessageThread:
    low, high = (user_a, user_b) if user_a < user_b else (user_b, user_a)
    res = await db.execute(
        select(MessageThread).where(
            MessageThread.participant_a_user_id == low,
            MessageThread.participant_b_user_id == high,
        )
    )
    thread = res.scalar_one_or_none()
    if thread:
        return thread

    thread = MessageThread(
        created_by_user_id=user_a,
        title=title,
        participant_a_user_id=low,
        participant_b_user_id=high,
    )
    db.add(thread)
    await db.commit()
    await db.refresh(thread)
    return thread


async def send_message(
    db: AsyncSession,
    *,
    from_user_id: int,
    to_user_id: int,
    body: str,
    subject: str | None = None,
) -> tuple[Message, MessageThread]:
    thread = await find_or_create_thread(db, from_user_id, to_user_id)
    msg = Message(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        thread_id=thread.id,
        subject=subject,
        body=body,
    )
    db.add(msg)
    # bump the thread so it sorts to the top
    thread.updated_at = datetime.utcnow()
    db.add(thread)
    await db.commit()
    await db.refresh(msg)
    return msg, thread


async def list_inbox(
    db: AsyncSession, user_id: int, limit: int = 25, unread_only: bool = False
) -> list[tuple[Message, User | None]]:
    cond = Message.to_user_id == user_id
    if unread_only:
        cond = and_(cond, Message.read_at.is_(None))
    res = await db.execute(
        select(Message, User)
        .outerjoin(User, Message.from_user_id == User.id)
        .where(cond)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
    )
    return [(m, u) for m, u in res.all()]


async def read_message(db: AsyncSession, user_id: int, message_id: int) -> Message | None:
    res = await db.execute(
        select(Message).where(Message.to_user_id == user_id, Message.id == message_id)
    )
    return res.scalar_one_or_none()


async def mark_message_read(db: AsyncSession, user_id: int, message_id: int) -> Message | None:
    msg = await read_message(db, user_id, message_id)
    if not msg:
        return None
    msg.read_at = datetime.utcnow()
    db.add(msg)
    await db.commit()
    await db.refresh(msg)
    return msg


# ---- TRACES ----

async def add_trace(db: AsyncSession, tr: TraceEvent) -> TraceEvent:
    # Make payload SQLite-safe if it exists and is dict/list
    if hasattr(tr, "payload"):
        tr.payload = _serialize_sqlite_value(getattr(tr, "payload", None))

    db.add(tr)
    await db.commit()
    await db.refresh(tr)
    return tr

async def get_trace(db: AsyncSession, request_id: str) -> list[TraceEvent]:
    res = await db.execute(
        select(TraceEvent)
        .where(TraceEvent.request_id == request_id)
        .order_by(TraceEvent.created_at)
    )
    return list(res.scalars().all())


async def purge_old_traces(db: AsyncSession) -> None:
    cutoff = datetime.utcnow() - timedelta(days=settings.TRACE_RETENTION_DAYS)
    await db.execute(delete(TraceEvent).where(TraceEvent.created_at < cutoff))
    await db.commit()
