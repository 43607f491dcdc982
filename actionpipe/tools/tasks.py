"""
Task-creating tools.

What it does:
- CREATE_TASK: one task, optionally scheduled in the caller's timezone
- CREATE_CHECKLIST: one task carrying ordered checklist items
- ROLLING_TASKS: several tasks created in the given order
- HIGH_PRIORITY_REQUEST: the caller's open High-priority tasks
Main purpose:
Persist what the user (or model) asked for and report it back.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from actionpipe.core.ids import new_id
from actionpipe.core.logging import get_logger
from actionpipe.db.models import Task
from actionpipe.db.repo import create_task, list_high_priority_tasks
from actionpipe.llm.schemas import ToolName, ToolSuccess
from actionpipe.tools.contracts import (
    CreateChecklistArgs,
    CreateTaskArgs,
    HighPriorityArgs,
    RollingTasksArgs,
)
from actionpipe.tools.registry import CallerContext, register

log = get_logger("tools.tasks")

DEFAULT_TIME = "09:00"


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning(f"Unknown timezone {name!r}, scheduling in UTC")
        return ZoneInfo("UTC")


def local_to_utc(date_str: Optional[str], time_str: Optional[str], tz_name: str) -> Optional[datetime]:
    """
    Combine a YYYY-MM-DD date (or ISO date-time) and HH:MM time in tz_name into naive UTC.
    Returns None when the date cannot be read.
    """
    if not date_str:
        return None

    day = date_str.strip()
    clock = (time_str or "").strip()
    if "T" in day:
        day, _, rest = day.partition("T")
        if not clock and rest:
            hh_mm = rest.split(":")
            if len(hh_mm) >= 2:
                clock = f"{hh_mm[0]}:{hh_mm[1][:2]}"
    clock = clock or DEFAULT_TIME

    try:
        local = datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M")
    except ValueError:
        log.warning(f"Unreadable schedule date={date_str!r} time={time_str!r}; leaving task unscheduled")
        return None

    aware = local.replace(tzinfo=_zone(tz_name))
    return aware.astimezone(timezone.utc).replace(tzinfo=None)


def task_dict(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "category": task.category,
        "priority": task.priority,
        "completed": task.completed,
        "scheduledDate": task.scheduled_date.isoformat() if task.scheduled_date else None,
        "timer": task.timer,
        "checklistItems": list(task.checklist_items or []),
    }


@register(ToolName.CREATE_TASK)
async def create_task_tool(args: CreateTaskArgs, ctx: CallerContext) -> ToolSuccess:
    task = await create_task(
        ctx.db,
        Task(
            user_id=ctx.user_id,
            title=args.title,
            category=args.category or "Personal",
            priority=args.priority or "Medium",
            scheduled_date=local_to_utc(args.scheduled_date, args.scheduled_time, ctx.timezone),
            timer=args.timer,
            youtube_url=args.youtube_url,
            checklist_items=[],
        ),
    )
    log.info(f"Task created id={task.id} user={ctx.user_id}")
    return ToolSuccess(
        tool=ToolName.CREATE_TASK,
        data=task_dict(task),
        message=f'Task created: "{task.title}"',
    )


@register(ToolName.CREATE_CHECKLIST)
async def create_checklist_tool(args: CreateChecklistArgs, ctx: CallerContext) -> ToolSuccess:
    items = [
        {"id": new_id("item"), "text": item.text, "completed": item.completed}
        for item in args.checklist_items
    ]
    task = await create_task(
        ctx.db,
        Task(
            user_id=ctx.user_id,
            title=args.title,
            category=args.category or "Personal",
            priority=args.priority or "Medium",
            checklist_items=items,
        ),
    )
    return ToolSuccess(
        tool=ToolName.CREATE_CHECKLIST,
        data=task_dict(task),
        message=f'Checklist created: "{task.title}" ({len(items)} items)',
    )


@register(ToolName.ROLLING_TASKS)
async def rolling_tasks_tool(args: RollingTasksArgs, ctx: CallerContext) -> ToolSuccess:
    created = []
    for entry in args.tasks:
        task = await create_task(
            ctx.db,
            Task(
                user_id=ctx.user_id,
                title=entry.title,
                category=entry.category or "Personal",
                priority=entry.priority or "Medium",
                scheduled_date=local_to_utc(entry.scheduled_date, entry.scheduled_time, ctx.timezone),
                timer=entry.timer,
                checklist_items=[],
            ),
        )
        created.append(task)

    log.info(f"Rolling tasks created count={len(created)} user={ctx.user_id}")
    titles = ", ".join(f'"{t.title}"' for t in created)
    return ToolSuccess(
        tool=ToolName.ROLLING_TASKS,
        data=[task_dict(t) for t in created],
        message=f"Created {len(created)} tasks: {titles}",
    )


@register(ToolName.HIGH_PRIORITY_REQUEST)
async def high_priority_tool(args: HighPriorityArgs, ctx: CallerContext) -> ToolSuccess:
    if not args.value:
        return ToolSuccess(tool=ToolName.HIGH_PRIORITY_REQUEST, data=[], message=None)

    tasks = await list_high_priority_tasks(ctx.db, ctx.user_id)
    if not tasks:
        message = "You have no open high-priority tasks."
    else:
        message = f"You have {len(tasks)} high-priority task{'s' if len(tasks) != 1 else ''}: " + ", ".join(
            f'"{t.title}"' for t in tasks
        )
    return ToolSuccess(
        tool=ToolName.HIGH_PRIORITY_REQUEST,
        data=[task_dict(t) for t in tasks],
        message=message,
    )
