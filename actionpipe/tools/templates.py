from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from actionpipe.core.logging import get_logger
from actionpipe.db.models import Task, TaskTemplate
from actionpipe.db.repo import create_task, increment_template_usage, list_templates, upsert_template
from actionpipe.llm.schemas import ToolFailure, ToolName, ToolSuccess
from actionpipe.tools.contracts import ALL_TEMPLATES_SENTINEL, TemplateArgs
from actionpipe.tools.registry import CallerContext, register
from actionpipe.tools.tasks import task_dict

log = get_logger("tools.templates")

COHORT_CATEGORY = "Neurodiverse-Friendly"

# Seed catalog; extra templates can be added straight to the task_templates table.
DEFAULT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "name": "Morning Launch",
        "category": COHORT_CATEGORY,
        "description": "Short, timed steps to get the day started.",
        "tasks": [
            {"title": "Drink a glass of water", "category": "Health", "priority": "Low", "timer": 2},
            {"title": "Pick today's top three", "category": "Personal", "priority": "High", "timer": 5},
            {"title": "Clear the desk", "category": "Personal", "priority": "Medium", "timer": 10},
        ],
    },
    {
        "name": "Body Double Focus Block",
        "category": COHORT_CATEGORY,
        "description": "One focused work block with a break built in.",
        "tasks": [
            {"title": "Choose one task to focus on", "category": "Work", "priority": "High", "timer": 2},
            {"title": "Focus sprint", "category": "Work", "priority": "High", "timer": 25},
            {"title": "Movement break", "category": "Health", "priority": "Medium", "timer": 5},
        ],
    },
    {
        "name": "Weekly Reset",
        "category": COHORT_CATEGORY,
        "description": "End-of-week tidy up and planning.",
        "tasks": [
            {"title": "Review open tasks", "category": "Personal", "priority": "Medium", "timer": 15},
            {"title": "Plan next week", "category": "Personal", "priority": "High", "timer": 20, "scheduledDaysFromNow": 1},
        ],
    },
    {
        "name": "Grocery Run",
        "category": "Shopping",
        "description": "Standard grocery list prep.",
        "tasks": [
            {"title": "Check the fridge", "category": "Shopping", "priority": "Low"},
            {"title": "Write the grocery list", "category": "Shopping", "priority": "Medium"},
            {"title": "Go shopping", "category": "Shopping", "priority": "Medium", "scheduledDaysFromNow": 1},
        ],
    },
]


async def seed_templates(db: AsyncSession) -> int:
    for tpl in DEFAULT_TEMPLATES:
        await upsert_template(db, TaskTemplate(**tpl))
    return len(DEFAULT_TEMPLATES)


def match_template(templates: List[TaskTemplate], name: str) -> TaskTemplate | None:
    wanted = name.lower()
    for tpl in templates:
        have = tpl.name.lower()
        if wanted in have or have in wanted:
            return tpl
    return None


async def _apply(ctx: CallerContext, tpl: TaskTemplate, *, prefix: bool) -> List[Task]:
    created = []
    now = datetime.utcnow()
    for entry in tpl.tasks or []:
        days = entry.get("scheduledDaysFromNow")
        title = entry["title"]
        created.append(
            await create_task(
                ctx.db,
                Task(
                    user_id=ctx.user_id,
                    title=f"[{tpl.name}] {title}" if prefix else title,
                    category=entry.get("category") or "Personal",
                    priority=entry.get("priority") or "Medium",
                    timer=entry.get("timer"),
                    scheduled_date=now + timedelta(days=days) if days else None,
                    checklist_items=[],
                ),
            )
        )
    await increment_template_usage(ctx.db, tpl.id)
    return created


@register(ToolName.TEMPLATE_REQUEST)
async def apply_template_tool(args: TemplateArgs, ctx: CallerContext):
    if args.template_name == ALL_TEMPLATES_SENTINEL:
        cohort = await list_templates(ctx.db, category=COHORT_CATEGORY)
        tasks: List[Task] = []
        for tpl in cohort:
            tasks.extend(await _apply(ctx, tpl, prefix=True))
        return ToolSuccess(
            tool=ToolName.TEMPLATE_REQUEST,
            data={
                "templateName": "All Neurodiverse-Friendly Templates",
                "tasksCreated": len(tasks),
                "appliedTemplates": [t.name for t in cohort],
                "tasks": [task_dict(t) for t in tasks],
            },
            message=f'Template applied: "All Neurodiverse-Friendly Templates" ({len(tasks)} tasks)',
        )

    tpl = match_template(await list_templates(ctx.db), args.template_name)
    if tpl is None:
        log.warning(f"Template not found: {args.template_name!r}")
        return ToolFailure(
            tool=ToolName.TEMPLATE_REQUEST,
            error="Template not found",
            message=f'I couldn\'t find a template called "{args.template_name}".',
        )

    tasks = await _apply(ctx, tpl, prefix=False)
    return ToolSuccess(
        tool=ToolName.TEMPLATE_REQUEST,
        data={"templateName": tpl.name, "tasksCreated": len(tasks), "tasks": [task_dict(t) for t in tasks]},
        message=f'Template applied: "{tpl.name}" ({len(tasks)} tasks)',
    )
