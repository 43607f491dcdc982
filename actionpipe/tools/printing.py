from collections import defaultdict
from typing import Iterable, List

from actionpipe.db.models import Task, TaskTemplate
from actionpipe.db.repo import list_high_priority_tasks, list_tasks, list_templates
from actionpipe.llm.schemas import ToolName, ToolSuccess
from actionpipe.tools.registry import CallerContext, register


# --------------------------------------------------
# Rendering helpers
# --------------------------------------------------

CATEGORY_TARGETS = {
    "work_tasks": "Work",
    "personal_tasks": "Personal",
    "shopping_tasks": "Shopping",
    "health_tasks": "Health",
}

TITLES = {
    "todo_list": "To-Do List",
    "checklist": "Checklists",
    "template_list": "Templates",
    "stats_dashboard": "Task Statistics",
    "high_priority_tasks": "High Priority Tasks",
    "work_tasks": "Work Tasks",
    "personal_tasks": "Personal Tasks",
    "shopping_tasks": "Shopping Tasks",
    "health_tasks": "Health Tasks",
}


def _box(done: bool) -> str:
    return "[x]" if done else "[ ]"


def _task_lines(tasks: Iterable[Task]) -> List[str]:
    lines = []
    for t in tasks:
        when = f" ({t.scheduled_date:%Y-%m-%d %H:%M} UTC)" if t.scheduled_date else ""
        lines.append(f"- {_box(t.completed)} {t.title} [{t.priority}]{when}")
    return lines or ["- (nothing here yet)"]


def _checklist_sections(tasks: Iterable[Task]) -> List[str]:
    lines: List[str] = []
    for t in tasks:
        lines.append(f"## {t.title}")
        for item in t.checklist_items or []:
            lines.append(f"- {_box(bool(item.get('completed')))} {item.get('text', '')}")
        lines.append("")
    return lines or ["- (no checklists)"]


def _template_sections(templates: Iterable[TaskTemplate]) -> List[str]:
    grouped = defaultdict(list)
    for tpl in templates:
        grouped[tpl.category].append(tpl)
    lines: List[str] = []
    for category, items in grouped.items():
        lines.append(f"## {category}")
        lines += [f"- **{tpl.name}**: {tpl.description}" for tpl in items]
        lines.append("")
    return lines or ["- (no templates)"]


def _stats_lines(tasks: List[Task]) -> List[str]:
    done = sum(1 for t in tasks if t.completed)
    by_priority = defaultdict(int)
    for t in tasks:
        by_priority[t.priority] += 1
    return [
        f"- Total tasks: {len(tasks)}",
        f"- Completed: {done}",
        f"- Open: {len(tasks) - done}",
        *(f"- {p} priority: {n}" for p, n in sorted(by_priority.items())),
    ]


def render_document(title: str, body: List[str]) -> str:
    return "\n".join([f"# {title}", "", *body]).rstrip() + "\n"


# --------------------------------------------------
# Main tool
# --------------------------------------------------

@register(ToolName.PRINT_REQUEST)
async def print_tool(target: str, ctx: CallerContext) -> ToolSuccess:
    """
    Build a printable markdown document for the requested target.

    The printing itself happens client-side, so the result carries no chat
    message: callers show the model's own reply plus the receipt.
    "conversation" lives only in the client and is returned as a bare receipt.
    """
    if target == "conversation":
        return ToolSuccess(tool=ToolName.PRINT_REQUEST, data={"printType": target})

    if target == "template_list":
        body = _template_sections(await list_templates(ctx.db))
    elif target == "high_priority_tasks":
        body = _task_lines(await list_high_priority_tasks(ctx.db, ctx.user_id))
    else:
        tasks = await list_tasks(ctx.db, ctx.user_id)
        if target == "checklist":
            body = _checklist_sections(t for t in tasks if t.checklist_items)
        elif target == "stats_dashboard":
            body = _stats_lines(tasks)
        elif target in CATEGORY_TARGETS:
            wanted = CATEGORY_TARGETS[target].lower()
            body = _task_lines(t for t in tasks if (t.category or "").lower() == wanted)
        else:
            body = _task_lines(t for t in tasks if not t.checklist_items and not t.completed)

    return ToolSuccess(
        tool=ToolName.PRINT_REQUEST,
        data={"printType": target, "document": render_document(TITLES[target], body)},
    )
