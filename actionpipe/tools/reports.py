from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from actionpipe.db.models import Task
from actionpipe.db.repo import list_tasks
from actionpipe.llm.schemas import ToolName, ToolSuccess
from actionpipe.tools.contracts import WeeklyReportArgs
from actionpipe.tools.registry import CallerContext, register


"""
Weekly report tool.

What it does:
- Resolves the requested timeframe in the caller's timezone
- Counts completed / in-progress / overdue tasks and appointments
- Groups activity by category
- Renders a short markdown summary for chat display
Main purpose:
Provide structured productivity metrics for one user.
"""

APPOINTMENT_CATEGORIES = {"calendar", "appointments", "meetings"}


def report_range(timeframe: str, now_local: datetime) -> Tuple[datetime, datetime]:
    """[start, end] of the timeframe as local wall-clock datetimes (weeks start on Monday)."""
    today = now_local.date()
    if timeframe == "last_7_days":
        start = datetime.combine(today - timedelta(days=7), time.min)
        end = datetime.combine(today, time.max)
        return start, end

    monday = today - timedelta(days=today.weekday())
    if timeframe == "last_week":
        monday -= timedelta(days=7)
    start = datetime.combine(monday, time.min)
    end = datetime.combine(monday + timedelta(days=6), time.max)
    return start, end


def _to_utc(local: datetime, tz: ZoneInfo) -> datetime:
    return local.replace(tzinfo=tz).astimezone(timezone.utc).replace(tzinfo=None)


def build_weekly_report(
    tasks: List[Task],
    args: WeeklyReportArgs,
    *,
    tz_name: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")

    now_utc = now or datetime.utcnow()
    now_local = now_utc.replace(tzinfo=timezone.utc).astimezone(tz).replace(tzinfo=None)
    start_local, end_local = report_range(args.timeframe, now_local)
    start, end = _to_utc(start_local, tz), _to_utc(end_local, tz)

    completed = [t for t in tasks if t.completed and t.completed_at and start <= t.completed_at <= end]
    in_progress = [t for t in tasks if not t.completed and not t.archived and t.created_at and t.created_at <= end]
    overdue = [
        t for t in tasks
        if not t.completed and t.scheduled_date and start <= t.scheduled_date < now_utc
    ]

    appointments = 0
    if args.include_appointments:
        for t in tasks:
            if (t.category or "").lower() not in APPOINTMENT_CATEGORIES:
                continue
            if t.scheduled_date:
                appointments += start <= t.scheduled_date <= end
            elif t.completed and t.completed_at:
                appointments += start <= t.completed_at <= end

    by_category: List[Dict[str, Any]] = []
    if args.include_categories:
        counts: Dict[str, Dict[str, int]] = {}
        for t in completed:
            counts.setdefault(t.category or "General", {"completed": 0, "inProgress": 0})["completed"] += 1
        for t in in_progress:
            counts.setdefault(t.category or "General", {"completed": 0, "inProgress": 0})["inProgress"] += 1
        by_category = sorted(
            ({"category": c, **n} for c, n in counts.items()),
            key=lambda row: row["completed"] + row["inProgress"],
            reverse=True,
        )

    highlights = []
    if completed:
        highlights.append(f"Strong execution: {len(completed)} tasks completed")
    if overdue:
        highlights.append(f"{len(overdue)} overdue items need attention")
    if args.include_appointments and appointments:
        highlights.append(f"{appointments} appointments this period")

    cap = args.max_items_per_section
    return {
        "range": {"startDate": start_local.date().isoformat(), "endDate": end_local.date().isoformat()},
        "totals": {
            "completedTasks": len(completed),
            "inProgressTasks": len(in_progress),
            "overdueTasks": len(overdue),
            "appointmentsCompleted": int(appointments),
        },
        "byCategory": by_category,
        "sections": {
            "completed": [t.title for t in completed[:cap]],
            "inProgress": [t.title for t in in_progress[:cap]],
            "overdue": [t.title for t in overdue[:cap]],
        },
        "highlights": highlights,
    }


def format_weekly_report(report: Dict[str, Any]) -> str:
    rng, totals = report["range"], report["totals"]
    lines = [
        f"**Weekly Summary ({rng['startDate']} to {rng['endDate']})**",
        "",
        "**Performance Metrics:**",
        f"- Completed: {totals['completedTasks']}",
        f"- In Progress: {totals['inProgressTasks']}",
        f"- Overdue: {totals['overdueTasks']}",
        f"- Appointments: {totals['appointmentsCompleted']}",
    ]
    if report["byCategory"]:
        lines += ["", "**By Category:**"]
        for row in report["byCategory"][:5]:
            lines.append(f"- {row['category']}: {row['completed']} done, {row['inProgress']} in progress")
    if report["highlights"]:
        lines += ["", "**Highlights:**"]
        lines += [f"- {h}" for h in report["highlights"]]
    return "\n".join(lines)


@register(ToolName.WEEKLY_REPORT_REQUEST)
async def weekly_report_tool(args: WeeklyReportArgs, ctx: CallerContext) -> ToolSuccess:
    tasks = await list_tasks(ctx.db, ctx.user_id, include_archived=True)
    report = build_weekly_report(tasks, args, tz_name=ctx.timezone)
    return ToolSuccess(
        tool=ToolName.WEEKLY_REPORT_REQUEST,
        data=report,
        message=format_weekly_report(report),
    )
