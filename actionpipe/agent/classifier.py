"""
Default segment classifier for multi-action planning.
What it does:
- Re-uses an embedded command marker when a segment carries one
- Otherwise maps a segment to a tool from its hint kind and keywords
  (checklist, weekly report, todo, calendar), falling back to CREATE_TASK
- Pulls checklist items / todo items / a schedule out of plain text

And, the main purpose:
Give the planner a deterministic, offline classifier so multi-action messages
work without a model round trip.
"""


import re
from datetime import date, timedelta
from typing import List, Optional

from actionpipe.core.logging import get_logger, snippet
from actionpipe.llm.extract import extract_first_command
from actionpipe.llm.payload import shape_command
from actionpipe.llm.schemas import ClassifiedAction, SegmentKind, ToolName

log = get_logger("agent.classifier")

_ITEM_SPLIT = re.compile(r"[,;]|\band\b", re.IGNORECASE)
_CHECKLIST_FILLER = re.compile(r"^(add|create|make|my|to|checklist)$", re.IGNORECASE)
_TODO_FILLER = re.compile(r"^(add|create|make|my|to|todo|todolist|list)$", re.IGNORECASE)

_WEEKLY_RE = re.compile(
    r"\b(weekly\s*(report|summary|recap|overview|stats)|status\s*report|this\s*week\s*summary"
    r"|last\s*week\s*summary|how\s*many\s*(tasks?|items?)\s*(did|have|completed|finished))\b",
    re.IGNORECASE,
)
_CHECKLIST_WORD = re.compile(r"\bchecklist\b", re.IGNORECASE)
_TODO_WORD = re.compile(r"\b(todo|tasks?)\b", re.IGNORECASE)
_CALENDAR_WORD = re.compile(r"\b(appointment|meeting|schedule|at\s+\d)", re.IGNORECASE)

_LEADING_VERB = re.compile(r"^(create|add|make|schedule|book|set)\s+(a\s+)?", re.IGNORECASE)
_LEADING_NOUN = re.compile(r"^(task|appointment|meeting|reminder)\s*:?\s*", re.IGNORECASE)

_TIME_RE = re.compile(r"\bat\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b|\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
_DAY_RE = re.compile(r"\b(today|tomorrow|monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.IGNORECASE)
_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

UNTITLED = "Untitled task"
CHECKLIST_TITLE = "Checklist items"


def _items(text: str, filler: re.Pattern) -> List[str]:
    parts = (p.strip() for p in _ITEM_SPLIT.split(text))
    return [p for p in parts if len(p) > 2 and not filler.match(p)]


def extract_checklist_items(text: str) -> List[dict]:
    items = _items(text, _CHECKLIST_FILLER)
    if not items:
        return [{"text": "Item 1", "completed": False}]
    return [{"text": t, "completed": False} for t in items]


def extract_todo_items(text: str) -> List[dict]:
    return [{"title": t, "category": "Personal"} for t in _items(text, _TODO_FILLER)]


def extract_task_title(text: str) -> str:
    title = _LEADING_VERB.sub("", text.strip())
    title = _LEADING_NOUN.sub("", title).strip()
    return title or UNTITLED


def weekly_timeframe(text: str) -> str:
    if re.search(r"last\s*week", text, re.IGNORECASE):
        return "last_week"
    if re.search(r"last\s*7\s*days", text, re.IGNORECASE):
        return "last_7_days"
    return "this_week"


def resolve_day(word: str, today: date) -> date:
    """today / tomorrow / the next such weekday (a week out when it is today's weekday)."""
    word = word.lower()
    if word == "today":
        return today
    if word == "tomorrow":
        return today + timedelta(days=1)
    ahead = (_WEEKDAYS.index(word) - today.weekday()) % 7
    return today + timedelta(days=ahead or 7)


def parse_clock(m: re.Match) -> str:
    hour = int(m.group(1) or m.group(4))
    minutes = int(m.group(2) or m.group(5) or 0)
    meridian = (m.group(3) or m.group(6) or "").lower()
    if meridian == "pm" and hour < 12:
        hour += 12
    if meridian == "am" and hour == 12:
        hour = 0
    return f"{hour:02d}:{minutes:02d}"


class LexicalClassifier:
    """
    Keyword classifier matching the planner's ClassifySegmentFn.
    `today` is fixed for tests; left unset, the current date is used on every call.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def __call__(self, segment_text: str, hint_kind: SegmentKind, full_text: str = "") -> ClassifiedAction:
        cmd = extract_first_command(segment_text)
        if cmd is not None and ToolName.parse(cmd.tool) is not None:
            return ClassifiedAction(tool=ToolName(cmd.tool), arguments=shape_command(cmd))

        if hint_kind == "checklist" or _CHECKLIST_WORD.search(segment_text):
            return ClassifiedAction(
                tool=ToolName.CREATE_CHECKLIST,
                arguments={
                    "title": CHECKLIST_TITLE,
                    "category": "Personal",
                    "checklistItems": extract_checklist_items(segment_text),
                },
            )

        if _WEEKLY_RE.search(segment_text):
            return ClassifiedAction(
                tool=ToolName.WEEKLY_REPORT_REQUEST,
                arguments={
                    "timeframe": weekly_timeframe(segment_text),
                    "includeCategories": True,
                    "includeAppointments": True,
                    "maxItemsPerSection": 10,
                },
            )

        if hint_kind == "todolist" or _TODO_WORD.search(segment_text):
            tasks = extract_todo_items(segment_text)
            log.info(f"Todo segment {snippet(segment_text, 80)!r} -> {len(tasks)} item(s)")
            if len(tasks) > 1:
                return ClassifiedAction(tool=ToolName.ROLLING_TASKS, arguments={"tasks": tasks})
            return ClassifiedAction(
                tool=ToolName.CREATE_TASK,
                arguments={"title": extract_task_title(segment_text), "category": "Personal"},
            )

        if hint_kind == "calendar" or _CALENDAR_WORD.search(segment_text):
            return ClassifiedAction(tool=ToolName.CREATE_TASK, arguments=self.calendar_task(segment_text))

        return ClassifiedAction(
            tool=ToolName.CREATE_TASK,
            arguments={"title": extract_task_title(segment_text), "category": "Personal"},
        )

    def calendar_task(self, text: str) -> dict:
        args = {"title": extract_task_title(text), "category": "Work"}

        day_m = _DAY_RE.search(text)
        time_m = _TIME_RE.search(text)
        if not day_m and not time_m:
            return args

        day = resolve_day(day_m.group(1), self.today) if day_m else self.today
        if time_m:
            args["scheduledDate"] = f"{day.isoformat()}T{parse_clock(time_m)}:00"
        else:
            args["scheduledDate"] = day.isoformat()
        return args


classify_segment = LexicalClassifier()
