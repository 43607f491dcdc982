"""
Creates the multi-action plan.
What it does:
- Splits one user message into ordered intent segments, either by explicit
  topic labels ("todo: ...", "calendar: ...") or by connector words
  ("then", "also", "after that", ...)
- Gives every segment a coarse kind (calendar / todolist / checklist / unknown)
- Caps the number of segments
- Asks a classifier callback to turn each segment into (tool, arguments)

And, the main purpose:
Convert a multi-intent message into executable steps, in message order.
"""



import inspect
import re
from typing import Awaitable, Callable, List, Optional, Union

from actionpipe.core.config import settings
from actionpipe.core.logging import get_logger
from actionpipe.llm.schemas import ClassifiedAction, MultiPlan, PlanMeta, PlannedStep, Segment, SegmentKind

log = get_logger("agent.planner")

ClassifySegmentFn = Callable[
    [str, SegmentKind, str],
    Union[ClassifiedAction, Awaitable[ClassifiedAction]],
]


class PlanningError(RuntimeError):
    def __init__(self, segment: Segment, cause: Exception):
        super().__init__(f"Could not classify segment {segment.text!r}: {cause}")
        self.segment = segment
        self.cause = cause


LABEL_KINDS: dict[str, SegmentKind] = {
    "calendar": "calendar",
    "cal": "calendar",
    "schedule": "calendar",
    "appointment": "calendar",
    "appointments": "calendar",
    "todo": "todolist",
    "to-do": "todolist",
    "todolist": "todolist",
    "todo list": "todolist",
    "to-do list": "todolist",
    "task": "todolist",
    "tasks": "todolist",
    "checklist": "checklist",
    "check": "checklist",
    # recognized as a label, but no dedicated kind
    "note": "unknown",
    "notes": "unknown",
    "other": "unknown",
}

# longest alternatives first so "todo list" wins over "todo"
_LABEL_RE = re.compile(
    r"(?<![\w-])("
    + "|".join(r"\s+".join(re.escape(w) for w in k.split()) for k in sorted(LABEL_KINDS, key=len, reverse=True))
    + r")\s*:",
    re.IGNORECASE,
)

_CONNECTOR_RE = re.compile(r"\b(?:and\s+also|then\s+also|after\s+that|and\s+then|next|also|then)\b", re.IGNORECASE)
_SENTENCE_END_RE = re.compile(r"\.\s+")
_NEWLINES_RE = re.compile(r"\n+")
_SEPARATOR = "\x00"

# dangling connector words left at a segment's edges ("milk, eggs then")
_EDGE_CONNECTOR_RE = re.compile(r"^(?:(?:and|then|also|next)\b[\s,]*)+|(?:[\s,]*\b(?:and|then|also|next))+$", re.IGNORECASE)

_CHECKLIST_RE = re.compile(r"\bchecklists?\b", re.IGNORECASE)
_TODO_RE = re.compile(r"\b(?:todo|to-do|todolist|todo\s+list|tasks?)\b", re.IGNORECASE)
_CALENDAR_RE = re.compile(
    r"\b(?:calendar|schedule|appointments?|meetings?)\b"
    r"|\b\d{1,2}(?::\d{2})?\s*(?:am|pm)\b"
    r"|\bat\s+\d{1,2}(?::\d{2})?\b"
    r"|\b(?:morning|afternoon|evening|tonight|noon)\b",
    re.IGNORECASE,
)


def _normalize(s: str) -> str:
    return re.sub(r"\s+", " ", s).strip()


def _clean(s: str) -> str:
    return _EDGE_CONNECTOR_RE.sub("", _normalize(s)).strip(" ,;")


def has_labels(text: str) -> bool:
    return bool(_LABEL_RE.search(text or ""))


def has_connectors(text: str) -> bool:
    return bool(_CONNECTOR_RE.search(text or ""))


def classify_kind(text: str) -> SegmentKind:
    # checklist before todo: "print my checklist of tasks" is a checklist
    if _CHECKLIST_RE.search(text):
        return "checklist"
    if _TODO_RE.search(text):
        return "todolist"
    if _CALENDAR_RE.search(text):
        return "calendar"
    return "unknown"


def split_by_labels(text: str) -> List[Segment]:
    """Each label owns the text up to the next label; text before the first label is dropped."""
    matches = list(_LABEL_RE.finditer(text))
    if not matches:
        clean = _normalize(text)
        return [Segment(kind="unknown", text=clean)] if clean else []

    segments: List[Segment] = []
    for cur, nxt in zip(matches, matches[1:] + [None]):
        body = text[cur.end() : nxt.start() if nxt else len(text)]
        label = _normalize(cur.group(1)).lower()
        clean = _clean(body)
        if clean:
            segments.append(Segment(kind=LABEL_KINDS.get(label, "unknown"), text=clean))
    return segments


def split_by_connectors(text: str) -> List[Segment]:
    normalized = _CONNECTOR_RE.sub(_SEPARATOR, text)
    normalized = _SENTENCE_END_RE.sub(_SEPARATOR, normalized)
    normalized = _NEWLINES_RE.sub(_SEPARATOR, normalized)

    parts = [_clean(p) for p in normalized.split(_SEPARATOR)]
    return [Segment(kind=classify_kind(p), text=p) for p in parts if p]


def split_segments(text: str) -> tuple[List[Segment], bool]:
    if has_labels(text):
        return split_by_labels(text), True
    if not has_connectors(text):
        # one intent, no hint: keyword kinds are only for connector chunks
        clean = _normalize(text)
        return ([Segment(kind="unknown", text=clean)] if clean else []), False
    return split_by_connectors(text), False


async def plan_multi_action(
    text: str,
    classify: ClassifySegmentFn,
    max_steps: Optional[int] = None,
) -> MultiPlan:
    """
    Build the ordered plan for one message.
    Segments past max_steps are dropped. If the classifier fails for any
    segment, PlanningError is raised and no partial plan is returned.
    """
    cap = settings.MULTI_ACTION_MAX_STEPS if max_steps is None else max_steps
    segments, used_labels = split_segments(text)
    if len(segments) > cap:
        log.info(f"Dropping {len(segments) - cap} segment(s) beyond the {cap}-step cap")
    segments = segments[:cap]

    steps: List[PlannedStep] = []
    for seg in segments:
        try:
            action = classify(seg.text, seg.kind, text)
            if inspect.isawaitable(action):
                action = await action
            steps.append(PlannedStep(tool=action.tool, arguments=action.arguments, source_text=seg.text))
        except Exception as e:
            log.warning(f"Planning aborted: {e}")
            raise PlanningError(seg, e) from e

    return MultiPlan(steps=steps, meta=PlanMeta(used_labels=used_labels, segments=segments))
