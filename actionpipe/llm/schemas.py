from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field


class ToolName(str, Enum):
    CREATE_TASK = "CREATE_TASK"
    CREATE_CHECKLIST = "CREATE_CHECKLIST"
    ROLLING_TASKS = "ROLLING_TASKS"
    PRINT_REQUEST = "PRINT_REQUEST"
    SUMMARIZE_REQUEST = "SUMMARIZE_REQUEST"
    TEMPLATE_REQUEST = "TEMPLATE_REQUEST"
    HIGH_PRIORITY_REQUEST = "HIGH_PRIORITY_REQUEST"
    SHARE_SCHEDULE = "SHARE_SCHEDULE"
    WEEKLY_REPORT_REQUEST = "WEEKLY_REPORT_REQUEST"
    ADD_CONTACT = "ADD_CONTACT"
    FIND_CONTACT = "FIND_CONTACT"
    SEND_MESSAGE = "SEND_MESSAGE"
    LIST_INBOX = "LIST_INBOX"
    READ_MESSAGE = "READ_MESSAGE"

    @classmethod
    def parse(cls, name: str) -> Optional["ToolName"]:
        try:
            return cls(name)
        except ValueError:
            return None


SegmentKind = Literal["calendar", "todolist", "checklist", "unknown"]


class ExtractedCommand(BaseModel):
    tool: str = Field(..., description="Marker that was found, without the colon")
    raw_text: str = Field("", description="First line after the marker, trimmed")
    structured_text: Optional[str] = Field(None, description="Bracket-balanced payload span")

    model_config = {"frozen": True}


class Segment(BaseModel):
    kind: SegmentKind = "unknown"
    text: str

    model_config = {"frozen": True}


class ClassifiedAction(BaseModel):
    tool: ToolName
    arguments: Any = None


class PlannedStep(BaseModel):
    tool: ToolName
    arguments: Any = None
    source_text: str = ""


class PlanMeta(BaseModel):
    used_labels: bool = False
    segments: List[Segment] = []


class MultiPlan(BaseModel):
    steps: List[PlannedStep] = []
    meta: PlanMeta = PlanMeta()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def mode(self) -> Literal["single", "multi"]:
        return "multi" if len(self.steps) > 1 else "single"


class ToolSuccess(BaseModel):
    ok: Literal[True] = True
    tool: ToolName
    data: Any = None
    message: Optional[str] = None

    model_config = {"frozen": True}


class ToolFailure(BaseModel):
    ok: Literal[False] = False
    tool: ToolName
    error: str
    message: Optional[str] = Field(None, description="User-facing text; error stays diagnostic")
    needs_clarification: bool = False
    clarification_question: Optional[str] = None

    model_config = {"frozen": True}


ToolResult = Union[ToolSuccess, ToolFailure]


class RunOutcome(BaseModel):
    status: Literal["done", "blocked", "partial"]
    results: List[ToolResult] = []
    dry_run: bool = False
    question: Optional[str] = None


class ActionReceipt(BaseModel):
    type: ToolName
    data: Any = None


class ReplyOutcome(BaseModel):
    response: str
    actions: List[ActionReceipt] = []


class MultiActionResponse(BaseModel):
    handled: bool
    response: Optional[str] = None
    actions: List[ActionReceipt] = []
    outcome: Optional[RunOutcome] = None
