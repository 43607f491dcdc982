"""
Per-tool argument contracts.
What it defines:
- One pydantic model (or literal set) per ToolName
- Defaults, enumerations and bounds for every field
- Field-level error reporting instead of exceptions
- Which failing fields are worth a clarification question

And, the main purpose:
Decide whether a shaped payload is safe to hand to a tool executor.
"""


import re
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from actionpipe.llm.schemas import ToolName

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Priority = Literal["Low", "Medium", "High"]

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _Contract(BaseModel):
    # model output uses camelCase keys; python code reads snake_case attributes
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreateTaskArgs(_Contract):
    title: NonEmptyStr
    category: str = "General"
    priority: Priority = "Medium"
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    timer: Optional[float] = None
    youtube_url: Optional[str] = None
    needs_calendar: Optional[bool] = None


class ChecklistItem(_Contract):
    text: NonEmptyStr
    completed: bool = False


class CreateChecklistArgs(_Contract):
    title: NonEmptyStr
    category: Optional[str] = None
    priority: Optional[Priority] = None
    checklist_items: List[ChecklistItem] = Field(..., min_length=1)


class RollingTaskEntry(_Contract):
    title: NonEmptyStr
    category: Optional[str] = None
    priority: Optional[Priority] = None
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    timer: Optional[float] = None


class RollingTasksArgs(_Contract):
    tasks: List[RollingTaskEntry] = Field(..., min_length=1)


PrintTarget = Literal[
    "conversation",
    "todo_list",
    "checklist",
    "template_list",
    "stats_dashboard",
    "high_priority_tasks",
    "work_tasks",
    "personal_tasks",
    "shopping_tasks",
    "health_tasks",
]


class SummarizeArgs(_Contract):
    mode: Literal["summary", "accessible", "highlights", "pdf", "full"] = "summary"
    url: AnyUrl


ALL_TEMPLATES_SENTINEL = "ALL_ADHD"


class TemplateArgs(_Contract):
    template_name: NonEmptyStr = Field(..., alias="template_name")


class HighPriorityArgs(_Contract):
    value: bool


class ShareScheduleArgs(_Contract):
    recipient: NonEmptyStr
    permission: Literal["view", "edit", "full"]
    share_type: Optional[str] = None
    message: Optional[str] = None


class WeeklyReportArgs(_Contract):
    timeframe: Literal["this_week", "last_week", "last_7_days"] = "this_week"
    include_categories: bool = True
    include_appointments: bool = True
    max_items_per_section: int = Field(10, ge=1, le=50)


class AddContactArgs(_Contract):
    display_name: NonEmptyStr
    email: str
    title: Optional[str] = None
    department: Optional[str] = None
    aliases: Optional[List[NonEmptyStr]] = None

    @field_validator("email")
    @classmethod
    def _well_formed(cls, v: str) -> str:
        v = v.strip()
        if not _EMAIL.match(v):
            raise ValueError("Invalid email address")
        return v


class FindContactArgs(_Contract):
    query: NonEmptyStr
    limit: Optional[int] = Field(None, ge=1, le=25)


class SendMessageArgs(_Contract):
    to_user_id: Optional[int] = None
    to_contact_id: Optional[int] = None
    to_email: Optional[str] = None
    subject: Optional[str] = None
    body: NonEmptyStr
    thread_id: Optional[int] = None

    @model_validator(mode="after")
    def _one_recipient(self) -> "SendMessageArgs":
        refs = [r for r in (self.to_user_id, self.to_contact_id, self.to_email) if r not in (None, "")]
        if len(refs) != 1:
            raise PydanticCustomError(
                "recipient",
                "Exactly one of toUserId, toContactId or toEmail is required",
            )
        if self.to_email is not None and not _EMAIL.match(self.to_email.strip()):
            raise PydanticCustomError("recipient", "Invalid recipient email address")
        return self


class ListInboxArgs(_Contract):
    limit: Optional[int] = Field(None, ge=1, le=50)
    unread_only: Optional[bool] = None


class ReadMessageArgs(_Contract):
    message_id: int
    mark_read: Optional[bool] = None


CONTRACTS: Dict[ToolName, TypeAdapter] = {
    ToolName.CREATE_TASK: TypeAdapter(CreateTaskArgs),
    ToolName.CREATE_CHECKLIST: TypeAdapter(CreateChecklistArgs),
    ToolName.ROLLING_TASKS: TypeAdapter(RollingTasksArgs),
    ToolName.PRINT_REQUEST: TypeAdapter(PrintTarget),
    ToolName.SUMMARIZE_REQUEST: TypeAdapter(SummarizeArgs),
    ToolName.TEMPLATE_REQUEST: TypeAdapter(TemplateArgs),
    ToolName.HIGH_PRIORITY_REQUEST: TypeAdapter(HighPriorityArgs),
    ToolName.SHARE_SCHEDULE: TypeAdapter(ShareScheduleArgs),
    ToolName.WEEKLY_REPORT_REQUEST: TypeAdapter(WeeklyReportArgs),
    ToolName.ADD_CONTACT: TypeAdapter(AddContactArgs),
    ToolName.FIND_CONTACT: TypeAdapter(FindContactArgs),
    ToolName.SEND_MESSAGE: TypeAdapter(SendMessageArgs),
    ToolName.LIST_INBOX: TypeAdapter(ListInboxArgs),
    ToolName.READ_MESSAGE: TypeAdapter(ReadMessageArgs),
}

_missing = set(ToolName) - set(CONTRACTS)
if _missing:
    raise RuntimeError(f"Tools without a contract: {sorted(t.value for t in _missing)}")


class FieldError(BaseModel):
    path: str
    message: str


class ContractResult(BaseModel):
    tool: ToolName
    args: Any = None
    errors: List[FieldError] = []

    @property
    def ok(self) -> bool:
        return not self.errors

    def describe(self) -> str:
        return ", ".join(f"{e.path}: {e.message}" for e in self.errors)


def _field_errors(err: ValidationError) -> List[FieldError]:
    out: List[FieldError] = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        if not loc and e.get("type") == "recipient":
            loc = "recipient"
        out.append(FieldError(path=loc or "(root)", message=e.get("msg", "invalid")))
    return out


def validate_tool_args(tool: ToolName | str, payload: Any) -> ContractResult:
    """
    Validate and default a shaped payload.
    Contract violations come back as FieldErrors; only an unknown tool name raises.
    """
    name = ToolName.parse(tool)
    if name is None:
        raise KeyError(f"Unknown tool: {tool}")

    if name == ToolName.ROLLING_TASKS and isinstance(payload, list):
        payload = {"tasks": payload}

    try:
        args = CONTRACTS[name].validate_python(payload)
    except ValidationError as e:
        return ContractResult(tool=name, errors=_field_errors(e))
    return ContractResult(tool=name, args=args)


# Failing any of these means "ask the user" rather than silently dropping the action.
CLARIFY_FIELDS = {"title", "scheduledDate", "scheduledTime", "checklistItems", "recipient"}


def needs_clarification(errors: List[FieldError]) -> bool:
    return any(part in CLARIFY_FIELDS for e in errors for part in e.path.split("."))


_CLARIFICATIONS = {
    ToolName.CREATE_TASK: "I can create that task. What title should I use, and what date/time should it be scheduled for?",
    ToolName.CREATE_CHECKLIST: "I can create that checklist. What should the checklist title be, and what are the items?",
    ToolName.ROLLING_TASKS: "I can create multiple tasks. Please list the tasks you'd like me to create.",
    ToolName.SUMMARIZE_REQUEST: "I can summarize a webpage. Please provide the URL.",
    ToolName.TEMPLATE_REQUEST: "I can apply a template. Which template would you like to use?",
    ToolName.SHARE_SCHEDULE: "I can share your schedule. Who would you like to share it with?",
    ToolName.SEND_MESSAGE: "Who should I message? (Pick a contact or specify a team member.)",
    ToolName.ADD_CONTACT: "I can add that contact. What is their name and email address?",
}


def clarification_for(tool: ToolName | str) -> str:
    name = ToolName.parse(tool)
    return _CLARIFICATIONS.get(name, "I can help with that. Could you provide a bit more detail?")
