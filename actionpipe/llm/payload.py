import re
from typing import Any, Optional

from actionpipe.llm.json_parse import safe_json_parse
from actionpipe.llm.schemas import ExtractedCommand, ToolName

_URL = re.compile(r"https?://\S+")

DEFAULT_SUMMARIZE_MODE = "summary"


def _scalar(raw: str) -> Optional[str]:
    parts = raw.split()
    return parts[0].lower() if parts else None


def _mode_and_url(raw: str) -> Optional[dict]:
    parts = [p.strip() for p in raw.split("|")]
    if len(parts) == 2 and all(parts):
        return {"mode": parts[0], "url": parts[1]}
    m = _URL.search(raw)
    if m:
        return {"mode": DEFAULT_SUMMARIZE_MODE, "url": m.group(0)}
    return None


def _template_name(raw: str) -> dict:
    name = raw
    if name.startswith("["):
        name = name[1:]
    if name.endswith("]"):
        name = name[:-1]
    name = name.strip()
    return {"template_name": name or raw}


def _flag(raw: str) -> dict:
    return {"value": "true" in raw.lower()}


def _task_list(structured: Optional[str]) -> Any:
    parsed = safe_json_parse(structured)
    if isinstance(parsed, list):
        return {"tasks": parsed}
    return parsed


def shape_payload(tool: ToolName | str, raw_text: str, structured_text: Optional[str] = None) -> Any:
    """
    Convert the text after a marker into the argument shape a tool expects.
    Pure: the same input always yields the same output. Returns None when the
    payload cannot be shaped (caller treats that as a soft extraction miss).
    """
    raw = (raw_text or "").strip()

    if tool == ToolName.PRINT_REQUEST:
        return _scalar(raw)
    if tool == ToolName.SUMMARIZE_REQUEST:
        return _mode_and_url(raw)
    if tool == ToolName.TEMPLATE_REQUEST:
        return _template_name(raw)
    if tool == ToolName.HIGH_PRIORITY_REQUEST:
        return _flag(raw)
    if tool == ToolName.ROLLING_TASKS:
        return _task_list(structured_text)

    return safe_json_parse(structured_text)


def shape_command(cmd: ExtractedCommand) -> Any:
    return shape_payload(cmd.tool, cmd.raw_text, cmd.structured_text)
