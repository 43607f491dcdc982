import json
import re
from typing import Any

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _loosen(s: str) -> str:
    # drop trailing commas before a closing bracket, then 'single' -> "double" quotes
    s = _TRAILING_COMMA.sub(r"\1", s)
    return s.replace("'", '"')


def safe_json_parse(text: str | None) -> Any:
    """
    Parse a JSON payload the way a model tends to emit it.
    Strict parse first; on failure retry once after a tolerant rewrite.
    Returns None when both attempts fail (or when there is nothing to parse).
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(_loosen(text))
    except json.JSONDecodeError:
        return None
