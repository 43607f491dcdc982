"""
Finds action markers ("CREATE_TASK:", "PRINT_REQUEST:", ...) inside free text.
What it does:
- Locates the earliest marker in a model reply or a user segment
- Takes the first line after the marker as the raw payload
- Isolates a bracket-balanced JSON span, ignoring brackets inside strings
- Optionally returns every marker found in a blob, in text order

And, the main purpose:
Turn unstructured text into an ExtractedCommand (or None) without ever raising.
"""


from typing import Iterable, List, Optional

from actionpipe.llm.schemas import ExtractedCommand, ToolName

MARKERS: tuple[str, ...] = tuple(t.value for t in ToolName)

_CLOSERS = {"{": "}", "[": "]"}


def balanced_span(text: str) -> Optional[str]:
    """
    Return the first bracket-balanced {...} or [...] span in text.

    Leading prose is skipped. Brackets inside double-quoted strings do not
    count, and a backslash inside a string consumes the next character.
    Unbalanced brackets or an unterminated string yield None.
    """
    if not text:
        return None

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)

    open_ch = text[start]
    close_ch = _CLOSERS[open_ch]
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]

        if escape:
            escape = False
            continue
        if in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
            continue

        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def _first_line(text: str) -> str:
    return text.strip().split("\n", 1)[0].strip()


def extract_first_command(text: str, markers: Iterable[str] = MARKERS) -> Optional[ExtractedCommand]:
    """
    Find the marker that occurs earliest in text (position decides, not marker order).
    Returns None when no marker is present.
    """
    if not text:
        return None

    best_marker: Optional[str] = None
    best_idx = -1
    for marker in markers:
        idx = text.find(f"{marker}:")
        if idx == -1:
            continue
        if best_idx == -1 or idx < best_idx:
            best_marker, best_idx = marker, idx

    if best_marker is None:
        return None

    after = text[best_idx + len(best_marker) + 1 :]
    return ExtractedCommand(
        tool=best_marker,
        raw_text=_first_line(after),
        structured_text=balanced_span(after),
    )


def extract_all_commands(text: str, markers: Iterable[str] = MARKERS) -> List[ExtractedCommand]:
    """
    Every marker occurrence in text, ordered by position.
    A match's raw text ends at the next newline or the next marker, whichever comes first;
    its structured span may run over newlines but never into the next marker.
    """
    if not text:
        return []

    markers = tuple(markers)
    hits: list[tuple[int, str]] = []
    for marker in markers:
        needle = f"{marker}:"
        idx = text.find(needle)
        while idx != -1:
            hits.append((idx, marker))
            idx = text.find(needle, idx + len(needle))
    hits.sort()

    results: List[ExtractedCommand] = []
    for n, (idx, marker) in enumerate(hits):
        body_start = idx + len(marker) + 1
        next_marker = hits[n + 1][0] if n + 1 < len(hits) else len(text)
        body = text[body_start:next_marker]

        stripped = body.lstrip()
        newline = stripped.find("\n")
        raw = stripped if newline == -1 else stripped[:newline]

        results.append(
            ExtractedCommand(
                tool=marker,
                raw_text=raw.strip(),
                structured_text=balanced_span(body),
            )
        )
    return results
