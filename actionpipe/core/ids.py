import uuid

def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"

"""
ID generation utilities & it provides:
- Request IDs for multi-action and reply runs
- Checklist item IDs
- Trace event IDs

The main purpose:
Consistent identifier creation across system.
"""
