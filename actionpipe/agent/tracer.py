"""
Stores request execution logs.
What it records:
- Incoming multi-action messages and model replies
- Plans (steps, segments, labels)
- Run outcomes and per-step results
- Fast-path decisions

And, the main purpose:
Observability and debugging of action handling, per request id.
"""


import json
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from actionpipe.core.ids import new_id
from actionpipe.db.models import TraceEvent
from actionpipe.db.repo import add_trace


async def trace(db: AsyncSession, request_id: str, user_id: int, event_type: str, payload: Any):
    tr = TraceEvent(
        id=new_id("tr"),
        request_id=request_id,
        user_id=user_id,
        event_type=event_type,
        payload=json.dumps(payload, ensure_ascii=False, default=str),
    )
    await add_trace(db, tr)
