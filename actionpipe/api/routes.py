import json
from fastapi import APIRouter, HTTPException
from actionpipe.db.session import SessionLocal
from actionpipe.db.repo import get_trace
from actionpipe.core.config import current_flags, settings
from actionpipe.core.ids import new_id
from actionpipe.agent.classifier import classify_segment
from actionpipe.agent.multi_action import handle_multi_action
from actionpipe.agent.planner import PlanningError, plan_multi_action
from actionpipe.agent.reply_handler import handle_model_reply
from actionpipe.agent.tracer import trace
from actionpipe.tools.registry import CallerContext
from actionpipe.api.types import MultiActionRequest, PlanRequest, ReplyRequest, TraceEventOut, TraceResponse


"""
FastAPI routes for action handling.
What it provides:
- Multi-action endpoint (plan + run one message)
- Plan preview endpoint (no side effects)
- Model-reply endpoint (single-command fast path)
- Per-request trace lookup

And, the main purpose:
Expose the action pipeline over HTTP.
"""

router = APIRouter()


@router.post("/actions/multi")
async def api_multi_action(req: MultiActionRequest):
    if not req.message.strip():
        raise HTTPException(400, "message required")

    flags = current_flags()
    if req.dry_run is not None:
        flags = flags.model_copy(update={"dry_run": req.dry_run})

    async with SessionLocal() as db:
        request_id = new_id("req")
        ctx = CallerContext(db=db, user_id=req.user_id, timezone=req.timezone or settings.DEFAULT_TIMEZONE)
        await trace(db, request_id, req.user_id, "message", {"message": req.message, "flags": flags.model_dump()})

        result = await handle_multi_action(req.message, ctx, flags)

        if result.outcome is not None:
            await trace(db, request_id, req.user_id, "outcome", result.outcome.model_dump(mode="json"))
        else:
            await trace(db, request_id, req.user_id, "fallback", {"reason": "not a multi-action message"})

        return {"request_id": request_id, **result.model_dump(mode="json")}


@router.post("/actions/plan")
async def api_plan(req: PlanRequest):
    if not req.message.strip():
        raise HTTPException(400, "message required")
    try:
        plan = await plan_multi_action(req.message, classify_segment, req.max_steps)
    except PlanningError as e:
        raise HTTPException(422, str(e))
    return plan.model_dump(mode="json")


@router.post("/actions/reply")
async def api_reply(req: ReplyRequest):
    if not req.reply.strip():
        raise HTTPException(400, "reply required")

    flags = current_flags()
    async with SessionLocal() as db:
        request_id = new_id("req")
        ctx = CallerContext(db=db, user_id=req.user_id, timezone=req.timezone or settings.DEFAULT_TIMEZONE)
        outcome = await handle_model_reply(req.reply, ctx, flags)
        await trace(
            db,
            request_id,
            req.user_id,
            "reply",
            {"flags": flags.model_dump(), "actions": [a.model_dump(mode="json") for a in outcome.actions]},
        )
        return {"request_id": request_id, **outcome.model_dump(mode="json")}


@router.get("/actions/{request_id}/trace", response_model=TraceResponse)
async def api_trace(request_id: str):
    async with SessionLocal() as db:
        events = await get_trace(db, request_id)
        if not events:
            raise HTTPException(404, "request not found")
        return TraceResponse(
            request_id=request_id,
            events=[
                TraceEventOut(
                    id=tr.id,
                    type=tr.event_type,
                    payload=json.loads(tr.payload),
                    at=tr.created_at.isoformat(),
                )
                for tr in events
            ],
        )
