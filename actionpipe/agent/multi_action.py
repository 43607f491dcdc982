"""
Multi-action entry point for a user message.
What it does:
- Detects messages that carry more than one intent (labels or connector words)
- Plans them with the lexical classifier (or one passed in)
- Runs the plan step by step and formats one reply with action receipts

And, the main purpose:
Handle "do X then Y" messages in one pass, or report that the message should
go through ordinary single-intent handling instead.
"""


from typing import List, Optional

from actionpipe.agent.classifier import classify_segment
from actionpipe.agent.executor import execute_tool_step
from actionpipe.agent.planner import ClassifySegmentFn, PlanningError, has_connectors, has_labels, plan_multi_action
from actionpipe.agent.runner import format_plan_results, run_plan_sequential
from actionpipe.core.config import FeatureFlags, settings
from actionpipe.core.logging import get_logger, snippet
from actionpipe.llm.schemas import ActionReceipt, MultiActionResponse, MultiPlan, PlannedStep
from actionpipe.tools.registry import CallerContext

log = get_logger("agent.multi_action")


def looks_multi_intent(message: str) -> bool:
    return has_labels(message) or has_connectors(message)


async def build_plan(
    message: str,
    classifier: Optional[ClassifySegmentFn] = None,
    max_steps: Optional[int] = None,
) -> Optional[MultiPlan]:
    """The plan for a multi-intent message, or None when it should take the single-intent path."""
    if not looks_multi_intent(message):
        return None
    try:
        plan = await plan_multi_action(message, classifier or classify_segment, max_steps)
    except PlanningError as e:
        log.warning(f"Multi-action planning failed, falling back: {e}")
        return None
    if plan.mode != "multi":
        return None
    return plan


async def handle_multi_action(
    message: str,
    ctx: CallerContext,
    flags: FeatureFlags,
    classifier: Optional[ClassifySegmentFn] = None,
    max_steps: Optional[int] = None,
    stop_on_error: Optional[bool] = None,
) -> MultiActionResponse:
    plan = await build_plan(message, classifier, max_steps)
    if plan is None:
        return MultiActionResponse(handled=False)

    log.info(
        f"Running {len(plan.steps)}-step plan user={ctx.user_id} labels={plan.meta.used_labels} "
        f"dry_run={flags.dry_run} message={snippet(message, 120)!r}"
    )

    async def execute(step: PlannedStep):
        return await execute_tool_step(step, ctx)

    outcome = await run_plan_sequential(
        plan,
        execute,
        dry_run=flags.dry_run,
        stop_on_error=settings.MULTI_ACTION_STOP_ON_ERROR if stop_on_error is None else stop_on_error,
    )

    response = format_plan_results(outcome.results)
    if outcome.status == "blocked" and outcome.question:
        response = f"{response}\n\n{outcome.question}" if response else outcome.question

    actions: List[ActionReceipt] = [ActionReceipt(type=r.tool, data=r.data) for r in outcome.results if r.ok]
    log.info(f"Plan finished status={outcome.status} results={len(outcome.results)}")
    return MultiActionResponse(handled=True, response=response, actions=actions, outcome=outcome)
