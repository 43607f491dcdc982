"""
Orchestrates plan execution.
What it does:
- Runs steps strictly one after another, in plan order
- Simulates every step under dry-run
- Stops and asks when a step needs clarification
- Optionally stops at the first failure
- Reports done / blocked / partial

And, the main purpose:
Drive planning → execution → completion flow without ever reordering steps.
"""


from typing import Awaitable, Callable, List

from actionpipe.core.logging import get_logger
from actionpipe.llm.schemas import MultiPlan, PlannedStep, RunOutcome, ToolFailure, ToolResult, ToolSuccess

log = get_logger("agent.runner")

ExecuteStepFn = Callable[[PlannedStep], Awaitable[ToolResult]]

DEFAULT_QUESTION = "I need one detail before I can continue. Can you clarify?"


def _would_execute(step: PlannedStep) -> ToolSuccess:
    return ToolSuccess(
        tool=step.tool,
        data={"wouldExecute": True, "args": step.arguments, "sourceText": step.source_text},
        message=f"[DRY RUN] Would execute {step.tool.value}",
    )


async def run_plan_sequential(
    plan: MultiPlan,
    execute_step: ExecuteStepFn,
    *,
    dry_run: bool = False,
    stop_on_error: bool = False,
) -> RunOutcome:
    results: List[ToolResult] = []

    for idx, step in enumerate(plan.steps):
        if dry_run:
            results.append(_would_execute(step))
            continue

        r = await execute_step(step)
        results.append(r)

        if isinstance(r, ToolFailure) and r.needs_clarification:
            log.info(f"Plan blocked at step {idx + 1}/{len(plan.steps)} tool={step.tool.value}")
            return RunOutcome(
                status="blocked",
                results=results,
                dry_run=dry_run,
                question=r.clarification_question or DEFAULT_QUESTION,
            )

        if isinstance(r, ToolFailure) and stop_on_error:
            log.info(f"Plan stopped at step {idx + 1}/{len(plan.steps)} tool={step.tool.value}: {r.error}")
            return RunOutcome(status="partial", results=results, dry_run=dry_run)

    any_errors = any(not r.ok for r in results)
    return RunOutcome(status="partial" if any_errors else "done", results=results, dry_run=dry_run)


def format_plan_results(results: List[ToolResult]) -> str:
    """User-facing lines only: `error` stays in logs, and a clarification is asked by the caller."""
    lines = []
    for r in results:
        if r.ok:
            lines.append(r.message or f"Completed: {r.tool.value}")
        elif not r.needs_clarification:
            lines.append(f"Could not complete: {r.message or r.tool.value}")
    return "\n".join(lines)
