"""
Handles a model reply that may embed a tool command.
What it does:
- Finds the first command marker in the reply
- Shapes and validates its payload
- Depending on the flags: passes the reply through, logs the would-be
  action (dry-run), or executes it and returns a confirmation (strict)
- Logs every silent fallback so extraction/validation failure rates stay visible

And, the main purpose:
Keep the model's own text from causing side effects unless strict mode opts in.
"""


from typing import Any

from pydantic import BaseModel

from actionpipe.agent.executor import APOLOGY, execute_tool_step
from actionpipe.core.config import FeatureFlags
from actionpipe.core.logging import get_logger, snippet
from actionpipe.llm.extract import extract_first_command
from actionpipe.llm.payload import shape_command
from actionpipe.llm.schemas import ActionReceipt, PlannedStep, ReplyOutcome, ToolName
from actionpipe.tools.contracts import clarification_for, validate_tool_args
from actionpipe.tools.registry import CallerContext

log = get_logger("agent.reply")


def _passthrough(reply: str) -> ReplyOutcome:
    return ReplyOutcome(response=reply)


def _dump(args: Any) -> Any:
    if isinstance(args, BaseModel):
        return args.model_dump(mode="json", by_alias=True, exclude_none=True)
    return args


async def handle_model_reply(reply: str, ctx: CallerContext, flags: FeatureFlags) -> ReplyOutcome:
    cmd = extract_first_command(reply)
    if cmd is None:
        return _passthrough(reply)

    tool = ToolName.parse(cmd.tool)
    if tool is None:
        log.warning(f"Unrecognized tool marker {cmd.tool!r}; passing reply through")
        return _passthrough(reply)

    ask_instead = flags.strict and not flags.dry_run

    payload = shape_command(cmd)
    if payload is None:
        log.warning(f"Could not shape payload tool={tool.value} raw={snippet(cmd.raw_text)!r}")
        return ReplyOutcome(response=clarification_for(tool)) if ask_instead else _passthrough(reply)

    contract = validate_tool_args(tool, payload)
    if not contract.ok:
        log.warning(f"Validation failed tool={tool.value} issues={contract.describe()}")
        return ReplyOutcome(response=clarification_for(tool)) if ask_instead else _passthrough(reply)

    if flags.dry_run:
        log.info(f"[DRY RUN] Would execute {tool.value} args={_dump(contract.args)}")
        return _passthrough(reply)

    if not flags.strict:
        return _passthrough(reply)

    result = await execute_tool_step(PlannedStep(tool=tool, arguments=payload, source_text=cmd.raw_text), ctx)
    if result.ok:
        return ReplyOutcome(
            response=result.message or reply,
            actions=[ActionReceipt(type=tool, data=result.data)],
        )
    if result.needs_clarification:
        return ReplyOutcome(response=result.clarification_question or clarification_for(tool))
    return ReplyOutcome(response=result.message or APOLOGY)
