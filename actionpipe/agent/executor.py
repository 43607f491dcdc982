"""
Runs ONE planned step safely.
What it does:
- Validates the step's arguments against the tool's contract
- Turns contract failures into failure results (asking for clarification
  when a failing field is one the user must supply)
- Dispatches validated arguments to the registered tool executor
- Converts executor exceptions into a short apology, keeping details in logs


And, the main purpose:
Execute planned steps reliably and safely, one at a time.
"""


from actionpipe.core.logging import get_logger
from actionpipe.llm.schemas import PlannedStep, ToolFailure, ToolResult
from actionpipe.tools.contracts import clarification_for, needs_clarification, validate_tool_args
from actionpipe.tools.registry import CallerContext, UnknownToolError, get_tool

# executors register themselves on import
import actionpipe.tools.contacts  # noqa: F401
import actionpipe.tools.messages  # noqa: F401
import actionpipe.tools.printing  # noqa: F401
import actionpipe.tools.reports  # noqa: F401
import actionpipe.tools.requests  # noqa: F401
import actionpipe.tools.tasks  # noqa: F401
import actionpipe.tools.templates  # noqa: F401

log = get_logger("agent.executor")

APOLOGY = "I encountered an issue while processing that request. Please try again."


async def execute_tool_step(step: PlannedStep, ctx: CallerContext) -> ToolResult:
    tool_name = step.tool

    contract = validate_tool_args(tool_name, step.arguments)
    if not contract.ok:
        issues = contract.describe()
        ask = needs_clarification(contract.errors)
        log.warning(f"Validation failed tool={tool_name.value} clarify={ask} issues={issues}")
        return ToolFailure(
            tool=tool_name,
            error=issues,
            message=clarification_for(tool_name) if ask else "Some details for that request were missing or invalid.",
            needs_clarification=ask,
            clarification_question=clarification_for(tool_name) if ask else None,
        )

    try:
        tool = get_tool(tool_name)
    except UnknownToolError as e:
        log.error(str(e))
        return ToolFailure(tool=tool_name, error=str(e), message=APOLOGY)

    try:
        return await tool(contract.args, ctx)
    except Exception as e:
        log.exception(f"Tool execution failed tool={tool_name.value} user={ctx.user_id}")
        # later steps share the session
        await ctx.db.rollback()
        return ToolFailure(tool=tool_name, error=f"{type(e).__name__}: {e}", message=APOLOGY)
