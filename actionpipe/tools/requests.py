"""
Client-side request tools.

SUMMARIZE_REQUEST and SHARE_SCHEDULE are fulfilled outside this service
(web summarizer, share dialog). Executing them here means validating the
request and handing back a receipt the client acts on.
"""

from actionpipe.llm.schemas import ToolName, ToolSuccess
from actionpipe.tools.contracts import ShareScheduleArgs, SummarizeArgs
from actionpipe.tools.registry import CallerContext, register


@register(ToolName.SUMMARIZE_REQUEST)
async def summarize_tool(args: SummarizeArgs, ctx: CallerContext) -> ToolSuccess:
    # no chat message: the model's reply already describes the summary
    return ToolSuccess(
        tool=ToolName.SUMMARIZE_REQUEST,
        data={"mode": args.mode, "url": str(args.url)},
    )


@register(ToolName.SHARE_SCHEDULE)
async def share_schedule_tool(args: ShareScheduleArgs, ctx: CallerContext) -> ToolSuccess:
    return ToolSuccess(
        tool=ToolName.SHARE_SCHEDULE,
        data={
            "recipient": args.recipient,
            "permission": args.permission,
            "shareType": args.share_type,
            "message": args.message,
        },
        message=f"Schedule share prepared for {args.recipient} ({args.permission})",
    )
