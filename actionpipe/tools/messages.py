"""
In-app messaging tools.
What it does:
- SEND_MESSAGE: resolves exactly one recipient, then sends into a two-party thread
- LIST_INBOX: newest-first inbox with short snippets
- READ_MESSAGE: one message, optionally marked as read

An unresolvable recipient is not an error: the tool returns a
clarification-required failure so the running plan stops and asks.
"""

from typing import Any, Dict, Optional

from actionpipe.db.models import Message
from actionpipe.db.repo import (
    get_contact_by_id,
    get_user,
    list_inbox,
    mark_message_read,
    read_message,
    send_message,
)
from actionpipe.llm.schemas import ToolFailure, ToolName, ToolSuccess
from actionpipe.tools.contracts import ListInboxArgs, ReadMessageArgs, SendMessageArgs
from actionpipe.tools.registry import CallerContext, register

DEFAULT_INBOX_LIMIT = 25
SNIPPET_CHARS = 140


def _ask(question: str) -> ToolFailure:
    return ToolFailure(
        tool=ToolName.SEND_MESSAGE,
        error=question,
        needs_clarification=True,
        clarification_question=question,
    )


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def message_dict(m: Message) -> Dict[str, Any]:
    return {
        "id": m.id,
        "threadId": m.thread_id,
        "fromUserId": m.from_user_id,
        "toUserId": m.to_user_id,
        "subject": m.subject,
        "body": m.body,
        "createdAt": _iso(m.created_at),
        "readAt": _iso(m.read_at),
    }


@register(ToolName.SEND_MESSAGE)
async def send_message_tool(args: SendMessageArgs, ctx: CallerContext):
    to_user_id = args.to_user_id
    contact = None

    if to_user_id is None and args.to_contact_id is not None:
        contact = await get_contact_by_id(ctx.db, ctx.user_id, args.to_contact_id)
        if contact is None:
            return _ask("I couldn't find that contact. Who should I message?")
        if contact.contact_user_id is None:
            return _ask(
                f'"{contact.display_name}" isn\'t linked to an account yet. '
                "Do you want to invite them (so they can receive messages)?"
            )
        to_user_id = contact.contact_user_id

    if to_user_id is None and args.to_email:
        return _ask(
            "I can send messages only to team members with an account. "
            f"Is {args.to_email} already a user, or should we invite them?"
        )

    recipient = await get_user(ctx.db, to_user_id) if to_user_id is not None else None
    if recipient is None:
        return _ask("Who should I message? (Pick a contact or specify a team member.)")

    msg, thread = await send_message(
        ctx.db,
        from_user_id=ctx.user_id,
        to_user_id=recipient.id,
        subject=args.subject,
        body=args.body,
    )
    suffix = f" ({contact.title})" if contact and contact.title else ""
    return ToolSuccess(
        tool=ToolName.SEND_MESSAGE,
        data={**message_dict(msg), "deepLink": f"/inbox/thread/{thread.id}"},
        message=f"Sent to {recipient.display_name}{suffix}",
    )


@register(ToolName.LIST_INBOX)
async def list_inbox_tool(args: ListInboxArgs, ctx: CallerContext) -> ToolSuccess:
    rows = await list_inbox(
        ctx.db,
        ctx.user_id,
        limit=args.limit or DEFAULT_INBOX_LIMIT,
        unread_only=bool(args.unread_only),
    )
    inbox = []
    for m, sender in rows:
        inbox.append(
            {
                "id": m.id,
                "fromUserId": m.from_user_id,
                "fromDisplayName": sender.display_name if sender else f"User {m.from_user_id}",
                "subject": m.subject,
                "snippet": (m.body or "")[:SNIPPET_CHARS],
                "createdAt": _iso(m.created_at),
                "isUnread": m.read_at is None,
                "threadId": m.thread_id,
            }
        )
    count = len(inbox)
    return ToolSuccess(
        tool=ToolName.LIST_INBOX,
        data=inbox,
        message=f"You have {count} message{'s' if count > 1 else ''} in your inbox" if count else "Your inbox is empty",
    )


@register(ToolName.READ_MESSAGE)
async def read_message_tool(args: ReadMessageArgs, ctx: CallerContext):
    msg = await read_message(ctx.db, ctx.user_id, args.message_id)
    if msg is None:
        return ToolFailure(tool=ToolName.READ_MESSAGE, error="Message not found.", message="Message not found.")

    if args.mark_read:
        msg = await mark_message_read(ctx.db, ctx.user_id, args.message_id) or msg

    return ToolSuccess(
        tool=ToolName.READ_MESSAGE,
        data=message_dict(msg),
        message=f'Message: "{msg.subject or "(No subject)"}"',
    )
