from typing import Any, Dict

from actionpipe.db.models import Contact
from actionpipe.db.repo import add_contact, find_contacts
from actionpipe.llm.schemas import ToolName, ToolSuccess
from actionpipe.tools.contracts import AddContactArgs, FindContactArgs
from actionpipe.tools.registry import CallerContext, register

DEFAULT_FIND_LIMIT = 10


def contact_dict(c: Contact) -> Dict[str, Any]:
    return {
        "id": c.id,
        "displayName": c.display_name,
        "email": c.email,
        "title": c.title,
        "department": c.department,
        "linkedUserId": c.contact_user_id,
    }


@register(ToolName.ADD_CONTACT)
async def add_contact_tool(args: AddContactArgs, ctx: CallerContext) -> ToolSuccess:
    aliases = ",".join(a.strip() for a in (args.aliases or []) if a.strip())
    contact = await add_contact(
        ctx.db,
        Contact(
            owner_user_id=ctx.user_id,
            display_name=args.display_name,
            email=args.email.lower(),
            title=args.title,
            department=args.department,
            aliases_csv=aliases,
        ),
    )
    return ToolSuccess(
        tool=ToolName.ADD_CONTACT,
        data=contact_dict(contact),
        message=f'Contact added: "{contact.display_name}" ({contact.email})',
    )


@register(ToolName.FIND_CONTACT)
async def find_contact_tool(args: FindContactArgs, ctx: CallerContext) -> ToolSuccess:
    matches = await find_contacts(ctx.db, ctx.user_id, args.query, args.limit or DEFAULT_FIND_LIMIT)
    if matches:
        names = ", ".join(c.display_name for c in matches)
        message = f"Found {len(matches)} contact{'s' if len(matches) > 1 else ''}: {names}"
    else:
        message = "No contacts found matching your search"
    return ToolSuccess(
        tool=ToolName.FIND_CONTACT,
        data=[contact_dict(c) for c in matches],
        message=message,
    )
