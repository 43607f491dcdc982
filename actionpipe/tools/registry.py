from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from actionpipe.llm.schemas import ToolName, ToolResult


@dataclass(frozen=True)
class CallerContext:
    db: AsyncSession
    user_id: int
    timezone: str = "America/New_York"


ToolExecutor = Callable[[Any, CallerContext], Awaitable[ToolResult]]

TOOLS: dict[ToolName, ToolExecutor] = {}


class UnknownToolError(KeyError):
    pass


def register(name: ToolName):
    def deco(fn: ToolExecutor):
        TOOLS[name] = fn
        return fn
    return deco

def get_tool(name: ToolName) -> ToolExecutor:
    if name not in TOOLS:
        raise UnknownToolError(f"Unknown tool: {getattr(name, 'value', name)}. Known: {[t.value for t in TOOLS]}")
    return TOOLS[name]
