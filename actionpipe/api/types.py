"""
API request and response schemas.
What it defines:
- Input payloads
- Response formats
- Validation rules

And, the main purpose:
Ensure structured communication between client and server.
"""


from typing import Any, List, Optional

from pydantic import BaseModel, Field

class MultiActionRequest(BaseModel):
    user_id: int = Field(..., description="Your app user identifier")
    message: str
    dry_run: Optional[bool] = Field(None, description="Overrides DRY_RUN_TOOLS for this call")
    timezone: Optional[str] = None

class PlanRequest(BaseModel):
    user_id: int
    message: str
    max_steps: Optional[int] = Field(None, ge=1, le=20)

class ReplyRequest(BaseModel):
    user_id: int
    reply: str = Field(..., description="Model reply text that may embed a command marker")
    timezone: Optional[str] = None

class TraceEventOut(BaseModel):
    id: str
    type: str
    payload: Any
    at: str

class TraceResponse(BaseModel):
    request_id: str
    events: List[TraceEventOut]
