"""
Application configuration loader and it handles:
- Environment variables
- Database configuration
- Feature flags (dry-run, strict validation)
- Multi-action planning limits

And, the main purpose:
Central place for system configuration.
"""


from pydantic import BaseModel
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./actionpipe.db"
    DB_ECHO: bool = False

    # Feature flags (read at call time through current_flags())
    DRY_RUN_TOOLS: bool = False
    STRICT_TOOL_VALIDATION: bool = False

    # Multi-action planning
    MULTI_ACTION_MAX_STEPS: int = 5
    MULTI_ACTION_STOP_ON_ERROR: bool = False

    DEFAULT_TIMEZONE: str = "America/New_York"

    # Trace governance
    TRACE_RETENTION_DAYS: int = 30

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()


class FeatureFlags(BaseModel):
    """Snapshot of the two tool-execution flags, passed explicitly downstream."""

    dry_run: bool = False
    strict: bool = False

    model_config = {"frozen": True}


def current_flags() -> FeatureFlags:
    # Re-read the environment on every call so flags can be toggled without a restart.
    fresh = Settings()
    return FeatureFlags(dry_run=fresh.DRY_RUN_TOOLS, strict=fresh.STRICT_TOOL_VALIDATION)
