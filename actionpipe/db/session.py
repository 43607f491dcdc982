from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from actionpipe.core.config import settings
from actionpipe.db.base import Base
from actionpipe.db import models  # noqa: F401

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
# objects stay readable after commit: tool results are built from them
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
