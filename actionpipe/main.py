from fastapi import FastAPI
from actionpipe.api.routes import router
from actionpipe.db.repo import purge_old_traces
from actionpipe.db.session import SessionLocal, init_db
from actionpipe.tools.templates import seed_templates


app = FastAPI(title="ActionPipe API", version="0.1.0")
app.include_router(router, prefix="/v1")

@app.on_event("startup")
async def on_startup():
    await init_db()
    async with SessionLocal() as db:
        await seed_templates(db)
        await purge_old_traces(db)
