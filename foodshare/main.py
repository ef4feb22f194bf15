import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from foodshare.api.auth import router as auth_router
from foodshare.api.donations import router as donations_router
from foodshare.api.health import router as health_router
from foodshare.api.matches import router as matches_router
from foodshare.api.notifications import router as notifications_router
from foodshare.api.ws import router as ws_router
from foodshare.config import settings
from foodshare.database import engine
from foodshare.models import Base
from foodshare.redis_client import close_redis, open_redis
from foodshare.tasks.expiry_sweep import run_expiry_sweep_loop

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        if settings.RESET_DB:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await open_redis()
    task = asyncio.create_task(run_expiry_sweep_loop())
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        await close_redis()
        await engine.dispose()


app = FastAPI(title="FoodShare", version="0.1.0", lifespan=lifespan)
app.include_router(health_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(donations_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(ws_router)


@app.get("/api")
def api_root():
    return {"message": "FoodShare API"}
