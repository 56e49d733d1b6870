import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
import alembic.config
import alembic.command
from app.core.cache import close_redis
from app.core.config import settings
from app.core.database import engine
from app.api.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def run_migrations():
    """Sync function to run migrations"""
    alembic_cfg = alembic.config.Config(str(ALEMBIC_INI))
    alembic.command.upgrade(alembic_cfg, "head")


# Close the engine and the cache connection once everything is done
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Apply any pending migrations automatically when the app starts
    try:
        await asyncio.to_thread(run_migrations)
        logger.info("Migrations applied successfully (or already up-to-date)")
    except Exception as e:
        logger.error(f"Migration error during startup: {e}")

    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(title="Feedback Insights API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Feedback Insights API"}
