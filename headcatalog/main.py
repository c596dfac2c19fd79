from __future__ import annotations

import asyncio
import logging
from fastapi import FastAPI

from headcatalog.core.config import settings
from headcatalog.modules.api.router import catalog, router as api_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

app.include_router(api_router, prefix="/api")

_background: set = set()


## First load runs in the background so startup is not held up by the providers
@app.on_event("startup")
async def startup():
    """Log configuration and start loading the catalog."""
    logger.info(f"{settings.APP_NAME} starting")
    logger.info(f"Primary provider: {settings.HEADS_PRIMARY_URL}")
    logger.info(f"Fallback provider: {settings.HEADS_FALLBACK_URL} (enabled={settings.HEADS_FALLBACK_ENABLED})")
    logger.info(f"Refresh interval: {settings.HEADS_REFRESH_INTERVAL}s, fetch timeout: {settings.HEADS_FETCH_TIMEOUT_MS}ms")

    if settings.HEADS_AUTO_REFRESH:
        # The loop refreshes right away since nothing is installed yet.
        catalog.start_auto_refresh()
    else:
        task = asyncio.create_task(catalog.refresh())
        _background.add(task)
        task.add_done_callback(_background.discard)


@app.on_event("shutdown")
async def shutdown():
    """Stop background refreshes."""
    logger.info("Stopping catalog refresh...")
    await catalog.aclose()


@app.get("/healthz")
def healthz():
    """Health check endpoint."""
    return {
        "ok": True,
        "app": settings.APP_NAME,
        "env": settings.APP_ENV,
        "heads": catalog.store.count(),
        "stale": catalog.is_stale(),
    }
