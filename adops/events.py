import logging

from fastapi import FastAPI

from adops.core.settings import settings
from adops.db.init_db import init_db
from adops.db.session import engine

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Application startup", extra={"environment": settings.environment})
        if settings.seed_on_startup:
            await init_db()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Application shutdown")
        await engine.dispose()
