from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from common.config import get_settings, load_env_file
from common.logging_setup import configure_logging

from .endpoints import feed_router, health_router
from .monitor import start_monitor, stop_monitor

logger = logging.getLogger(__name__)


def _autostart_enabled() -> bool:
    v = os.getenv("FEED_AUTOSTART", "1").strip().lower()
    return v in ("1", "true", "yes", "on")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    load_env_file()

    if _autostart_enabled():
        # Sin config explícita: el monitor lee el entorno y un valor ilegible lo deja en failed
        monitor = start_monitor()
        logger.info(
            "[API] Feed monitor started client_id=%s status=%s",
            monitor.client_id,
            monitor.current_status().value,
        )
    else:
        logger.info("[API] FEED_AUTOSTART disabled, monitor not started")

    try:
        yield
    finally:
        stop_monitor()
        logger.info("[API] Feed monitor stopped")


app = FastAPI(title="Fridge Telemetry Service", version="0.1.0", lifespan=lifespan)

app.include_router(health_router)
app.include_router(feed_router)


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "telemetry_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
