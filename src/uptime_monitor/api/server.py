"""FastAPI server for the uptime monitor."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from uptime_monitor.api.service_routes import service_router
from uptime_monitor.config import Settings, settings
from uptime_monitor.health.scheduler import CheckScheduler
from uptime_monitor.services.registry import ServiceRegistry
from uptime_monitor.services.store import ServiceStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the registry and start the check loop; stop it on shutdown."""
    config: Settings = app.state.settings

    store = ServiceStore(config.services_path, max_services=config.max_services)
    registry = ServiceRegistry(store, max_services=config.max_services)
    registry.load()
    app.state.registry = registry

    scheduler = CheckScheduler(
        registry,
        tick_interval=config.tick_interval,
        probe_timeout=config.probe_timeout,
        ping_count=config.ping_count,
    )
    app.state.scheduler = scheduler

    try:
        await scheduler.start()
    except Exception:
        logger.exception("Check scheduler failed to start")

    yield

    # Shutdown
    await scheduler.stop()


def create_app(config: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Uptime Monitor",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = config or settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(service_router, prefix="/api")

    @app.get("/")
    async def dashboard():
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()
