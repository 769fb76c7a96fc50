#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron Web Dashboard - FastAPI Application
JSON API over the tracker, timer and notification services

Version: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from pytron import __version__
from pytron.config import AppConfig, get_config
from pytron.core.goals import GoalNotFoundError
from pytron.core.models import ValidationError
from pytron.services import ServiceManager
from pytron.services.data_export import DataImportError
from pytron.services.tracker import TaskNotFoundError
from .api import badges, data, goals, logs, notifications, pomodoro, settings, stats, tasks
from .schemas import HealthCheck

logger = logging.getLogger(__name__)

def create_app(services: Optional[ServiceManager] = None, config: Optional[AppConfig] = None) -> FastAPI:
    """Application factory; services are built from the configuration unless injected"""
    config = config or (services.config if services else get_config())
    if services is None:
        config.ensure_directories()
        services = ServiceManager(config)
    if not services.initialized:
        services.initialize_services()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start and stop the background services"""
        logger.info("🚀 Starting pyTron dashboard...")
        app.state.start_time = time.time()
        try:
            services.start_background()
            logger.info(f"🌐 Dashboard available at http://{config.server.host}:{config.server.port}")
        except Exception as e:
            logger.error(f"❌ Background services failed to start: {e}")

        yield

        logger.info("🛑 Stopping pyTron dashboard...")
        try:
            await services.close_services()
        except Exception as e:
            logger.error(f"❌ Error during shutdown: {e}")

    app = FastAPI(
        title="pyTron Dashboard",
        description="Hourly time tracking, analytics, badges and goals",
        version=__version__,
        docs_url="/api/docs" if config.server.debug_mode else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if config.server.debug_mode else None,
        lifespan=lifespan
    )
    app.state.services = services
    app.state.start_time = time.time()

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Request log with processing time"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response

    # ===== ROUTERS =====

    for module in (logs, tasks, stats, badges, goals, settings, data, pomodoro, notifications):
        app.include_router(module.router)

    # ===== SERVICE ROUTES =====

    @app.get("/health", response_model=HealthCheck)
    async def health_check():
        """Health check for monitoring"""
        health = services.health_check()
        return HealthCheck(
            status=health["status"],
            service="pytron",
            version=__version__,
            timestamp=time.time(),
            data={
                "services": health["services"],
                "uptime_seconds": time.time() - app.state.start_time
            }
        )

    # ===== ERROR HANDLERS =====

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc), "status_code": 422})

    @app.exception_handler(TaskNotFoundError)
    async def task_not_found_handler(request: Request, exc: TaskNotFoundError):
        return JSONResponse(status_code=404, content={"detail": f"Task {exc.args[0]} not found", "status_code": 404})

    @app.exception_handler(GoalNotFoundError)
    async def goal_not_found_handler(request: Request, exc: GoalNotFoundError):
        return JSONResponse(status_code=404, content={"detail": f"Goal {exc.args[0]} not found", "status_code": 404})

    @app.exception_handler(DataImportError)
    async def import_error_handler(request: Request, exc: DataImportError):
        logger.warning(f"Import rejected: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc), "status_code": 400})

    return app

# ===== STARTUP =====

def run_dashboard(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False):
    """Run the dashboard with uvicorn"""
    config = get_config()
    host = host or config.server.host
    port = port or config.server.port
    dev = config.server.debug_mode

    logger.info(f"🌐 Starting dashboard on http://{host}:{port}")
    logger.info(f"📊 Data directory: {config.data_dir}")

    try:
        uvicorn.run(
            "pytron.dashboard.app:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level="debug" if dev else "info",
            access_log=dev,
            server_header=False
        )
    except KeyboardInterrupt:
        logger.info("👋 Dashboard stopped")
