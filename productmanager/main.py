"""
==============================================================================
Product Manager - Application Entry Point
==============================================================================

Builds the FastAPI application:
- /api/v1/products, /api/v1/categories, /api/v1/health (REST)
- /ws (live catalog updates)
- database bootstrap on startup, engine disposal on shutdown

Usage:
------
    uvicorn productmanager.main:app --reload
    python -m productmanager.main

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from productmanager import __version__
from productmanager.config import Settings, get_settings
from productmanager.core.exceptions import register_exception_handlers
from productmanager.db.database import get_database_manager
from productmanager.db.init_db import init_db
from productmanager.api.router import api_router
from productmanager.websockets import updates_router


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from the settings."""
    logging.basicConfig(level=settings.effective_log_level, format=LOG_FORMAT)


settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    Builds and owns the FastAPI app.

    Example:
        >>> app = Application().app
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._app = self._build()

    def _build(self) -> FastAPI:
        app = FastAPI(
            title=self._settings.app_name,
            version=__version__,
            description=(
                "Products and categories with a guaranteed fallback category "
                "and live WebSocket updates"
            ),
            lifespan=self._lifespan,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        register_exception_handlers(app)

        app.include_router(api_router)
        app.include_router(updates_router)
        app.add_api_route("/", self._service_info, methods=["GET"], include_in_schema=False)

        return app

    async def _service_info(self) -> dict:
        """Entry points of the service."""
        return {
            "name": self._settings.app_name,
            "version": __version__,
            "docs": "/docs",
            "api": "/api/v1",
            "updates": "/ws",
        }

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name} v{__version__} ({self._settings.app_env})")
        logger.info("=" * 60)

        init_db()

        logger.info(f"✅ Ready on http://{self._settings.host}:{self._settings.port} (docs at /docs)")
        yield

        logger.info("🛑 Shutting down...")
        get_database_manager().dispose()
        logger.info("✅ Shutdown complete")

    @property
    def app(self) -> FastAPI:
        return self._app


app = Application(settings).app


def main() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "productmanager.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    main()
