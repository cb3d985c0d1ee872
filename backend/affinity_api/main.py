"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from affinity_api import __version__
from affinity_api.api.v1.api import api_router
from affinity_api.config import Settings, settings as default_settings
from affinity_api.database import Database, init_db
from affinity_api.error_handlers import register_error_handlers
from affinity_api.services.avatar_storage import AvatarStorage
from affinity_api.utils.log_setup import configure_logging

log = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. The database is opened on startup and closed on shutdown."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url, pool_size=settings.database_pool_size).open()
        init_db(database)
        app.state.database = database
        log.info(f"{settings.app_name} started in '{settings.environment}' mode")
        try:
            yield
        finally:
            database.close()

    app = FastAPI(
        title=settings.app_name,
        description="Authentication, admin tooling and prediction proxy for drug-target binding affinity",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    avatar_storage = AvatarStorage(settings.upload_dir)
    avatar_storage.ensure_root()
    app.state.avatar_storage = avatar_storage

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get(f"{settings.api_prefix}/health")
    async def health_check():
        """Liveness probe; does not touch the database."""
        return {
            "status": "OK",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "env": settings.environment,
            "version": __version__,
        }

    @app.get("/")
    async def root():
        return {
            "message": settings.app_name,
            "version": __version__,
            "docs": "/docs"
        }

    app.include_router(api_router, prefix=settings.api_prefix)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn_level = default_settings.log_level.lower()
    uvicorn.run(app, host="0.0.0.0", port=5000, log_level="debug" if uvicorn_level == "verbose" else uvicorn_level)
