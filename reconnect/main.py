"""
Reconnect - Persistence Server

Application assembly for the local server that keeps the registry on disk.

Single operator, single process. Writes are full overwrites with no
locking; two racing updates end as last-write-wins.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from reconnect import __version__
from reconnect.api import api_router, router
from reconnect.config import ServerConfig
from reconnect.core import ProjectStorage, is_directory_writable
from reconnect.observability import (
    RequestContextMiddleware,
    check_health,
    get_logger,
    get_metrics,
    setup_logging,
)

logger = get_logger(__name__)


def _log_root_contents(storage: ProjectStorage) -> None:
    try:
        entries = sorted(storage.root.iterdir())
    except OSError as e:
        logger.error("Cannot read project root", path=str(storage.root), error=str(e))
        return
    for entry in entries:
        logger.debug(
            "Project root entry",
            name=entry.name,
            kind="directory" if entry.is_dir() else "file",
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    storage: ProjectStorage = app.state.storage

    logger.info("Using project root directory", path=str(storage.root))
    _log_root_contents(storage)

    storage.ensure_directories()
    for name, directory in (("data", storage.data_dir), ("img", storage.img_dir)):
        logger.info(
            f"{name} directory ready",
            path=str(directory),
            writable=is_directory_writable(directory),
        )

    logger.info("Application startup complete", document=str(storage.document_path))

    yield

    logger.info("Application shutdown complete")


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Server settings (or loads from environment)
    """
    config = config or ServerConfig.from_env()
    storage = ProjectStorage(config.root)

    app = FastAPI(
        title="Reconnect",
        description="""
## Reconnect Persistence Server

Keeps the registry of missing and displaced persons on local disk.

- `GET /status`: project root, data/ and img/ existence and writability
- `POST /update-document`: overwrite data/persons.json with `{persons: [...]}`
- `POST /upload-image`: write img/<filename> from `{filename, encodedImage}`

Every write replaces the target file. There is no merge and no locking.
        """,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.storage = storage

    app.add_middleware(RequestContextMiddleware)

    # Local demo: the browser page may be opened from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.include_router(router, prefix="/api")
    app.include_router(api_router)

    # Read-only access to the canonical document and uploaded images
    app.mount("/data", StaticFiles(directory=str(storage.data_dir), check_dir=False), name="data")
    app.mount("/img", StaticFiles(directory=str(storage.img_dir), check_dir=False), name="img")

    @app.get("/health", tags=["System"])
    async def health(request: Request):
        """
        Health check.

        Returns 200 when data/ and img/ exist and are writable, 503 otherwise.
        """
        health_status = check_health(storage=request.app.state.storage)
        return JSONResponse(
            status_code=200 if health_status.healthy else 503,
            content={
                "status": "healthy" if health_status.healthy else "unhealthy",
                "checks": health_status.checks,
                "duration_ms": health_status.duration_ms,
            },
        )

    @app.get("/metrics", tags=["System"])
    async def metrics():
        """Get application metrics."""
        return get_metrics().get_summary()

    return app


def run(config: ServerConfig) -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    setup_logging()
    logger.info("Server starting", host=config.host, port=config.port, root=str(config.root))
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level="info")
