"""
FastAPI application for transcribe-server.

The store handle and the provider client are created in the lifespan
handler, stored on ``app.state`` and closed at shutdown.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from transcribe_server import __version__
from transcribe_server.api.routes import health, history, transcription
from transcribe_server.config import (
    ServerConfig,
    get_config,
    resolve_cors_origins,
    resolve_database_path,
    resolve_log_directory,
)
from transcribe_server.core.gateway import TranscriptionGateway
from transcribe_server.core.provider import DeepgramProvider, SpeechProvider, create_provider
from transcribe_server.database.store import TranscriptStore
from transcribe_server.logging import get_logger, setup_logging

logger = get_logger("api")

FRONTEND_MOUNT_PATH = "/app"


def _resolve_upload_dir(config: ServerConfig) -> Optional[Path]:
    configured = config.get("server", "upload_dir")
    if not configured:
        return None
    upload_dir = Path(configured)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    config: ServerConfig = app.state.config

    setup_logging(config.logging, log_dir=resolve_log_directory(config))
    logger.info("Transcribe server starting...")
    if config.loaded_from:
        logger.info(f"Configuration loaded from {config.loaded_from}")

    store = TranscriptStore(resolve_database_path(config))
    store.open()

    provider: SpeechProvider = app.state.provider_override or create_provider(config)
    if isinstance(provider, DeepgramProvider) and not provider.configured:
        logger.warning("DEEPGRAM_API_KEY is not set; uploads will fail until it is")

    app.state.gateway = TranscriptionGateway(store, provider)
    app.state.upload_dir = _resolve_upload_dir(config)

    logger.info("Server startup complete")

    yield

    logger.info("Server shutting down...")
    await provider.aclose()
    store.close()
    logger.info("Shutdown complete")


def create_app(
    config: Optional[ServerConfig] = None,
    provider: Optional[SpeechProvider] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration to use instead of the global instance
        provider: Speech provider to use instead of the configured one

    Returns:
        Configured FastAPI application
    """
    config = config or get_config()

    app = FastAPI(
        title="Transcribe Server",
        description="Upload audio, transcribe it and keep a transcript history",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.provider_override = provider

    app.add_middleware(
        CORSMiddleware,
        allow_origins=resolve_cors_origins(config),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(transcription.router, tags=["Transcription"])
    app.include_router(history.router, tags=["History"])

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    frontend_dir = config.get("server", "frontend_dir")
    if frontend_dir:
        mount_frontend(app, Path(frontend_dir))

    return app


def mount_frontend(app: FastAPI, frontend_path: Path, mount_path: str = FRONTEND_MOUNT_PATH) -> None:
    """
    Serve a built single-page frontend.

    Args:
        app: FastAPI application
        frontend_path: Path to the built frontend (dist directory)
        mount_path: URL prefix to serve it under
    """
    if not frontend_path.exists():
        logger.warning(f"Frontend path not found: {frontend_path}")
        return

    assets_path = frontend_path / "assets"
    if assets_path.exists():
        app.mount(
            f"{mount_path}/assets",
            StaticFiles(directory=str(assets_path)),
            name="frontend_assets",
        )

    root = frontend_path.resolve()

    @app.get(mount_path, include_in_schema=False)
    @app.get(f"{mount_path}/{{path:path}}", include_in_schema=False)
    async def serve_frontend(path: str = "") -> FileResponse:
        file_path = (root / path).resolve()
        # Only files under the frontend root; anything else gets the SPA shell
        if path and file_path.is_relative_to(root) and file_path.is_file():
            return FileResponse(file_path)
        return FileResponse(root / "index.html")

    logger.info(f"Frontend mounted at {mount_path} from {frontend_path}")
