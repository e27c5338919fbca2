"""Sharebox Backend Application.

This is the main entry point for the Sharebox backend service.
Sharebox is a small message and file sharing service: clients post text
messages or upload files, and other clients poll for anything new.

Modules:
    - messages: Append-only JSONL message log and polling endpoints
    - files: Multipart uploads and downloads of stored files
    - multipart: Byte-exact multipart/form-data decoder
    - static: Front-end bundle for every other path
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_config
from app.errors import ShareboxError
from app.files.router import router as files_router
from app.files.service import FileStorageService
from app.messages.router import router as messages_router
from app.messages.store import get_message_store
from app.static.router import router as static_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    # Apply configured log level to root logger so that
    # `logging.level: "debug"` in sharebox.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    store = get_message_store()
    files = FileStorageService.get_instance()
    logger.info(
        "Storage ready: messages=%s uploads=%s",
        getattr(store, "path", "<memory>"),
        files.upload_dir,
    )
    if not config.uploads.enabled:
        logger.info("File uploads disabled in config.")

    yield  # Application runs here

    # Shutdown
    logger.info("Application shutdown complete")


# Create FastAPI application with metadata
app = FastAPI(
    title="Sharebox API",
    description="Message and file sharing between devices",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().server.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShareboxError)
async def sharebox_error_handler(request: Request, exc: ShareboxError) -> JSONResponse:
    """Render any ShareboxError as ``{"detail": message}`` with its status."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path,
                    exc.status_code, exc.message)
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}


# Register all routers; the static catch-all goes last
app.include_router(messages_router)
app.include_router(files_router)
app.include_router(static_router)


def run() -> None:
    """Start the server with uvicorn using the configured host and port."""
    config = get_config()
    uvicorn.run(
        "app.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
