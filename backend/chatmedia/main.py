"""Chatmedia Backend Application.

Entry point for the chatmedia service: image uploads bound to user profiles
and chat messages.

Modules:
    - media: upload validation, local storage, reference association
    - records: DuckDB persistence for users and messages
    - users: user records and profile image upload
    - messages: message creation with optional image, newest-first listing
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from chatmedia.config import get_config
from chatmedia.media.service import MediaService, set_media_service
from chatmedia.messages.router import router as messages_router
from chatmedia.records.service import RecordStore
from chatmedia.users.router import router as users_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

for _noisy in ("multipart", "python_multipart"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    configured_level = getattr(logging, config.server.log_level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.server.log_level.upper())

    records = RecordStore.get_instance(config.database.path)
    service = MediaService.from_config(config, records=records)
    service.store.ensure_upload_dir()
    set_media_service(service)
    logger.info(
        "Serving uploads from %s at %s",
        config.storage.upload_dir,
        config.storage.url_prefix,
    )

    yield  # Application runs here

    # Shutdown
    set_media_service(None)
    RecordStore.reset_instance()
    logger.info("Application shutdown complete")


_config = get_config()

app = FastAPI(
    title="Chatmedia API",
    description="Image uploads for user profiles and chat messages",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.server.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router)
app.include_router(messages_router)

app.mount(
    _config.storage.url_prefix,
    StaticFiles(directory=_config.storage.upload_dir, check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}
