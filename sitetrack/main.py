from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from sitetrack.api.middleware import AuditMiddleware
from sitetrack.api.v1.router import v1_router
from sitetrack.common.logging import get_logger, setup_logging
from sitetrack.config import settings
from sitetrack.core.tracking.store import ProjectStore
from sitetrack.db.repository import SqlRepository
from sitetrack.integrations.storage import StorageClient

logger = get_logger("main")

# Static mounts need the directory at import time
Path(settings.STORAGE_LOCAL_PATH).mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    app.state.storage = StorageClient()
    await app.state.storage.health_check()

    store = ProjectStore(SqlRepository())
    if not await store.load():
        logger.error("Starting with an empty store; data could not be loaded")
    admin = await store.ensure_admin(
        settings.DEFAULT_ADMIN_USERNAME,
        settings.DEFAULT_ADMIN_PASSWORD,
        settings.DEFAULT_ADMIN_NAME,
    )
    if admin:
        logger.info("Created bootstrap admin account '%s'", admin.username)
    app.state.store = store
    yield


app = FastAPI(
    title="SiteTrack API",
    description="Construction project tracking: phases, tasks, progress, media and timelines",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AuditMiddleware)

# Uploaded media
app.mount(
    settings.STORAGE_URL_PREFIX,
    StaticFiles(directory=settings.STORAGE_LOCAL_PATH),
    name="storage",
)

# API routes
app.include_router(v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "sitetrack",
        "version": "1.0.0",
        "env": settings.APP_ENV,
    }
