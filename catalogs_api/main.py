import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from catalogs_api.core.config import CORS_ORIGINS, DATABASE_URL, INDEX_INTERVAL_SECONDS, INDEX_SCHEDULER_ENABLED
from catalogs_api.core.database import Base, SessionLocal, engine
from catalogs_api.core.logging_setup import configure_logging
from catalogs_api.core.startup_checks import (
    ensure_migrations_applied,
    validate_auth_configuration,
    validate_database_environment,
)
from catalogs_api.middleware.request_logging import RequestLoggingMiddleware
import catalogs_api.models  # garante que os models são importados antes do create_all

from catalogs_api.routers.auth import router as auth_router
from catalogs_api.routers.catalogs import router as catalogs_router
from catalogs_api.services.index_scheduler import IndexScheduler

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)

index_scheduler = IndexScheduler(SessionLocal, interval_seconds=INDEX_INTERVAL_SECONDS)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        validate_auth_configuration()
        if DATABASE_URL.startswith("sqlite"):
            # SQLite (dev) cria as tabelas direto; demais bancos dependem das migrations.
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    if INDEX_SCHEDULER_ENABLED:
        await index_scheduler.start()
    else:
        logger.info("%s index scheduler disabled via INDEX_SCHEDULER_ENABLED", STARTUP_PREFIX)
    try:
        yield
    finally:
        await index_scheduler.stop()


app = FastAPI(
    title="Catalogs API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Unhandled database error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(auth_router)
app.include_router(catalogs_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
