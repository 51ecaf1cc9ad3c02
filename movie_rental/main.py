import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from movie_rental.core.config import CORS_ORIGINS, DATABASE_URL
from movie_rental.core.database import Base, engine
from movie_rental.core.errors import OperationFailedError
from movie_rental.core.logging_setup import configure_logging
from movie_rental.core.request_context import get_request_id
from movie_rental.core.startup_checks import ensure_migrations_applied, validate_database_environment
from movie_rental.deps import close_rental_service
from movie_rental.middleware.observability import ObservabilityMiddleware
import movie_rental.models  # garante que os models são importados antes do create_all

from movie_rental.routers.customers import router as customers_router
from movie_rental.routers.internal_metrics import router as internal_metrics_router
from movie_rental.routers.movies import router as movies_router
from movie_rental.routers.rentals import router as rentals_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
PROBLEM_CONTENT_TYPE = "application/problem+json"
PROBLEM_TYPE = "about:blank"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise
    logger.info("%s ready", STARTUP_PREFIX)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield
    close_rental_service()


app = FastAPI(
    title="Movie Rental API",
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
app.add_middleware(ObservabilityMiddleware)


def _problem_response(
    request: Request,
    *,
    status_code: int,
    title: str,
    detail: str,
    reason: str | None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        media_type=PROBLEM_CONTENT_TYPE,
        content={
            "type": PROBLEM_TYPE,
            "title": title,
            "status": status_code,
            "detail": detail,
            "instance": request.url.path,
            "reason": reason,
            "request_id": get_request_id(),
        },
    )


@app.exception_handler(OperationFailedError)
async def operation_failed_handler(request: Request, exc: OperationFailedError):
    request.state.error_reason = exc.reason.value
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "operation failed: %s",
        exc.message,
        exc_info=exc if exc.status_code >= 500 else None,
        extra={"reason": exc.reason.value, "endpoint": request.url.path, "method": request.method},
    )
    return _problem_response(
        request,
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.message,
        reason=exc.reason.value,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled exception", extra={"endpoint": request.url.path, "method": request.method})
    return _problem_response(
        request,
        status_code=500,
        title="Internal Server Error",
        detail="An unexpected error occurred. Please try again later.",
        reason=None,
    )


# Routers
app.include_router(customers_router)
app.include_router(movies_router)
app.include_router(rentals_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
