import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from activityhub.config import (
    LOG_LEVEL,
    RUN_MIGRATIONS_ON_STARTUP,
    check_production_settings,
    get_cors_origins_list,
    is_production,
)
from activityhub.errors import ServiceError, ValidationError
from activityhub.routers.activities import router as activities_router
from activityhub.routers.auth import router as auth_router
from activityhub.routers.categories import router as categories_router
from activityhub.routers.comments import router as comments_router
from activityhub.routers.users import router as users_router

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _run_alembic_upgrade() -> None:
    """Apply migrations up to head on startup."""
    from alembic import command
    from alembic.config import Config

    root = Path(__file__).resolve().parent.parent
    cfg = Config(str(root / "alembic.ini"))
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, "head")


check_production_settings()

app = FastAPI(
    title="ActivityHub API",
    description="Backend API for ActivityHub: find, create and join activities",
    version="0.1.0",
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    error = ValidationError.from_errors("Invalid request parameters", exc.errors())
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if is_production():
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    return JSONResponse(status_code=500, content={"error": "Internal server error", "detail": str(exc)})


@app.on_event("startup")
def _startup_migrate() -> None:
    """Run Alembic upgrade head. A missing database is logged, not fatal."""
    logger.info("Application startup")
    if not RUN_MIGRATIONS_ON_STARTUP:
        return
    try:
        _run_alembic_upgrade()
    except Exception:
        logger.exception("Alembic upgrade failed; continuing without migrations")


app.include_router(auth_router)
app.include_router(activities_router)
app.include_router(comments_router)
app.include_router(categories_router)
app.include_router(users_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {"status": "ok"}


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "Welcome to the ActivityHub API.",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("activityhub.main:app", host="0.0.0.0", port=8000, reload=True)
