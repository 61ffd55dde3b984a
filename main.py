from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.router import router as api_router
from core.config import config
from core.db import engine, get_db
from core.exceptions.base import CustomException, StorageUnavailableException
from core.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

VERSION = "0.1.0"
RETRY_AFTER_SECONDS = 5


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger.info(f"Starting {config.APP_NAME} ({config.APP_ENV})")
    yield
    await engine.dispose()
    logger.info(f"{config.APP_NAME} stopped, database connections closed")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error_code", "message", "data"}``."""

    @app.exception_handler(CustomException)
    async def custom_exception_handler(
        request: Request, exc: CustomException
    ) -> JSONResponse:
        logger.warning(
            f"{request.method} {request.url.path} -> {exc.code} {exc.error_code}: {exc.message}"
        )
        headers = None
        if isinstance(exc, StorageUnavailableException):
            headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
        return JSONResponse(
            status_code=exc.code,
            content={
                "error_code": exc.error_code,
                "message": exc.message,
                "data": exc.data,
            },
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__} - {exc}"
        )
        return JSONResponse(
            status_code=500,
            content={
                "error_code": "INTERNAL_ERROR",
                "message": "An internal server error occurred",
                "detail": str(exc) if config.DEBUG else None,
            },
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Concession Portal",
        description="Railway concession applications for college students",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health")
    async def health_check(db_session: AsyncSession = Depends(get_db)) -> dict:
        try:
            await db_session.execute(text("SELECT 1"))
        except Exception as exc:
            raise StorageUnavailableException(data={"operation": "health"}) from exc
        return {
            "status": "healthy",
            "version": VERSION,
            "app_name": config.APP_NAME,
        }

    app.include_router(api_router, prefix="/api")

    # Uploaded ID cards, Aadhar cards and fee receipts
    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")

    return app


app = create_app()
