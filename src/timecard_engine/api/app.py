"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timecard_engine import __version__
from timecard_engine.api.routes import health_router, invoicing_router, payroll_router
from timecard_engine.database import dispose_db, init_db
from timecard_engine.exceptions import InvalidInputError, TimecardEngineError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Timecard Engine API",
        description="Payroll and invoice generation from client timekeeping extracts",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(TimecardEngineError)
    async def engine_exception_handler(
        request: Request, exc: TimecardEngineError
    ) -> JSONResponse:
        """Map engine errors to ``{error, details}`` bodies."""
        status_code = (
            status.HTTP_400_BAD_REQUEST
            if isinstance(exc, InvalidInputError)
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.details)
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.summary, "details": exc.details},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred", "details": str(exc)},
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(invoicing_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
