import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from change_tracking.core.config import get_settings
from change_tracking.core.exceptions import AppException, app_exception_handler
from change_tracking.core.logging import setup_logging
from change_tracking.infrastructure.db.connection import database_manager
from change_tracking.interfaces.http.routes import api_router


logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging(settings)
    logger.info(f"Starting {settings.project_name} v{settings.version}")

    try:
        database_manager.create_tables()
        yield
    finally:
        database_manager.dispose()
        logger.info("Shut down")


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Change history and rollback service",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_exception_handler(AppException, app_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        error = {
            "code": "INTERNAL_SERVER_ERROR",
            "message": "Internal server error occurred",
            "details": {},
        }
        if settings.debug:
            error["message"] = str(exc)
            error["details"] = {"traceback": traceback.format_exc()}
        return JSONResponse(status_code=500, content={"success": False, "error": error})

    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint."""
        database_ok = database_manager.health_check()
        return {
            "status": "healthy" if database_ok else "unhealthy",
            "version": settings.version,
            "environment": settings.environment,
            "checks": {"database": "healthy" if database_ok else "unhealthy"},
        }

    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_application()


def main():
    uvicorn.run(
        "change_tracking.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
        access_log=True,
        server_header=False,
    )


if __name__ == "__main__":
    main()
