# courier_core/core/middleware.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from courier_core.config.settings import settings
from courier_core.core.exceptions import CourierCoreError
from courier_core.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

def setup_exception_handlers(app: FastAPI):
    """Render domain errors with the shared error body"""

    @app.exception_handler(CourierCoreError)
    async def courier_error_handler(request: Request, exc: CourierCoreError):
        if exc.status_code >= 500:
            logger.error(f"❌ {exc.error_code} on {request.method} {request.url.path}: {exc.message}")
        body = ErrorResponse(message=exc.message, error_code=exc.error_code, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))
