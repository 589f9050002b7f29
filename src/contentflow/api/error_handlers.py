"""Global exception handlers."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import ContentflowError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors to their HTTP status with a ``detail`` body."""

    @app.exception_handler(ContentflowError)
    async def contentflow_error_handler(request: Request, exc: ContentflowError):
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        content = {"detail": exc.message}
        if exc.details:
            content["context"] = exc.details
        return JSONResponse(status_code=exc.http_status, content=content)
