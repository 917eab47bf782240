"""Global error handlers — every failure ends on the /error/<code> page."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


def error_redirect(status_code: int) -> RedirectResponse:
    """303 so that a failed POST is followed by a GET of the error page."""
    return RedirectResponse(f"/error/{status_code}", status_code=303)


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> RedirectResponse:
        logger.info("http_error", path=request.url.path, status=exc.status_code, detail=exc.detail)
        return error_redirect(exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> RedirectResponse:
        logger.info("validation_error", path=request.url.path, errors=exc.errors())
        return error_redirect(400)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> RedirectResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return error_redirect(500)
