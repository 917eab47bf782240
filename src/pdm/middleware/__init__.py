"""Middleware registration."""

from fastapi import FastAPI
from starlette.middleware.gzip import GZipMiddleware

from pdm.config import Settings
from pdm.middleware.cors import setup_cors
from pdm.middleware.error_handler import setup_error_handlers
from pdm.middleware.logging import setup_logging
from pdm.middleware.rate_limit import RateLimitMiddleware
from pdm.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    CORS stays outermost so redirects and 429 responses carry its headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    setup_cors(app, settings)
