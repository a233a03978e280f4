"""Middleware registration."""

from fastapi import FastAPI

from arena.config import Settings
from arena.middleware.cors import setup_cors
from arena.middleware.error_handler import setup_error_handlers
from arena.middleware.logging import setup_logging
from arena.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order, so CORS is added last
    to wrap every response, including errors.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
