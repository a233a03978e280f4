"""Structured logging configuration with structlog."""

import logging

import structlog

from arena.config import Settings


def build_processors(log_format: str) -> list[structlog.types.Processor]:
    """Processor chain for the given ARENA_LOG_FORMAT ("json" or "console")."""
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        return [*shared, structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [*shared, structlog.dev.ConsoleRenderer()]


def setup_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through one renderer."""
    structlog.configure(
        processors=build_processors(settings.log_format),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("arena").setLevel(level)
    # Request method/path are already bound per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
