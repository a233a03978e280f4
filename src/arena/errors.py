"""Error taxonomy shared by the engines, stores and API layer.

Input validation errors are raised before any mutation and map to 400.
Store failures are re-raised as StoreUnavailable and map to 503.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError


class ArenaError(Exception):
    """Base class for errors the API layer renders as JSON."""

    status_code: int = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidScope(ArenaError):
    """Leaderboard scope level unknown, or subject/grade without a value."""


class InvalidWindow(ArenaError):
    """Leaderboard window is not one of today/week/month/all_time."""


class InvalidPagination(ArenaError):
    """limit outside 1..100 or negative offset."""


class InvalidAmount(ArenaError):
    """XP amount or points outside the accepted range."""


class InvalidRating(ArenaError):
    """Flashcard rating outside again/hard/medium/easy."""


class StoreUnavailable(ArenaError):
    """The backing store failed or timed out."""

    status_code = 503


@contextmanager
def store_errors(store: str) -> Iterator[None]:
    """Translate driver-level failures into StoreUnavailable."""
    try:
        yield
    except IntegrityError:
        raise
    except (OperationalError, InterfaceError, DBAPIError, OSError) as exc:
        msg = f"{store} store unavailable"
        raise StoreUnavailable(msg) from exc
