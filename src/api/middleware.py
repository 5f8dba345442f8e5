"""Shared rate limiter (slowapi), keyed by client address."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.config import settings

limiter = Limiter(key_func=get_remote_address)

_rate_limit = settings.rate_limit


def configure_rate_limit(value: str) -> None:
    """Set the per-route limit used by ``rate_limit`` (called by ``create_app``)."""
    global _rate_limit
    _rate_limit = value


def rate_limit() -> str:
    # Evaluated by slowapi on every request, so the latest app's setting wins.
    return _rate_limit
