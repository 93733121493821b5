import functools
import logging

from sqlalchemy.exc import InterfaceError, OperationalError

from src.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def degrade_when_unavailable(fallback=None):
    """
    Decorate an async service read so that a missing or unreachable store
    yields ``fallback`` (called if callable) instead of an exception.

    The service instance must expose its session as ``self.db``; a ``None``
    session means no store is configured. Any other storage error propagates.
    """

    def _fallback():
        return fallback() if callable(fallback) else fallback

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            if self.db is None:
                return _fallback()
            try:
                return await func(self, *args, **kwargs)
            except (OperationalError, InterfaceError) as e:
                logger.warning(f"{func.__qualname__}: store unavailable, returning empty result: {e}")
                return _fallback()

        return wrapper

    return decorator


def require_store(db) -> None:
    if db is None:
        raise StoreUnavailableError()
