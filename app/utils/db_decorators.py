"""
Database decorators for automatic error handling and rollback.

Provides decorators to automatically handle database errors and rollbacks
in async functions and service methods that use SQLAlchemy sessions.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


def _resolve_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    """
    Find the session a wrapped call operates on.

    Looks at the 'session' keyword, then the first positional argument,
    then a 'session' attribute on the first positional argument (services
    and repositories keep their session on self).
    """
    session = kwargs.get("session")
    if session is not None:
        return session

    if args:
        first = args[0]
        if isinstance(first, AsyncSession):
            return first
        candidate = getattr(first, "session", None)
        if isinstance(candidate, AsyncSession):
            return candidate

    return None


def with_rollback_on_error(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator that automatically rolls back the session on any exception.

    Usage:
        class OrderService:
            @with_rollback_on_error
            async def transition(self, order_id, to, metadata=None):
                ...
                await self.session.commit()

    The decorator will:
    1. Execute the wrapped function
    2. If an exception occurs, automatically call session.rollback()
    3. Re-raise the exception for proper error handling

    Args:
        func: Async function to wrap. The session is taken from the
              'session' keyword, the first positional argument, or
              self.session.

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _resolve_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.debug(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}"
                )
            raise

    return wrapper

