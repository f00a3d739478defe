"""Decorators for the Steam OIDC bridge."""

import functools
import logging
import traceback
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import ParamSpec, TypeVar

from .exceptions import OIDCError

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger("steam_oidc.operations")


def track_operation(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to log engine operations with timing and error handling.

    Client-caused OIDC errors are logged at INFO, anything else at ERROR
    with the traceback at DEBUG. Exceptions always propagate.

    Args:
        operation_name: Name of the operation being tracked

    Returns:
        Decorated coroutine function
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = datetime.now(UTC).timestamp()
            logger.debug("Starting %s", operation_name)

            try:
                result = await func(*args, **kwargs)
            except OIDCError as e:
                duration = datetime.now(UTC).timestamp() - start_time
                if e.status_code >= 500:
                    logger.error(
                        "Failed %s after %.2fs: %s", operation_name, duration, e
                    )
                else:
                    logger.info(
                        "Rejected %s after %.2fs: %s", operation_name, duration, e
                    )
                raise
            except Exception as e:
                duration = datetime.now(UTC).timestamp() - start_time
                logger.error("Failed %s after %.2fs: %s", operation_name, duration, e)
                logger.debug("Traceback: %s", traceback.format_exc())
                raise
            else:
                duration = datetime.now(UTC).timestamp() - start_time
                logger.debug("Completed %s in %.2fs", operation_name, duration)

            return result

        return wrapper

    return decorator
