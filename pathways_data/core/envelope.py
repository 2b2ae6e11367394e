from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from pathways_data.core.errors import DataAccessError, ErrorKind
from pathways_data.schemas.common import Result

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


# PUBLIC_INTERFACE
def captures_errors(action: str) -> Callable[[F], F]:
    """
    Decorate a public async operation so that it always returns a ``Result``.

    - DataAccessError subclasses map to their own ``kind``.
    - pydantic ValidationError (malformed input) maps to ``validation_error``.
    - SQLAlchemyError / OSError (store unreachable or query rejected) map to ``transport_error``.
    - Anything else is logged with its traceback and also reported as ``transport_error``.

    Parameters:
        action: short phrase used in log lines and transport error messages,
                e.g. "listing universities".
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Result:
            try:
                return await fn(*args, **kwargs)
            except DataAccessError as exc:
                logger.warning("%s failed (%s): %s", action, exc.kind.value, exc.message)
                return Result.failure(exc.kind, exc.message, exc.details)
            except ValidationError as exc:
                logger.warning("%s rejected invalid input: %s", action, exc.error_count())
                return Result.failure(
                    ErrorKind.VALIDATION_ERROR,
                    "Invalid input",
                    details=exc.errors(include_url=False, include_context=False),
                )
            except (SQLAlchemyError, OSError) as exc:
                logger.exception("Error %s", action)
                return Result.failure(
                    ErrorKind.TRANSPORT_ERROR,
                    f"Store error while {action}",
                    details={"cause": type(exc).__name__, "message": str(exc)},
                )
            except Exception as exc:
                # Cancellation is a BaseException and still propagates.
                logger.exception("Unhandled error %s", action)
                return Result.failure(
                    ErrorKind.TRANSPORT_ERROR,
                    f"Unexpected error while {action}",
                    details={"cause": type(exc).__name__},
                )

        return wrapper  # type: ignore[return-value]

    return decorator
