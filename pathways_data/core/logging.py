from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Union

if TYPE_CHECKING:
    from pathways_data.core.auth import AuthSession


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
actor_id_var: ContextVar[Optional[str]] = ContextVar("actor_id", default=None)

# Record attribute -> context variable feeding it
_CONTEXT_FIELDS: Dict[str, ContextVar[Optional[str]]] = {
    "correlation_id": correlation_id_var,
    "actor_id": actor_id_var,
}

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | actor=%(actor_id)s | %(message)s"
)


class LoggingContextFilter(logging.Filter):
    """Copies the bound correlation and actor ids onto every record ("-" when unbound)."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for attr, var in _CONTEXT_FIELDS.items():
            setattr(record, attr, var.get() or "-")
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Install a single stdout handler on the root logger using LOG_FORMAT.

    Any handlers installed earlier (e.g. by basicConfig) are replaced.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


# PUBLIC_INTERFACE
@contextmanager
def logging_context(
    correlation_id: Optional[str] = None,
    actor: Optional["AuthSession"] = None,
) -> Iterator[None]:
    """
    Bind correlation and actor identifiers to log records emitted inside the block.

    Values that are not supplied keep whatever the surrounding context already holds.
    """
    tokens = []
    if correlation_id is not None:
        tokens.append((correlation_id_var, correlation_id_var.set(correlation_id)))
    if actor is not None:
        tokens.append((actor_id_var, actor_id_var.set(actor.user_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
