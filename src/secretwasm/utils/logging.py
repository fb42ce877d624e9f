"""
Structured logging for the secretwasm SDK.

The SDK never configures logging on import: the package logger carries a
NullHandler and applications opt in with ``configure_logging``.

Example:
    >>> from secretwasm.utils.logging import configure_logging, get_logger
    >>> configure_logging("DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.info("Posting tx", extra={"code_id": 3})
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

__all__ = [
    "ROOT_LOGGER_NAME",
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
]

ROOT_LOGGER_NAME = "secretwasm"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s%(context)s"

_root = logging.getLogger(ROOT_LOGGER_NAME)
_root.addHandler(logging.NullHandler())

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "context",
}


class _ContextFormatter(logging.Formatter):
    """Appends ``extra`` fields to the line as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        context: Dict[str, Any] = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED
        }
        record.context = (
            " " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))
            if context
            else ""
        )
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the SDK namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger named ``secretwasm.<...>``.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Attach a handler to the SDK's root logger.

    Calling this again replaces the handler installed by the previous call.

    Args:
        level: Log level name or number.
        fmt: Format string; ``%(context)s`` expands to the ``extra`` fields.
        handler: Handler to use instead of a stderr StreamHandler.

    Returns:
        The SDK root logger.
    """
    for existing in list(_root.handlers):
        if getattr(existing, "_secretwasm_handler", False):
            _root.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler.setFormatter(_ContextFormatter(fmt or DEFAULT_FORMAT))
    handler._secretwasm_handler = True  # type: ignore[attr-defined]
    _root.addHandler(handler)
    _root.setLevel(level)
    return _root


def set_level(level: Union[int, str]) -> None:
    """Set the SDK root log level."""
    _root.setLevel(level)


def disable_logging() -> None:
    """Silence all SDK log output until the level is set again."""
    _root.setLevel(logging.CRITICAL + 1)


def enable_debug() -> None:
    """Shortcut for ``configure_logging(logging.DEBUG)``."""
    configure_logging(logging.DEBUG)
