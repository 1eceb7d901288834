"""Logging utilities for inctree.

This module provides a custom SPLIT log level and a handle for enabling and
disabling inctree logging with loguru.

Note:
    Importing this module removes loguru's default stderr handler (ID 0) to
    prevent duplicate output when ``enable_logging()`` adds its own handler.
    If your application configures loguru handlers *before* importing inctree,
    handler 0 may no longer be the default; the removal is then a no-op.
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final

from loguru import logger

from inctree.config import LogFormat, LogLevel, get_settings

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

# Leaf splits are frequent during construction, so SPLIT sits between DEBUG (10) and INFO (20)
SPLIT_LEVEL: Final[str] = "SPLIT"
SPLIT_LEVEL_NUMBER: Final[int] = 15

_SHORT_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
    "<cyan>{function}</cyan> - "
    "<level>{message}</level> | {extra}"
)
_FULL_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> | {extra}"
)


def _register_split_level() -> None:
    """Register the SPLIT custom log level with loguru.

    If the level already exists with a different numeric value, emits a
    UserWarning because loguru does not permit changing it.
    """
    try:
        existing_level = logger.level(SPLIT_LEVEL)
    except ValueError:
        logger.level(SPLIT_LEVEL, no=SPLIT_LEVEL_NUMBER, icon="🌿")
    else:
        if existing_level.no != SPLIT_LEVEL_NUMBER:
            msg = f"SPLIT level already registered with numeric value {existing_level.no}, expected {SPLIT_LEVEL_NUMBER}"
            warnings.warn(msg, stacklevel=2)


_register_split_level()


class LoggingHandle:
    """Handle for managing inctree logging lifecycle.

    Stores the handler ID from logger.add() and provides cleanup via disable()
    or automatic cleanup through the context manager protocol.

    Examples:
        >>> with enable_logging(level="SPLIT"):  # doctest: +SKIP
        ...     ClassificationTree.from_examples(items, labels)
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        """Initialize the logging handle.

        Args:
            handler_id (int): The loguru handler ID from logger.add().
        """
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's handler.

        When this is the last active handle, ``logger.disable("inctree")`` is
        called so inctree records stop flowing to any handler.
        """
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        """Enter context manager.

        Returns:
            LoggingHandle: This handle instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and disable logging."""
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        """Return the number of currently active logging handles.

        Returns:
            int: Count of active handles that have not been disabled.
        """
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(
    *,
    level: LogLevel | None = None,
    log_format: LogFormat | None = None,
) -> LoggingHandle:
    """Enable inctree logging to stderr.

    Args:
        level (LogLevel | None): Minimum log level to display. Use "SPLIT" to
            see every leaf split during construction. Defaults to
            `TreeSettings.log_level`.
        log_format (LogFormat | None): "short" shows only the function name,
            "full" adds module and line. Defaults to `TreeSettings.log_format`.

    Returns:
        LoggingHandle: Independent handle for managing the logging handler.

    Examples:
        >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
        ...     tree.classify(item)
    """
    settings = get_settings()
    level = level or settings.log_level
    log_format = log_format or settings.log_format

    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(
        sys.stderr,
        level=level,
        filter=_is_inctree_record,
        format=_SHORT_FORMAT if log_format == "short" else _FULL_FORMAT,
    )
    return LoggingHandle(handler_id)


def _is_inctree_record(record: Record) -> bool:
    """Filter to pass only inctree records.

    Args:
        record (Record): The loguru Record object to filter.

    Returns:
        bool: True if the record comes from the inctree package.
    """
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
