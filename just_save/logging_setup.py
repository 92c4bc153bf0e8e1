"""Centralized logging configuration for the ``just_save`` package.

This module provides two public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"just_save"``). Intended to be called once by entrypoints
  (e.g., the CLI) at process startup.
- ``get_logger(name)``: acquire a logger by name, ensuring that the package
  root logger has at least a ``NullHandler`` attached when not configured to
  avoid "No handler" warnings in library contexts.

Library modules must never attach their own handlers. They should only call
``get_logger("just_save.<module>")`` and rely on the centralized configuration
performed by the CLI or host application.

Transaction content (descriptions, amounts) must not be logged. Raw engine
output may be logged, truncated, only when it cannot be decoded.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "just_save"
_CONFIGURED = False

RAW_RESPONSE_LOG_CHARS = 500


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        # Accept numeric strings or standard level names (INFO/DEBUG/etc.).
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    # Env override when explicit ``level`` is None
    env_val = os.getenv("JUST_SAVE_LOG_LEVEL")
    if env_val and level is None:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string (e.g., ``"INFO"``). If
        ``None``, defaults to the ``JUST_SAVE_LOG_LEVEL`` environment variable
        when set, otherwise ``logging.INFO``.
    fmt:
        Optional logging format string. Defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        The output stream for the single ``StreamHandler`` (defaults to
        ``sys.stderr``).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Remove any existing NullHandlers to avoid swallowing logs after config.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, ensuring safe defaults for library use.

    When the central configuration hasn't run yet, attach a ``NullHandler`` to
    the package root logger to avoid noisy warnings. Nothing is emitted until
    an application such as the CLI configures handlers explicitly.
    """

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


def clip_raw(text: str | None) -> str:
    """Return ``text`` shortened for diagnostic logging of engine output."""

    if not text:
        return ""
    if len(text) <= RAW_RESPONSE_LOG_CHARS:
        return text
    return text[:RAW_RESPONSE_LOG_CHARS] + "..."


__all__ = ["clip_raw", "configure_logging", "get_logger"]
