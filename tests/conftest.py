"""Pytest configuration for test isolation.

Settings and gateways read ``JUST_SAVE_*`` variables and provider credentials
from the environment. A developer's shell (or a local ``.env`` loaded by the
CLI) would otherwise leak into tests and change limits, budgets or which
backend gets constructed. The autouse fixture below clears them and runs
each test from its own temporary working directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

import just_save.logging_setup as logging_setup

_CREDENTIAL_VARS = ("ANTHROPIC_API_KEY", "OPENAI_API_KEY")


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("JUST_SAVE_"):
            monkeypatch.delenv(name, raising=False)
    for name in _CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the working directory.
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_package_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    # CLI tests call configure_logging(), which adds a handler and stops
    # propagation on the package logger; undo that between tests.
    logger = logging.getLogger("just_save")
    handlers, propagate, level = list(logger.handlers), logger.propagate, logger.level
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)
