"""Per-request pipeline state machine.

``idle -> normalizing -> extracting -> validating -> aggregating -> complete``;
any non-terminal stage may move to ``failed``. ``complete`` and ``failed`` are
terminal. Stages may be skipped (``analyze`` on pre-validated transactions
goes straight to ``aggregating``) but never revisited after a terminal one.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import TypeAlias

from .logging_setup import get_logger

_logger = get_logger("just_save.stages")


class Stage(StrEnum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    AGGREGATING = "aggregating"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STAGES: frozenset[Stage] = frozenset({Stage.COMPLETE, Stage.FAILED})

StageCallback: TypeAlias = Callable[[Stage], None]


class PipelineRun:
    """Tracks the stage of one request and notifies an optional observer."""

    def __init__(self, on_stage: StageCallback | None = None) -> None:
        self.stage = Stage.IDLE
        self.history: list[Stage] = [Stage.IDLE]
        self.failure_reason: str | None = None
        self._on_stage = on_stage

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def advance(self, stage: Stage) -> None:
        if self.is_terminal:
            raise RuntimeError(f"cannot move from terminal stage {self.stage} to {stage}")
        if stage is Stage.IDLE:
            raise ValueError("cannot return to idle")
        if stage is self.stage:
            return
        self.stage = stage
        self.history.append(stage)
        _logger.debug("pipeline:stage stage=%s", stage)
        if self._on_stage is not None:
            self._on_stage(stage)

    def complete(self) -> None:
        self.advance(Stage.COMPLETE)

    def fail(self, reason: str) -> None:
        """Move to ``failed``; a no-op when the run is already terminal."""

        if self.is_terminal:
            return
        self.failure_reason = reason
        self.advance(Stage.FAILED)


__all__ = ["TERMINAL_STAGES", "PipelineRun", "Stage", "StageCallback"]
