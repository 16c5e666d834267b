"""Progress tracking for a generation cycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

ProgressSink = Callable[[float], None]

SUBMITTED = 0.1
RESPONSE_RECEIVED = 0.5
RESPONSE_PARSED = 0.7
DOWNLOADED = 0.9
COMPLETE = 1.0


@dataclass(slots=True)
class GenerationState:
    """Observable state of an orchestrator, shared by reference with its callers."""

    is_loading: bool = False
    progress: float = 0.0
    error_message: str | None = None
    last_generated_at: datetime | None = None

    def begin(self) -> None:
        self.is_loading = True
        self.progress = 0.0
        self.error_message = None

    def succeed(self, generated_at: datetime) -> None:
        self.is_loading = False
        self.last_generated_at = generated_at

    def fail(self, message: str | None) -> None:
        self.is_loading = False
        self.progress = 0.0
        self.error_message = message

    def as_dict(self) -> dict[str, object]:
        return {
            "is_loading": self.is_loading,
            "progress": self.progress,
            "error_message": self.error_message,
            "last_generated_at": self.last_generated_at.isoformat() if self.last_generated_at else None,
        }


class ProgressReporter:
    """
    Delivers monotonically non-decreasing progress values for one cycle.

    ``reset`` reports 0 once and closes the reporter; nothing is delivered afterwards.
    """

    def __init__(self, sink: ProgressSink | None = None, state: GenerationState | None = None) -> None:
        self._sink = sink
        self._state = state
        self._value = 0.0
        self._closed = False

    @property
    def value(self) -> float:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def advance(self, value: float) -> None:
        if self._closed:
            return
        value = min(max(value, 0.0), COMPLETE)
        if value <= self._value:
            return
        self._emit(value)
        if value >= COMPLETE:
            self._closed = True

    def band(self, start: float, end: float) -> Callable[[float], None]:
        """Return a callback mapping a 0..1 fraction onto ``[start, end]``."""

        def _report(fraction: float) -> None:
            self.advance(start + (end - start) * min(max(fraction, 0.0), 1.0))

        return _report

    def reset(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._emit(0.0)

    def _emit(self, value: float) -> None:
        self._value = value
        if self._state is not None:
            self._state.progress = value
        if self._sink is not None:
            self._sink(value)
