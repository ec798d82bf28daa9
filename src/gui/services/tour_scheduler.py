"""Timer scheduling contract for the tour orchestrator.

All waiting in the tour (settle delay, resolver polling, resize debounce,
start delay) goes through a ``Scheduler`` so the core logic stays pure Python
and deterministic under test. The application uses
``gui.services.qt_tour.QtScheduler`` (single shot QTimers on the GUI thread);
tests use ``gui.testing.ManualScheduler``.
"""

from __future__ import annotations

from typing import Callable, Protocol

__all__ = ["TimerHandle", "Scheduler"]


class TimerHandle(Protocol):  # noqa: D401 - structural
    @property
    def active(self) -> bool: ...  # pragma: no cover - structural

    def cancel(self) -> None: ...  # pragma: no cover - structural


class Scheduler(Protocol):
    def call_later(
        self, delay_ms: int, callback: Callable[[], None]
    ) -> TimerHandle: ...  # pragma: no cover - structural
