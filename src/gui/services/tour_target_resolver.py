"""Tour target resolver.

Filters a candidate step list down to the steps whose anchor is live and
rendered, tolerating pages that mount their widgets asynchronously.

Polling model
-------------
``TargetResolver.resolve`` returns a ``ResolveJob``: a cancellable
asynchronous operation driven by the injected scheduler. Each attempt
re-evaluates every candidate selector. The job finishes as soon as at least
``min_visible`` steps are visible, or after ``max_attempts`` with whatever is
visible then (possibly nothing). ``cancel()`` guarantees the completion
callback is never invoked afterwards.

First-step readiness
--------------------
``first_in_view`` is stricter than visibility: the first step's anchor must
also intersect the visible viewport. The orchestrator re-evaluates it on
scroll / geometry notifications.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from gui.design.onboarding_tour import TourStep

from .anchor_host import AnchorHost
from .tour_scheduler import Scheduler, TimerHandle

__all__ = ["ResolvePolicy", "ResolveJob", "TargetResolver"]

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvePolicy:
    interval_ms: int = 100
    max_attempts: int = 32
    min_visible: int = 1


class ResolveJob:
    """One bounded polling run; created and started by ``TargetResolver``."""

    def __init__(
        self,
        resolver: "TargetResolver",
        steps: Sequence[TourStep],
        on_done: Callable[[List[TourStep]], None],
        *,
        min_visible: int,
        interval_ms: int,
        max_attempts: int,
        transform: Optional[Callable[[List[TourStep]], List[TourStep]]] = None,
        require_first: bool = False,
    ) -> None:
        self._resolver = resolver
        self._steps = list(steps)
        self._on_done = on_done
        self._min_visible = max(1, min_visible)
        self._interval_ms = interval_ms
        self._max_attempts = max(1, max_attempts)
        self._transform = transform
        self._require_first = require_first
        self._timer: Optional[TimerHandle] = None
        self.attempts = 0
        self.cancelled = False
        self.done = False
        self.result: List[TourStep] = []

    @property
    def pending(self) -> bool:
        return not (self.done or self.cancelled)

    def start(self, delay_ms: int = 0) -> "ResolveJob":
        self._schedule(delay_ms)
        return self

    def cancel(self) -> None:
        if not self.pending:
            return
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self, delay_ms: int) -> None:
        self._timer = self._resolver.scheduler.call_later(delay_ms, self._attempt)

    def _attempt(self) -> None:
        self._timer = None
        if not self.pending:
            return
        self.attempts += 1
        candidates = self._transform(list(self._steps)) if self._transform else self._steps
        visible = self._resolver.visible_steps(candidates)
        satisfied = len(visible) >= self._min_visible
        if satisfied and self._require_first:
            satisfied = bool(candidates) and visible[0] is candidates[0]
        if satisfied or self.attempts >= self._max_attempts:
            self._finish(visible)
            return
        self._schedule(self._interval_ms)

    def _finish(self, visible: List[TourStep]) -> None:
        self.done = True
        self.result = visible
        _logger.debug(
            "Tour targets resolved: %d/%d visible after %d attempt(s)",
            len(visible),
            len(self._steps),
            self.attempts,
        )
        self._on_done(visible)


class TargetResolver:
    def __init__(
        self, host: AnchorHost, scheduler: Scheduler, policy: ResolvePolicy | None = None
    ) -> None:
        self.host = host
        self.scheduler = scheduler
        self.policy = policy or ResolvePolicy()

    # Synchronous checks -------------------------------------------------
    def visible_steps(self, steps: Sequence[TourStep]) -> List[TourStep]:
        return [s for s in steps if isinstance(s.target, str) and self.host.is_visible(s.target)]

    def all_visible(self, steps: Sequence[TourStep]) -> bool:
        return all(self.host.is_visible(s.target) for s in steps)

    def first_in_view(self, steps: Sequence[TourStep]) -> bool:
        if not steps:
            return False
        return self.host.is_in_view(steps[0].target)

    # Async polling ------------------------------------------------------
    def resolve(
        self,
        steps: Sequence[TourStep],
        on_done: Callable[[List[TourStep]], None],
        *,
        min_visible: int | None = None,
        delay_ms: int = 0,
        transform: Optional[Callable[[List[TourStep]], List[TourStep]]] = None,
        require_first: bool = False,
    ) -> ResolveJob:
        """Start polling ``steps``; ``on_done`` receives the visible subset.

        ``transform`` is applied to the candidates before every attempt (the
        orchestrator passes the responsive adapter). With ``require_first`` the
        job only finishes early once the first candidate itself is visible.
        """
        job = ResolveJob(
            self,
            steps,
            on_done,
            min_visible=min_visible if min_visible is not None else self.policy.min_visible,
            interval_ms=self.policy.interval_ms,
            max_attempts=self.policy.max_attempts,
            transform=transform,
            require_first=require_first,
        )
        return job.start(delay_ms)
