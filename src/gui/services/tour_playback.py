"""Tour playback controller (per route/group state machine).

States
------
IDLE -> WAITING -> RUNNING -> FINISHED | SKIPPED -> IDLE

``arm`` decides, from the start policy table, whether the current
``(route, group)`` should wait for readiness. The orchestrator calls
``begin`` once readiness holds; ``update_readiness`` pauses a running
walkthrough (back to WAITING, step index kept) when readiness is lost and
resumes it when regained. Finishing or skipping writes the completion record
for the exact pair and returns to IDLE. ``stop`` (route change, viewport
class change, unmount) returns to IDLE without touching the record.

Start policy
------------
====================  ==========  ================================
directive             has record  action
====================  ==========  ================================
reset                 any         clear record, stay idle
force                 any         wait for readiness, then start
none                  no          wait for readiness, then start
none                  yes         stay idle
====================  ==========  ================================

A store that cannot be read reports "no record", so the tour replays rather
than staying silent forever.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from gui.design.onboarding_tour import TourStep

from .event_bus import EventBus, TourEvent
from .tour_completion_store import TourCompletionStore

__all__ = [
    "PlaybackState",
    "Directive",
    "StartAction",
    "START_POLICY",
    "decide_start",
    "PlaybackController",
]

_logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    RUNNING = "running"
    FINISHED = "finished"
    SKIPPED = "skipped"


class Directive(str, Enum):
    NONE = "none"
    FORCE = "force"
    RESET = "reset"


class StartAction(str, Enum):
    START = "start"
    STAY_IDLE = "stay_idle"
    CLEAR_ONLY = "clear_only"


START_POLICY: Mapping[Tuple[Directive, bool], StartAction] = MappingProxyType(
    {
        (Directive.RESET, True): StartAction.CLEAR_ONLY,
        (Directive.RESET, False): StartAction.CLEAR_ONLY,
        (Directive.FORCE, True): StartAction.START,
        (Directive.FORCE, False): StartAction.START,
        (Directive.NONE, False): StartAction.START,
        (Directive.NONE, True): StartAction.STAY_IDLE,
    }
)


def decide_start(directive: Directive, has_record: bool) -> StartAction:
    return START_POLICY[(directive, bool(has_record))]


class PlaybackController:
    def __init__(self, store: TourCompletionStore, *, event_bus: EventBus | None = None) -> None:
        self._store = store
        self._bus = event_bus
        self.state = PlaybackState.IDLE
        self.route: Optional[str] = None
        self.group: Optional[str] = None
        self.index = 0
        self.steps: List[TourStep] = []
        self.started = False
        self.paused = False

    # Arming -------------------------------------------------------------
    def arm(self, route: str, group: str, directive: Directive = Directive.NONE) -> StartAction:
        self.stop()
        self.route, self.group = route, group
        has_record = self._store.is_completed(route, group)
        action = decide_start(directive, has_record)
        if action is StartAction.CLEAR_ONLY:
            self._store.clear(route, group)
        elif action is StartAction.START:
            self._set_state(PlaybackState.WAITING)
        _logger.debug(
            "Tour armed for %s:%s (directive=%s, record=%s) -> %s",
            route,
            group,
            directive.value,
            has_record,
            action.value,
        )
        return action

    @staticmethod
    def is_ready(steps: Sequence[TourStep], valid_now: bool, first_ready: bool) -> bool:
        return bool(steps) and valid_now and first_ready

    # Transitions --------------------------------------------------------
    def begin(self, steps: Sequence[TourStep]) -> bool:
        if self.state is not PlaybackState.WAITING or self.started or not steps:
            return False
        self.steps = list(steps)
        self.index = 0
        self.started = True
        self.paused = False
        self._set_state(PlaybackState.RUNNING)
        self._publish(TourEvent.STARTED)
        self._publish(TourEvent.STEP_CHANGED)
        return True

    def update_readiness(self, ready: bool, steps: Sequence[TourStep] | None = None) -> None:
        if self.state is PlaybackState.RUNNING and not ready:
            self.paused = True
            self._set_state(PlaybackState.WAITING)
            self._publish(TourEvent.PAUSED)
        elif self.state is PlaybackState.WAITING and self.paused and ready:
            if steps is not None and list(steps) != self.steps:
                self.steps = list(steps)
                self.index = min(self.index, len(self.steps) - 1)
            self.paused = False
            self._set_state(PlaybackState.RUNNING)
            self._publish(TourEvent.RESUMED)

    def next(self) -> None:
        if self.state is not PlaybackState.RUNNING:
            return
        if self.index >= len(self.steps) - 1:
            self.finish()
            return
        self.index += 1
        self._publish(TourEvent.STEP_CHANGED)

    def back(self) -> None:
        if self.state is not PlaybackState.RUNNING or self.index == 0:
            return
        self.index -= 1
        self._publish(TourEvent.STEP_CHANGED)

    def finish(self) -> None:
        self._complete(PlaybackState.FINISHED, TourEvent.FINISHED)

    def skip(self) -> None:
        self._complete(PlaybackState.SKIPPED, TourEvent.SKIPPED)

    def stop(self) -> None:
        was_showing = self.started
        self.started = False
        self.paused = False
        self.index = 0
        self.steps = []
        if self.state is not PlaybackState.IDLE:
            self._set_state(PlaybackState.IDLE)
        if was_showing:
            self._publish(TourEvent.STOPPED)

    # Introspection ------------------------------------------------------
    def current_step(self) -> Optional[TourStep]:
        if self.state is not PlaybackState.RUNNING or not self.steps:
            return None
        return self.steps[self.index]

    # Internal -----------------------------------------------------------
    def _complete(self, terminal: PlaybackState, event: TourEvent) -> None:
        if not self.started or self.route is None or self.group is None:
            return
        self._store.mark_completed(self.route, self.group)
        self._set_state(terminal)
        self._publish(event)
        self.started = False
        self.paused = False
        self.steps = []
        self.index = 0
        self._set_state(PlaybackState.IDLE)

    def _set_state(self, state: PlaybackState) -> None:
        if state is not self.state:
            _logger.debug("Tour %s:%s %s -> %s", self.route, self.group, self.state.value, state.value)
            self.state = state

    def _publish(self, event: TourEvent) -> None:
        if self._bus is None:
            return
        step = self.steps[self.index] if self.steps else None
        self._bus.publish(
            event,
            {
                "route": self.route,
                "group": self.group,
                "index": self.index,
                "total": len(self.steps),
                "step": step,
            },
        )
