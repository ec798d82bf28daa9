"""Service layer exports.

Responsibilities:
 - EventBus publish/subscribe core
 - Tour core: registry, resolver, responsive adapter, playback, orchestrator
 - Completion persistence and taxonomy cleanup

Qt-dependent modules (`qt_tour`) are not imported here so the core stays
importable without a display.
"""

from .event_bus import EventBus, Event, TourEvent  # noqa: F401
from .tour_completion_store import TourCompletionStore  # noqa: F401
from .tour_registry import StepRegistry  # noqa: F401
from .tour_playback import Directive, PlaybackController, PlaybackState  # noqa: F401
from .tour_orchestrator import TourHandle, TourOrchestrator, parse_route  # noqa: F401

__all__ = [
    "EventBus",
    "Event",
    "TourEvent",
    "TourCompletionStore",
    "StepRegistry",
    "Directive",
    "PlaybackController",
    "PlaybackState",
    "TourHandle",
    "TourOrchestrator",
    "parse_route",
]
