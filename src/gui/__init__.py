"""Pedraum onboarding tour public API.

Curated, intentionally small surface for callers (application bootstrap,
pages, CLIs, tests) that should not depend on deep internal module paths.

Design Principles:
- Keep exports minimal & stable; prefer namespaced access (e.g. `import gui.design as design`).
- Avoid side-effect heavy imports: nothing here imports PyQt6. The Qt glue
  lives in `gui.services.qt_tour` and `gui.components.coach_mark` and is
  pulled in by `gui.app.create_tour`.
"""

from __future__ import annotations

from .services.event_bus import EventBus, Event, TourEvent  # noqa: F401
from .services.tour_orchestrator import TourHandle, TourOrchestrator  # noqa: F401
from .app.bootstrap import create_tour, TourContext  # noqa: F401

# Expose design namespace (step model, route table, breakpoints)
from . import design  # noqa: F401

__all__ = [
    "EventBus",
    "Event",
    "TourEvent",
    "TourHandle",
    "TourOrchestrator",
    "create_tour",
    "TourContext",
    "design",
]
