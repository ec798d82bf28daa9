"""Onboarding tour bootstrap.

``create_tour(root)`` wires the tour subsystem onto an application window:

 - Loads ``TourConfig`` from the state directory (defaults on any problem)
 - Opens the completion store in the same directory
 - Builds the Qt adapters (anchor host over ``root``, QTimer scheduler,
   watcher factory) and the orchestrator
 - Attaches the coach mark presenter unless ``with_overlay`` is False

The returned ``TourContext`` owns every piece; pages receive
``context.handle`` (or publish ``TourEvent.REGISTER`` on
``context.event_bus``) instead of reaching for module globals. The caller
drives navigation with ``context.orchestrator.mount(path, query)``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from time import perf_counter
from typing import Any, Optional

from gui.app.config_store import TourConfig, default_state_dir, load_config
from gui.services.event_bus import EventBus
from gui.services.tour_completion_store import TourCompletionStore
from gui.services.tour_orchestrator import TourHandle, TourOrchestrator
from gui.services.tour_registry import StepRegistry

__all__ = ["TourContext", "create_tour"]

_logger = logging.getLogger(__name__)


@dataclass
class TourContext:
    """Container with references created during bootstrap.

    Attributes
    ----------
    orchestrator: Route-scoped tour coordinator
    handle: Imperative control surface (start / reset / register_group)
    event_bus: Bus carrying registrations and lifecycle notifications
    registry: Page step registry shared by the orchestrator
    store: Completion record persistence
    config: Effective (clamped) configuration
    presenter: Coach mark presenter (None when created without overlay)
    state_dir: Directory holding ``tour_config.json`` / ``tour_completion.json``
    duration_s: Elapsed bootstrap seconds
    """

    orchestrator: TourOrchestrator
    handle: TourHandle
    event_bus: EventBus
    registry: StepRegistry
    store: TourCompletionStore
    config: TourConfig
    presenter: Optional[Any]
    state_dir: str
    duration_s: float

    def close(self) -> None:
        if self.presenter is not None:
            self.presenter.close()
        self.orchestrator.dispose()


def create_tour(
    root,
    state_dir: str | None = None,
    config: TourConfig | None = None,
    *,
    event_bus: EventBus | None = None,
    with_overlay: bool = True,
) -> TourContext:
    """Create and wire the tour subsystem for ``root`` (a QWidget window)."""
    # Qt adapters are imported here so headless users of this package never
    # pull PyQt6 in through ``gui.app``.
    from gui.services.qt_tour import QtAnchorHost, QtScheduler, QtTourWatcher

    started = perf_counter()
    base = str(state_dir or default_state_dir())
    os.makedirs(base, exist_ok=True)
    cfg = replace(config or load_config(base)).clamped()
    bus = event_bus or EventBus()
    registry = StepRegistry()
    store = TourCompletionStore(base, prefix=cfg.storage_prefix)
    host = QtAnchorHost(root)
    orchestrator = TourOrchestrator(
        host,
        QtScheduler(root),
        store,
        registry=registry,
        config=cfg,
        event_bus=bus,
        watcher_factory=lambda orch: QtTourWatcher(orch, root),
    )
    presenter = None
    if with_overlay:
        from gui.components.coach_mark import TourOverlayPresenter

        presenter = TourOverlayPresenter(orchestrator, bus)
    duration = perf_counter() - started
    _logger.info("Onboarding tour ready in %.1f ms (state dir %s)", duration * 1000, base)
    return TourContext(
        orchestrator=orchestrator,
        handle=orchestrator.handle,
        event_bus=bus,
        registry=registry,
        store=store,
        config=cfg,
        presenter=presenter,
        state_dir=base,
        duration_s=duration,
    )
