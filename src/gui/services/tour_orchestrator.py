"""Onboarding tour orchestrator.

Ties the step registry, target resolver, responsive adapter and playback
controller to the route lifecycle of the marketplace client.

Lifecycle per route
-------------------
1. ``mount(path, query)``: parse the ``tour`` query parameter, arm the
   playback controller for ``(route, group)``, build header steps from live
   anchors and merge them with the registry, then start a resolve job after a
   short settle delay.
2. Resolve done: adapt the visible steps to the viewport class and
   revalidate: ``valid_now`` (every step anchor rendered) and ``first_ready``
   (first anchor inside the viewport).
3. Ready and armed: after the start delay (readiness re-checked) playback
   begins.
4. Watchers report resizes (debounced), widget tree mutations and viewport
   movement; lost readiness pauses the walkthrough.
5. ``unmount()`` or the next ``mount`` cancels every pending timer and job,
   detaches watchers and stops playback.

Every scheduled callback carries the generation token taken when it was
scheduled; a callback whose token is no longer current does nothing, so
stale work can never touch the state of a later route.

External callers hold a ``TourHandle`` (``orchestrator.handle``) rather than
reaching for ambient state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol
from urllib.parse import parse_qs

from gui.app.config_store import TourConfig
from gui.design.onboarding_tour import (
    HEADER_GROUP,
    TourStep,
    base_path,
    build_header_steps,
    group_from_path,
)
from gui.design.responsive import classify_width

from .anchor_host import AnchorHost
from .event_bus import Event, EventBus, Subscription, TourEvent
from .tour_completion_store import TourCompletionStore
from .tour_playback import Directive, PlaybackController, PlaybackState
from .tour_registry import StepRegistry
from .tour_responsive_adapter import AdapterSettings, ResponsiveAdapter
from .tour_scheduler import Scheduler, TimerHandle
from .tour_target_resolver import ResolveJob, ResolvePolicy, TargetResolver

__all__ = [
    "TOUR_PARAM",
    "RESET_VALUE",
    "FORCE_VALUES",
    "RouteContext",
    "parse_route",
    "TourWatcher",
    "TourHandle",
    "TourOrchestrator",
]

_logger = logging.getLogger(__name__)

TOUR_PARAM = "tour"
RESET_VALUE = "reset"
FORCE_VALUES = frozenset({"1", "true", "on", "start"})


@dataclass(frozen=True)
class RouteContext:
    route: str
    active_group: str
    directive: Directive
    explicit: bool = False  # group named by the caller rather than derived from the path


def _tour_param(path: str, query: Mapping[str, Any] | str | None) -> str:
    if query is None and "?" in path:
        query = path.split("?", 1)[1]
    if query is None:
        return ""
    if isinstance(query, str):
        values = parse_qs(query.lstrip("?")).get(TOUR_PARAM, [""])
        value = values[0] if values else ""
    else:
        value = query.get(TOUR_PARAM, "")
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ""
    return str(value or "").strip().lower()


def parse_route(path: str, query: Mapping[str, Any] | str | None = None) -> RouteContext:
    """Derive route, active group and directive from a path and its query.

    ``?tour=`` absent/empty -> path group, no directive; ``1|true|on|start``
    -> path group forced; ``reset`` -> path group with the reset directive;
    any other value names the group and forces it.
    """
    route = base_path(path)
    param = _tour_param(path or "/", query)
    path_group = group_from_path(route)
    if not param:
        return RouteContext(route, path_group, Directive.NONE)
    if param == RESET_VALUE:
        return RouteContext(route, path_group, Directive.RESET)
    if param in FORCE_VALUES:
        return RouteContext(route, path_group, Directive.FORCE)
    return RouteContext(route, param, Directive.FORCE, explicit=True)


class TourWatcher(Protocol):
    def attach(self) -> None: ...  # pragma: no cover - structural

    def detach(self) -> None: ...  # pragma: no cover - structural


class TourHandle:
    """Imperative control surface handed to pages and buttons."""

    def __init__(self, orchestrator: "TourOrchestrator") -> None:
        self._orch = orchestrator

    def start(self, flow: str | None = None) -> bool:
        return self._orch.start_flow(flow)

    def reset(self, flow: str | None = None) -> bool:
        return self._orch.reset_flow(flow)

    def register_group(self, name: str, order: int | None, steps: Iterable[Any]) -> None:
        self._orch.register_group(name, order, steps)


class TourOrchestrator:
    def __init__(
        self,
        host: AnchorHost,
        scheduler: Scheduler,
        store: TourCompletionStore,
        *,
        registry: StepRegistry | None = None,
        config: TourConfig | None = None,
        event_bus: EventBus | None = None,
        watcher_factory: Callable[["TourOrchestrator"], TourWatcher] | None = None,
    ) -> None:
        self.config = config or TourConfig()
        self.host = host
        self.scheduler = scheduler
        self.store = store
        self.registry = registry or StepRegistry()
        self.event_bus = event_bus or EventBus()
        self.resolver = TargetResolver(
            host,
            scheduler,
            ResolvePolicy(
                interval_ms=self.config.poll_interval_ms,
                max_attempts=self.config.max_attempts,
                min_visible=self.config.min_visible,
            ),
        )
        self.adapter = ResponsiveAdapter(
            AdapterSettings(
                mobile_max_width=self.config.mobile_max_width,
                mobile_tooltip_max_width=self.config.mobile_tooltip_max_width,
                mobile_offset=self.config.mobile_offset,
                desktop_offset=self.config.desktop_offset,
            )
        )
        self.playback = PlaybackController(store, event_bus=self.event_bus)
        self.handle = TourHandle(self)
        self._watcher_factory = watcher_factory
        self._watcher: Optional[TourWatcher] = None
        self._context: Optional[RouteContext] = None
        self._generation = 0
        self._job: Optional[ResolveJob] = None
        self._resize_timer: Optional[TimerHandle] = None
        self._start_timer: Optional[TimerHandle] = None
        self._steps: List[TourStep] = []
        self._mobile: Optional[bool] = None
        self.valid_now = False
        self.first_ready = False
        self._register_sub: Subscription = self.event_bus.subscribe(
            TourEvent.REGISTER, self._on_register_event
        )

    # Introspection ------------------------------------------------------
    @property
    def mounted(self) -> bool:
        return self._context is not None

    @property
    def route(self) -> Optional[str]:
        return self._context.route if self._context else None

    @property
    def active_group(self) -> Optional[str]:
        return self._context.active_group if self._context else None

    @property
    def steps(self) -> List[TourStep]:
        return list(self._steps)

    @property
    def state(self) -> PlaybackState:
        return self.playback.state

    @property
    def resolving(self) -> bool:
        return self._job is not None and self._job.pending

    def is_ready(self) -> bool:
        return self.playback.is_ready(self._steps, self.valid_now, self.first_ready)

    def should_render(self) -> bool:
        """Whether the playback UI may be shown right now."""
        return self.is_ready() and self.playback.state is PlaybackState.RUNNING

    def current_step(self) -> Optional[TourStep]:
        return self.playback.current_step() if self.should_render() else None

    # Route lifecycle ----------------------------------------------------
    def mount(self, path: str, query: Mapping[str, Any] | str | None = None) -> RouteContext:
        self.unmount()
        ctx = parse_route(path, query)
        self._context = ctx
        _logger.debug("Tour mount %s (group=%s, directive=%s)", ctx.route, ctx.active_group, ctx.directive.value)
        if self._watcher_factory is not None:
            self._watcher = self._watcher_factory(self)
            self._watcher.attach()
        self._arm_and_recompute(ctx)
        return ctx

    def unmount(self) -> None:
        self._generation += 1
        self._cancel_pending()
        if self._watcher is not None:
            self._watcher.detach()
            self._watcher = None
        self.playback.stop()
        self._context = None
        self._steps = []
        self._mobile = None
        self.valid_now = False
        self.first_ready = False

    def dispose(self) -> None:
        self.unmount()
        self.event_bus.unsubscribe(self._register_sub)

    # Imperative surface -------------------------------------------------
    def start_flow(self, flow: str | None = None) -> bool:
        if self._context is None:
            _logger.debug("Tour start(%r) ignored: nothing mounted", flow)
            return False
        named = (flow or "").strip().lower()
        group = named or self._context.active_group
        self.store.clear(self._context.route, group)
        explicit = bool(named) or self._context.explicit
        self._context = RouteContext(self._context.route, group, Directive.FORCE, explicit)
        self._arm_and_recompute(self._context)
        return True

    def reset_flow(self, flow: str | None = None) -> bool:
        group = (flow or "").strip().lower()
        if self._context is None:
            if not group:
                return False
            self.store.clear_group(group)
            return True
        return self.store.clear(self._context.route, group or self._context.active_group)

    def register_group(self, name: str, order: int | None, steps: Iterable[Any]) -> None:
        group = self.registry.register_group(name, order, steps)
        self._after_registration(group.name)

    # Playback delegation (overlay buttons) ------------------------------
    def next_step(self) -> None:
        self.playback.next()
        self._consume_force()

    def previous_step(self) -> None:
        self.playback.back()

    def skip(self) -> None:
        self.playback.skip()
        self._consume_force()

    def finish(self) -> None:
        self.playback.finish()
        self._consume_force()

    def _consume_force(self) -> None:
        # once a forced walkthrough ends, re-arming on this mount follows the record
        ctx = self._context
        if ctx is not None and ctx.directive is Directive.FORCE and self.playback.state is PlaybackState.IDLE:
            self._context = RouteContext(ctx.route, ctx.active_group, Directive.NONE, ctx.explicit)

    # Watcher notifications ----------------------------------------------
    def on_resize(self) -> None:
        if self._context is None:
            return
        if self._resize_timer is not None:
            self._resize_timer.cancel()
        token = self._generation
        self._resize_timer = self.scheduler.call_later(
            self.config.resize_debounce_ms, lambda: self._after_resize(token)
        )

    def on_dom_mutated(self) -> None:
        if self._context is not None and self._steps:
            self._revalidate()

    def on_viewport_changed(self) -> None:
        if self._context is not None and self._steps:
            self._revalidate()

    # Internal -----------------------------------------------------------
    def _cancel_pending(self) -> None:
        for timer in (self._resize_timer, self._start_timer):
            if timer is not None:
                timer.cancel()
        self._resize_timer = None
        self._start_timer = None
        if self._job is not None:
            self._job.cancel()
            self._job = None

    def _arm_and_recompute(self, ctx: RouteContext) -> None:
        # a reset directive stays in the context, so re-arming on a viewport
        # class change keeps this mount idle
        self.playback.arm(ctx.route, ctx.active_group, ctx.directive)
        self._recompute()

    def _recompute(self) -> None:
        ctx = self._context
        if ctx is None:
            return
        self._generation += 1
        token = self._generation
        self._cancel_pending()
        self._steps = []
        self.valid_now = False
        self.first_ready = False
        header = build_header_steps(self.host.exists)
        # a named flow walks its own group only and waits for its first anchor
        candidates = self.registry.merge(
            ctx.route, ctx.active_group, header, include_header=not ctx.explicit
        )
        self._job = self.resolver.resolve(
            candidates,
            lambda visible: self._on_resolved(token, visible),
            delay_ms=self.config.settle_delay_ms,
            transform=self._adapt_candidates,
            require_first=ctx.explicit,
        )

    def _adapt_candidates(self, steps: List[TourStep]) -> List[TourStep]:
        mobile = self.adapter.is_mobile(self.host.viewport_width())
        return self.adapter.adapt(steps, mobile=mobile, is_visible=self.host.is_visible)

    def _on_resolved(self, token: int, visible: List[TourStep]) -> None:
        if token != self._generation or self._context is None:
            return
        self._job = None
        self._mobile = self.adapter.is_mobile(self.host.viewport_width())
        self._steps = self.adapter.adapt(visible, mobile=self._mobile, is_visible=self.host.is_visible)
        self._revalidate()
        self.event_bus.publish(
            TourEvent.STEPS_RESOLVED,
            {
                "route": self._context.route,
                "group": self._context.active_group,
                "steps": list(self._steps),
                "valid": self.valid_now,
                "first_ready": self.first_ready,
            },
        )

    def _revalidate(self) -> None:
        self.valid_now = bool(self._steps) and self.resolver.all_visible(self._steps)
        self.first_ready = self.resolver.first_in_view(self._steps)
        ready = self.is_ready()
        self.playback.update_readiness(ready, self._steps)
        if not ready and self._start_timer is not None:
            self._start_timer.cancel()
            self._start_timer = None
        self._maybe_schedule_start()

    def _maybe_schedule_start(self) -> None:
        if (
            self.playback.state is not PlaybackState.WAITING
            or self.playback.started
            or self._start_timer is not None
            or not self.is_ready()
        ):
            return
        token = self._generation
        self._start_timer = self.scheduler.call_later(
            self.config.start_delay_ms, lambda: self._begin(token)
        )

    def _begin(self, token: int) -> None:
        if token != self._generation or self._context is None:
            return
        self._start_timer = None
        self.valid_now = bool(self._steps) and self.resolver.all_visible(self._steps)
        self.first_ready = self.resolver.first_in_view(self._steps)
        if self.is_ready():
            self.playback.begin(self._steps)

    def _after_resize(self, token: int) -> None:
        if token != self._generation or self._context is None:
            return
        self._resize_timer = None
        width = max(0, self.host.viewport_width())
        mobile = self.adapter.is_mobile(width)
        if self._mobile is not None and mobile != self._mobile:
            _logger.debug("Viewport class changed to %s; recomputing tour", classify_width(width).id)
            self._arm_and_recompute(self._context)
            return
        if self._steps:
            self._revalidate()

    def _on_register_event(self, event: Event) -> None:
        default = self._context.active_group if self._context else "default"
        group = self.registry.register_payload(event.payload, default)
        if group is not None:
            self._after_registration(group.name)

    def _after_registration(self, group: str) -> None:
        ctx = self._context
        if ctx is None or group not in (ctx.active_group, HEADER_GROUP):
            return
        if self.playback.started:
            # applied on the next mount; a live walkthrough is not restarted
            return
        self._recompute()
