"""Tour step registry (group name -> ordered steps).

Holds the steps pages declare for themselves and merges them with the header
steps and the static per-route fallback table into the authoritative step
sequence for the current route.

Write contract: a registration replaces the whole ``StepGroup`` value for
its name (groups are immutable tuples). Readers take a snapshot under the
lock, so pages registering different groups never see or corrupt each
other's entries.

Merge order: header (order 0) -> active page group -> route fallback (always
last), followed by de-duplication on target (first occurrence wins).
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from gui.design.onboarding_tour import (
    DEFAULT_PAGE_ORDER,
    HEADER_GROUP,
    HEADER_ORDER,
    ROUTE_STEPS,
    RouteSteps,
    StepGroup,
    TourStep,
    dedupe_by_target,
    find_route_steps,
    normalize_steps,
)

__all__ = ["StepRegistry", "FALLBACK_GROUP"]

_logger = logging.getLogger(__name__)

FALLBACK_GROUP = "route-fallback"


class StepRegistry:
    """Process-wide (tab lifetime) store of page-registered step groups."""

    def __init__(self, route_table: Sequence[RouteSteps] = ROUTE_STEPS) -> None:
        self._lock = RLock()
        self._groups: Dict[str, StepGroup] = {}
        self._route_table = tuple(route_table)
        self._revision = 0

    # Registration -------------------------------------------------------
    def register_group(self, name: str, order: int | None, steps: Iterable[Any]) -> StepGroup:
        """Replace the group's entry with normalized, de-duplicated steps."""
        key = str(name or "").strip().lower()
        if not key:
            raise ValueError("Group name must be non-empty")
        if key == HEADER_GROUP:
            order_val = HEADER_ORDER
        else:
            order_val = max(DEFAULT_PAGE_ORDER, int(order if order is not None else DEFAULT_PAGE_ORDER))
        group = StepGroup(
            name=key, order=order_val, steps=tuple(dedupe_by_target(normalize_steps(list(steps))))
        )
        with self._lock:
            self._groups[key] = group
            self._revision += 1
        _logger.debug("Registered tour group %s (order=%s, %d steps)", key, order_val, len(group.steps))
        return group

    def register_payload(self, payload: Any, default_group: str) -> Optional[StepGroup]:
        """Register from a broadcast payload ``{group, order, steps}``."""
        if not isinstance(payload, Mapping):
            return None
        group = str(payload.get("group") or default_group or "default")
        order = payload.get("order")
        try:
            order_val = int(order) if order is not None else None
        except (TypeError, ValueError):
            order_val = None
        steps = payload.get("steps")
        return self.register_group(group, order_val, steps if isinstance(steps, (list, tuple)) else [])

    # Introspection ------------------------------------------------------
    @property
    def revision(self) -> int:
        with self._lock:
            return self._revision

    def get(self, name: str) -> Optional[StepGroup]:
        with self._lock:
            return self._groups.get(name.lower())

    def snapshot(self) -> Dict[str, StepGroup]:
        with self._lock:
            return dict(self._groups)

    # Merge --------------------------------------------------------------
    def merged_groups(
        self,
        route: str,
        active_group: str,
        header_steps: Sequence[TourStep],
        *,
        include_header: bool = True,
    ) -> List[StepGroup]:
        groups = self.snapshot()
        header = list(header_steps) if include_header else []
        registered_header = groups.get(HEADER_GROUP)
        if include_header and registered_header is not None:
            header.extend(registered_header.steps)
        out = [StepGroup(HEADER_GROUP, HEADER_ORDER, tuple(header))]
        active = groups.get(active_group.lower()) if active_group else None
        if active is not None and active.name != HEADER_GROUP:
            out.append(active)
        fallback = find_route_steps(route, self._route_table)
        last_order = max(g.order for g in out) + 1
        out.append(StepGroup(FALLBACK_GROUP, last_order, fallback))
        return out

    def merge(
        self,
        route: str,
        active_group: str,
        header_steps: Sequence[TourStep],
        *,
        include_header: bool = True,
    ) -> List[TourStep]:
        merged: List[TourStep] = []
        groups = self.merged_groups(route, active_group, header_steps, include_header=include_header)
        for group in groups:
            merged.extend(group.steps)
        return dedupe_by_target(merged)
