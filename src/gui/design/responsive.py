"""Responsive viewport classes for the onboarding tour and header layout.

The marketplace client is used both in full desktop windows and in narrow
phone-like windows (kiosk tablets, side-by-side multitasking). Two thresholds
matter and they must not be mixed up:

 - 768px: below this the viewport is "mobile". The tour's responsive adapter
   bases every decision on this threshold only.
 - 980px: below this the header collapses its navigation links behind the
   hamburger trigger. Tour steps pointing at nav links simply stop resolving
   between 768 and 980 (they are filtered out as invisible).

Breakpoint Scale:
 - mobile:  < 768px
 - tablet:  >=768 & < 980px   (header nav collapsed)
 - desktop: >=980px

Width comparisons are inclusive on the lower bound, exclusive on the upper
bound except the final tier. Pure-Python, no Qt dependency.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

__all__ = [
    "Breakpoint",
    "MOBILE_MAX_WIDTH",
    "NAV_COLLAPSE_WIDTH",
    "list_breakpoints",
    "get_breakpoint",
    "classify_width",
    "is_mobile_width",
    "header_nav_collapsed",
]

MOBILE_MAX_WIDTH = 768
NAV_COLLAPSE_WIDTH = 980


@dataclass(frozen=True)
class Breakpoint:
    """Semantic viewport class.

    Attributes
    ----------
    id: str
        Semantic identifier (mobile|tablet|desktop).
    min_width: int
        Inclusive lower pixel boundary.
    max_width: int
        Exclusive upper pixel boundary, -1 for the open-ended final tier.
    description: str
        What changes in the layout at this size.
    """

    id: str
    min_width: int
    max_width: int
    description: str

    def is_within(self, width: int) -> bool:
        if self.max_width == -1:
            return width >= self.min_width
        return self.min_width <= width < self.max_width


_REGISTRY: Dict[str, Breakpoint] = {}


def _register(bp: Breakpoint) -> None:
    if bp.id in _REGISTRY:
        raise ValueError(f"Duplicate breakpoint id: {bp.id}")
    _REGISTRY[bp.id] = bp


_register(
    Breakpoint(
        id="mobile",
        min_width=0,
        max_width=MOBILE_MAX_WIDTH,
        description="Phone-sized window; tour tooltips below anchors, hamburger navigation.",
    )
)
_register(
    Breakpoint(
        id="tablet",
        min_width=MOBILE_MAX_WIDTH,
        max_width=NAV_COLLAPSE_WIDTH,
        description="Header nav links collapsed behind the hamburger; desktop tooltips.",
    )
)
_register(
    Breakpoint(
        id="desktop",
        min_width=NAV_COLLAPSE_WIDTH,
        max_width=-1,
        description="Full header navigation and author-specified tooltip placement.",
    )
)


def list_breakpoints() -> List[Breakpoint]:
    return sorted(_REGISTRY.values(), key=lambda b: b.min_width)


def get_breakpoint(bp_id: str) -> Breakpoint:
    bp = _REGISTRY.get(bp_id)
    if bp is None:
        raise KeyError(f"Unknown breakpoint id: {bp_id}")
    return bp


def classify_width(width: int) -> Breakpoint:
    """Return the Breakpoint matching the given width (pixels)."""
    if width < 0:
        raise ValueError("Width must be non-negative")
    for bp in list_breakpoints():
        if bp.is_within(width):
            return bp
    return get_breakpoint("desktop")


def is_mobile_width(width: int, threshold: int = MOBILE_MAX_WIDTH) -> bool:
    return width < threshold


def header_nav_collapsed(width: int, threshold: int = NAV_COLLAPSE_WIDTH) -> bool:
    return width < threshold
