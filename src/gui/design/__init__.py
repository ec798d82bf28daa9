"""Design package: tour step model, route step table and responsive breakpoints."""

from .onboarding_tour import (  # noqa: F401
    TourStep,
    StepGroup,
    RouteSteps,
    ROUTE_STEPS,
    normalize_step,
    normalize_steps,
    dedupe_by_target,
    base_path,
    group_from_path,
    find_route_steps,
    build_header_steps,
)
from .responsive import (  # noqa: F401
    list_breakpoints,
    get_breakpoint,
    classify_width,
    is_mobile_width,
    header_nav_collapsed,
    Breakpoint,
)

__all__ = [
    "TourStep",
    "StepGroup",
    "RouteSteps",
    "ROUTE_STEPS",
    "normalize_step",
    "normalize_steps",
    "dedupe_by_target",
    "base_path",
    "group_from_path",
    "find_route_steps",
    "build_header_steps",
    "list_breakpoints",
    "get_breakpoint",
    "classify_width",
    "is_mobile_width",
    "header_nav_collapsed",
    "Breakpoint",
]
