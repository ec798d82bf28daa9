"""Responsive adapter: viewport-safe tour steps.

Mobile (viewport < 768px):
  - placement forced to ``bottom``; beacon disabled
  - tooltip width capped, offset reduced
  - desktop-only header nav targets swapped for the hamburger trigger, but
    only while the original is not rendered and the hamburger is
Desktop:
  - author placement kept (``auto`` when unspecified), author offset kept

The adapter overwrites fields rather than accumulating them, so applying it
to its own output changes nothing. Output is de-duplicated by target because
a substitution can collide with an existing hamburger step; that step keeps
its own copy and takes the place of the first substituted one.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence

from gui.design.onboarding_tour import HEADER_HAMBURGER, TourStep, dedupe_by_target
from gui.design.responsive import MOBILE_MAX_WIDTH, is_mobile_width

__all__ = ["AdapterSettings", "MOBILE_TARGET_FALLBACKS", "ResponsiveAdapter"]

MOBILE_PLACEMENT = "bottom"
DEFAULT_DESKTOP_PLACEMENT = "auto"
TOOLTIP_WIDTH_STYLE = "tooltip_max_width"

MOBILE_TARGET_FALLBACKS: Mapping[str, str] = MappingProxyType(
    {
        '[data-tour="header-nav-produtos"]': HEADER_HAMBURGER,
        '[data-tour="header-nav-demandas"]': HEADER_HAMBURGER,
        '[data-tour="header-nav-painel"]': HEADER_HAMBURGER,
        "[data-tour='header-nav-demandas']": HEADER_HAMBURGER,
        "[data-tour='header-nav-painel']": HEADER_HAMBURGER,
        "[data-tour='header-nav-como-funciona']": HEADER_HAMBURGER,
    }
)


@dataclass(frozen=True)
class AdapterSettings:
    mobile_max_width: int = MOBILE_MAX_WIDTH
    mobile_tooltip_max_width: int = 300
    mobile_offset: int = 4
    desktop_offset: int = 10


class ResponsiveAdapter:
    def __init__(
        self,
        settings: AdapterSettings | None = None,
        *,
        fallbacks: Mapping[str, str] = MOBILE_TARGET_FALLBACKS,
    ) -> None:
        self.settings = settings or AdapterSettings()
        self._fallbacks = dict(fallbacks)

    def is_mobile(self, viewport_width: int) -> bool:
        return is_mobile_width(viewport_width, self.settings.mobile_max_width)

    def adapt(
        self,
        steps: Sequence[TourStep],
        *,
        mobile: bool,
        is_visible: Optional[Callable[[str], bool]] = None,
    ) -> List[TourStep]:
        """Return viewport-patched copies of ``steps``.

        ``is_visible`` checks selectors for the mobile target substitution;
        without it no substitution happens.
        """
        patch = self._patch_mobile if mobile else self._patch_desktop
        patched = [patch(step, is_visible) for step in steps]
        own: dict = {}
        for step, p in zip(steps, patched):
            if step.target == p.target:
                own.setdefault(p.target, p)
        return dedupe_by_target(
            p if s.target == p.target else own.get(p.target, p) for s, p in zip(steps, patched)
        )

    def _patch_mobile(
        self, step: TourStep, is_visible: Optional[Callable[[str], bool]]
    ) -> TourStep:
        target = step.target
        fallback = self._fallbacks.get(target)
        if fallback and is_visible is not None and not is_visible(target) and is_visible(fallback):
            target = fallback
        styles = dict(step.styles)
        styles[TOOLTIP_WIDTH_STYLE] = self.settings.mobile_tooltip_max_width
        return replace(
            step,
            target=target,
            placement=MOBILE_PLACEMENT,
            disable_beacon=True,
            offset=self.settings.mobile_offset,
            styles=MappingProxyType(styles),
        )

    def _patch_desktop(
        self, step: TourStep, is_visible: Optional[Callable[[str], bool]]
    ) -> TourStep:
        return replace(
            step,
            placement=step.placement or DEFAULT_DESKTOP_PLACEMENT,
            offset=step.offset if step.offset is not None else self.settings.desktop_offset,
        )
