"""Anchor host abstraction (the tour's view of the widget tree).

The tour orchestrator never walks widgets itself. It asks an ``AnchorHost``
whether a selector matches a live element, whether that element is rendered
and whether it is inside the visible viewport. ``QtAnchorHost`` implements
the hooks over a real QWidget tree; ``gui.testing.FakeAnchorHost`` implements
them over plain objects for headless tests.

Selector failures are never propagated from the probing helpers: a malformed
selector is simply "not found".
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from .tour_selectors import SelectorError, build_mirror, compile_selector

__all__ = ["AnchorHost"]

_logger = logging.getLogger(__name__)


class AnchorHost:
    """Base class; subclasses provide the five element hooks.

    ``parent`` is optional: hosts that leave it alone expose a flat tree, in
    which descendant and child combinators never match.
    """

    # Element hooks ------------------------------------------------------
    def elements(self) -> Iterable[Any]:  # pragma: no cover - interface
        raise NotImplementedError

    def attributes(self, element: Any) -> Mapping[str, str]:  # pragma: no cover - interface
        raise NotImplementedError

    def is_rendered(self, element: Any) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def in_viewport(self, element: Any) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def viewport_width(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def parent(self, element: Any) -> Optional[Any]:
        return None

    # Queries ------------------------------------------------------------
    def query_all(self, selector: str) -> List[Any]:
        """Elements matching ``selector``; raises ``SelectorError`` if malformed."""
        compiled = compile_selector(selector)
        mirror = build_mirror(self.elements(), self.attributes, self.parent)
        return [el for tag, el in mirror if compiled.match(tag)]

    def _safe_query(self, selector: str) -> List[Any]:
        try:
            return self.query_all(selector)
        except SelectorError as exc:
            _logger.debug("Ignoring malformed tour selector %r: %s", selector, exc)
            return []

    def exists(self, selector: str) -> bool:
        return bool(self._safe_query(selector))

    def is_visible(self, selector: str) -> bool:
        return any(self.is_rendered(el) for el in self._safe_query(selector))

    def is_in_view(self, selector: str) -> bool:
        return any(self.is_rendered(el) and self.in_viewport(el) for el in self._safe_query(selector))

    def first_visible(self, selector: str) -> Any | None:
        for el in self._safe_query(selector):
            if self.is_rendered(el):
                return el
        return None
