"""Selector matching for tour anchors.

Pages mark anchor widgets with attributes (dynamic properties such as
``data-tour``, a space separated ``class`` property, the object name) and tour
steps point at them with ordinary CSS selectors:

    [data-tour='perfil.avatar']
    .painel-oportunidades, [data-tour="tile-oportunidades"]
    QPushButton#saveButton.primary:not([disabled])
    #headerBar > [data-tour^='header-nav']

Matching is delegated to soupsieve over a BeautifulSoup mirror of the anchor
tree: every element becomes a tag named after its ``type`` attribute (the Qt
class name) carrying the remaining attributes, nested under its parent
element, so combinators and pseudo-classes behave as in a browser.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

import soupsieve as sv
from bs4 import BeautifulSoup, Tag

__all__ = [
    "SelectorError",
    "DEFAULT_TAG",
    "compile_selector",
    "build_mirror",
]

# tag name for elements that report no ``type``
DEFAULT_TAG = "widget"


class SelectorError(ValueError):
    """Raised for selector text that cannot be compiled."""


@lru_cache(maxsize=512)
def compile_selector(text: str) -> sv.SoupSieve:
    """Compile ``text``, raising ``SelectorError`` when malformed."""
    if not isinstance(text, str) or not text.strip():
        raise SelectorError("Empty selector")
    try:
        return sv.compile(text)
    except sv.SelectorSyntaxError as exc:
        raise SelectorError(str(exc)) from exc


def build_mirror(
    elements: Iterable[Any],
    attributes: Callable[[Any], Mapping[str, str]],
    parent: Callable[[Any], Optional[Any]],
) -> List[Tuple[Tag, Any]]:
    """Mirror ``elements`` into a soup; returns ``(tag, element)`` in input order.

    Elements whose parent is not part of ``elements`` become top level tags.
    """
    soup = BeautifulSoup("", "html.parser")
    pairs: List[Tuple[Tag, Any]] = []
    tags = {}
    for el in elements:
        attrs = {str(k): str(v) for k, v in attributes(el).items()}
        name = attrs.pop("type", "") or DEFAULT_TAG
        tag = soup.new_tag(name, attrs=attrs)
        tags[id(el)] = tag
        pairs.append((tag, el))
    for tag, el in pairs:
        owner = parent(el)
        holder = tags.get(id(owner)) if owner is not None else None
        (holder if holder is not None else soup).append(tag)
    return pairs
