"""Qt glue for the onboarding tour.

``QtScheduler``, ``QtAnchorHost`` and ``QtTourWatcher`` adapt the pure tour
core (orchestrator, resolver, playback) to a live QWidget tree:

 - Anchors are widgets. A selector matches against the object name (``#id``),
   the ``class`` property tokens (``.cls``), the Qt class name (type
   selector) and dynamic properties (``[data-tour="..."]``).
 - Timers are single-shot ``QTimer`` objects on the GUI thread.
 - The watcher is an event filter installed on the window and every
   descendant. Widget tree mutations and viewport movement are coalesced into
   one notification per event loop turn.

Pages tag anchors with ``widget.setProperty("data-tour", "header-logo")``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from PyQt6.QtCore import QEvent, QObject, QRect, QTimer
from PyQt6.QtWidgets import QAbstractScrollArea, QGraphicsOpacityEffect, QWidget

from .anchor_host import AnchorHost

__all__ = [
    "QtTimerHandle",
    "QtScheduler",
    "QtAnchorHost",
    "QtTourWatcher",
    "OVERLAY_PROPERTY",
]

_logger = logging.getLogger(__name__)

# Set on tour overlay windows so the watcher ignores their own churn.
OVERLAY_PROPERTY = "tourOverlay"


class QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None

    def _fire(self, callback: Callable[[], None]) -> None:
        if self._timer is None:
            return
        self._timer.deleteLater()
        self._timer = None
        callback()


class QtScheduler:
    """``Scheduler`` backed by single-shot QTimers (GUI thread only)."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))
        handle = QtTimerHandle(timer)
        timer.timeout.connect(lambda: handle._fire(callback))  # type: ignore
        timer.start()
        return handle


class QtAnchorHost(AnchorHost):
    """Anchor hooks over ``root`` and its descendant widgets."""

    def __init__(self, root: QWidget) -> None:
        self.root = root

    def elements(self) -> List[QWidget]:
        return [self.root, *self.root.findChildren(QWidget)]

    def attributes(self, element: QWidget) -> Dict[str, str]:
        attrs: Dict[str, str] = {"type": element.metaObject().className()}
        if element.objectName():
            attrs["id"] = element.objectName()
        for raw in element.dynamicPropertyNames():
            name = bytes(raw).decode("utf-8", "replace")
            value = element.property(name)
            if value is None:
                continue
            if isinstance(value, bool):
                attrs[name] = "true" if value else "false"
            else:
                attrs[name] = str(value)
        return attrs

    def is_rendered(self, element: QWidget) -> bool:
        if not element.isVisible() or element.width() <= 0 or element.height() <= 0:
            return False
        effect = element.graphicsEffect()
        if isinstance(effect, QGraphicsOpacityEffect) and effect.opacity() <= 0:
            return False
        return element.window().windowOpacity() > 0

    def in_viewport(self, element: QWidget) -> bool:
        region = element.visibleRegion()
        if region.isEmpty():
            return False
        window = element.window()
        top_left = element.mapTo(window, region.boundingRect().topLeft())
        on_window = QRect(top_left, region.boundingRect().size())
        return on_window.intersects(window.rect())

    def viewport_width(self) -> int:
        return self.root.window().width()

    def parent(self, element: QWidget) -> Optional[QWidget]:
        return None if element is self.root else element.parentWidget()


class QtTourWatcher(QObject):
    """Forwards window and widget tree events to a ``TourOrchestrator``.

    - window resize -> ``on_resize`` (debounced by the orchestrator)
    - show / hide / dynamic property / child added or removed ->
      ``on_dom_mutated``
    - move / resize of descendants, scroll bar movement ->
      ``on_viewport_changed``
    """

    _MUTATION_EVENTS = frozenset(
        {
            QEvent.Type.Show,
            QEvent.Type.Hide,
            QEvent.Type.DynamicPropertyChange,
            QEvent.Type.ChildAdded,
            QEvent.Type.ChildRemoved,
        }
    )
    _GEOMETRY_EVENTS = frozenset({QEvent.Type.Move, QEvent.Type.Resize})

    def __init__(self, orchestrator: Any, root: QWidget) -> None:
        super().__init__()
        self._orch = orchestrator
        self._root = root
        self._watched: Dict[int, QWidget] = {}
        self._scroll_connections: List[tuple[Any, Any]] = []
        self._attached = False
        self._mutation_timer = QTimer(self)
        self._mutation_timer.setSingleShot(True)
        self._mutation_timer.setInterval(0)
        self._mutation_timer.timeout.connect(self._flush_mutation)  # type: ignore
        self._viewport_timer = QTimer(self)
        self._viewport_timer.setSingleShot(True)
        self._viewport_timer.setInterval(0)
        self._viewport_timer.timeout.connect(self._flush_viewport)  # type: ignore

    @property
    def attached(self) -> bool:
        return self._attached

    def watched_count(self) -> int:
        return len(self._watched)

    def attach(self) -> None:
        if self._attached:
            return
        self._attached = True
        self._watch_tree(self._root)
        _logger.debug("Tour watcher attached (%d widgets)", len(self._watched))

    def detach(self) -> None:
        if not self._attached:
            return
        self._attached = False
        self._mutation_timer.stop()
        self._viewport_timer.stop()
        for widget in self._watched.values():
            try:
                widget.removeEventFilter(self)
            except RuntimeError:  # underlying C++ widget already destroyed
                continue
        self._watched.clear()
        for signal, slot in self._scroll_connections:
            try:
                signal.disconnect(slot)
            except (RuntimeError, TypeError):
                continue
        self._scroll_connections.clear()

    # Qt hooks -----------------------------------------------------------
    def eventFilter(self, watched, event):  # type: ignore[override]
        if not self._attached or not isinstance(watched, QWidget) or self._is_overlay(watched):
            return False
        etype = event.type()
        if etype in (QEvent.Type.ChildAdded, QEvent.Type.ChildPolished):
            child = event.child()
            if isinstance(child, QWidget):
                self._watch_tree(child)
        elif etype == QEvent.Type.ChildRemoved:
            child = event.child()
            if child is not None:
                self._watched.pop(id(child), None)
        if watched is self._root and etype == QEvent.Type.Resize:
            self._orch.on_resize()
        elif etype in self._MUTATION_EVENTS:
            self._mutation_timer.start()
        elif etype in self._GEOMETRY_EVENTS:
            self._viewport_timer.start()
        return False

    # Internal -----------------------------------------------------------
    def _watch_tree(self, widget: QWidget) -> None:
        for w in [widget, *widget.findChildren(QWidget)]:
            if id(w) in self._watched or self._is_overlay(w):
                continue
            w.installEventFilter(self)
            self._watched[id(w)] = w
            if isinstance(w, QAbstractScrollArea):
                for bar in (w.verticalScrollBar(), w.horizontalScrollBar()):
                    slot = self._on_scrolled
                    bar.valueChanged.connect(slot)  # type: ignore
                    self._scroll_connections.append((bar.valueChanged, slot))

    @staticmethod
    def _is_overlay(widget: QWidget) -> bool:
        return bool(widget.window().property(OVERLAY_PROPERTY))

    def _on_scrolled(self, _value: int) -> None:
        self._viewport_timer.start()

    def _flush_mutation(self) -> None:
        if self._attached:
            # children announced by ChildAdded may not have been constructed yet
            self._watch_tree(self._root)
            self._orch.on_dom_mutated()

    def _flush_viewport(self) -> None:
        if self._attached:
            self._orch.on_viewport_changed()
