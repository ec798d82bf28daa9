"""Coach mark overlay for the onboarding tour.

``CoachMark`` is a frameless tool popup (title, text, progress and the
Voltar / Próximo / Concluir / Pular buttons) positioned next to the anchor
widget of the current step. ``TourOverlayPresenter`` keeps it in sync with the
orchestrator through bus events and only shows it while the orchestrator says
the walkthrough may render.

Placement is computed by the pure ``compute_position`` helper so it can be
tested without a screen.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from PyQt6.QtCore import QPoint, QRect, QSize, Qt, pyqtSignal
from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import (
    QFrame,
    QGraphicsDropShadowEffect,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from gui.design.onboarding_tour import TourStep
from gui.services.event_bus import Event, EventBus, Subscription, TourEvent
from gui.services.qt_tour import OVERLAY_PROPERTY

__all__ = [
    "BACK_LABEL",
    "NEXT_LABEL",
    "FINISH_LABEL",
    "SKIP_LABEL",
    "PRIMARY_COLOR",
    "TOOLTIP_BACKGROUND",
    "TEXT_COLOR",
    "compute_position",
    "CoachMark",
    "TourOverlayPresenter",
]

_logger = logging.getLogger(__name__)

BACK_LABEL = "Voltar"
NEXT_LABEL = "Próximo"
FINISH_LABEL = "Concluir"
SKIP_LABEL = "Pular"

# Pedraum brand palette: orange actions on a white tooltip
PRIMARY_COLOR = "#f97316"
PRIMARY_HOVER_COLOR = "#ea580c"
TOOLTIP_BACKGROUND = "#ffffff"
TEXT_COLOR = "#0f172a"
BORDER_COLOR = "#e2e8f0"
MUTED_COLOR = "#64748b"

_STYLE_SHEET = f"""
QFrame#tourCoachMark {{
    background-color: {TOOLTIP_BACKGROUND};
    border-radius: 8px;
    border: 1px solid {BORDER_COLOR};
}}
QLabel {{ color: {TEXT_COLOR}; }}
QLabel#tourCoachTitle {{ font-size: 12pt; font-weight: bold; }}
QPushButton {{
    background-color: {PRIMARY_COLOR};
    color: #fff;
    border: none;
    padding: 6px 12px;
    border-radius: 4px;
    font-weight: bold;
}}
QPushButton:hover {{ background-color: {PRIMARY_HOVER_COLOR}; }}
QPushButton:disabled {{ background-color: {BORDER_COLOR}; color: {MUTED_COLOR}; }}
QPushButton#tourCoachSkip {{ background-color: transparent; color: {MUTED_COLOR}; }}
"""

_DEFAULT_GAP = 10


def _fits(rect: QRect, bounds: QRect) -> bool:
    return bounds.contains(rect)


def compute_position(
    anchor: QRect,
    size: QSize,
    bounds: QRect,
    placement: str | None = None,
    offset: int | None = None,
) -> QPoint:
    """Top-left (global coordinates) for a popup of ``size`` beside ``anchor``.

    ``auto`` tries right, left, bottom, top and keeps the first that fits in
    ``bounds``. The result is always clamped inside ``bounds``.
    """
    gap = _DEFAULT_GAP if offset is None else offset
    candidates = {
        "right": QPoint(anchor.right() + 1 + gap, anchor.top()),
        "left": QPoint(anchor.left() - size.width() - gap, anchor.top()),
        "bottom": QPoint(anchor.left(), anchor.bottom() + 1 + gap),
        "top": QPoint(anchor.left(), anchor.top() - size.height() - gap),
    }
    if placement in candidates:
        pos = candidates[placement]
    else:
        pos = candidates["right"]
        for name in ("right", "left", "bottom", "top"):
            if _fits(QRect(candidates[name], size), bounds):
                pos = candidates[name]
                break
    max_x = bounds.right() + 1 - size.width()
    max_y = bounds.bottom() + 1 - size.height()
    x = min(max(pos.x(), bounds.left()), max(bounds.left(), max_x))
    y = min(max(pos.y(), bounds.top()), max(bounds.top(), max_y))
    return QPoint(x, y)


class CoachMark(QFrame):
    back_clicked = pyqtSignal()
    next_clicked = pyqtSignal()
    skip_clicked = pyqtSignal()

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setObjectName("tourCoachMark")
        self.setProperty(OVERLAY_PROPERTY, True)
        self.setWindowFlags(
            Qt.WindowType.Tool
            | Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
        )
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating, True)
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.setStyleSheet(_STYLE_SHEET)
        shadow = QGraphicsDropShadowEffect(self)
        shadow.setBlurRadius(15)
        shadow.setColor(QColor(15, 23, 42, 70))
        shadow.setOffset(0, 4)
        self.setGraphicsEffect(shadow)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        self.lbl_title = QLabel("")
        self.lbl_title.setObjectName("tourCoachTitle")
        self.lbl_title.setWordWrap(True)
        layout.addWidget(self.lbl_title)
        self.lbl_text = QLabel("")
        self.lbl_text.setWordWrap(True)
        layout.addWidget(self.lbl_text)

        row = QHBoxLayout()
        self.lbl_progress = QLabel("")
        row.addWidget(self.lbl_progress)
        row.addStretch(1)
        self.btn_skip = QPushButton(SKIP_LABEL)
        self.btn_skip.setObjectName("tourCoachSkip")
        self.btn_back = QPushButton(BACK_LABEL)
        self.btn_next = QPushButton(NEXT_LABEL)
        for btn in (self.btn_skip, self.btn_back, self.btn_next):
            row.addWidget(btn)
        layout.addLayout(row)

        self.btn_back.clicked.connect(self.back_clicked.emit)  # type: ignore
        self.btn_next.clicked.connect(self.next_clicked.emit)  # type: ignore
        self.btn_skip.clicked.connect(self.skip_clicked.emit)  # type: ignore
        self._max_width: Optional[int] = None

    def set_step(self, step: TourStep, index: int, total: int) -> None:
        self.lbl_title.setText(step.title)
        self.lbl_title.setVisible(bool(step.title))
        self.lbl_text.setText(step.content)
        self.lbl_progress.setText(f"{index + 1}/{total}")
        self.btn_back.setEnabled(index > 0)
        self.btn_next.setText(FINISH_LABEL if index >= total - 1 else NEXT_LABEL)
        width = step.styles.get("tooltip_max_width") if step.styles else None
        self._max_width = int(width) if width else None
        self.setMaximumWidth(self._max_width if self._max_width else 16777215)
        self.adjustSize()

    def show_at(self, anchor: QWidget, step: TourStep, index: int, total: int) -> None:
        self.set_step(step, index, total)
        top_left = anchor.mapToGlobal(QPoint(0, 0))
        anchor_rect = QRect(top_left, anchor.size())
        screen = anchor.screen() or self.screen()
        bounds = screen.availableGeometry() if screen is not None else anchor.window().geometry()
        self.move(compute_position(anchor_rect, self.sizeHint(), bounds, step.placement, step.offset))
        self.show()
        self.raise_()


class TourOverlayPresenter:
    """Shows or hides the coach mark in response to tour events."""

    _SHOW_EVENTS = (TourEvent.STARTED, TourEvent.STEP_CHANGED, TourEvent.RESUMED)
    _HIDE_EVENTS = (
        TourEvent.PAUSED,
        TourEvent.FINISHED,
        TourEvent.SKIPPED,
        TourEvent.STOPPED,
    )

    def __init__(self, orchestrator, event_bus: EventBus, mark: Optional[CoachMark] = None):
        self._orch = orchestrator
        self._bus = event_bus
        self.mark = mark or CoachMark(getattr(orchestrator.host, "root", None))
        self.mark.back_clicked.connect(orchestrator.previous_step)  # type: ignore
        self.mark.next_clicked.connect(orchestrator.next_step)  # type: ignore
        self.mark.skip_clicked.connect(orchestrator.skip)  # type: ignore
        self._subs: List[Subscription] = []
        for name in self._SHOW_EVENTS:
            self._subs.append(self._bus.subscribe(name, self._on_show_event))
        for name in self._HIDE_EVENTS:
            self._subs.append(self._bus.subscribe(name, self._on_hide_event))

    def refresh(self) -> bool:
        """Show the current step if allowed; returns whether it is shown."""
        step = self._orch.current_step()
        if step is None:
            self.mark.hide()
            return False
        anchor = self._orch.host.first_visible(step.target)
        if anchor is None:
            _logger.debug("Tour anchor %s vanished before display", step.target)
            self.mark.hide()
            return False
        playback = self._orch.playback
        self.mark.show_at(anchor, step, playback.index, len(playback.steps))
        return True

    def close(self) -> None:
        for sub in self._subs:
            self._bus.unsubscribe(sub)
        self._subs.clear()
        self.mark.hide()

    def _on_show_event(self, _event: Event) -> None:
        self.refresh()

    def _on_hide_event(self, _event: Event) -> None:
        self.mark.hide()
