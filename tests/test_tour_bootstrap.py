from __future__ import annotations

import json

from PyQt6.QtWidgets import QPushButton, QVBoxLayout, QWidget

from gui.app.bootstrap import create_tour
from gui.app.config_store import TourConfig, save_config
from gui.services.event_bus import EventBus
from gui.services.tour_playback import PlaybackState


def _perfil_window(qtbot):
    root = QWidget()
    layout = QVBoxLayout(root)
    for name in ("avatar", "atuacao", "portfolio", "salvar"):
        btn = QPushButton(name)
        btn.setProperty("data-tour", f"perfil.{name}")
        layout.addWidget(btn)
    root.resize(1024, 600)
    qtbot.addWidget(root)
    root.show()
    qtbot.waitExposed(root)
    return root


def test_create_tour_reads_config_from_state_dir(qtbot, tmp_path):
    save_config(TourConfig(storage_prefix="qa_tour", start_delay_ms=0), tmp_path)
    root = _perfil_window(qtbot)
    bus = EventBus()
    ctx = create_tour(root, tmp_path, event_bus=bus, with_overlay=False)
    try:
        assert ctx.event_bus is bus
        assert ctx.presenter is None
        assert ctx.config.storage_prefix == "qa_tour"
        assert ctx.store.key("/perfil", "perfil") == "qa_tour:/perfil:perfil"
        assert ctx.handle is ctx.orchestrator.handle
        assert ctx.state_dir == str(tmp_path)
        assert ctx.duration_s >= 0
    finally:
        ctx.close()


def test_mount_runs_walkthrough_on_real_window(qtbot, tmp_path):
    root = _perfil_window(qtbot)
    ctx = create_tour(root, tmp_path / "state")
    try:
        ctx.orchestrator.mount("/perfil")
        qtbot.waitUntil(lambda: ctx.orchestrator.state is PlaybackState.RUNNING, timeout=3000)
        assert ctx.presenter.mark.isVisible()
        assert ctx.presenter.mark.lbl_progress.text() == "1/4"

        for _ in range(4):
            ctx.presenter.mark.btn_next.click()
        assert ctx.orchestrator.state is PlaybackState.IDLE
        data = json.loads((tmp_path / "state" / "tour_completion.json").read_text(encoding="utf-8"))
        assert data["records"] == {"pedraum_tour_done:/perfil:perfil": True}
    finally:
        ctx.close()


def test_page_registration_through_bus_reaches_registry(qtbot, tmp_path):
    root = _perfil_window(qtbot)
    ctx = create_tour(root, tmp_path, with_overlay=False)
    try:
        ctx.orchestrator.mount("/perfil")
        ctx.handle.register_group("perfil", 2, [{"target": "[data-tour='perfil.salvar']", "content": "Salvar"}])
        group = ctx.registry.get("perfil")
        assert group is not None and group.order == 2
        qtbot.waitUntil(lambda: ctx.orchestrator.state is PlaybackState.RUNNING, timeout=3000)
        assert ctx.orchestrator.current_step().target == "[data-tour='perfil.salvar']"
    finally:
        ctx.close()


def test_create_tour_clamps_a_copy_of_the_given_config(qtbot, tmp_path):
    root = _perfil_window(qtbot)
    given = TourConfig(poll_interval_ms=1, max_attempts=999)
    ctx = create_tour(root, tmp_path, config=given, with_overlay=False)
    try:
        assert ctx.config is not given
        assert (ctx.config.poll_interval_ms, ctx.config.max_attempts) == (20, 200)
        assert (given.poll_interval_ms, given.max_attempts) == (1, 999)
    finally:
        ctx.close()
