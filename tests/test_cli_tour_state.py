"""Tests for the tour state CLI."""

from __future__ import annotations

import json

from cli import tour_state
from gui.services.tour_completion_store import TourCompletionStore


def _seed(tmp_path):
    store = TourCompletionStore(tmp_path)
    store.mark_completed("/", "home")
    store.mark_completed("/perfil", "perfil")
    store.mark_completed("/painel", "perfil")
    return store


def test_list_plain_and_json(tmp_path, capsys):
    _seed(tmp_path)
    assert tour_state.main(["--state-dir", str(tmp_path), "list"]) == 0
    lines = capsys.readouterr().out.split()
    assert "pedraum_tour_done:/:home" in lines
    assert len(lines) == 3

    assert tour_state.main(["--state-dir", str(tmp_path), "list", "--route", "/perfil", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"records": ["pedraum_tour_done:/perfil:perfil"]}


def test_reset_route_removes_single_record(tmp_path, capsys):
    store = _seed(tmp_path)
    code = tour_state.main(["--state-dir", str(tmp_path), "reset", "--route", "/perfil", "--group", "perfil"])
    assert code == 0
    assert "Cleared pedraum_tour_done:/perfil:perfil" in capsys.readouterr().out
    assert not store.is_completed("/perfil", "perfil")
    assert store.is_completed("/painel", "perfil")


def test_reset_group_spans_routes(tmp_path, capsys):
    store = _seed(tmp_path)
    assert tour_state.main(["--state-dir", str(tmp_path), "reset", "--group", "Perfil"]) == 0
    assert "Cleared 2 record(s) for group perfil" in capsys.readouterr().out
    assert store.records() == ["pedraum_tour_done:/:home"]


def test_reset_all(tmp_path, capsys):
    store = _seed(tmp_path)
    assert tour_state.main(["--state-dir", str(tmp_path), "reset", "--all"]) == 0
    assert store.records() == []


def test_reset_without_target_exits_2(tmp_path, capsys):
    _seed(tmp_path)
    assert tour_state.main(["--state-dir", str(tmp_path), "reset"]) == 2
    assert "--route" in capsys.readouterr().err
