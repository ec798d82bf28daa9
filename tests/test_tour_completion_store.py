import json
from pathlib import Path

from gui.services.tour_completion_store import STORE_FILENAME, TourCompletionStore, completion_key


def test_key_format():
    assert completion_key("/perfil/", "perfil") == "pedraum_tour_done:/perfil:perfil"
    assert completion_key("/", None, prefix="p") == "p:/"


def test_mark_clear_round_trip(tmp_path: Path):
    store = TourCompletionStore(tmp_path)
    assert not store.is_completed("/", "home")
    assert store.mark_completed("/", "home")
    assert store.is_completed("/", "home")
    # a fresh instance reads the same file
    assert TourCompletionStore(tmp_path).is_completed("/", "home")
    assert not store.is_completed("/", "header")
    assert store.clear("/", "home")
    assert not store.is_completed("/", "home")
    payload = json.loads((tmp_path / STORE_FILENAME).read_text(encoding="utf-8"))
    assert payload == {"version": 1, "records": {}}


def test_clear_group_across_routes_and_records_filter(tmp_path: Path):
    store = TourCompletionStore(tmp_path)
    store.mark_completed("/perfil", "perfil")
    store.mark_completed("/painel", "perfil")
    store.mark_completed("/painel", "painel")
    assert store.records("/painel") == [
        "pedraum_tour_done:/painel:painel",
        "pedraum_tour_done:/painel:perfil",
    ]
    assert store.clear_group("perfil") == 2
    assert store.records() == ["pedraum_tour_done:/painel:painel"]
    assert store.clear_all()
    assert store.records() == []


def test_corrupt_file_is_backed_up_and_treated_as_empty(tmp_path: Path):
    (tmp_path / STORE_FILENAME).write_text("{garbage", encoding="utf-8")
    store = TourCompletionStore(tmp_path)
    assert not store.is_completed("/", "home")
    backups = list(tmp_path.glob(STORE_FILENAME + ".corrupt.*"))
    assert len(backups) == 1
    assert store.mark_completed("/", "home")
    assert store.is_completed("/", "home")


def test_unwritable_location_degrades(tmp_path: Path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    store = TourCompletionStore(blocker)
    assert store.mark_completed("/", "home") is False
    assert store.is_completed("/", "home") is False
    assert store.clear_all() is False


def test_read_failure_skips_updates_and_keeps_records(tmp_path: Path, monkeypatch):
    store = TourCompletionStore(tmp_path)
    store.mark_completed("/", "home")
    store.mark_completed("/perfil", "perfil")
    before = (tmp_path / STORE_FILENAME).read_text(encoding="utf-8")

    real_open = open

    def failing_open(path, mode="r", *args, **kwargs):
        if str(path).endswith(STORE_FILENAME) and "r" in mode:
            raise PermissionError("denied")
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr("builtins.open", failing_open)
    assert store.is_completed("/", "home") is False
    assert store.records() == []
    assert store.mark_completed("/painel", "painel") is False
    assert store.clear("/", "home") is False
    assert store.clear_group("perfil") == 0
    monkeypatch.undo()

    assert (tmp_path / STORE_FILENAME).read_text(encoding="utf-8") == before
    assert store.records() == ["pedraum_tour_done:/:home", "pedraum_tour_done:/perfil:perfil"]
