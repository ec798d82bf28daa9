import json
from pathlib import Path

from gui.app.config_store import (
    CONFIG_VERSION,
    STATE_DIR_ENV,
    TourConfig,
    default_state_dir,
    load_config,
    save_config,
)


def test_defaults_when_missing(tmp_path: Path):
    cfg = load_config(tmp_path)
    assert cfg == TourConfig()
    assert cfg.settle_delay_ms == 80
    assert cfg.mobile_max_width == 768


def test_save_and_reload(tmp_path: Path):
    cfg = TourConfig(poll_interval_ms=250, storage_prefix="custom")
    path = save_config(cfg, tmp_path)
    assert path.name == "tour_config.json"
    assert not path.with_suffix(".json.tmp").exists()
    reloaded = load_config(tmp_path)
    assert reloaded.poll_interval_ms == 250
    assert reloaded.storage_prefix == "custom"


def test_values_are_clamped_and_invalid_ignored(tmp_path: Path):
    (tmp_path / "tour_config.json").write_text(
        json.dumps({"version": CONFIG_VERSION, "poll_interval_ms": 1, "max_attempts": "abc", "min_visible": 0}),
        encoding="utf-8",
    )
    cfg = load_config(tmp_path)
    assert cfg.poll_interval_ms == 20
    assert cfg.max_attempts == 32
    assert cfg.min_visible == 1


def test_corrupt_or_incompatible_file_falls_back(tmp_path: Path):
    target = tmp_path / "tour_config.json"
    target.write_text("{not json", encoding="utf-8")
    assert load_config(tmp_path) == TourConfig()
    target.write_text(json.dumps({"version": CONFIG_VERSION + 1, "poll_interval_ms": 500}), encoding="utf-8")
    assert load_config(tmp_path) == TourConfig()


def test_state_dir_from_environment(monkeypatch, tmp_path: Path):
    monkeypatch.setenv(STATE_DIR_ENV, str(tmp_path / "st"))
    assert default_state_dir() == tmp_path / "st"
    monkeypatch.delenv(STATE_DIR_ENV)
    assert default_state_dir().name == ".pedraum"
