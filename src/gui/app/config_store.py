"""Tour configuration persistence.

Stores the timing and layout knobs of the onboarding tour orchestrator
(polling cadence, debounce, breakpoints, tooltip sizing, storage key prefix)
in ``tour_config.json`` inside the tour state directory.

Design principles:
- Pure logic (no direct Qt import) so it can be unit-tested headless.
- Explicit schema with version field to enable future migrations.
- Graceful fallback: corrupt or incompatible files produce defaults instead of raising.
- Values are clamped to sane ranges on load so a hand-edited file cannot
  turn the resolver into a busy loop.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

__all__ = [
    "TourConfig",
    "load_config",
    "save_config",
    "default_state_dir",
    "CONFIG_VERSION",
    "STATE_DIR_ENV",
]

_logger = logging.getLogger(__name__)

CONFIG_VERSION = 1  # Increment when structure changes

DEFAULT_FILENAME = "tour_config.json"
STATE_DIR_ENV = "PEDRAUM_TOUR_STATE_DIR"

_BOUNDS: Dict[str, tuple[int, int]] = {
    "poll_interval_ms": (20, 2000),
    "max_attempts": (1, 200),
    "min_visible": (1, 50),
    "settle_delay_ms": (0, 2000),
    "start_delay_ms": (0, 5000),
    "resize_debounce_ms": (10, 2000),
    "mobile_max_width": (320, 2000),
    "mobile_tooltip_max_width": (120, 1000),
    "mobile_offset": (0, 64),
    "desktop_offset": (0, 64),
}


@dataclass(slots=True)
class TourConfig:
    """Serializable tour orchestrator configuration.

    Attributes
    ----------
    version: Schema version for migration handling.
    poll_interval_ms: Delay between resolver attempts.
    max_attempts: Resolver attempts before giving up with what is visible.
    min_visible: Visible anchors needed for the resolver to finish early.
    settle_delay_ms: Pause after a route change before the first anchor check.
    start_delay_ms: Pause between readiness and showing the first tooltip.
    resize_debounce_ms: Quiet period after the last resize before revalidating.
    mobile_max_width: Viewports narrower than this are "mobile".
    mobile_tooltip_max_width: Tooltip width cap on mobile.
    mobile_offset, desktop_offset: Tooltip distance from the anchor.
    storage_prefix: Completion record key prefix.
    """

    version: int = CONFIG_VERSION
    poll_interval_ms: int = 100
    max_attempts: int = 32
    min_visible: int = 1
    settle_delay_ms: int = 80
    start_delay_ms: int = 150
    resize_debounce_ms: int = 120
    mobile_max_width: int = 768
    mobile_tooltip_max_width: int = 300
    mobile_offset: int = 4
    desktop_offset: int = 10
    storage_prefix: str = "pedraum_tour_done"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TourConfig":
        cfg = cls()
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name == "storage_prefix":
                if isinstance(value, str) and value.strip():
                    cfg.storage_prefix = value.strip()
                continue
            try:
                setattr(cfg, f.name, int(value))
            except (TypeError, ValueError):
                _logger.warning("Ignoring invalid tour config value %s=%r", f.name, value)
        return cfg.clamped()

    def clamped(self) -> "TourConfig":
        for name, (lo, hi) in _BOUNDS.items():
            setattr(self, name, max(lo, min(getattr(self, name), hi)))
        return self


def default_state_dir() -> Path:
    env = os.environ.get(STATE_DIR_ENV)
    if env:
        return Path(env)
    return Path.home() / ".pedraum"


def _resolve_path(base_dir: str | Path | None) -> Path:
    base = Path(base_dir) if base_dir else default_state_dir()
    return base / DEFAULT_FILENAME


def load_config(base_dir: str | Path | None = None) -> TourConfig:
    """Load tour config from directory (defaults when missing or unreadable)."""
    path = _resolve_path(base_dir)
    if not path.exists():
        return TourConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict) or int(data.get("version", CONFIG_VERSION)) != CONFIG_VERSION:
            return TourConfig()
        return TourConfig.from_dict(data)
    except Exception:  # noqa: BLE001
        _logger.warning("Unreadable tour config at %s; using defaults", path)
        return TourConfig()


def save_config(cfg: TourConfig, base_dir: str | Path | None = None) -> Path:
    """Persist tour config to directory.

    Returns the path written for convenience.
    """
    path = _resolve_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(cfg.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path
