"""Persisted tour completion records.

One record per ``(route, group)`` pair, stored under the key
``<prefix>:<route>:<group>`` in ``tour_completion.json``. Presence of a key
means "completed or skipped"; absence means "not shown yet".

Implemented like the other small JSON persistence services. Storage problems
never escape this module:
 - corrupt file -> backed up as ``*.corrupt.<timestamp>`` and
   treated as empty (the tour may replay, the app keeps working)
 - read failure -> "not completed"; updates are skipped so the records on
   disk are never overwritten with a partial view
 - write failure -> logged, returns False
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from threading import RLock
from typing import Dict, List, Optional

from gui.design.onboarding_tour import base_path

__all__ = ["TourCompletionStore", "completion_key", "STORE_VERSION", "STORE_FILENAME"]

_logger = logging.getLogger(__name__)

STORE_VERSION = 1
STORE_FILENAME = "tour_completion.json"
DEFAULT_PREFIX = "pedraum_tour_done"


def completion_key(route: str, group: str | None = None, prefix: str = DEFAULT_PREFIX) -> str:
    route_key = base_path(route)
    return f"{prefix}:{route_key}:{group}" if group else f"{prefix}:{route_key}"


class TourCompletionStore:
    def __init__(self, base_dir: str | os.PathLike[str], *, prefix: str = DEFAULT_PREFIX):
        self.base_dir = os.fspath(base_dir)
        self.prefix = prefix
        self._lock = RLock()

    def _path(self) -> str:
        return os.path.join(self.base_dir, STORE_FILENAME)

    # Raw file access ----------------------------------------------------
    def _read(self) -> Optional[Dict[str, bool]]:
        """Current records, or None when the file exists but cannot be read."""
        path = self._path()
        if not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                obj = json.load(f)
            if not isinstance(obj, dict) or obj.get("version") != STORE_VERSION:
                raise ValueError("version mismatch")
            records = obj.get("records", {})
            if not isinstance(records, dict):
                raise ValueError("records must be an object")
            return {str(k): True for k, v in records.items() if v}
        except OSError as exc:
            _logger.warning("Tour completion store unreadable (%s)", exc)
            return None
        except Exception:  # noqa: BLE001 - corrupt content
            try:
                backup = path + f".corrupt.{datetime.now().strftime('%Y%m%d%H%M%S')}"
                os.replace(path, backup)
                _logger.warning("Corrupt tour completion store moved to %s", backup)
            except OSError:  # pragma: no cover
                _logger.warning("Corrupt tour completion store at %s could not be moved", path)
            return {}

    def _write(self, records: Dict[str, bool]) -> bool:
        path = self._path()
        try:
            os.makedirs(self.base_dir, exist_ok=True)
            tmp = path + ".tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump({"version": STORE_VERSION, "records": records}, f, indent=2, sort_keys=True)
            os.replace(tmp, path)
            return True
        except OSError as exc:
            _logger.warning("Tour completion store not writable (%s); record dropped", exc)
            return False

    # Public API ---------------------------------------------------------
    def key(self, route: str, group: str | None = None) -> str:
        return completion_key(route, group, self.prefix)

    def is_completed(self, route: str, group: str | None = None) -> bool:
        with self._lock:
            return self.key(route, group) in (self._read() or {})

    def mark_completed(self, route: str, group: str | None = None) -> bool:
        with self._lock:
            records = self._read()
            if records is None:
                return False
            records[self.key(route, group)] = True
            return self._write(records)

    def clear(self, route: str, group: str | None = None) -> bool:
        with self._lock:
            records = self._read()
            if records is None:
                return False
            if records.pop(self.key(route, group), None) is None:
                return True
            return self._write(records)

    def clear_group(self, group: str) -> int:
        """Remove the group's records on every route; returns count removed."""
        suffix = f":{group}"
        with self._lock:
            records = self._read()
            if records is None:
                return 0
            doomed = [k for k in records if k.startswith(self.prefix + ":") and k.endswith(suffix)]
            for k in doomed:
                records.pop(k, None)
            if doomed and not self._write(records):
                return 0
            return len(doomed)

    def clear_all(self) -> bool:
        with self._lock:
            return self._write({})

    def records(self, route: Optional[str] = None) -> List[str]:
        with self._lock:
            keys = sorted(self._read() or {})
        if route is None:
            return keys
        head = f"{self.prefix}:{base_path(route)}"
        return [k for k in keys if k == head or k.startswith(head + ":")]
