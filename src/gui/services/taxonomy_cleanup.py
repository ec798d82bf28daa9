"""Taxonomy-driven category cleanup.

Compares the stored category records (legacy ``categorias`` table) with the
names of the current category taxonomy. Records whose normalized display name
is not a taxonomy category are planned for deletion; everything else is kept.

Normalization mirrors the slug rules used across the marketplace:
NFD decomposition, combining marks dropped, anything outside ``[\\w\\s-]``
(ASCII) dropped, trimmed, whitespace runs collapsed to ``-``, lowercased.

Storage layout (SQLite)::

    CREATE TABLE categorias (id TEXT PRIMARY KEY, data TEXT)  -- data is JSON

Deletion runs in committed chunks (default 400 ids) so an interrupted run
leaves a consistent table and the progress callback can report percentages.

Usage:
    names = load_taxonomy_names("taxonomia.json")
    store = SqliteCategoryStore(sqlite3.connect("app.sqlite"))
    plan = analyze_categories(names, store.fetch_all())
    store.delete_ids(plan.delete_ids)
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

__all__ = [
    "TaxonomyUnavailableError",
    "RemoteCategory",
    "CleanupPlan",
    "normalize_category_name",
    "display_name",
    "load_taxonomy_names",
    "analyze_categories",
    "SqliteCategoryStore",
    "CATEGORY_TABLE",
    "DELETE_CHUNK_SIZE",
]

_logger = logging.getLogger(__name__)

CATEGORY_TABLE = "categorias"
DELETE_CHUNK_SIZE = 400
NAME_FIELDS = ("nome", "name", "titulo", "label")

_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SPACE_RE = re.compile(r"\s+")
_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TaxonomyUnavailableError(RuntimeError):
    """Raised when no taxonomy category names are available to compare with."""


@dataclass(frozen=True)
class RemoteCategory:
    id: str
    raw_name: str
    normalized: str


@dataclass
class CleanupPlan:
    kept: List[RemoteCategory] = field(default_factory=list)
    to_delete: List[RemoteCategory] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.kept) + len(self.to_delete)

    @property
    def delete_ids(self) -> List[str]:
        return [c.id for c in self.to_delete]

    def summary(self, table: str = CATEGORY_TABLE) -> str:
        return (
            f"Análise concluída: {self.total} registros encontrados em \"{table}\". "
            f"{len(self.kept)} vão ser mantidos e {len(self.to_delete)} estão marcados para exclusão."
        )

    def to_dict(self) -> dict:
        def _row(c: RemoteCategory) -> dict:
            return {"id": c.id, "nome": c.raw_name, "normalizado": c.normalized}

        return {
            "total": self.total,
            "kept": [_row(c) for c in self.kept],
            "to_delete": [_row(c) for c in self.to_delete],
        }


def normalize_category_name(value: Optional[str]) -> str:
    text = unicodedata.normalize("NFD", value or "")
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _STRIP_RE.sub("", text).strip()
    return _SPACE_RE.sub("-", text).lower()


def display_name(record_id: str, data: Mapping[str, Any] | None) -> str:
    """First present name field of a record, else its id."""
    if isinstance(data, Mapping):
        for key in NAME_FIELDS:
            value = data.get(key)
            if value is not None:
                return str(value)
    return str(record_id)


def load_taxonomy_names(path: str) -> List[str]:
    """Category names from a taxonomy JSON file.

    Accepts a list of categories (objects with ``nome``/``name`` or plain
    strings) or an object wrapping that list under ``categorias``.
    Raises ``TaxonomyUnavailableError`` for unreadable files or empty lists.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise TaxonomyUnavailableError(f"Não foi possível ler a taxonomia: {exc}") from exc
    if isinstance(payload, Mapping):
        payload = payload.get("categorias", [])
    names: List[str] = []
    if isinstance(payload, list):
        for entry in payload:
            if isinstance(entry, str):
                name = entry
            elif isinstance(entry, Mapping):
                name = str(entry.get("nome") or entry.get("name") or "")
            else:
                continue
            if name.strip():
                names.append(name.strip())
    if not names:
        raise TaxonomyUnavailableError("Não foi possível carregar as categorias da taxonomia.")
    return names


def analyze_categories(
    taxonomy_names: Iterable[str], records: Iterable[tuple[str, Mapping[str, Any] | None]]
) -> CleanupPlan:
    """Split ``(id, data)`` records into kept / to-delete by taxonomy name."""
    allowed = {normalize_category_name(n) for n in taxonomy_names}
    allowed.discard("")
    if not allowed:
        raise TaxonomyUnavailableError("Não foi possível carregar as categorias da taxonomia.")
    plan = CleanupPlan()
    for record_id, data in records:
        raw = display_name(record_id, data)
        cat = RemoteCategory(id=str(record_id), raw_name=raw, normalized=normalize_category_name(raw))
        (plan.kept if cat.normalized in allowed else plan.to_delete).append(cat)
    _logger.info(
        "Category analysis: %d records, %d kept, %d to delete",
        plan.total,
        len(plan.kept),
        len(plan.to_delete),
    )
    return plan


class SqliteCategoryStore:
    def __init__(self, conn: sqlite3.Connection, table: str = CATEGORY_TABLE):
        if not _TABLE_RE.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self.conn = conn
        self.table = table

    def fetch_all(self) -> List[tuple[str, Optional[dict]]]:
        cur = self.conn.execute(f"SELECT id, data FROM {self.table} ORDER BY id")
        out: List[tuple[str, Optional[dict]]] = []
        for record_id, raw in cur.fetchall():
            data: Optional[dict] = None
            if raw:
                try:
                    parsed = json.loads(raw)
                except json.JSONDecodeError:
                    _logger.warning("Category %s has invalid JSON data; using its id as name", record_id)
                    parsed = None
                data = parsed if isinstance(parsed, dict) else None
            out.append((str(record_id), data))
        return out

    def delete_ids(
        self,
        ids: Sequence[str],
        chunk_size: int = DELETE_CHUNK_SIZE,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> int:
        """Delete ``ids`` in committed chunks; returns the number requested.

        ``on_progress`` receives the completed percentage after each chunk.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        ids = list(ids)
        done = 0
        for start in range(0, len(ids), chunk_size):
            chunk = ids[start : start + chunk_size]
            placeholders = ",".join("?" for _ in chunk)
            with self.conn:
                self.conn.execute(f"DELETE FROM {self.table} WHERE id IN ({placeholders})", chunk)
            done += len(chunk)
            if on_progress is not None:
                on_progress(done / len(ids) * 100.0)
        _logger.info("Deleted %d categories from %s", done, self.table)
        return done
