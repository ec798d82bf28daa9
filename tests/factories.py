from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, Iterable, Tuple

from gui.testing import FakeAnchorHost, FakeElement


def add_header(host: FakeAnchorHost, *, logged_in: bool = False, mobile: bool = False) -> Dict[str, FakeElement]:
    """Populate the fake tree with the header anchors the app shell renders.

    On mobile the nav links exist but are hidden and the hamburger shows.
    """
    els: Dict[str, FakeElement] = {}
    els["first"] = host.add("header-login" if logged_in else "header-register")
    els["logo"] = host.add("header-logo")
    for name in ("produtos", "demandas", "painel"):
        els[name] = host.add(f"header-nav-{name}", rendered=not mobile)
    els["hamburger"] = host.add("header-hamburger", rendered=mobile)
    return els


def add_home(host: FakeAnchorHost) -> Dict[str, FakeElement]:
    return {
        "hero": host.add(class_="home-hero-section"),
        "cta": host.add(class_="home-hero-cta"),
        "demandas": host.add(class_="demandas-section"),
    }


def add_perfil(host: FakeAnchorHost, *, rendered: bool = True) -> Dict[str, FakeElement]:
    return {
        name: host.add(f"perfil.{name}", rendered=rendered)
        for name in ("avatar", "atuacao", "portfolio", "salvar")
    }


def make_category_db(conn: sqlite3.Connection, rows: Iterable[Tuple[str, Any]] = (), table: str = "categorias") -> sqlite3.Connection:
    """Create the legacy category table and insert ``(id, data)`` rows.

    ``data`` mappings are stored as JSON; strings are stored verbatim so
    tests can plant broken payloads.
    """
    conn.execute(f"CREATE TABLE IF NOT EXISTS {table} (id TEXT PRIMARY KEY, data TEXT)")
    conn.executemany(
        f"INSERT INTO {table}(id, data) VALUES(?, ?)",
        [(rid, data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)) for rid, data in rows],
    )
    conn.commit()
    return conn


def count_rows(conn: sqlite3.Connection, table: str = "categorias") -> int:
    return int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])
