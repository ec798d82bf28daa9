"""Category cleanup CLI.

Compares the legacy ``categorias`` table of a SQLite database with the
current category taxonomy and (optionally) deletes records that no longer
exist in it.

Features:
 - Dry run by default: prints the plan (kept / to delete) without touching
   the database. ``--apply`` performs the chunked deletion.
 - Emits either a human-readable summary or JSON (via ``--json``).
 - Exit code 0 on success, 2 when the database or taxonomy is unusable.

Example:
  python -m cli.clean_categories --db app.sqlite --taxonomy taxonomia.json --apply
"""

from __future__ import annotations

import argparse
import json
import os
import sqlite3
import sys

from gui.services.taxonomy_cleanup import (
    CATEGORY_TABLE,
    DELETE_CHUNK_SIZE,
    SqliteCategoryStore,
    TaxonomyUnavailableError,
    analyze_categories,
    load_taxonomy_names,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Remove categories that are not in the current taxonomy")
    p.add_argument("--db", required=True, help="SQLite database file holding the category table")
    p.add_argument("--taxonomy", required=True, help="Taxonomy JSON file (list of categories)")
    p.add_argument("--table", default=CATEGORY_TABLE, help=f"Category table name (default: {CATEGORY_TABLE})")
    p.add_argument("--chunk-size", type=int, default=DELETE_CHUNK_SIZE, help="Deletions per commit")
    p.add_argument("--apply", action="store_true", help="Delete the planned records (default: dry run)")
    p.add_argument("--json", action="store_true", help="Emit JSON instead of human-readable text")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not os.path.isfile(args.db):
        print(f"Database not found: {args.db}", file=sys.stderr)
        return 2
    try:
        names = load_taxonomy_names(args.taxonomy)
    except TaxonomyUnavailableError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    conn = sqlite3.connect(args.db)
    try:
        store = SqliteCategoryStore(conn, args.table)
        try:
            records = store.fetch_all()
        except sqlite3.Error as exc:
            print(f"Erro ao carregar categorias: {exc}", file=sys.stderr)
            return 2
        try:
            plan = analyze_categories(names, records)
        except TaxonomyUnavailableError as exc:
            print(str(exc), file=sys.stderr)
            return 2
        deleted = 0
        if args.apply and plan.to_delete:

            def _progress(pct: float) -> None:
                if not args.json:
                    print(f"  ... {pct:.0f}%")

            deleted = store.delete_ids(plan.delete_ids, chunk_size=args.chunk_size, on_progress=_progress)
    finally:
        conn.close()

    if args.json:
        payload = plan.to_dict()
        payload["applied"] = bool(args.apply)
        payload["deleted"] = deleted
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    print(plan.summary(args.table))
    for cat in plan.to_delete[:20]:
        print(f"  - {cat.id}: {cat.raw_name} ({cat.normalized})")
    if len(plan.to_delete) > 20:
        print(f"  ... +{len(plan.to_delete) - 20}")
    if args.apply:
        print(f"Exclusão concluída! Foram apagadas {deleted} categorias que não existiam na taxonomia atual.")
    elif plan.to_delete:
        print("Dry run: use --apply para apagar.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
