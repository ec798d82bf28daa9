"""Onboarding tour state CLI.

Lists or resets the completion records kept in ``tour_completion.json``.

Examples:
  python -m cli.tour_state list --json
  python -m cli.tour_state reset --route /perfil --group perfil
  python -m cli.tour_state reset --group painel     # every route
  python -m cli.tour_state reset --all
"""

from __future__ import annotations

import argparse
import json
import sys

from gui.app.config_store import default_state_dir, load_config
from gui.services.tour_completion_store import TourCompletionStore


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Inspect or reset onboarding tour completion records")
    p.add_argument(
        "--state-dir",
        default=None,
        help="Tour state directory (default: $PEDRAUM_TOUR_STATE_DIR or ~/.pedraum)",
    )
    sub = p.add_subparsers(dest="command", required=True)
    ls = sub.add_parser("list", help="List completion records")
    ls.add_argument("--route", default=None, help="Only records for this route")
    ls.add_argument("--json", action="store_true", help="Emit JSON instead of plain lines")
    rs = sub.add_parser("reset", help="Remove completion records")
    rs.add_argument("--route", default=None, help="Route of the record to remove")
    rs.add_argument("--group", default=None, help="Flow/group of the record to remove")
    rs.add_argument("--all", action="store_true", help="Remove every record")
    return p.parse_args(argv)


def _store(state_dir: str | None) -> TourCompletionStore:
    base = state_dir or str(default_state_dir())
    cfg = load_config(base)
    return TourCompletionStore(base, prefix=cfg.storage_prefix)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    store = _store(args.state_dir)
    if args.command == "list":
        keys = store.records(args.route)
        if args.json:
            print(json.dumps({"records": keys}, ensure_ascii=False, indent=2))
        else:
            for key in keys:
                print(key)
        return 0

    if args.all:
        if not store.clear_all():
            print("Could not write tour state", file=sys.stderr)
            return 1
        print("Cleared all tour records")
        return 0
    if args.route:
        if not store.clear(args.route, args.group):
            print("Could not write tour state", file=sys.stderr)
            return 1
        print(f"Cleared {store.key(args.route, args.group)}")
        return 0
    if args.group:
        removed = store.clear_group(args.group.lower())
        print(f"Cleared {removed} record(s) for group {args.group.lower()}")
        return 0
    print("reset needs --route, --group or --all", file=sys.stderr)
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
