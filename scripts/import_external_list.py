#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from revius_backend.db.supabase import create_supabase_admin_client  # noqa: E402
from revius_backend.ingestion.list_importer import ImportValidationError, import_list  # noqa: E402
from revius_backend.integrations.http import PageFetchError  # noqa: E402
from revius_backend.matching.matcher import build_default_matcher  # noqa: E402
from revius_backend.repositories.lists import ListRepositoryError  # noqa: E402
from revius_backend.repositories.novela_catalog import JsonFileCatalogStore  # noqa: E402
from revius_backend.utils.env import load_env  # noqa: E402


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="import_external_list.py",
        description="Import a public external list (Letterboxd) into a user's lists.",
    )
    parser.add_argument("--url", required=True, help="List URL (letterboxd.com/<user>/list/<slug>/ or boxd.it link).")
    parser.add_argument("--service", default="letterboxd", help="Source service (default: letterboxd).")
    parser.add_argument("--owner-user-id", required=True, help="User id that will own the imported list.")
    parser.add_argument(
        "--catalog-dir",
        type=str,
        default=None,
        help="Novela catalog directory to search as an extra source (default: none).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = _parse_args(argv)
    load_env()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = JsonFileCatalogStore(args.catalog_dir) if args.catalog_dir else None
    db = create_supabase_admin_client()
    with build_default_matcher(catalog_store=store) as matcher:
        try:
            result = import_list(args.url, args.service, args.owner_user_id, db=db, matcher=matcher)
        except (ImportValidationError, PageFetchError, ListRepositoryError) as exc:
            print(f"Import failed: {exc}", file=sys.stderr)
            return 1

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(list(sys.argv[1:])))
