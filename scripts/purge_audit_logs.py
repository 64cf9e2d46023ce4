"""
Delete audit logs older than N days, for one organization or all of them.

Usage:
  python scripts/purge_audit_logs.py --days 90
  python scripts/purge_audit_logs.py --days 30 --organization 12
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Racine du projet pour importer ``app``
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db import get_sessionmaker, init_engine
from app.services.audit_retention import purge_audit_logs, resolve_days_to_keep
from app.utils.errors import ApiError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge old audit logs")
    parser.add_argument("--days", type=int, default=None, help="Days to keep (default from settings)")
    parser.add_argument("--organization", type=int, default=None, help="Restrict to one organization id")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        days = resolve_days_to_keep(args.days)
    except ApiError as exc:
        parser.error(exc.message)

    init_engine()
    db = get_sessionmaker()()
    try:
        deleted = purge_audit_logs(db, days, organization_id=args.organization)
    except ApiError as exc:
        print(f"Purge failed: {exc.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    scope = f"organization {args.organization}" if args.organization is not None else "all organizations"
    print(f"Deleted {deleted} audit logs older than {days} days ({scope}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
