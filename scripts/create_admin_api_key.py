"""Create a system admin API key (not bound to any organization)."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db import get_sessionmaker, init_engine
from app.models.api_key import ApiKey, ApiScope
from app.utils.apikey import gen_key


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a system admin API key")
    parser.add_argument("--name", default="system-admin", help="Unique key name")
    args = parser.parse_args()

    # 1) Initialise l'engine + SessionLocal à partir de la config
    init_engine()
    db = get_sessionmaker()()

    raw, prefix, key_hash = gen_key()
    try:
        api_key = ApiKey(
            name=args.name,
            prefix=prefix,
            key_hash=key_hash,
            scope=ApiScope.admin,
            is_active=True,
        )
        db.add(api_key)
        db.commit()
        db.refresh(api_key)

        print("==========================================")
        print("System admin API key created")
        print("Use this key in your Authorization header (shown once):")
        print(f"    Authorization: Bearer {raw}")
        print(f"(DB id: {api_key.id}, scope: {api_key.scope.value})")
        print("==========================================")
    finally:
        db.close()


if __name__ == "__main__":
    main()
