#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from catalogs_api.core.config import IS_DEV, SEED_ALLOW  # noqa: E402
from catalogs_api.core.database import SessionLocal, engine  # noqa: E402
from catalogs_api.services.seed import (  # noqa: E402
    DEFAULT_EMAIL,
    DEFAULT_TENANT_NAME,
    DEFAULT_USERNAME,
    ensure_schema,
    seed_database,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed an empty database with a demo tenant, user and catalogs.")
    parser.add_argument("--password", required=True, help="Password for the seeded user")
    parser.add_argument("--email", default=DEFAULT_EMAIL, help="Email of the seeded user")
    parser.add_argument("--username", default=DEFAULT_USERNAME, help="Username of the seeded user")
    parser.add_argument("--tenant-name", default=DEFAULT_TENANT_NAME, help="Name of the seeded tenant")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Allow seeding outside dev without SEED_ALLOW=1",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not (IS_DEV or SEED_ALLOW or args.force):
        print("Seeding is disabled outside dev. Set SEED_ALLOW=1 or pass --force.")
        return 1

    try:
        ensure_schema(engine)
    except RuntimeError as exc:
        print(str(exc))
        return 1

    db = SessionLocal()
    try:
        report = seed_database(
            db,
            password=args.password,
            tenant_name=args.tenant_name,
            username=args.username,
            email=args.email,
        )
    finally:
        db.close()

    print(f"Seeded: {', '.join(report.seeded) or '-'} | Skipped: {', '.join(report.skipped) or '-'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
