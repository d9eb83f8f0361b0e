#!/usr/bin/env python3
"""
init_practice.py

Bootstraps a practice directly against the database: migrates the schema,
creates the tenant, its owner account and the default page permissions,
then prints a Practice Readiness Report with the tenant id and an owner
session token.

Usage:
  PRACTICE_OWNER_PASSWORD="strong password" \
    python tools/init_practice.py --practice "Acme Counselling" \
      --email owner@acme.example --first-name Ada --last-name Lovelace

Options:
  --env   Password env var name (default: PRACTICE_OWNER_PASSWORD)
  --db    SQLite database path (default: $PRACTICE_DB_PATH or /tmp/practice_gateway.db)
"""

import argparse
import datetime as dt
import os
import pathlib
import sys

# Allow running from a source checkout without installing the package
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from clinic_gateway.app.db.migrate import ensure_schema  # noqa: E402
from clinic_gateway.app.errors import ServiceError  # noqa: E402
from clinic_gateway.app.services import user_service  # noqa: E402


def _utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--practice", required=True, help="Practice name")
    ap.add_argument("--email", required=True, help="Owner email")
    ap.add_argument("--first-name", required=True, help="Owner first name")
    ap.add_argument("--last-name", required=True, help="Owner last name")
    ap.add_argument("--env", default="PRACTICE_OWNER_PASSWORD", help="Password env var name")
    ap.add_argument("--db", default=None, help="SQLite database path")
    args = ap.parse_args()

    password = os.environ.get(args.env)
    if not password:
        print(f"ERROR: Missing owner password. Set env var {args.env}.", file=sys.stderr)
        return 2

    if args.db:
        os.environ["PRACTICE_DB_PATH"] = args.db

    ensure_schema()

    try:
        registered = user_service.register_practice(
            args.email,
            password,
            args.first_name,
            args.last_name,
            practice_name=args.practice,
        )
    except ServiceError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 3

    report = f"""PRACTICE READINESS REPORT
Generated (UTC): {_utc_now_iso()}
Practice: {args.practice}

TENANT
- Tenant ID: {registered['tenant_id']}
- Owner User ID: {registered['user']['id']}
- Owner Email: {registered['user']['email']}

TOKENS
- Owner Access Token: {registered['access_token']}
- Email Verification Token: {registered['verification_token']}

STATUS: READY
"""
    print(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
