#!/usr/bin/env python3
"""Migration script to create contact_rate_limits and import entries from the flat rate_limit.json file."""

import os
import sys
import json
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import inspect

from src.shared.contact.database import ContactRateLimit, DatabaseRateLimitStore, create_rate_limit_engine

# Load environment variables
load_dotenv()


def table_exists(engine, table_name):
    """Check if a table exists in the database."""
    return table_name in inspect(engine).get_table_names()


def load_rate_limit_file(path):
    """Read {ip: unix timestamp} pairs, skipping malformed values."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    entries = {}
    for ip, ts in data.items():
        try:
            entries[str(ip)] = float(ts)
        except (TypeError, ValueError):
            print(f"  Skipping malformed entry for {ip!r}: {ts!r}")
    return entries


def run_migration(database_url, rate_limit_file):
    print("Running migration to import contact rate limits into the database...")
    engine = create_rate_limit_engine(database_url)
    print(f"Database: {engine.url.host}:{engine.url.port}/{engine.url.database}")

    try:
        if table_exists(engine, ContactRateLimit.__tablename__):
            print(f"✓ Table '{ContactRateLimit.__tablename__}' already exists.")
        else:
            print(f"Creating table '{ContactRateLimit.__tablename__}'...")
        store = DatabaseRateLimitStore(engine)

        entries = load_rate_limit_file(rate_limit_file)
        if not entries:
            print(f"✓ No entries found in {rate_limit_file}, nothing to import.")
            return 0

        written = store.import_entries(entries)
        print(f"✓ Imported {written} of {len(entries)} rate limit entries from {rate_limit_file}.")
    finally:
        engine.dispose()

    print("\n✓ Migration completed successfully!")
    return written


if __name__ == "__main__":
    DATABASE_URL = os.environ.get("DATABASE_URL")

    if not DATABASE_URL:
        print("ERROR: DATABASE_URL environment variable is required.")
        sys.exit(1)

    log_dir = Path(os.environ.get("CONTACT_LOG_DIR", "logs"))
    rate_limit_file = sys.argv[1] if len(sys.argv) > 1 else log_dir / "rate_limit.json"
    run_migration(DATABASE_URL, rate_limit_file)
