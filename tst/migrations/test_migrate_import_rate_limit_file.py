"""Tests for importing the flat rate limit file into the database."""

import json

from migrations.migrate_import_rate_limit_file import load_rate_limit_file, run_migration
from src.shared.contact.database import DatabaseRateLimitStore, create_rate_limit_engine


def test_import_rate_limit_file(tmp_path):
    rate_limit_file = tmp_path / "rate_limit.json"
    rate_limit_file.write_text(json.dumps({"203.0.113.5": 1700000000, "203.0.113.6": "bad"}))
    database_url = f"sqlite:///{tmp_path / 'contact.db'}"

    assert run_migration(database_url, rate_limit_file) == 1

    engine = create_rate_limit_engine(database_url)
    assert DatabaseRateLimitStore(engine).snapshot() == {"203.0.113.5": 1700000000.0}
    engine.dispose()


def test_missing_file_imports_nothing(tmp_path):
    assert load_rate_limit_file(tmp_path / "missing.json") == {}
    assert run_migration(f"sqlite:///{tmp_path / 'contact.db'}", tmp_path / "missing.json") == 0
