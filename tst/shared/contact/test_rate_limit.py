"""Rate limit store tests: in-memory, JSON file and database backends."""

import json

import pytest

from src.shared.contact.database import DatabaseRateLimitStore, create_rate_limit_engine
from src.shared.contact.rate_limit import InMemoryRateLimitStore, JsonFileRateLimitStore

NOW = 1_700_000_000.0


@pytest.fixture(params=["memory", "file", "database"])
def any_store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryRateLimitStore()
    elif request.param == "file":
        yield JsonFileRateLimitStore(tmp_path / "logs" / "rate_limit.json")
    else:
        engine = create_rate_limit_engine(f"sqlite:///{tmp_path / 'rate_limit.db'}")
        yield DatabaseRateLimitStore(engine)
        engine.dispose()


def test_first_hit_allowed_and_recorded(any_store):
    assert any_store.hit("203.0.113.5", NOW, 60) is True
    assert any_store.last_seen("203.0.113.5") == NOW


def test_hit_inside_window_rejected_and_not_recorded(any_store):
    any_store.hit("203.0.113.5", NOW, 60)
    assert any_store.hit("203.0.113.5", NOW + 59, 60) is False
    assert any_store.last_seen("203.0.113.5") == NOW


def test_hit_after_window_allowed(any_store):
    any_store.hit("203.0.113.5", NOW, 60)
    assert any_store.hit("203.0.113.5", NOW + 60, 60) is True
    assert any_store.last_seen("203.0.113.5") == NOW + 60


def test_keys_are_independent(any_store):
    assert any_store.hit("203.0.113.5", NOW, 60) is True
    assert any_store.hit("203.0.113.6", NOW, 60) is True
    assert any_store.snapshot() == {"203.0.113.5": NOW, "203.0.113.6": NOW}


def test_one_entry_per_key(any_store):
    any_store.hit("203.0.113.5", NOW, 60)
    any_store.hit("203.0.113.5", NOW + 120, 60)
    assert any_store.snapshot() == {"203.0.113.5": NOW + 120}


def test_prune_removes_only_old_entries(any_store):
    any_store.hit("old", NOW - 90_000, 60)
    any_store.hit("fresh", NOW - 10, 60)
    assert any_store.prune(NOW - 86_400) == 1
    assert any_store.snapshot() == {"fresh": NOW - 10}


def test_unknown_key_has_no_timestamp(any_store):
    assert any_store.last_seen("198.51.100.1") is None


def test_file_store_writes_ip_to_timestamp_json(tmp_path):
    path = tmp_path / "rate_limit.json"
    store = JsonFileRateLimitStore(path)
    store.hit("203.0.113.5", NOW, 60)
    assert json.loads(path.read_text()) == {"203.0.113.5": 1700000000}


def test_file_store_reads_existing_file(tmp_path):
    path = tmp_path / "rate_limit.json"
    path.write_text(json.dumps({"203.0.113.5": int(NOW)}))
    store = JsonFileRateLimitStore(path)
    assert store.hit("203.0.113.5", NOW + 10, 60) is False


def test_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "rate_limit.json"
    path.write_text("{not json")
    store = JsonFileRateLimitStore(path)
    assert store.hit("203.0.113.5", NOW, 60) is True
    assert json.loads(path.read_text()) == {"203.0.113.5": 1700000000}


def test_file_store_leaves_no_temp_files(tmp_path):
    store = JsonFileRateLimitStore(tmp_path / "rate_limit.json")
    for i in range(5):
        store.hit(f"203.0.113.{i}", NOW, 60)
    assert [p.name for p in tmp_path.iterdir()] == ["rate_limit.json"]


def test_database_store_shared_between_instances(tmp_path):
    engine = create_rate_limit_engine(f"sqlite:///{tmp_path / 'shared.db'}")
    first = DatabaseRateLimitStore(engine)
    second = DatabaseRateLimitStore(engine)
    assert first.hit("203.0.113.5", NOW, 60) is True
    assert second.hit("203.0.113.5", NOW + 5, 60) is False
    engine.dispose()


def test_database_import_keeps_newer_timestamp(tmp_path):
    engine = create_rate_limit_engine(f"sqlite:///{tmp_path / 'import.db'}")
    store = DatabaseRateLimitStore(engine)
    store.hit("203.0.113.5", NOW, 60)
    written = store.import_entries({"203.0.113.5": NOW - 100, "203.0.113.6": NOW})
    assert written == 1
    assert store.snapshot() == {"203.0.113.5": NOW, "203.0.113.6": NOW}
    engine.dispose()
