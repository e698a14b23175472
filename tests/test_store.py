"""Tests for the SQLite event store."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from rng_service.errors import StoreError, UserNotFoundError
from rng_service.event_models import GenerationEvent
from rng_service.store import ALL_USERS, SQLiteEventStore

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_event(user: str, value: float, seconds: int = 0) -> GenerationEvent:
    return GenerationEvent(user=user, value=value, timestamp=BASE_TIME + timedelta(seconds=seconds))


def test_insert_and_read_back(store):
    event = make_event("alice", 0.25)
    store.insert(event)

    events = store.list_events(limit=10)
    assert len(events) == 1
    assert events[0].id == event.id
    assert events[0].user == "alice"
    assert events[0].value == 0.25
    assert events[0].timestamp == event.timestamp


def test_duplicate_id_raises_store_error(store):
    event = make_event("alice", 0.5)
    store.insert(event)

    with pytest.raises(StoreError):
        store.insert(event)


def test_user_average(store):
    for i, value in enumerate([0.1, 0.2, 0.6]):
        store.insert(make_event("alice", value, seconds=i))
    store.insert(make_event("bob", 0.9, seconds=10))

    average = store.get_average("alice")
    assert average.user == "alice"
    assert average.count == 3
    assert average.average == pytest.approx(0.3)


def test_aggregate_average_covers_everyone(store):
    store.insert(make_event("alice", 0.2))
    store.insert(make_event("bob", 0.4, seconds=1))

    aggregate = store.get_average(ALL_USERS)
    assert aggregate.user == ALL_USERS
    assert aggregate.count == 2
    assert aggregate.average == pytest.approx(0.3)


def test_average_lookup_is_exact_match(store):
    store.insert(make_event("Alice", 0.5))

    with pytest.raises(UserNotFoundError):
        store.get_average("alice")
    with pytest.raises(UserNotFoundError):
        store.get_average("Ali%")


def test_unknown_user_not_found(store):
    with pytest.raises(UserNotFoundError) as exc_info:
        store.get_average("nobody")
    assert exc_info.value.status_code == 404


def test_aggregate_on_empty_store_not_found(store):
    with pytest.raises(UserNotFoundError):
        store.get_average(ALL_USERS)


def test_list_averages_excludes_aggregate(store):
    store.insert(make_event("alice", 0.2))
    store.insert(make_event("bob", 0.4, seconds=1))
    store.insert(make_event("bob", 0.6, seconds=2))

    averages = {a.user: a for a in store.list_averages()}
    assert set(averages) == {"alice", "bob"}
    assert averages["bob"].count == 2
    assert averages["bob"].average == pytest.approx(0.5)


def test_list_averages_empty(store):
    assert store.list_averages() == []


def test_list_users_distinct(store):
    for i, user in enumerate(["alice", "bob", "alice", "carol", "bob"]):
        store.insert(make_event(user, 0.5, seconds=i))

    users = store.list_users()
    assert sorted(users) == ["alice", "bob", "carol"]


def test_list_events_newest_first_and_paged(store):
    events = [make_event("alice", i / 10, seconds=i) for i in range(5)]
    # Insert out of order, ordering must come from the timestamp
    for event in reversed(events):
        store.insert(event)

    first_page = store.list_events(limit=2, offset=0)
    second_page = store.list_events(limit=2, offset=2)
    last_page = store.list_events(limit=2, offset=4)

    assert [e.id for e in first_page] == [events[4].id, events[3].id]
    assert [e.id for e in second_page] == [events[2].id, events[1].id]
    assert [e.id for e in last_page] == [events[0].id]
    assert store.list_events(limit=2, offset=6) == []


def test_same_timestamp_falls_back_to_insertion_order(store):
    first = make_event("alice", 0.1)
    second = make_event("alice", 0.2)
    store.insert(first)
    store.insert(second)

    assert [e.id for e in store.list_events(limit=10)] == [second.id, first.id]


def test_in_memory_store():
    memory_store = SQLiteEventStore("sqlite://")
    memory_store.initialize()
    memory_store.insert(make_event("alice", 0.5))

    assert memory_store.database_path is None
    assert memory_store.list_users() == ["alice"]
    memory_store.close()


def test_initialize_is_idempotent(store):
    store.insert(make_event("alice", 0.5))
    store.initialize()
    assert store.list_users() == ["alice"]


def test_health_check(store):
    assert store.health_check() is True


def test_second_resolution_rows_are_widened(tmp_path):
    url = f"sqlite:///{tmp_path / 'legacy.sqlite'}"
    legacy = SQLiteEventStore(url)
    legacy.initialize()
    # A row in the older second-resolution format, next to a newer row in the same second
    with legacy._engine.begin() as conn:
        conn.execute(
            text("INSERT INTO RNG(id, username, rng, timestamp) VALUES(:id, :user, :rng, :ts)"),
            {"id": "legacy-row", "user": "alice", "rng": 0.5, "ts": "2026-01-01T12:00:05Z"},
        )
    later = make_event("alice", 0.7, seconds=5)
    later.timestamp = later.timestamp.replace(microsecond=250000)
    legacy.insert(later)
    legacy.close()

    store = SQLiteEventStore(url)
    store.initialize()

    events = store.list_events(limit=10)
    assert [e.id for e in events] == [later.id, "legacy-row"]
    assert events[1].timestamp == BASE_TIME + timedelta(seconds=5)
    store.close()
