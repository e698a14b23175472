"""SQLite event store built on SQLAlchemy Core."""
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from ..errors import StoreError, UserNotFoundError
from ..event_models import Average, GenerationEvent
from .base import ALL_USERS, EventStore

log = structlog.get_logger()

# Fixed width so that string order matches chronological order
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

CREATE_TABLE = text(
    "CREATE TABLE IF NOT EXISTS RNG ("
    "id TEXT NOT NULL PRIMARY KEY, username TEXT, rng FLOAT, timestamp TEXT)"
)

CREATE_VIEW = text(
    f"""
    CREATE VIEW IF NOT EXISTS AverageRNG AS
    SELECT username,
           AVG(rng) AS average,
           COUNT(*) AS count
    FROM RNG
    GROUP BY username
    UNION ALL
    SELECT '{ALL_USERS}',
           AVG(rng),
           COUNT(*)
    FROM RNG
    """
)

# Rows written with second resolution ("2026-01-01T12:00:05Z") would sort after
# same-second rows here because "Z" > ".", so they are widened on startup
NORMALIZE_LEGACY_TIMESTAMPS = text(
    "UPDATE RNG SET timestamp = substr(timestamp, 1, 19) || '.000000Z' "
    "WHERE length(timestamp) = 20 AND substr(timestamp, 20, 1) = 'Z'"
)

INSERT_EVENT = text(
    "INSERT INTO RNG(id, username, rng, timestamp) "
    "VALUES(:id, :username, :rng, :timestamp)"
)

SELECT_AVERAGE = text(
    "SELECT username, average, count FROM AverageRNG WHERE username = :username"
)

SELECT_AVERAGES = text(
    "SELECT username, average, count FROM AverageRNG WHERE username != :all_users"
)

SELECT_USERS = text("SELECT username FROM RNG GROUP BY username")

SELECT_EVENTS = text(
    "SELECT id, username, rng, timestamp FROM RNG "
    "ORDER BY timestamp DESC, rowid DESC LIMIT :limit OFFSET :offset"
)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def create_sqlite_engine(database_url: str) -> Engine:
    """
    Create an engine usable from FastAPI's threadpool.

    In-memory databases share a single connection, otherwise every pooled
    connection would see its own empty database.
    """
    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(database_url, connect_args=connect_args)


class SQLiteEventStore(EventStore):
    """Event store backed by a single SQLite file."""

    def __init__(self, database_url: str = "sqlite:///./RNG.sqlite", engine: Engine | None = None):
        self._engine = engine or create_sqlite_engine(database_url)

    @property
    def database_path(self) -> Path | None:
        """Filesystem location of the database, None when in memory."""
        database = self._engine.url.database
        if not database or database == ":memory:":
            return None
        return Path(database)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            log.error("store.error", operation=operation, error=str(exc))
            raise StoreError(f"{operation} failed: {exc}") from exc

    def initialize(self) -> None:
        with self._guard("initialize"), self._engine.begin() as conn:
            conn.execute(CREATE_TABLE)
            conn.execute(CREATE_VIEW)
            conn.execute(NORMALIZE_LEGACY_TIMESTAMPS)
        log.info("store.initialized", backend="sqlite", path=str(self.database_path or ":memory:"))

    def insert(self, event: GenerationEvent) -> GenerationEvent:
        with self._guard("insert"), self._engine.begin() as conn:
            conn.execute(
                INSERT_EVENT,
                {
                    "id": event.id,
                    "username": event.user,
                    "rng": event.value,
                    "timestamp": format_timestamp(event.timestamp),
                },
            )
        log.info("event.stored", id=event.id, user=event.user)
        return event

    def get_average(self, username: str) -> Average:
        with self._guard("get_average"), self._engine.connect() as conn:
            row = conn.execute(SELECT_AVERAGE, {"username": username}).first()

        # The aggregate row is always present, with a zero count on an empty table
        if row is None or row[2] == 0:
            raise UserNotFoundError(username)
        user, average, count = row
        return Average(user=user, average=average, count=count)

    def list_averages(self) -> list[Average]:
        with self._guard("list_averages"), self._engine.connect() as conn:
            rows = conn.execute(SELECT_AVERAGES, {"all_users": ALL_USERS}).all()
        return [Average(user=user, average=average, count=count) for user, average, count in rows]

    def list_users(self) -> list[str]:
        with self._guard("list_users"), self._engine.connect() as conn:
            return list(conn.execute(SELECT_USERS).scalars())

    def list_events(self, limit: int, offset: int = 0) -> list[GenerationEvent]:
        with self._guard("list_events"), self._engine.connect() as conn:
            rows = conn.execute(SELECT_EVENTS, {"limit": limit, "offset": offset}).all()
        return [
            GenerationEvent(
                id=r.id,
                user=r.username,
                value=r.rng,
                timestamp=parse_timestamp(r.timestamp),
            )
            for r in rows
        ]

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            log.warning("store.health_check_failed", error=str(exc))
            return False

    def close(self) -> None:
        self._engine.dispose()
        log.info("store.closed")
