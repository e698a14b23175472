"""Persistence backends for generation events."""

from .base import ALL_USERS, EventStore
from .sqlite import SQLiteEventStore

__all__ = ["ALL_USERS", "EventStore", "SQLiteEventStore"]
