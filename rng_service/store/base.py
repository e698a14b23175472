"""Base interface for generation event storage backends."""
from abc import ABC, abstractmethod

from ..event_models import Average, GenerationEvent

ALL_USERS = "All"


class EventStore(ABC):
    """Abstract interface for generation event persistence."""

    @abstractmethod
    def initialize(self) -> None:
        """Create the schema if it does not exist yet."""

    @abstractmethod
    def insert(self, event: GenerationEvent) -> GenerationEvent:
        """
        Persist a single generation event.

        Args:
            event: The event to store

        Returns:
            The stored event

        Raises:
            StoreError: If the write fails, including an id collision
        """

    @abstractmethod
    def get_average(self, username: str) -> Average:
        """
        Average and count for one user, or for everyone under ``ALL_USERS``.

        Raises:
            UserNotFoundError: If the user has no events
        """

    @abstractmethod
    def list_averages(self) -> list[Average]:
        """Per-user averages, without the ``ALL_USERS`` aggregate."""

    @abstractmethod
    def list_users(self) -> list[str]:
        """Each username with at least one event, once."""

    @abstractmethod
    def list_events(self, limit: int, offset: int = 0) -> list[GenerationEvent]:
        """
        Page through events, newest first.

        Args:
            limit: Maximum number of events to return
            offset: Number of events to skip

        Returns:
            List of events ordered by timestamp descending
        """

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the backend is reachable.

        Returns:
            True if backend is healthy, False otherwise
        """

    def close(self) -> None:
        """Release backend resources."""
