"""Abstract repository interface (port) for reading a user's health records."""

from abc import ABC, abstractmethod

from app.domain.entities import SourceRecord


class SourceRecordRepository(ABC):
    """Read-only port over the records the holistic analysis is built from."""

    @abstractmethod
    async def list_records(self, user_id: str) -> list[SourceRecord]:
        """Return all of the user's records in enumeration (creation) order.

        Raises:
            RemoteReadFailure: If the records cannot be read.
        """
        ...

    @abstractmethod
    async def get_summary(self, user_id: str, record_id: str) -> str | None:
        """Return the record's summary text, or None when it has none."""
        ...
