"""Abstract repository interface (port) for UserDocument persistence."""

from abc import ABC, abstractmethod
from typing import Any

from app.domain.entities import UserDocument


class UserDocumentRepository(ABC):
    """Port for user-scoped document persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get(self, user_id: str, collection: str, key: str) -> UserDocument | None:
        """Retrieve a single document by its path."""
        ...

    @abstractmethod
    async def list(
        self,
        user_id: str,
        collection: str,
        *,
        parent_key: str | None = None,
    ) -> list[UserDocument]:
        """Retrieve every document of a collection, oldest first."""
        ...

    @abstractmethod
    async def put(self, document: UserDocument) -> UserDocument:
        """Create the document or fully replace the body of an existing one."""
        ...

    @abstractmethod
    async def merge(
        self, user_id: str, collection: str, key: str, fields: dict[str, Any]
    ) -> UserDocument:
        """Merge fields into a document, creating it when missing."""
        ...

    @abstractmethod
    async def delete(self, user_id: str, collection: str, key: str) -> bool:
        """Delete a document. Returns True if deleted, False if not found."""
        ...
