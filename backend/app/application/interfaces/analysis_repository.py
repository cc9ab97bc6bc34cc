"""Abstract repository interface (port) for the durable holistic analysis."""

from abc import ABC, abstractmethod
from typing import Any

from app.domain.entities import AnalysisArtifact


class AnalysisRepository(ABC):
    """Port for the canonical per-user analysis document.

    Raises:
        RemoteReadFailure: from ``get`` when the store cannot be read.
        RemoteWriteFailure: from ``save``/``merge`` when a write fails.
    """

    @abstractmethod
    async def get(self, user_id: str) -> AnalysisArtifact | None:
        """Return the stored artifact, or None when no document exists."""
        ...

    @abstractmethod
    async def save(self, user_id: str, artifact: AnalysisArtifact) -> None:
        """Fully replace the stored document with the artifact."""
        ...

    @abstractmethod
    async def merge(self, user_id: str, fields: dict[str, Any]) -> None:
        """Merge document fields (camelCase keys) without clobbering the rest."""
        ...
