"""Abstract interface (port) for the local analysis cache."""

from abc import ABC, abstractmethod

from app.domain.entities import AnalysisArtifact


class AnalysisCache(ABC):
    """Port for the fast, possibly stale local mirror of a user's analysis.

    Synchronous and best-effort: implementations log failures and never
    raise them to the caller.
    """

    @staticmethod
    def key_for(user_id: str) -> str:
        return f"analysis_{user_id}"

    @abstractmethod
    def get(self, user_id: str) -> AnalysisArtifact | None:
        """Return the cached artifact, or None when absent or unreadable."""
        ...

    @abstractmethod
    def set(self, user_id: str, artifact: AnalysisArtifact) -> None:
        """Store the artifact (including its staleness flag)."""
        ...

    @abstractmethod
    def clear(self, user_id: str) -> None:
        """Remove the cached entry if any."""
        ...
