"""Abstract interface (port) for the external analysis generation service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from app.domain.entities import RecordDetail


@dataclass(frozen=True)
class GenerationOptions:
    """Caller-selected inputs for a generation run."""

    use_source_summaries: bool = True
    include_comments: bool = True
    include_profile: bool = True

    def to_payload(self) -> dict[str, bool]:
        return {
            "useSourceSummaries": self.use_source_summaries,
            "includeComments": self.include_comments,
            "includeProfile": self.include_profile,
        }


@dataclass
class GenerationRequest:
    """Request payload for one holistic analysis generation."""

    user_id: str
    record_names: str  # all record names, joined for provenance
    record_details: list[RecordDetail]  # possibly truncated
    options: GenerationOptions = field(default_factory=GenerationOptions)
    timestamp: int = 0  # epoch milliseconds

    def to_payload(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "recordNames": self.record_names,
            "recordDetails": [d.to_payload() for d in self.record_details],
            "timestamp": self.timestamp,
            "options": self.options.to_payload(),
        }


@dataclass
class GenerationResult:
    """Normalized response from the generation service."""

    text: str
    generated_by: str | None = None
    record_count: int = 0  # details actually sent for generation
    persisted_by_service: bool = False
    summaries_used: bool | None = None  # None when the service did not say
    comments_used: bool | None = None
    performance_metrics: dict[str, Any] | None = None


class GenerationClient(ABC):
    """Port for the slow, external text-generation service."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one generation with a hard timeout. Never retries.

        Raises:
            GenerationTimeout: If the call exceeds the configured timeout.
            GenerationFailure: If the service fails or returns an invalid payload.
        """
        ...
