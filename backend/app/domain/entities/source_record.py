"""Domain entities for the health records that feed the holistic analysis."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class SourceRecord:
    """One uploaded or manually entered health record.

    Owned by the record-management flows; the analysis engine only reads it.
    The summary is a separate sub-resource fetched on demand.
    """

    id: str
    name: str = ""
    record_type: str = ""
    record_date: str = ""
    comment: str = ""
    detailed_analysis: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def display_name(self) -> str:
        """Record name, falling back to the id when blank."""
        return self.name.strip() or self.id


@dataclass
class RecordDetail:
    """Per-record input sent to the generation service."""

    id: str
    name: str
    record_type: str = ""
    record_date: str = ""
    detailed_analysis: str = ""
    comment: str = ""
    summary: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the generation service's camelCase wire format."""
        return {
            "id": self.id,
            "name": self.name,
            "recordType": self.record_type,
            "recordDate": self.record_date,
            "detailedAnalysis": self.detailed_analysis,
            "comment": self.comment,
            "summary": self.summary,
        }
