"""Domain entity for the per-user holistic analysis artifact."""

from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from typing import Any

NO_RECORDS_TEXT = "No health records found. Please upload some medical records first."
NO_ANALYSIS_TEXT = "No analysis available yet. Please upload some medical records first."
DEFAULT_GENERATED_BY = "openai"

# Artifact field → key in the stored document
_DOCUMENT_KEYS = {
    "text": "text",
    "generated_by": "generatedBy",
    "record_count": "recordCount",
    "updated_at": "updatedAt",
    "summaries_used": "summariesUsed",
    "comments_used": "commentsUsed",
    "needs_update": "needsUpdate",
    "update_started_at": "updateStartedAt",
}


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (or datetime) into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class AnalysisArtifact:
    """The single generated health summary kept per user.

    The durable store holds the canonical copy; the local cache holds a
    mirror of the same fields. ``needs_update`` is set by record mutations
    and cleared only by a successful regeneration. ``update_started_at`` is
    the in-progress claim written while a regeneration runs.
    """

    text: str = ""
    generated_by: str = ""
    record_count: int = 0
    updated_at: datetime | None = None
    summaries_used: bool = False
    comments_used: bool = False
    needs_update: bool = False
    update_started_at: datetime | None = None

    @property
    def has_text(self) -> bool:
        return bool(self.text)

    @property
    def is_no_records(self) -> bool:
        return self.text == NO_RECORDS_TEXT

    def claim_expired(self, ttl_seconds: float, now: datetime | None = None) -> bool:
        """True when an in-progress claim exists and is older than ``ttl_seconds``."""
        if self.update_started_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now - self.update_started_at > timedelta(seconds=ttl_seconds)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase document shape shared by both stores."""
        document: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in ("updated_at", "update_started_at"):
                value = _format_timestamp(value)
            document[_DOCUMENT_KEYS[f.name]] = value
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "AnalysisArtifact":
        """Build an artifact from a stored document, tolerating partial documents.

        Documents written only with a staleness flag (no text) are valid and
        produce an artifact with empty text.
        """
        try:
            record_count = int(data.get("recordCount") or 0)
        except (TypeError, ValueError):
            record_count = 0
        return cls(
            text=str(data.get("text") or ""),
            generated_by=str(data.get("generatedBy") or ""),
            record_count=record_count,
            updated_at=_parse_timestamp(data.get("updatedAt")),
            summaries_used=data.get("summariesUsed") is True,
            comments_used=data.get("commentsUsed") is True,
            needs_update=data.get("needsUpdate") is True,
            update_started_at=_parse_timestamp(data.get("updateStartedAt")),
        )

    @classmethod
    def no_records(cls, now: datetime | None = None) -> "AnalysisArtifact":
        """The fixed artifact stored when a user has no source records."""
        return cls(
            text=NO_RECORDS_TEXT,
            generated_by="",
            record_count=0,
            updated_at=now or datetime.now(timezone.utc),
        )


def document_key(field_name: str) -> str:
    """Map an artifact attribute name to its stored document key."""
    return _DOCUMENT_KEYS[field_name]
