"""Domain entity — a user-scoped JSON document addressed by collection and key."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

# Collections under users/<user_id>/
RECORDS_COLLECTION = "records"
SUMMARIES_COLLECTION = "record_summaries"
ANALYSIS_COLLECTION = "analysis"
ANALYSIS_KEY = "holistic"


@dataclass
class UserDocument:
    """A JSON document stored at ``users/<user_id>/<collection>/<key>``.

    Health records, their summaries and the holistic analysis all live in
    this one store, distinguished by collection. ``parent_key`` links a
    sub-resource (e.g. a record summary) to the document it belongs to.
    """

    user_id: str
    collection: str
    key: str
    data: dict[str, Any]
    parent_key: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def path(self) -> str:
        return f"users/{self.user_id}/{self.collection}/{self.key}"

    def merge_data(self, fields: dict[str, Any]) -> None:
        """Merge fields into the body, leaving the others untouched."""
        self.data = {**self.data, **fields}
        self.updated_at = datetime.now(timezone.utc)
