"""Record aggregation — turns a user's health records into a generation request.

For every record the summary sub-resource is fetched (its absence is fine)
and the record's own comment is taken verbatim. The resulting details are
bounded to a fixed number of entries by a selection strategy; the joined
list of record names always covers every record.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from app.application.interfaces import (
    GenerationOptions,
    GenerationRequest,
    SourceRecordRepository,
)
from app.domain.entities import RecordDetail, SourceRecord
from app.domain.exceptions import RemoteReadFailure
from app.infrastructure.logging.sync_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("RecordAggregator")

DEFAULT_MAX_RECORDS = 15

# (details in enumeration order, limit) → details to send
SelectionStrategy = Callable[[list[RecordDetail], int], list[RecordDetail]]


def select_first(details: list[RecordDetail], limit: int) -> list[RecordDetail]:
    """Keep the first ``limit`` details in enumeration order."""
    return details[:limit]


# Tried in order after ISO-8601
_RECORD_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%d.%m.%Y")


def parse_record_date(value: str) -> datetime | None:
    """Parse a record date to a naive UTC datetime, or None when unrecognised."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        parsed = None
        for fmt in _RECORD_DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _recency_key(detail: RecordDetail) -> tuple[bool, datetime]:
    parsed = parse_record_date(detail.record_date)
    return parsed is not None, parsed or datetime.min


def select_most_recent(details: list[RecordDetail], limit: int) -> list[RecordDetail]:
    """Keep the ``limit`` details with the latest record date.

    Dates are compared chronologically: ISO-8601 first, then ``MM/DD/YYYY``,
    ``YYYY/MM/DD`` and ``DD.MM.YYYY``. Missing or unrecognised dates rank
    last. Ties keep enumeration order.
    """
    ranked = sorted(details, key=_recency_key, reverse=True)
    return ranked[:limit]


SELECTION_STRATEGIES: dict[str, SelectionStrategy] = {
    "first": select_first,
    "most_recent": select_most_recent,
}


def get_selection_strategy(name: str) -> SelectionStrategy:
    try:
        return SELECTION_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown record selection strategy '{name}' "
            f"(expected one of: {', '.join(SELECTION_STRATEGIES)})"
        ) from None


@dataclass
class RecordAggregate:
    """The bounded generation input built from one user's records."""

    record_names: str
    details: list[RecordDetail]
    total_count: int
    summaries_available: bool = False
    comments_available: bool = False

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    @property
    def truncated(self) -> bool:
        return len(self.details) < self.total_count


class RecordAggregator:
    """Collects source records and assembles the generation request."""

    def __init__(
        self,
        record_repository: SourceRecordRepository,
        *,
        max_records: int = DEFAULT_MAX_RECORDS,
        selection_strategy: SelectionStrategy = select_first,
    ):
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self._records = record_repository
        self._max_records = max_records
        self._select = selection_strategy

    async def aggregate(self, user_id: str) -> RecordAggregate:
        """Read every record of the user and build the bounded detail list.

        Raises:
            RemoteReadFailure: If the record list itself cannot be read.
        """
        records = await self._records.list_records(user_id)
        slog.step(SyncStage.AGGREGATE, "Fetched source records", user=user_id, count=len(records))

        details: list[RecordDetail] = []
        for record in records:
            summary = await self._fetch_summary(user_id, record)
            details.append(
                RecordDetail(
                    id=record.id,
                    name=record.display_name,
                    record_type=record.record_type,
                    record_date=record.record_date,
                    detailed_analysis=record.detailed_analysis,
                    comment=record.comment,
                    summary=summary,
                )
            )

        selected = details
        if len(details) > self._max_records:
            selected = self._select(details, self._max_records)
            slog.detail(
                f"Limiting records from {len(details)} to {len(selected)}",
                user=user_id,
            )

        return RecordAggregate(
            record_names=", ".join(r.display_name for r in records),
            details=selected,
            total_count=len(records),
            summaries_available=any(d.summary.strip() for d in selected),
            comments_available=any(d.comment.strip() for d in selected),
        )

    async def _fetch_summary(self, user_id: str, record: SourceRecord) -> str:
        """Return the record's summary text, or "" when missing or unreadable."""
        try:
            summary = await self._records.get_summary(user_id, record.id)
        except RemoteReadFailure as exc:
            logger.warning("Summary for record %s unavailable: %s", record.display_name, exc)
            return ""
        return summary or ""

    def build_request(
        self,
        user_id: str,
        aggregate: RecordAggregate,
        options: GenerationOptions,
        *,
        timestamp_ms: int | None = None,
    ) -> GenerationRequest:
        """Assemble the generation service payload from an aggregate."""
        return GenerationRequest(
            user_id=user_id,
            record_names=aggregate.record_names,
            record_details=list(aggregate.details),
            options=options,
            timestamp=timestamp_ms if timestamp_ms is not None else int(time.time() * 1000),
        )
