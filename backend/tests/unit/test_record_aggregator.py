"""Unit tests for the RecordAggregator."""

import pytest

from app.application.interfaces import GenerationOptions, SourceRecordRepository
from app.application.services.record_aggregator import (
    RecordAggregator,
    get_selection_strategy,
    select_most_recent,
)
from app.domain.entities import RecordDetail, SourceRecord
from app.domain.exceptions import RemoteReadFailure


class FakeSourceRecordRepository(SourceRecordRepository):
    """In-memory fake repository for unit testing."""

    def __init__(self, records: list[SourceRecord], summaries: dict[str, str] | None = None):
        self._records = records
        self._summaries = summaries or {}
        self.failing_summaries: set[str] = set()
        self.fail_listing = False

    async def list_records(self, user_id: str) -> list[SourceRecord]:
        if self.fail_listing:
            raise RemoteReadFailure(f"users/{user_id}/records", "unavailable")
        return list(self._records)

    async def get_summary(self, user_id: str, record_id: str) -> str | None:
        if record_id in self.failing_summaries:
            raise RemoteReadFailure(f"users/{user_id}/record_summaries/{record_id}", "boom")
        return self._summaries.get(record_id)


def _records(count: int) -> list[SourceRecord]:
    return [
        SourceRecord(id=f"r{i}", name=f"Record {i}", record_date=f"2024-01-{i:02d}")
        for i in range(1, count + 1)
    ]


@pytest.mark.asyncio
async def test_no_records_gives_empty_aggregate():
    aggregate = await RecordAggregator(FakeSourceRecordRepository([])).aggregate("u1")

    assert aggregate.is_empty
    assert aggregate.details == []
    assert aggregate.record_names == ""


@pytest.mark.asyncio
async def test_truncates_to_first_fifteen_but_keeps_all_names():
    records = _records(20)
    aggregator = RecordAggregator(FakeSourceRecordRepository(records))

    aggregate = await aggregator.aggregate("u1")

    assert aggregate.total_count == 20
    assert [d.id for d in aggregate.details] == [f"r{i}" for i in range(1, 16)]
    assert aggregate.truncated
    assert aggregate.record_names == ", ".join(f"Record {i}" for i in range(1, 21))


@pytest.mark.asyncio
async def test_most_recent_strategy_keeps_latest_dates():
    aggregator = RecordAggregator(
        FakeSourceRecordRepository(_records(5)),
        max_records=2,
        selection_strategy=select_most_recent,
    )

    aggregate = await aggregator.aggregate("u1")

    assert [d.id for d in aggregate.details] == ["r5", "r4"]
    assert aggregate.total_count == 5


def test_most_recent_compares_dates_chronologically():
    details = [
        RecordDetail(id="iso", name="A", record_date="2024-01-05"),
        RecordDetail(id="us", name="B", record_date="03/12/2024"),
        RecordDetail(id="unknown", name="C", record_date="last spring"),
        RecordDetail(id="dotted", name="D", record_date="15.02.2024"),
        RecordDetail(id="missing", name="E"),
        RecordDetail(id="stamp", name="F", record_date="2023-12-31T23:30:00-02:00"),
    ]

    ranked = select_most_recent(details, 6)

    assert [d.id for d in ranked] == ["us", "dotted", "iso", "stamp", "unknown", "missing"]


@pytest.mark.asyncio
async def test_missing_and_failing_summaries_are_tolerated():
    records = _records(3)
    repo = FakeSourceRecordRepository(records, summaries={"r1": "Cholesterol high"})
    repo.failing_summaries.add("r2")

    aggregate = await RecordAggregator(repo).aggregate("u1")

    assert [d.summary for d in aggregate.details] == ["Cholesterol high", "", ""]
    assert aggregate.summaries_available is True


@pytest.mark.asyncio
async def test_comments_are_taken_verbatim_and_reported():
    records = [
        SourceRecord(id="a", name="A", comment="  felt dizzy "),
        SourceRecord(id="b", name="B", comment=""),
        SourceRecord(id="c", name="C", comment="after fasting"),
    ]

    aggregate = await RecordAggregator(FakeSourceRecordRepository(records)).aggregate("u1")

    assert [d.comment for d in aggregate.details] == ["  felt dizzy ", "", "after fasting"]
    assert aggregate.comments_available is True
    assert aggregate.summaries_available is False


@pytest.mark.asyncio
async def test_blank_name_falls_back_to_id():
    records = [SourceRecord(id="rec-9", name="  ")]

    aggregate = await RecordAggregator(FakeSourceRecordRepository(records)).aggregate("u1")

    assert aggregate.record_names == "rec-9"
    assert aggregate.details[0].name == "rec-9"


@pytest.mark.asyncio
async def test_listing_failure_propagates():
    repo = FakeSourceRecordRepository(_records(2))
    repo.fail_listing = True

    with pytest.raises(RemoteReadFailure):
        await RecordAggregator(repo).aggregate("u1")


@pytest.mark.asyncio
async def test_build_request_payload():
    records = [SourceRecord(id="r1", name="Lipids", record_type="lab", comment="note")]
    aggregator = RecordAggregator(FakeSourceRecordRepository(records, {"r1": "sum"}))
    aggregate = await aggregator.aggregate("u1")

    request = aggregator.build_request(
        "u1", aggregate, GenerationOptions(include_comments=False), timestamp_ms=1234
    )

    assert request.to_payload() == {
        "userId": "u1",
        "recordNames": "Lipids",
        "recordDetails": [
            {
                "id": "r1",
                "name": "Lipids",
                "recordType": "lab",
                "recordDate": "",
                "detailedAnalysis": "",
                "comment": "note",
                "summary": "sum",
            }
        ],
        "timestamp": 1234,
        "options": {
            "useSourceSummaries": True,
            "includeComments": False,
            "includeProfile": True,
        },
    }


def test_unknown_selection_strategy_is_rejected():
    with pytest.raises(ValueError, match="Unknown record selection strategy"):
        get_selection_strategy("random")


def test_max_records_must_be_positive():
    with pytest.raises(ValueError):
        RecordAggregator(FakeSourceRecordRepository([]), max_records=0)
