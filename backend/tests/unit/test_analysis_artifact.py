"""Unit tests for the AnalysisArtifact document mapping."""

from datetime import datetime, timezone

from app.domain.entities import AnalysisArtifact, NO_RECORDS_TEXT


def test_to_document_uses_camel_case_keys():
    artifact = AnalysisArtifact(
        text="Summary",
        generated_by="openai",
        record_count=3,
        updated_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        comments_used=True,
    )

    document = artifact.to_document()

    assert document == {
        "text": "Summary",
        "generatedBy": "openai",
        "recordCount": 3,
        "updatedAt": "2024-01-02T03:04:05+00:00",
        "summariesUsed": False,
        "commentsUsed": True,
        "needsUpdate": False,
        "updateStartedAt": None,
    }
    assert AnalysisArtifact.from_document(document) == artifact


def test_from_document_tolerates_flag_only_document():
    artifact = AnalysisArtifact.from_document(
        {"needsUpdate": True, "lastRecordAdded": "2024-01-01T00:00:00Z"}
    )

    assert artifact.text == ""
    assert not artifact.has_text
    assert artifact.needs_update is True
    assert artifact.record_count == 0


def test_from_document_is_strict_about_boolean_flags():
    artifact = AnalysisArtifact.from_document(
        {"text": "x", "needsUpdate": "yes", "summariesUsed": 1, "recordCount": "bad"}
    )

    assert artifact.needs_update is False
    assert artifact.summaries_used is False
    assert artifact.record_count == 0


def test_naive_timestamps_are_read_as_utc():
    artifact = AnalysisArtifact.from_document({"text": "x", "updatedAt": "2024-01-01T10:00:00"})
    assert artifact.updated_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_no_records_artifact():
    artifact = AnalysisArtifact.no_records()

    assert artifact.text == NO_RECORDS_TEXT
    assert artifact.is_no_records
    assert artifact.record_count == 0
    assert artifact.summaries_used is False
    assert artifact.comments_used is False
    assert artifact.needs_update is False
    assert artifact.updated_at is not None
