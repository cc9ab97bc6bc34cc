"""Unit tests for the pure analysis state transitions."""

from datetime import datetime, timedelta, timezone

from app.domain.entities import AnalysisArtifact, NO_ANALYSIS_TEXT, SyncState, SyncStatus
from app.domain.entities.sync_state import (
    artifact_loaded,
    begin_loading,
    begin_update,
    marked_stale,
    nothing_loaded,
    options_changed,
    remote_unavailable,
    update_failed,
    update_succeeded,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _artifact(**overrides) -> AnalysisArtifact:
    values = {"text": "All good.", "generated_by": "openai", "record_count": 2}
    values.update(overrides)
    return AnalysisArtifact(**values)


def test_initial_state_is_idle_with_placeholder_text():
    state = SyncState()
    assert state.status == SyncStatus.IDLE
    assert state.display_text == NO_ANALYSIS_TEXT
    assert not state.has_displayable_artifact


def test_loaded_artifact_is_fresh_unless_flagged():
    state = begin_loading(SyncState())
    assert artifact_loaded(state, _artifact()).status == SyncStatus.FRESH
    assert artifact_loaded(state, _artifact(needs_update=True)).status == SyncStatus.STALE


def test_expired_claim_reads_as_stale():
    claimed = _artifact(update_started_at=NOW - timedelta(seconds=300))

    state = artifact_loaded(SyncState(), claimed, claim_ttl_seconds=120, now=NOW)

    assert state.status == SyncStatus.STALE


def test_recent_claim_does_not_make_artifact_stale():
    claimed = _artifact(update_started_at=NOW - timedelta(seconds=10))

    state = artifact_loaded(SyncState(), claimed, claim_ttl_seconds=120, now=NOW)

    assert state.status == SyncStatus.FRESH


def test_remote_unavailable_keeps_cached_artifact():
    cached = artifact_loaded(SyncState(), _artifact())
    assert remote_unavailable(cached) is cached


def test_remote_unavailable_without_cache_is_empty():
    state = remote_unavailable(begin_loading(SyncState()))
    assert state.status == SyncStatus.EMPTY
    assert state.artifact is None


def test_update_failure_keeps_previous_artifact():
    previous = artifact_loaded(SyncState(), _artifact(text="Old text"))

    failed = update_failed(begin_update(previous), "boom")

    assert failed.status == SyncStatus.ERROR
    assert failed.error == "boom"
    assert failed.display_text == "Old text"


def test_update_success_replaces_artifact_and_clears_error():
    failed = update_failed(begin_update(SyncState()), "boom")

    state = update_succeeded(failed, _artifact(text="New"), {"totalMs": 10})

    assert state.status == SyncStatus.FRESH
    assert state.error is None
    assert state.artifact.text == "New"
    assert state.performance == {"totalMs": 10}


def test_options_change_marks_existing_artifact_stale():
    fresh = artifact_loaded(SyncState(), _artifact())
    assert options_changed(fresh).status == SyncStatus.STALE


def test_options_change_ignored_without_artifact_or_while_updating():
    assert options_changed(nothing_loaded(SyncState())).status == SyncStatus.EMPTY

    updating = begin_update(artifact_loaded(SyncState(), _artifact()))
    assert options_changed(updating).status == SyncStatus.UPDATING


def test_options_change_ignored_for_no_records_artifact():
    state = update_succeeded(SyncState(), AnalysisArtifact.no_records(NOW))
    assert options_changed(state).status == SyncStatus.FRESH


def test_marked_stale_flags_artifact():
    fresh = artifact_loaded(SyncState(), _artifact())

    state = marked_stale(fresh)

    assert state.status == SyncStatus.STALE
    assert state.artifact.needs_update is True
    assert fresh.artifact.needs_update is False


def test_marked_stale_while_updating_keeps_status():
    updating = begin_update(artifact_loaded(SyncState(), _artifact()))

    state = marked_stale(updating)

    assert state.status == SyncStatus.UPDATING
    assert state.artifact.needs_update is True
