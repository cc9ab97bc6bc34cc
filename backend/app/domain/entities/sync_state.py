"""Sync state machine for the holistic analysis — one immutable value per session.

Transitions are pure functions: each takes the current ``SyncState`` and
returns the next one. The controller owns a single state value and never
mutates it in place.

    idle → loading → {fresh, stale, empty} → updating → {fresh, error}
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from app.domain.entities.analysis_artifact import AnalysisArtifact, NO_ANALYSIS_TEXT


class SyncStatus(str, Enum):
    """Lifecycle states of a user's analysis session."""

    IDLE = "idle"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"
    EMPTY = "empty"
    UPDATING = "updating"
    ERROR = "error"


@dataclass(frozen=True)
class SyncState:
    """Everything the caller needs to render the analysis."""

    status: SyncStatus = SyncStatus.IDLE
    artifact: AnalysisArtifact | None = None
    error: str | None = None
    performance: dict[str, Any] | None = None

    @property
    def is_updating(self) -> bool:
        return self.status == SyncStatus.UPDATING

    @property
    def has_displayable_artifact(self) -> bool:
        return self.artifact is not None and self.artifact.has_text

    @property
    def display_text(self) -> str:
        if self.artifact is not None and self.artifact.has_text:
            return self.artifact.text
        return NO_ANALYSIS_TEXT


def begin_loading(state: SyncState) -> SyncState:
    return replace(state, status=SyncStatus.LOADING, error=None)


def artifact_loaded(
    state: SyncState,
    artifact: AnalysisArtifact,
    *,
    claim_ttl_seconds: float | None = None,
    now: datetime | None = None,
) -> SyncState:
    """An artifact with text was read — stale if flagged or its claim was abandoned."""
    stale = artifact.needs_update
    if not stale and claim_ttl_seconds is not None:
        stale = artifact.claim_expired(claim_ttl_seconds, now)
    return replace(
        state,
        status=SyncStatus.STALE if stale else SyncStatus.FRESH,
        artifact=artifact,
        error=None,
    )


def nothing_loaded(state: SyncState) -> SyncState:
    """Neither store holds an artifact."""
    return replace(state, status=SyncStatus.EMPTY, artifact=None, error=None)


def remote_unavailable(state: SyncState) -> SyncState:
    """The durable read failed — keep cached state, or fall back to empty."""
    if state.has_displayable_artifact:
        return state
    return nothing_loaded(state)


def begin_update(state: SyncState) -> SyncState:
    return replace(
        state,
        status=SyncStatus.UPDATING,
        error=None,
    )


def update_succeeded(
    state: SyncState,
    artifact: AnalysisArtifact,
    performance: dict[str, Any] | None = None,
) -> SyncState:
    return SyncState(
        status=SyncStatus.FRESH,
        artifact=artifact,
        performance=performance,
    )


def update_failed(state: SyncState, message: str) -> SyncState:
    """Generation failed — the previous artifact stays on display."""
    return replace(
        state,
        status=SyncStatus.ERROR,
        error=message,
    )


def options_changed(state: SyncState) -> SyncState:
    """New generation options make an existing artifact locally stale."""
    if state.status not in (SyncStatus.FRESH, SyncStatus.STALE, SyncStatus.ERROR):
        return state
    if not state.has_displayable_artifact or state.artifact.is_no_records:
        return state
    return replace(state, status=SyncStatus.STALE, error=None)


def marked_stale(state: SyncState) -> SyncState:
    """The durable artifact was flagged as needing an update."""
    if state.artifact is None:
        return state
    artifact = replace(state.artifact, needs_update=True)
    if state.status in (SyncStatus.FRESH, SyncStatus.ERROR) and artifact.has_text:
        return replace(state, status=SyncStatus.STALE, artifact=artifact, error=None)
    return replace(state, artifact=artifact)
