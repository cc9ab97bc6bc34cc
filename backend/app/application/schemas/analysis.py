"""Pydantic DTOs for the holistic analysis feature."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.application.interfaces import GenerationOptions
from app.domain.entities import SyncState, SyncStatus


class AnalysisView(BaseModel):
    """What a client needs to render the analysis panel."""

    user_id: str
    status: SyncStatus
    text: str
    has_analysis: bool
    generated_by: str | None = None
    record_count: int = 0
    updated_at: datetime | None = None
    summaries_used: bool = False
    comments_used: bool = False
    needs_update: bool = False
    is_updating: bool = False
    error: str | None = None
    performance: dict[str, Any] | None = None

    @classmethod
    def from_state(cls, user_id: str, state: SyncState) -> "AnalysisView":
        artifact = state.artifact
        view = cls(
            user_id=user_id,
            status=state.status,
            text=state.display_text,
            has_analysis=state.has_displayable_artifact,
            is_updating=state.is_updating,
            error=state.error,
            performance=state.performance,
        )
        if artifact is not None:
            view.generated_by = artifact.generated_by or None
            view.record_count = artifact.record_count
            view.updated_at = artifact.updated_at
            view.summaries_used = artifact.summaries_used
            view.comments_used = artifact.comments_used
            view.needs_update = artifact.needs_update
        return view


class AnalysisOptionsUpdate(BaseModel):
    """Generation options sent with the next regeneration."""

    use_source_summaries: bool = Field(True, description="Feed record summaries to the generator")
    include_comments: bool = Field(True, description="Feed user comments to the generator")
    include_profile: bool = True

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            use_source_summaries=self.use_source_summaries,
            include_comments=self.include_comments,
            include_profile=self.include_profile,
        )


class CancelResponse(BaseModel):
    cancelled: bool
    analysis: AnalysisView
