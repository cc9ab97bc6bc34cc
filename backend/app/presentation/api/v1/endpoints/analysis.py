"""Holistic analysis endpoints — load, regenerate and observe a user's analysis."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.application.schemas.analysis import (
    AnalysisOptionsUpdate,
    AnalysisView,
    CancelResponse,
)
from app.application.services import AnalysisSessionRegistry, SSEManager
from app.application.services.analysis_session_registry import ANALYSIS_EVENT, channel_for
from app.domain.entities import SyncStatus
from app.infrastructure.dependencies import get_session_registry, get_sse_manager

router = APIRouter(prefix="/users/{user_id}/analysis", tags=["Analysis"])


@router.get("", response_model=AnalysisView)
async def get_analysis(
    user_id: str,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AnalysisView:
    """Current analysis view; the first request of a session runs the load cycle."""
    controller = registry.get(user_id)
    if controller.state.status == SyncStatus.IDLE:
        await controller.load()
    return AnalysisView.from_state(user_id, controller.state)


@router.post("/load", response_model=AnalysisView)
async def load_analysis(
    user_id: str,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AnalysisView:
    """Re-read the cache and the durable store."""
    state = await registry.get(user_id).load()
    return AnalysisView.from_state(user_id, state)


@router.post("/regenerate", response_model=AnalysisView)
async def regenerate_analysis(
    user_id: str,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AnalysisView:
    """Regenerate the analysis from the user's records.

    Returns the current state unchanged if a regeneration is already running.
    """
    state = await registry.get(user_id).regenerate()
    return AnalysisView.from_state(user_id, state)


@router.post("/cancel", response_model=CancelResponse)
async def cancel_analysis(
    user_id: str,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> CancelResponse:
    """Cancel the in-flight generation call, if any."""
    controller = registry.get(user_id)
    cancelled = controller.cancel()
    return CancelResponse(
        cancelled=cancelled,
        analysis=AnalysisView.from_state(user_id, controller.state),
    )


@router.post("/stale", response_model=AnalysisView)
async def mark_analysis_stale(
    user_id: str,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AnalysisView:
    """Flag the stored analysis as needing an update."""
    state = await registry.get(user_id).mark_stale()
    return AnalysisView.from_state(user_id, state)


@router.put("/options", response_model=AnalysisView)
async def update_analysis_options(
    user_id: str,
    data: AnalysisOptionsUpdate,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AnalysisView:
    """Change the options used by the next regeneration."""
    state = await registry.get(user_id).update_options(data.to_options())
    return AnalysisView.from_state(user_id, state)


# ── SSE Stream ───────────────────────────────────────────────────────


@router.get("/events")
async def analysis_event_stream(
    user_id: str,
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
    sse: SSEManager = Depends(get_sse_manager),
) -> StreamingResponse:
    """SSE endpoint for live analysis state updates.

    Clients connect via EventSource and receive 'analysis_state' events,
    starting with the current state.
    """
    controller = registry.get(user_id)
    initial = AnalysisView.from_state(user_id, controller.state).model_dump(mode="json")
    return StreamingResponse(
        sse.subscribe(channel_for(user_id), initial=(ANALYSIS_EVENT, initial)),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
