"""Analysis sync controller — keeps one user's holistic analysis coherent.

Three tiers hold (or produce) the artifact:
  1. Local cache      — instant, possibly stale, best-effort
  2. Remote store     — canonical, may lag behind an in-flight regeneration
  3. Generation service — slow, bounded by a hard timeout

Ordering within one cycle: the cache read precedes the remote read, and the
remote read/verify precedes the final cache refresh, so the remote copy
always wins. Only one regeneration runs per session at a time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime, timezone

from app.application.interfaces import (
    AnalysisCache,
    AnalysisRepository,
    GenerationClient,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
)
from app.application.services.record_aggregator import RecordAggregate, RecordAggregator
from app.domain.entities import DEFAULT_GENERATED_BY, AnalysisArtifact, SyncState
from app.domain.entities.analysis_artifact import document_key
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
from app.domain.exceptions import (
    GenerationFailure,
    GenerationTimeout,
    PersistFallbackFailure,
    RemoteReadFailure,
    RemoteWriteFailure,
    VerificationMismatch,
)
from app.infrastructure.logging.sync_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("AnalysisSyncController")

StateListener = Callable[[SyncState], Awaitable[None]]

GENERATION_CANCELLED_MESSAGE = "Analysis generation was cancelled."


def _timeout_message(exc: GenerationTimeout) -> str:
    return (
        f"Analysis generation timed out after {exc.timeout_seconds:g} seconds. "
        "Please try again."
    )


def _failure_message(reason: object) -> str:
    return f"Error updating holistic analysis: {reason}"


class AnalysisSyncController:
    """Application service — the per-session state machine driver.

    Holds a single ``SyncState`` value and replaces it through the pure
    transitions in ``app.domain.entities.sync_state``. Listeners are awaited
    on every transition (used to push state to connected clients).
    """

    def __init__(
        self,
        user_id: str,
        *,
        cache: AnalysisCache,
        repository: AnalysisRepository,
        aggregator: RecordAggregator,
        generation_client: GenerationClient,
        options: GenerationOptions | None = None,
        claim_ttl_seconds: float = 120.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self._user_id = user_id
        self._cache = cache
        self._repository = repository
        self._aggregator = aggregator
        self._generation_client = generation_client
        self._options = options or GenerationOptions()
        self._claim_ttl_seconds = claim_ttl_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._state = SyncState()
        self._listeners: list[StateListener] = []
        self._generation_task: asyncio.Task[GenerationResult] | None = None
        self._cancel_requested = False

    # ── Accessors ───────────────────────────────────────────────────

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def options(self) -> GenerationOptions:
        return self._options

    @property
    def is_updating(self) -> bool:
        return self._state.is_updating

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def _transition(self, state: SyncState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                await listener(state)
            except Exception:
                logger.exception("Sync state listener failed for user %s", self._user_id)

    # ── Loading cycle ───────────────────────────────────────────────

    async def load(self) -> SyncState:
        """Render from the cache, then refresh from the remote store.

        A no-op while a regeneration is in flight.
        """
        if self._state.is_updating:
            slog.detail("Load skipped — regeneration in flight", user=self._user_id)
            return self._state

        await self._transition(begin_loading(self._state))

        cached = self._cache.get(self._user_id)
        await asyncio.sleep(0)
        has_cached = cached is not None and cached.has_text
        if has_cached:
            slog.step(
                SyncStage.CACHE,
                "Rendering cached analysis",
                user=self._user_id,
                needs_update=cached.needs_update,
            )
            await self._transition(self._loaded(cached))
        else:
            slog.detail("No cached analysis", user=self._user_id)

        try:
            remote = await self._repository.get(self._user_id)
        except RemoteReadFailure as exc:
            slog.warning(SyncStage.REMOTE, "Remote read failed — keeping local state", error=exc)
            await self._transition(remote_unavailable(self._state))
            return self._state

        if remote is not None and remote.has_text:
            slog.step(
                SyncStage.REMOTE,
                "Remote analysis loaded",
                user=self._user_id,
                needs_update=remote.needs_update,
                records=remote.record_count,
            )
            await self._transition(self._loaded(remote))
            self._cache.set(self._user_id, remote)
        elif not has_cached:
            slog.step(SyncStage.REMOTE, "No analysis stored", user=self._user_id)
            await self._transition(nothing_loaded(self._state))
            self._cache.clear(self._user_id)
        elif remote is not None and remote.needs_update:
            # Flag-only document: the cached text stays, but it is stale
            await self._transition(marked_stale(self._state))
            self._cache.set(self._user_id, self._state.artifact)

        return self._state

    def _loaded(self, artifact: AnalysisArtifact) -> SyncState:
        return artifact_loaded(
            self._state,
            artifact,
            claim_ttl_seconds=self._claim_ttl_seconds,
            now=self._clock(),
        )

    # ── Update cycle ────────────────────────────────────────────────

    async def regenerate(self) -> SyncState:
        """Regenerate the analysis from the user's current records.

        Re-entrant calls while an update is in flight return the current
        state without touching any tier.
        """
        if self._state.is_updating:
            slog.detail("Regeneration already in flight — request ignored", user=self._user_id)
            return self._state

        await self._transition(begin_update(self._state))
        self._cancel_requested = False

        try:
            return await self._update_cycle()
        except asyncio.CancelledError:
            # The caller went away; release the claim and tell listeners
            await asyncio.shield(self._fail(GENERATION_CANCELLED_MESSAGE, None))
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while updating analysis for %s", self._user_id)
            return await self._fail(_failure_message(exc), exc)

    async def _update_cycle(self) -> SyncState:
        await self._claim_update()

        try:
            aggregate = await self._aggregator.aggregate(self._user_id)
        except RemoteReadFailure as exc:
            return await self._fail(_failure_message(exc), exc)

        if aggregate.is_empty:
            return await self._store_no_records()

        request = self._aggregator.build_request(self._user_id, aggregate, self._options)
        try:
            result = await self._run_generation(request)
        except GenerationTimeout as exc:
            return await self._fail(_timeout_message(exc), exc)
        except GenerationFailure as exc:
            return await self._fail(_failure_message(exc.message), exc)
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            return await self._fail(GENERATION_CANCELLED_MESSAGE, None)

        artifact = self._artifact_from(result, aggregate)
        durable = await self._reconcile(artifact, persisted_by_service=result.persisted_by_service)

        self._cache.set(self._user_id, durable)
        await self._transition(
            update_succeeded(self._state, durable, result.performance_metrics)
        )
        slog.step_complete(
            SyncStage.COMPLETE,
            "Analysis updated",
            user=self._user_id,
            records=durable.record_count,
            sent=result.record_count,
        )
        return self._state

    async def _run_generation(self, request: GenerationRequest) -> GenerationResult:
        """Run the generation call as its own task so ``cancel`` can abort it."""
        self._generation_task = asyncio.create_task(self._generation_client.generate(request))
        try:
            with slog.timed_step(
                SyncStage.GENERATE,
                "Generating holistic analysis",
                records=len(request.record_details),
            ):
                return await self._generation_task
        finally:
            self._generation_task = None

    def cancel(self) -> bool:
        """Abort the in-flight generation call, if any.

        Writes already committed to the remote store are not rolled back.
        """
        task = self._generation_task
        if task is None or task.done():
            return False
        self._cancel_requested = True
        task.cancel()
        return True

    def _artifact_from(self, result: GenerationResult, aggregate: RecordAggregate) -> AnalysisArtifact:
        summaries_used = result.summaries_used
        if summaries_used is None:
            summaries_used = aggregate.summaries_available and self._options.use_source_summaries
        comments_used = result.comments_used
        if comments_used is None:
            comments_used = aggregate.comments_available and self._options.include_comments

        return AnalysisArtifact(
            text=result.text,
            generated_by=result.generated_by or DEFAULT_GENERATED_BY,
            record_count=aggregate.total_count,
            updated_at=self._clock(),
            summaries_used=summaries_used,
            comments_used=comments_used,
            needs_update=False,
        )

    async def _store_no_records(self) -> SyncState:
        slog.step(SyncStage.AGGREGATE, "No source records — storing placeholder", user=self._user_id)
        artifact = AnalysisArtifact.no_records(self._clock())
        durable = await self._persist(artifact)
        self._cache.set(self._user_id, durable)
        await self._transition(update_succeeded(self._state, durable))
        return self._state

    # ── Claim marker ────────────────────────────────────────────────

    async def _claim_update(self) -> None:
        """Record an in-progress marker; ``needsUpdate`` is left untouched."""
        started = self._clock().isoformat()
        try:
            await self._repository.merge(self._user_id, {document_key("update_started_at"): started})
        except RemoteWriteFailure as exc:
            slog.warning(SyncStage.REMOTE, "Could not record update claim", error=exc)

    async def _release_claim(self) -> None:
        try:
            await self._repository.merge(self._user_id, {document_key("update_started_at"): None})
        except RemoteWriteFailure as exc:
            slog.warning(SyncStage.REMOTE, "Could not release update claim — it will expire", error=exc)

    # ── Reconciliation ──────────────────────────────────────────────

    async def _reconcile(self, artifact: AnalysisArtifact, *, persisted_by_service: bool) -> AnalysisArtifact:
        """Make the remote store hold ``artifact``; return the value known durable."""
        if not persisted_by_service:
            slog.detail("Service did not persist the analysis — writing it", user=self._user_id)
            return await self._persist(artifact)

        try:
            stored = await self._repository.get(self._user_id)
        except RemoteReadFailure as exc:
            slog.warning(SyncStage.VERIFY, "Read-back failed", error=exc)
            stored = None

        if stored is None or stored.text != artifact.text:
            mismatch = VerificationMismatch(
                self._user_id,
                expected_length=len(artifact.text),
                found_length=len(stored.text) if stored is not None else None,
            )
            slog.warning(SyncStage.VERIFY, "Verification failed — writing fallback copy", error=mismatch)
            return await self._persist(artifact)

        slog.step_complete(SyncStage.VERIFY, "Service-persisted analysis verified", user=self._user_id)
        return await self._align_metadata(stored, artifact)

    async def _align_metadata(self, stored: AnalysisArtifact, artifact: AnalysisArtifact) -> AnalysisArtifact:
        """Merge the fields the service stored differently (e.g. its truncated count)."""
        stored_document = stored.to_document()
        drift = {
            key: value
            for key, value in artifact.to_document().items()
            if stored_document.get(key) != value
        }
        if not drift:
            return stored
        try:
            await self._repository.merge(self._user_id, drift)
        except RemoteWriteFailure as exc:
            slog.step_error(
                SyncStage.PERSIST,
                "Analysis metadata not confirmed durable",
                error=PersistFallbackFailure(self._user_id, str(exc)),
            )
        return artifact

    async def _persist(self, artifact: AnalysisArtifact) -> AnalysisArtifact:
        """Full write followed by a read-back; falls back to the in-memory value."""
        try:
            await self._repository.save(self._user_id, artifact)
            stored = await self._repository.get(self._user_id)
        except (RemoteWriteFailure, RemoteReadFailure) as exc:
            slog.step_error(
                SyncStage.PERSIST,
                "Analysis not confirmed durable",
                error=PersistFallbackFailure(self._user_id, str(exc)),
            )
            return artifact

        if stored is None or stored.to_document() != artifact.to_document():
            slog.step_error(
                SyncStage.PERSIST,
                "Analysis not confirmed durable",
                error=PersistFallbackFailure(self._user_id, "read-back differs from written analysis"),
            )
            return artifact

        slog.step_complete(SyncStage.PERSIST, "Analysis written and read back", user=self._user_id)
        return stored

    async def _fail(self, message: str, exc: Exception | None) -> SyncState:
        slog.step_error(SyncStage.ERROR, message, error=exc)
        await self._release_claim()
        await self._transition(update_failed(self._state, message))
        return self._state

    # ── Options & staleness ─────────────────────────────────────────

    async def update_options(self, options: GenerationOptions) -> SyncState:
        """Switch generation options; an existing artifact becomes locally stale."""
        if options == self._options:
            return self._state
        self._options = options
        await self._transition(options_changed(self._state))
        return self._state

    async def mark_stale(self, *, persist: bool = True) -> SyncState:
        """Flag the artifact as needing an update.

        With ``persist=False`` the flag is assumed to be already stored (the
        record-mutation path writes it in its own transaction).
        """
        if persist:
            try:
                await self._repository.merge(self._user_id, {document_key("needs_update"): True})
            except RemoteWriteFailure as exc:
                slog.warning(SyncStage.REMOTE, "Could not store staleness flag", error=exc)

        cached = self._cache.get(self._user_id)
        if cached is not None:
            self._cache.set(self._user_id, replace(cached, needs_update=True))

        await self._transition(marked_stale(self._state))
        return self._state
