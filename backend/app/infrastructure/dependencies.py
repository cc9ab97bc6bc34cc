"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.application.interfaces import AnalysisCache, GenerationClient, GenerationOptions
from app.application.services import (
    AnalysisSessionRegistry,
    AnalysisSyncController,
    HealthRecordService,
    RecordAggregator,
    SSEManager,
    get_selection_strategy,
)
from app.infrastructure.cache.file_analysis_cache import FileAnalysisCache
from app.infrastructure.database.session import async_session_factory, get_db_session
from app.infrastructure.database.repositories import (
    SQLAlchemyAnalysisRepository,
    SQLAlchemySourceRecordRepository,
    SQLAlchemyUserDocumentRepository,
)
from app.infrastructure.generation import HttpGenerationClient


def get_analysis_cache() -> AnalysisCache:
    return FileAnalysisCache(cache_dir=get_settings().cache_dir)


def get_generation_client() -> GenerationClient:
    settings = get_settings()
    return HttpGenerationClient(
        endpoint_url=settings.generation_service_url,
        timeout_seconds=settings.generation_timeout_seconds,
    )


def build_analysis_controller(user_id: str) -> AnalysisSyncController:
    """Build a controller wired to the configured stores and generation service.

    The durable adapters open one short session per operation, so the
    controller can outlive the request that created it.
    """
    settings = get_settings()
    aggregator = RecordAggregator(
        SQLAlchemySourceRecordRepository(async_session_factory),
        max_records=settings.max_generation_records,
        selection_strategy=get_selection_strategy(settings.record_selection_strategy),
    )
    return AnalysisSyncController(
        user_id,
        cache=get_analysis_cache(),
        repository=SQLAlchemyAnalysisRepository(async_session_factory),
        aggregator=aggregator,
        generation_client=get_generation_client(),
        options=GenerationOptions(),
        claim_ttl_seconds=settings.update_claim_ttl_seconds,
    )


@lru_cache
def get_sse_manager() -> SSEManager:
    """Process-wide SSE broadcaster."""
    return SSEManager()


@lru_cache
def get_session_registry() -> AnalysisSessionRegistry:
    """Process-wide registry of live analysis sessions."""
    return AnalysisSessionRegistry(build_analysis_controller, get_sse_manager())


async def get_health_record_service(
    session: AsyncSession = Depends(get_db_session),
    registry: AnalysisSessionRegistry = Depends(get_session_registry),
) -> AsyncGenerator[HealthRecordService, None]:
    """Provides a HealthRecordService that notifies live analysis sessions of changes."""
    repository = SQLAlchemyUserDocumentRepository(session)
    yield HealthRecordService(repository, on_records_changed=registry.notify_stale)
