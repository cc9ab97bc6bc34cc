from .analysis_cache import AnalysisCache
from .analysis_repository import AnalysisRepository
from .generation_client import (
    GenerationClient,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
)
from .source_record_repository import SourceRecordRepository
from .user_document_repository import UserDocumentRepository

__all__ = [
    "AnalysisCache",
    "AnalysisRepository",
    "GenerationClient",
    "GenerationOptions",
    "GenerationRequest",
    "GenerationResult",
    "SourceRecordRepository",
    "UserDocumentRepository",
]
