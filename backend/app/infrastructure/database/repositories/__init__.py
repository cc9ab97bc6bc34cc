from .user_document_repository import SQLAlchemyUserDocumentRepository
from .analysis_repository import SQLAlchemyAnalysisRepository
from .source_record_repository import SQLAlchemySourceRecordRepository

__all__ = [
    "SQLAlchemyUserDocumentRepository",
    "SQLAlchemyAnalysisRepository",
    "SQLAlchemySourceRecordRepository",
]
