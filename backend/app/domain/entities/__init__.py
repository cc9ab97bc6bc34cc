from .analysis_artifact import (
    AnalysisArtifact,
    DEFAULT_GENERATED_BY,
    NO_ANALYSIS_TEXT,
    NO_RECORDS_TEXT,
)
from .source_record import SourceRecord, RecordDetail
from .sync_state import SyncState, SyncStatus
from .user_document import (
    UserDocument,
    ANALYSIS_COLLECTION,
    ANALYSIS_KEY,
    RECORDS_COLLECTION,
    SUMMARIES_COLLECTION,
)

__all__ = [
    "AnalysisArtifact",
    "DEFAULT_GENERATED_BY",
    "NO_ANALYSIS_TEXT",
    "NO_RECORDS_TEXT",
    "SourceRecord",
    "RecordDetail",
    "SyncState",
    "SyncStatus",
    "UserDocument",
    "ANALYSIS_COLLECTION",
    "ANALYSIS_KEY",
    "RECORDS_COLLECTION",
    "SUMMARIES_COLLECTION",
]
