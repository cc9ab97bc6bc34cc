from .analysis_session_registry import AnalysisSessionRegistry
from .analysis_sync_controller import AnalysisSyncController
from .health_record_service import HealthRecordService
from .record_aggregator import RecordAggregate, RecordAggregator, get_selection_strategy
from .sse_manager import SSEManager

__all__ = [
    "AnalysisSessionRegistry",
    "AnalysisSyncController",
    "HealthRecordService",
    "RecordAggregate",
    "RecordAggregator",
    "get_selection_strategy",
    "SSEManager",
]
