from .analysis import AnalysisOptionsUpdate, AnalysisView, CancelResponse
from .health_record import (
    HealthRecordCreate,
    HealthRecordUpdate,
    HealthRecordResponse,
    RecordSummaryUpsert,
    RecordSummaryResponse,
)

__all__ = [
    "AnalysisOptionsUpdate",
    "AnalysisView",
    "CancelResponse",
    "HealthRecordCreate",
    "HealthRecordUpdate",
    "HealthRecordResponse",
    "RecordSummaryUpsert",
    "RecordSummaryResponse",
]
