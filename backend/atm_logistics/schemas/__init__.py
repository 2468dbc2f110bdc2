from .import_batch import ImportBatchResponse, DeletionSummaryResponse
from .import_report import RowResultResponse, StageReportResponse, ExtractionSummary, ImportResponse

__all__ = [
    "ImportBatchResponse",
    "DeletionSummaryResponse",
    "RowResultResponse",
    "StageReportResponse",
    "ExtractionSummary",
    "ImportResponse",
]
