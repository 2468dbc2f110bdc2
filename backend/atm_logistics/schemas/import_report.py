"""
Import result schemas.
"""
from pydantic import BaseModel
from typing import Optional, List, Dict
from atm_logistics.schemas.import_batch import ImportBatchResponse
from atm_logistics.services.import_report import RowOutcome


class RowResultResponse(BaseModel):
    row_number: int
    outcome: RowOutcome
    key: Optional[str] = None
    message: Optional[str] = None

    class Config:
        from_attributes = True


class StageReportResponse(BaseModel):
    stage: str
    total_processed: int
    created: int
    updated: int
    skipped: int
    errors: int
    details: List[RowResultResponse] = []

    class Config:
        from_attributes = True


class ExtractionSummary(BaseModel):
    total_rows: int
    unique_vendors: int
    vendor_rows: Dict[str, List[int]] = {}
    warnings: List[str] = []
    message: str

    class Config:
        from_attributes = True


class ImportResponse(BaseModel):
    batch: ImportBatchResponse
    extraction: ExtractionSummary
    vendors_created: int
    costings_created: int
    assets: StageReportResponse
    movements: StageReportResponse

    class Config:
        from_attributes = True
