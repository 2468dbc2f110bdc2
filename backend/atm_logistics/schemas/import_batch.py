"""
Import Batch schemas.
"""
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional, Dict, Any
from atm_logistics.models.import_batch import ImportBatchStatus


class ImportBatchResponse(BaseModel):
    id: UUID
    original_filename: str
    stored_filename: str
    file_size: int
    content_type: Optional[str] = None
    status: ImportBatchStatus
    total_rows: int = 0
    unique_vendors: int = 0
    vendors_created: int = 0
    assets_created: int = 0
    movements_created: int = 0
    notes: Optional[str] = None
    summary: Optional[Dict[str, Any]] = None
    created_at: datetime
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeletionSummaryResponse(BaseModel):
    import_batch_id: UUID
    costings_deleted: int
    assets_deleted: int
    movements_deleted: int
    vendors_deleted: int
    vendors_detached: int
    total_deleted: int
    message: str
