"""
Import Batch model - one uploaded spreadsheet and everything it produced.
"""
from sqlalchemy import Column, String, DateTime, Integer, BigInteger, JSON, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from atm_logistics.db.database import Base


class ImportBatchStatus(str, enum.Enum):
    CREATED = "created"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportBatch(Base):
    __tablename__ = "import_batches"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    original_filename = Column(String, nullable=False)
    stored_filename = Column(String, nullable=False, unique=True)  # "<uuid>_<original_filename>"
    storage_path = Column(String, nullable=True)
    file_size = Column(BigInteger, nullable=False, default=0)
    content_type = Column(String, nullable=True)
    status = Column(
        SQLEnum(
            ImportBatchStatus,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        default=ImportBatchStatus.CREATED.value,
    )

    total_rows = Column(Integer, nullable=False, default=0)
    unique_vendors = Column(Integer, nullable=False, default=0)
    vendors_created = Column(Integer, nullable=False, default=0)
    assets_created = Column(Integer, nullable=False, default=0)
    movements_created = Column(Integer, nullable=False, default=0)
    notes = Column(String(1000), nullable=True)
    summary = Column(JSON, nullable=True)  # Final per-stage counts of the import report

    created_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime, nullable=True)

    # Non-exclusive back-references; deletion is handled by import_lifecycle, not ORM cascades
    vendors = relationship("Vendor", back_populates="import_batch", passive_deletes=True)
    assets = relationship("Asset", back_populates="import_batch", passive_deletes=True)
    movements = relationship("Movement", back_populates="import_batch", passive_deletes=True)
