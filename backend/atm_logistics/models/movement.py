"""
Movement model - a physical relocation of an asset.
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from atm_logistics.db.database import Base


class MovementStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


def generate_tracking_number() -> str:
    return "TRK-" + uuid.uuid4().hex[:8].upper()


class Movement(Base):
    __tablename__ = "movements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, ForeignKey("atms.id"), nullable=False)
    import_batch_id = Column(Uuid, ForeignKey("import_batches.id"), nullable=True)

    from_location = Column(String, nullable=False)
    to_location = Column(String, nullable=False)
    movement_type = Column(String, nullable=False)  # Free-form, as written in the sheet
    status = Column(
        SQLEnum(
            MovementStatus,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
        default=MovementStatus.PENDING.value,
    )
    mode_of_bill = Column(String, nullable=True)
    docket_no = Column(String, nullable=True)
    business_group = Column(String, nullable=True)

    initiated_by = Column(String, nullable=False)
    initiated_date = Column(Date, nullable=False)
    expected_delivery = Column(Date, nullable=True)
    actual_delivery = Column(Date, nullable=True)
    tracking_number = Column(String, nullable=False, unique=True, default=generate_tracking_number)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    asset = relationship("Asset", back_populates="movements")
    import_batch = relationship("ImportBatch", back_populates="movements")
