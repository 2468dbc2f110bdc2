"""
Costing model - cost sheet raised alongside each imported asset.
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from atm_logistics.db.database import Base


class CostingStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Costing(Base):
    __tablename__ = "costings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    asset_id = Column(Uuid, ForeignKey("atms.id"), nullable=False)
    vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=False)

    base_cost = Column(Numeric(15, 2), nullable=False)
    maintenance_cost = Column(Numeric(15, 2), nullable=False)
    operational_cost = Column(Numeric(15, 2), nullable=False)
    margin = Column(Numeric(5, 2), nullable=False)
    total_cost = Column(Numeric(15, 2), nullable=False)
    status = Column(
        SQLEnum(
            CostingStatus,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
        default=CostingStatus.PENDING.value,
    )
    submitted_by = Column(String, nullable=False)
    submitted_date = Column(Date, nullable=False)
    approved_by = Column(String, nullable=True)
    approved_date = Column(Date, nullable=True)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    asset = relationship("Asset", back_populates="costings")
    vendor = relationship("Vendor")
