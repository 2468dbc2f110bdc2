"""
Vendor model.
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Integer, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from decimal import Decimal
import enum
from atm_logistics.db.database import Base


class VendorStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)
    phone = Column(String, nullable=False, default="")
    status = Column(
        SQLEnum(
            VendorStatus,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
        default=VendorStatus.ACTIVE.value,
    )
    address = Column(String(500), nullable=True)
    contact_person = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)

    # Derived from the vendor's assets; only written by VendorReconciler.refresh_totals
    assets_allocated = Column(Integer, nullable=False, default=0)
    total_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    active_sites = Column(Integer, nullable=False, default=0)
    freight_category = Column(String, nullable=True)
    rating = Column(Numeric(3, 2), nullable=False, default=Decimal("0"))
    joined_date = Column(Date, nullable=True)
    contract_start_date = Column(Date, nullable=True)
    contract_end_date = Column(Date, nullable=True)
    notes = Column(String(1000), nullable=True)

    import_batch_id = Column(Uuid, ForeignKey("import_batches.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    import_batch = relationship("ImportBatch", back_populates="vendors")
    assets = relationship("Asset", back_populates="vendor")
