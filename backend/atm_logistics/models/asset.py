"""
Asset model - one ATM, keyed by its serial number (ATM BNA ID).
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Integer, Boolean, Uuid
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from decimal import Decimal
from atm_logistics.db.database import Base


class Asset(Base):
    __tablename__ = "atms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    serial_number = Column(String, nullable=False, unique=True)  # Matched case-insensitively on import
    asset_status = Column(String, nullable=True)  # Company-specific status from the sheet
    status = Column(String, nullable=False, default="ACTIVE")
    location = Column(String, nullable=False)
    branch = Column(String, nullable=True)

    vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=True)
    import_batch_id = Column(Uuid, ForeignKey("import_batches.id"), nullable=True)

    # Cost quintuple from the sheet; value = total_amount, else vendor_cost, else 0
    value = Column(Numeric(15, 2), nullable=True)
    total_amount = Column(Numeric(15, 2), nullable=True)
    hold = Column(Numeric(15, 2), nullable=True)
    deduction = Column(Numeric(15, 2), nullable=True)
    final_amount = Column(Numeric(15, 2), nullable=True)
    vendor_cost = Column(Numeric(15, 2), nullable=True)

    installation_date = Column(Date, nullable=True)
    last_maintenance_date = Column(Date, nullable=True)
    next_maintenance_date = Column(Date, nullable=True)
    billing_month = Column(String, nullable=True)  # e.g. "Nov-25"
    billing_status = Column(String, nullable=True)
    pickup_date = Column(Date, nullable=True)
    delivery_date = Column(Date, nullable=True)
    amount_received = Column(String, nullable=True)
    notice_generated = Column(Boolean, nullable=False, default=False)

    manufacturer = Column(String, nullable=True)
    model = Column(String, nullable=True)
    cash_capacity = Column(Numeric(15, 2), nullable=True)
    current_cash_balance = Column(Numeric(15, 2), nullable=True, default=Decimal("0"))
    transaction_count = Column(Integer, nullable=False, default=0)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    vendor = relationship("Vendor", back_populates="assets")
    import_batch = relationship("ImportBatch", back_populates="assets")
    movements = relationship("Movement", back_populates="asset", passive_deletes=True)
    costings = relationship("Costing", back_populates="asset", passive_deletes=True)
