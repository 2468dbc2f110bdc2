"""
Asset reconciliation - insert, update or skip one ATM per import row.
"""
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from atm_logistics.models import Asset, Costing, CostingStatus, ImportBatch, Vendor
from atm_logistics.services.batch_commit import BatchWriter, commit_unit
from atm_logistics.services.cell_coercion import parse_date
from atm_logistics.services.import_report import RowOutcome, StageReport
from atm_logistics.services.row_extractor import ImportRecord
from atm_logistics.services.vendor_reconciler import VendorReconciler

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Values written when the sheet leaves a field empty; duplicate checks compare through the same defaults
DEFAULT_LOCATION = "Unknown"
DEFAULT_ASSET_STATUS = "Unknown"
DEFAULT_BILLING_MONTH = "N/A"
DEFAULT_BILLING_STATUS = "PENDING"
DEFAULT_MANUFACTURER = "Standard"
DEFAULT_MODEL = "Model-Unknown"


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _same_text(existing: Optional[str], incoming: Optional[str], default: str) -> bool:
    left = _text(existing) or default
    right = _text(incoming) or default
    return left.lower() == right.lower()


def derive_value(total_cost: Optional[Decimal], per_asset_cost: Optional[Decimal]) -> Optional[Decimal]:
    """Asset value: total cost if positive, else per-asset cost if positive."""
    if total_cost is not None and total_cost > 0:
        return total_cost
    if per_asset_cost is not None and per_asset_cost > 0:
        return per_asset_cost
    return None


def is_exact_duplicate(existing: Asset, record: ImportRecord, vendor: Vendor) -> bool:
    if not _same_text(existing.location, record.from_location, DEFAULT_LOCATION):
        return False
    if existing.vendor_id != vendor.id:
        return False
    if record.total_cost is not None:
        if existing.total_amount is None or Decimal(existing.total_amount) != record.total_cost:
            return False
    if not _same_text(existing.billing_month, record.billing_month, DEFAULT_BILLING_MONTH):
        return False
    if not _same_text(existing.billing_status, record.billing, DEFAULT_BILLING_STATUS):
        return False
    return True


class AssetReconciler:
    def __init__(
        self,
        db: Session,
        vendors: VendorReconciler,
        costings: BatchWriter,
        report: StageReport,
        batch: Optional[ImportBatch] = None,
    ):
        self.db = db
        self.vendors = vendors
        self.costings = costings
        self.report = report
        self.batch_id = batch.id if batch is not None else None

    def find_by_serial(self, serial: str) -> Optional[Asset]:
        return (
            self.db.query(Asset)
            .filter(func.lower(Asset.serial_number) == serial.strip().lower())
            .first()
        )

    def reconcile(self, record: ImportRecord, vendor: Vendor) -> Asset:
        """
        Insert, update or skip the asset of one row.

        The row must carry an ATM BNA ID. Returns the asset the row refers to.
        """
        serial = record.atm_bna_id.strip()
        existing = self.find_by_serial(serial)
        if existing is None:
            return self._create(record, serial, vendor)

        if is_exact_duplicate(existing, record, vendor):
            self.report.record(
                record.row_number,
                RowOutcome.SKIPPED_DUPLICATE,
                key=serial,
                message=f"ATM {serial} already exists with identical data",
            )
            return existing

        self._update(existing, record, vendor)
        self.report.record(
            record.row_number,
            RowOutcome.UPDATED,
            key=serial,
            message=f"ATM-{serial} updated with new data from vendor {vendor.name}",
        )
        logger.info("Updated asset %s", serial)
        return existing

    def _create(self, record: ImportRecord, serial: str, vendor: Vendor) -> Asset:
        total_amount = record.total_cost if record.total_cost is not None else ZERO
        hold = record.hold if record.hold is not None else ZERO
        deduction = record.deduction if record.deduction is not None else ZERO
        final_amount = record.final_amount if record.final_amount is not None else ZERO
        vendor_cost = record.per_asset_cost if record.per_asset_cost is not None else ZERO
        description = _text(record.assets_service_description)

        asset = Asset(
            id=uuid.uuid4(),
            name=f"ATM-{serial}",
            serial_number=serial,
            location=_text(record.from_location) or DEFAULT_LOCATION,
            branch=_text(record.from_state),
            vendor_id=vendor.id,
            import_batch_id=self.batch_id,
            asset_status=_text(record.status) or DEFAULT_ASSET_STATUS,
            status="ACTIVE",
            manufacturer=DEFAULT_MANUFACTURER,
            model=DEFAULT_MODEL,
            transaction_count=0,
            current_cash_balance=ZERO,
            billing_month=_text(record.billing_month) or DEFAULT_BILLING_MONTH,
            billing_status=_text(record.billing) or DEFAULT_BILLING_STATUS,
            pickup_date=parse_date(record.pick_up_date),
            delivery_date=parse_date(record.delivery_date),
            amount_received=_text(record.amount_received),
            total_amount=total_amount,
            hold=hold,
            deduction=deduction,
            final_amount=final_amount,
            vendor_cost=vendor_cost,
            value=derive_value(record.total_cost, record.per_asset_cost) or ZERO,
            installation_date=date.today(),
            notes=f"Auto-created from spreadsheet: {description}" if description else "Auto-created from spreadsheet",
        )
        with commit_unit(self.db):
            self.db.add(asset)
            self.vendors.refresh_totals(vendor.id)

        self.costings.add(
            Costing(
                asset_id=asset.id,
                vendor_id=vendor.id,
                base_cost=total_amount,
                maintenance_cost=hold,
                operational_cost=deduction,
                margin=ZERO,
                total_cost=final_amount,
                status=CostingStatus.PENDING.value,
                submitted_by="system",
                submitted_date=date.today(),
                notes=description,
            ),
            record.row_number,
            key=serial,
        )
        self.report.record(
            record.row_number,
            RowOutcome.CREATED,
            key=serial,
            message=f"ATM-{serial} (Vendor: {vendor.name})",
        )
        logger.info("Created asset %s for vendor %s", serial, vendor.name)
        return asset

    def _update(self, asset: Asset, record: ImportRecord, vendor: Vendor) -> None:
        """Overwrite only the fields the row supplies."""
        previous_vendor_id = asset.vendor_id
        with commit_unit(self.db):
            location = _text(record.from_location)
            if location:
                asset.location = location
            if vendor.id != asset.vendor_id:
                asset.vendor_id = vendor.id

            value = derive_value(record.total_cost, record.per_asset_cost)
            if value is not None:
                asset.value = value
            if record.total_cost is not None:
                asset.total_amount = record.total_cost
            if record.hold is not None:
                asset.hold = record.hold
            if record.deduction is not None:
                asset.deduction = record.deduction
            if record.final_amount is not None:
                asset.final_amount = record.final_amount
            if record.per_asset_cost is not None:
                asset.vendor_cost = record.per_asset_cost

            billing_month = _text(record.billing_month)
            if billing_month:
                asset.billing_month = billing_month
            billing_status = _text(record.billing)
            if billing_status:
                asset.billing_status = billing_status
            asset_status = _text(record.status)
            if asset_status:
                asset.asset_status = asset_status

            pickup_date = parse_date(record.pick_up_date)
            if pickup_date:
                asset.pickup_date = pickup_date
            delivery_date = parse_date(record.delivery_date)
            if delivery_date:
                asset.delivery_date = delivery_date
            amount_received = _text(record.amount_received)
            if amount_received:
                asset.amount_received = amount_received

            self.vendors.refresh_totals(vendor.id)
            if previous_vendor_id is not None and previous_vendor_id != vendor.id:
                self.vendors.refresh_totals(previous_vendor_id)
