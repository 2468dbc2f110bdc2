"""
Movement reconciliation - keeps at most one active movement per asset.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from atm_logistics.models import Asset, ImportBatch, Movement, MovementStatus
from atm_logistics.models.movement import generate_tracking_number
from atm_logistics.services.batch_commit import BatchWriter, commit_unit
from atm_logistics.services.import_report import RowOutcome, StageReport
from atm_logistics.services.row_extractor import ImportRecord

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
SYSTEM_USER = "System"
EXPECTED_DELIVERY_DAYS = 7


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _same(existing: Optional[str], incoming: Optional[str], default: str = "") -> bool:
    left = _text(existing) or default
    right = _text(incoming) or default
    return left.lower() == right.lower()


def is_exact_duplicate(movement: Movement, record: ImportRecord) -> bool:
    return (
        _same(movement.movement_type, record.type_of_movement, UNKNOWN)
        and _same(movement.from_location, record.from_location, UNKNOWN)
        and _same(movement.to_location, record.to_location, UNKNOWN)
        and _same(movement.docket_no, record.docket_no)
        and _same(movement.business_group, record.business_group)
    )


def _notes(prefix: str, record: ImportRecord) -> str:
    description = _text(record.assets_service_description)
    return f"{prefix}: {description}" if description else prefix


class MovementReconciler:
    def __init__(
        self,
        db: Session,
        writer: BatchWriter,
        report: StageReport,
        batch: Optional[ImportBatch] = None,
    ):
        self.db = db
        self.writer = writer
        self.report = report
        self.batch_id = batch.id if batch is not None else None

    def active_movement(self, asset_id) -> Optional[Movement]:
        """First non-cancelled movement of the asset, stored or still queued."""
        movement = (
            self.db.query(Movement)
            .filter(Movement.asset_id == asset_id, Movement.status != MovementStatus.CANCELLED)
            .order_by(Movement.created_at)
            .first()
        )
        if movement is not None:
            return movement
        return self.writer.find(
            lambda m: m.asset_id == asset_id and m.status != MovementStatus.CANCELLED.value
        )

    def reconcile(self, record: ImportRecord, asset: Asset) -> None:
        serial = record.atm_bna_id.strip()
        asset_id = asset.id
        current = self.active_movement(asset_id)
        if current is None:
            self._create(record, asset_id, serial)
            return

        if is_exact_duplicate(current, record):
            self.report.record(
                record.row_number,
                RowOutcome.SKIPPED_DUPLICATE,
                key=serial,
                message=f"Movement for ATM {serial} already exists with identical data",
            )
            return

        if inspect(current).persistent:
            with commit_unit(self.db):
                self._apply(current, record)
        else:
            self._apply(current, record)
        self.report.record(
            record.row_number,
            RowOutcome.UPDATED,
            key=serial,
            message=f"Movement for ATM {serial} updated",
        )
        logger.info("Updated movement for asset %s", serial)

    def _apply(self, movement: Movement, record: ImportRecord) -> None:
        movement.movement_type = _text(record.type_of_movement) or UNKNOWN
        movement.from_location = _text(record.from_location) or UNKNOWN
        movement.to_location = _text(record.to_location) or UNKNOWN
        movement.docket_no = _text(record.docket_no)
        movement.business_group = _text(record.business_group)
        movement.mode_of_bill = _text(record.mode_of_bill)
        movement.expected_delivery = date.today() + timedelta(days=EXPECTED_DELIVERY_DAYS)
        movement.notes = _notes("Updated from spreadsheet", record)
        movement.import_batch_id = self.batch_id

    def _create(self, record: ImportRecord, asset_id, serial: str) -> None:
        today = date.today()
        movement = Movement(
            asset_id=asset_id,
            import_batch_id=self.batch_id,
            movement_type=_text(record.type_of_movement) or UNKNOWN,
            from_location=_text(record.from_location) or UNKNOWN,
            to_location=_text(record.to_location) or UNKNOWN,
            status=MovementStatus.PENDING.value,
            docket_no=_text(record.docket_no),
            business_group=_text(record.business_group),
            mode_of_bill=_text(record.mode_of_bill),
            initiated_by=SYSTEM_USER,
            initiated_date=today,
            expected_delivery=today + timedelta(days=EXPECTED_DELIVERY_DAYS),
            tracking_number=generate_tracking_number(),
            notes=_notes("Auto-created from spreadsheet", record),
        )
        self.writer.add(movement, record.row_number, key=serial, message=f"Movement {movement.tracking_number} for ATM {serial}")
