"""
Import pipeline - reconciles one uploaded spreadsheet into vendors, assets,
costings and movements.

Each row is processed independently: a failing row is rolled back, logged and
reported as an error while the rest of the sheet continues. Only structural
problems (unreadable file, no data rows) raise WorkbookError.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from atm_logistics.db.database import settings
from atm_logistics.models import ImportBatch, ImportBatchStatus
from atm_logistics.services.asset_reconciler import AssetReconciler
from atm_logistics.services.batch_commit import BatchWriter
from atm_logistics.services.import_lifecycle import finalize_import_batch
from atm_logistics.services.import_report import RowOutcome, StageReport
from atm_logistics.services.movement_reconciler import MovementReconciler
from atm_logistics.services.row_extractor import ExtractionResult, ImportRecord, extract_records
from atm_logistics.services.sheet_reader import WorkbookError, read_sheet
from atm_logistics.services.vendor_reconciler import VendorReconciler

logger = logging.getLogger(__name__)


@dataclass
class ImportOutcome:
    batch: ImportBatch
    extraction: ExtractionResult
    vendors_created: int
    assets: StageReport
    movements: StageReport
    costings_created: int = 0
    costings_failed: int = 0

    def summary(self) -> Dict[str, Any]:
        return {
            "total_rows": self.extraction.total_rows,
            "unique_vendors": self.extraction.unique_vendors,
            "warnings": len(self.extraction.warnings),
            "vendors_created": self.vendors_created,
            "costings_created": self.costings_created,
            "costings_failed": self.costings_failed,
            "assets": self.assets.summary(),
            "movements": self.movements.summary(),
        }


class ImportPipeline:
    def __init__(self, db: Session, batch: ImportBatch, batch_size: Optional[int] = None):
        self.db = db
        self.batch = batch
        size = batch_size or settings.commit_batch_size
        self.asset_report = StageReport("assets")
        self.movement_report = StageReport("movements")
        self.costing_writer = BatchWriter(db, size, "costings")
        self.movement_writer = BatchWriter(db, size, "movements", report=self.movement_report)
        self.vendors = VendorReconciler(db, batch)
        self.assets = AssetReconciler(db, self.vendors, self.costing_writer, self.asset_report, batch)
        self.movements = MovementReconciler(db, self.movement_writer, self.movement_report, batch)

    def process_record(self, record: ImportRecord) -> None:
        """Reconcile one row; never raises."""
        if not record.atm_bna_id or not record.atm_bna_id.strip():
            self.asset_report.record(record.row_number, RowOutcome.SKIPPED_MISSING, message="missing ATM BNA ID")
            self.movement_report.record(record.row_number, RowOutcome.SKIPPED_MISSING, message="missing ATM BNA ID")
            return

        serial = record.atm_bna_id.strip()
        report = self.asset_report
        try:
            vendor, _ = self.vendors.find_or_create(
                record.vendor_name,
                email=record.vendor_email,
                freight_category=record.freight_category,
            )
            asset = self.assets.reconcile(record, vendor)
            report = self.movement_report
            self.movements.reconcile(record, asset)
        except Exception as e:
            self.db.rollback()
            logger.exception("Row %d (ATM %s) failed", record.row_number, serial)
            report.record(record.row_number, RowOutcome.ERROR, key=serial, message=f"ATM {serial} failed: {e}")
            if report is self.asset_report:
                self.movement_report.record(
                    record.row_number,
                    RowOutcome.ERROR,
                    key=serial,
                    message=f"ATM {serial} skipped: asset could not be saved",
                )

    def run(self, content: bytes, filename: str) -> ImportOutcome:
        timings = {}
        total_start = time.perf_counter()

        read_start = time.perf_counter()
        sheet = read_sheet(content, filename)
        timings["read_file"] = round(time.perf_counter() - read_start, 3)

        extract_start = time.perf_counter()
        extraction = extract_records(sheet)
        timings["extract_rows"] = round(time.perf_counter() - extract_start, 3)
        if extraction.total_rows == 0:
            raise WorkbookError(f"No data rows found in '{filename}'")
        logger.info(extraction.message)

        self.batch.status = ImportBatchStatus.PROCESSING.value
        self.db.commit()

        reconcile_start = time.perf_counter()
        for record in extraction.records:
            self.process_record(record)
        self.costing_writer.flush()
        self.movement_writer.flush()
        timings["reconcile"] = round(time.perf_counter() - reconcile_start, 3)

        outcome = ImportOutcome(
            batch=self.batch,
            extraction=extraction,
            vendors_created=self.vendors.created,
            assets=self.asset_report,
            movements=self.movement_report,
            costings_created=self.costing_writer.written,
            costings_failed=self.costing_writer.failed,
        )
        finalize_import_batch(
            self.db,
            self.batch,
            total_rows=extraction.total_rows,
            unique_vendors=extraction.unique_vendors,
            vendors_created=self.vendors.created,
            assets_created=self.asset_report.created,
            movements_created=self.movement_report.created,
            summary=outcome.summary(),
            notes=extraction.message,
        )
        timings["total"] = round(time.perf_counter() - total_start, 3)
        logger.info(
            "Import %s (%s): %d rows, assets %d created / %d updated / %d skipped / %d errors, "
            "movements %d created / %d updated / %d skipped / %d errors; timings=%s",
            self.batch.id,
            filename,
            extraction.total_rows,
            self.asset_report.created,
            self.asset_report.updated,
            self.asset_report.skipped,
            self.asset_report.errors,
            self.movement_report.created,
            self.movement_report.updated,
            self.movement_report.skipped,
            self.movement_report.errors,
            timings,
        )
        return outcome


def run_import(
    db: Session,
    batch: ImportBatch,
    content: bytes,
    filename: str,
    batch_size: Optional[int] = None,
) -> ImportOutcome:
    """Read, extract and reconcile one spreadsheet against an existing batch."""
    return ImportPipeline(db, batch, batch_size=batch_size).run(content, filename)
