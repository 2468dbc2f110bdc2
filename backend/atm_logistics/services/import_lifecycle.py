"""
Import batch lifecycle: creation, finalization, listing and cascading deletion.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from atm_logistics.models import Asset, Costing, ImportBatch, ImportBatchStatus, Movement, Vendor
from atm_logistics.services.vendor_reconciler import VendorReconciler

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 1000


def generate_stored_filename(original_filename: Optional[str]) -> str:
    """Unique storage name of the form <uuid>_<original name>."""
    name = Path(original_filename or "upload").name or "upload"
    return f"{uuid.uuid4()}_{name}"


def create_import_batch(
    db: Session,
    original_filename: str,
    file_size: int = 0,
    content_type: Optional[str] = None,
    stored_filename: Optional[str] = None,
    storage_path: Optional[str] = None,
) -> ImportBatch:
    batch = ImportBatch(
        original_filename=original_filename,
        stored_filename=stored_filename or generate_stored_filename(original_filename),
        storage_path=storage_path,
        file_size=file_size,
        content_type=content_type,
        status=ImportBatchStatus.CREATED.value,
    )
    db.add(batch)
    db.commit()
    db.refresh(batch)
    logger.info("Created import batch %s for %s", batch.id, original_filename)
    return batch


def finalize_import_batch(
    db: Session,
    batch: ImportBatch,
    total_rows: int,
    unique_vendors: int,
    vendors_created: int,
    assets_created: int,
    movements_created: int,
    summary: Optional[Dict[str, Any]] = None,
    notes: Optional[str] = None,
) -> ImportBatch:
    batch.total_rows = total_rows
    batch.unique_vendors = unique_vendors
    batch.vendors_created = vendors_created
    batch.assets_created = assets_created
    batch.movements_created = movements_created
    batch.summary = summary
    batch.notes = notes[:MAX_NOTES_LENGTH] if notes else None
    batch.status = ImportBatchStatus.COMPLETED.value
    batch.processed_at = datetime.utcnow()
    db.commit()
    db.refresh(batch)
    return batch


def mark_import_failed(db: Session, batch: ImportBatch, reason: str) -> ImportBatch:
    db.rollback()
    batch.status = ImportBatchStatus.FAILED.value
    batch.notes = reason[:MAX_NOTES_LENGTH]
    batch.processed_at = datetime.utcnow()
    db.commit()
    db.refresh(batch)
    logger.warning("Import batch %s failed: %s", batch.id, reason)
    return batch


def list_import_batches(db: Session, skip: int = 0, limit: int = 100) -> List[ImportBatch]:
    return (
        db.query(ImportBatch)
        .order_by(ImportBatch.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_import_batch(db: Session, batch_id) -> Optional[ImportBatch]:
    return db.query(ImportBatch).filter(ImportBatch.id == batch_id).first()


@dataclass
class DeletionSummary:
    costings_deleted: int = 0
    assets_deleted: int = 0
    movements_deleted: int = 0
    vendors_deleted: int = 0
    vendors_detached: int = 0

    @property
    def total_deleted(self) -> int:
        return self.costings_deleted + self.assets_deleted + self.movements_deleted + self.vendors_deleted

    @property
    def message(self) -> str:
        return (
            "Successfully deleted import and its associated data: "
            f"{self.assets_deleted} assets, {self.movements_deleted} movements, "
            f"{self.costings_deleted} costings, and {self.vendors_deleted} vendors"
        )


def delete_import_batch(db: Session, batch_id) -> DeletionSummary:
    """
    Delete an import batch and everything it exclusively produced.

    Runs in one transaction, children before parents:
    costings -> movements -> assets -> unreferenced vendors. Vendors of the
    batch that other assets or costings still reference are kept and only
    detached from the batch. Raises ValueError for an unknown batch id.
    """
    batch = get_import_batch(db, batch_id)
    if batch is None:
        raise ValueError(f"Import batch {batch_id} not found")

    summary = DeletionSummary()
    try:
        asset_rows = db.query(Asset.id, Asset.vendor_id).filter(Asset.import_batch_id == batch_id).all()
        asset_ids = [row.id for row in asset_rows]
        affected_vendor_ids = {row.vendor_id for row in asset_rows if row.vendor_id is not None}

        if asset_ids:
            summary.costings_deleted = (
                db.query(Costing)
                .filter(Costing.asset_id.in_(asset_ids))
                .delete(synchronize_session=False)
            )
            summary.movements_deleted = (
                db.query(Movement)
                .filter((Movement.asset_id.in_(asset_ids)) | (Movement.import_batch_id == batch_id))
                .delete(synchronize_session=False)
            )
        else:
            summary.movements_deleted = (
                db.query(Movement)
                .filter(Movement.import_batch_id == batch_id)
                .delete(synchronize_session=False)
            )
        summary.assets_deleted = (
            db.query(Asset)
            .filter(Asset.import_batch_id == batch_id)
            .delete(synchronize_session=False)
        )

        candidate_ids = {row.id for row in db.query(Vendor.id).filter(Vendor.import_batch_id == batch_id)}
        referenced_ids = set()
        if candidate_ids:
            referenced_ids |= {
                row.vendor_id
                for row in db.query(Asset.vendor_id).filter(Asset.vendor_id.in_(candidate_ids)).distinct()
            }
            referenced_ids |= {
                row.vendor_id
                for row in db.query(Costing.vendor_id).filter(Costing.vendor_id.in_(candidate_ids)).distinct()
            }
        deletable_ids = candidate_ids - referenced_ids
        if deletable_ids:
            summary.vendors_deleted = (
                db.query(Vendor)
                .filter(Vendor.id.in_(deletable_ids))
                .delete(synchronize_session=False)
            )
        summary.vendors_detached = (
            db.query(Vendor)
            .filter(Vendor.import_batch_id == batch_id)
            .update({Vendor.import_batch_id: None}, synchronize_session=False)
        )

        vendors = VendorReconciler(db)
        for vendor_id in affected_vendor_ids - deletable_ids:
            vendors.refresh_totals(vendor_id)

        db.query(ImportBatch).filter(ImportBatch.id == batch_id).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to delete import batch %s", batch_id)
        raise

    db.expire_all()
    logger.info("Deleted import batch %s: %s", batch_id, summary.message)
    return summary
