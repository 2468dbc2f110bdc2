"""
Vendor reconciliation - find-or-create vendors by name and keep their derived totals current.
"""
import logging
import re
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from atm_logistics.models import Asset, ImportBatch, Vendor, VendorStatus
from atm_logistics.services.batch_commit import commit_unit

logger = logging.getLogger(__name__)

PLACEHOLDER_DOMAIN = "vendor.com"
MAX_SLUG_LENGTH = 30


def placeholder_email(name: str) -> str:
    """Slugged unique address, e.g. acme-movers-ltd-1a2b3c4d@vendor.com."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")[:MAX_SLUG_LENGTH].strip("-")
    return f"{slug or 'vendor'}-{uuid.uuid4().hex[:8]}@{PLACEHOLDER_DOMAIN}"


class VendorReconciler:
    def __init__(self, db: Session, batch: Optional[ImportBatch] = None):
        self.db = db
        self.batch_id = batch.id if batch is not None else None
        self.created = 0

    def find_by_name(self, name: str) -> Optional[Vendor]:
        return (
            self.db.query(Vendor)
            .filter(func.lower(Vendor.name) == name.strip().lower())
            .order_by(Vendor.created_at)
            .first()
        )

    def email_in_use(self, email: str) -> bool:
        return (
            self.db.query(Vendor.id).filter(func.lower(Vendor.email) == email.lower()).first()
            is not None
        )

    def find_or_create(
        self,
        name: str,
        email: Optional[str] = None,
        freight_category: Optional[str] = None,
    ) -> Tuple[Vendor, bool]:
        """
        Return the vendor with this name (case-insensitive), creating it if needed.

        A discovered e-mail is only used when no vendor owns it yet; otherwise a
        unique placeholder address is generated. Returns ``(vendor, created)``.
        """
        name = (name or "").strip() or "Unknown"
        vendor = self.find_by_name(name)
        if vendor is not None:
            if freight_category and not vendor.freight_category:
                with commit_unit(self.db):
                    vendor.freight_category = freight_category
                logger.info("Set freight category of vendor %s to %s", vendor.name, freight_category)
            return vendor, False

        if not email or self.email_in_use(email):
            email = placeholder_email(name)

        vendor = Vendor(
            name=name,
            email=email,
            phone="",
            status=VendorStatus.ACTIVE.value,
            assets_allocated=0,
            total_cost=Decimal("0"),
            active_sites=0,
            rating=Decimal("0"),
            freight_category=freight_category,
            joined_date=date.today(),
            import_batch_id=self.batch_id,
        )
        with commit_unit(self.db):
            self.db.add(vendor)
        self.created += 1
        logger.info("Created vendor %s <%s>", name, email)
        return vendor, True

    def refresh_totals(self, vendor_id) -> None:
        """
        Recompute ``assets_allocated`` and ``total_cost`` from the vendor's assets.

        Does not commit; call inside the caller's commit unit.
        """
        if vendor_id is None:
            return
        vendor = self.db.get(Vendor, vendor_id)
        if vendor is None:
            return
        self.db.flush()
        count, total = (
            self.db.query(func.count(Asset.id), func.sum(Asset.value))
            .filter(Asset.vendor_id == vendor_id)
            .one()
        )
        vendor.assets_allocated = count or 0
        vendor.total_cost = Decimal(str(total)) if total is not None else Decimal("0")
