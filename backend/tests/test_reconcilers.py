"""
Tests for vendor/asset/movement reconcilers and the batch commit helpers.
"""
import re
import uuid
from datetime import date
from decimal import Decimal

import pytest

from atm_logistics.models import Asset, Costing, CostingStatus, Movement, Vendor
from atm_logistics.services.asset_reconciler import derive_value, is_exact_duplicate
from atm_logistics.services.batch_commit import BatchWriter, commit_unit
from atm_logistics.services.import_report import RowOutcome, StageReport
from atm_logistics.services.movement_reconciler import MovementReconciler
from atm_logistics.services.movement_reconciler import is_exact_duplicate as is_same_movement
from atm_logistics.services.row_extractor import ImportRecord
from atm_logistics.services.vendor_reconciler import VendorReconciler, placeholder_email


def make_asset(db, vendor, serial="BNA001", **fields):
    values = dict(
        name=f"ATM-{serial}",
        serial_number=serial,
        location="Mumbai",
        vendor_id=vendor.id,
        value=Decimal("100"),
        total_amount=Decimal("100"),
        billing_month="Nov-25",
        billing_status="Billed",
    )
    values.update(fields)
    asset = Asset(**values)
    db.add(asset)
    db.commit()
    return asset


class TestVendorReconciler:

    def test_creates_vendor_with_placeholder_email(self, db_session):
        vendors = VendorReconciler(db_session)
        vendor, created = vendors.find_or_create("Acme Movers Pvt. Ltd.")

        assert created
        assert vendors.created == 1
        assert re.fullmatch(r"acme-movers-pvt-ltd-[0-9a-f]{8}@vendor\.com", vendor.email)
        assert vendor.status == "ACTIVE"
        assert vendor.assets_allocated == 0
        assert vendor.total_cost == Decimal("0")
        assert vendor.joined_date == date.today()

    def test_lookup_is_case_insensitive(self, db_session):
        vendors = VendorReconciler(db_session)
        first, _ = vendors.find_or_create("Acme Movers")
        second, created = vendors.find_or_create("  ACME movers ")

        assert not created
        assert second.id == first.id
        assert db_session.query(Vendor).count() == 1

    def test_discovered_email_used_once(self, db_session):
        vendors = VendorReconciler(db_session)
        first, _ = vendors.find_or_create("Acme Movers", email="ops@acme.com")
        second, _ = vendors.find_or_create("Blue Dart", email="ops@acme.com")

        assert first.email == "ops@acme.com"
        assert second.email.endswith("@vendor.com")

    def test_placeholder_slug_is_truncated(self):
        email = placeholder_email("A" * 80)
        local = email.split("@")[0]
        assert len(local) <= 30 + 9
        assert placeholder_email("!!!").startswith("vendor-")

    def test_refresh_totals_counts_assets_and_sums_values(self, db_session):
        vendors = VendorReconciler(db_session)
        vendor, _ = vendors.find_or_create("Acme Movers")
        make_asset(db_session, vendor, "A1", value=Decimal("100"))
        make_asset(db_session, vendor, "A2", value=Decimal("250.50"))

        with commit_unit(db_session):
            vendors.refresh_totals(vendor.id)

        db_session.refresh(vendor)
        assert vendor.assets_allocated == 2
        assert vendor.total_cost == Decimal("350.50")


class TestDuplicateRules:

    def test_value_preference(self):
        assert derive_value(Decimal("10"), Decimal("5")) == Decimal("10")
        assert derive_value(Decimal("0"), Decimal("5")) == Decimal("5")
        assert derive_value(None, Decimal("0")) is None

    def test_asset_duplicate_compares_fixed_field_set(self, db_session):
        vendor, _ = VendorReconciler(db_session).find_or_create("Acme Movers")
        asset = make_asset(db_session, vendor, pickup_date=date(2025, 1, 1))
        record = ImportRecord(
            row_number=2,
            atm_bna_id="BNA001",
            from_location=" mumbai ",
            total_cost=Decimal("100.00"),
            billing_month="NOV-25",
            billing="billed",
            pick_up_date="2025-02-02",
        )
        assert is_exact_duplicate(asset, record, vendor)

        record.total_cost = None
        assert is_exact_duplicate(asset, record, vendor)

        record.total_cost = Decimal("101")
        assert not is_exact_duplicate(asset, record, vendor)

    def test_asset_duplicate_requires_same_vendor(self, db_session):
        vendors = VendorReconciler(db_session)
        vendor, _ = vendors.find_or_create("Acme Movers")
        other, _ = vendors.find_or_create("Blue Dart")
        asset = make_asset(db_session, vendor)
        record = ImportRecord(row_number=2, from_location="Mumbai", billing_month="Nov-25", billing="Billed")
        assert not is_exact_duplicate(asset, record, other)

    def test_movement_duplicate_uses_unknown_defaults(self):
        movement = Movement(
            movement_type="Unknown",
            from_location="Unknown",
            to_location="Pune",
            docket_no="DK-1",
            business_group=None,
        )
        record = ImportRecord(row_number=2, to_location="PUNE", docket_no="dk-1")
        assert is_same_movement(movement, record)
        record.business_group = "Retail"
        assert not is_same_movement(movement, record)

    def test_movement_queued_for_given_asset(self, db_session):
        vendor, _ = VendorReconciler(db_session).find_or_create("Acme Movers")
        asset = make_asset(db_session, vendor, serial="BNA042")
        report = StageReport("movements")
        writer = BatchWriter(db_session, 10, "movements", report=report)
        movements = MovementReconciler(db_session, writer, report)

        movements.reconcile(ImportRecord(row_number=2, atm_bna_id=" BNA042 ", to_location="Pune"), asset)
        queued = movements.active_movement(asset.id)
        assert queued.from_location == "Unknown"
        assert queued.to_location == "Pune"

        movements.reconcile(ImportRecord(row_number=3, atm_bna_id="BNA042", to_location="Pune"), asset)
        assert len(writer) == 1
        assert report.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        assert report.details[-1].key == "BNA042"


class TestBatchCommit:

    def test_commit_unit_rolls_back_on_error(self, db_session):
        with pytest.raises(RuntimeError):
            with commit_unit(db_session):
                db_session.add(Vendor(name="Ghost", email="ghost@vendor.com"))
                db_session.flush()
                raise RuntimeError("boom")
        assert db_session.query(Vendor).count() == 0

    def test_writer_flushes_at_batch_size(self, db_session):
        vendor, _ = VendorReconciler(db_session).find_or_create("Acme Movers")
        asset = make_asset(db_session, vendor)
        writer = BatchWriter(db_session, 2, "costings")

        writer.add(self._costing(asset.id, vendor.id), 2)
        assert len(writer) == 1
        assert db_session.query(Costing).count() == 0
        writer.add(self._costing(asset.id, vendor.id), 3)
        assert len(writer) == 0
        assert writer.written == 2
        assert db_session.query(Costing).count() == 2

    def test_failed_batch_is_retried_row_by_row(self, db_session):
        vendor, _ = VendorReconciler(db_session).find_or_create("Acme Movers")
        asset = make_asset(db_session, vendor)
        report = StageReport("costings")
        writer = BatchWriter(db_session, 10, "costings", report=report)

        writer.add(self._costing(asset.id, vendor.id), 2, key="good")
        writer.add(self._costing(uuid.uuid4(), vendor.id), 3, key="orphan")
        writer.add(self._costing(asset.id, vendor.id), 4, key="good-too")
        writer.flush()

        assert report.created == 2
        assert report.errors == 1
        failed = [d for d in report.details if d.outcome == RowOutcome.ERROR][0]
        assert failed.row_number == 3
        assert writer.failed == 1
        assert db_session.query(Costing).count() == 2

    def test_find_searches_pending_entities(self, db_session):
        writer = BatchWriter(db_session, 10, "movements")
        target = Movement(asset_id=uuid.uuid4(), status="PENDING")
        writer.add(target, 2)
        assert writer.find(lambda m: m.asset_id == target.asset_id) is target
        assert writer.find(lambda m: m.asset_id is None) is None

    @staticmethod
    def _costing(asset_id, vendor_id):
        return Costing(
            asset_id=asset_id,
            vendor_id=vendor_id,
            base_cost=Decimal("1"),
            maintenance_cost=Decimal("0"),
            operational_cost=Decimal("0"),
            margin=Decimal("0"),
            total_cost=Decimal("1"),
            status=CostingStatus.PENDING.value,
            submitted_by="system",
            submitted_date=date.today(),
        )
