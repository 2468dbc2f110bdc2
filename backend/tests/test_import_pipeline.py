"""
End-to-end tests for the spreadsheet import pipeline.
"""
import re
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from atm_logistics.models import (
    Asset,
    Costing,
    CostingStatus,
    ImportBatch,
    ImportBatchStatus,
    Movement,
    MovementStatus,
    Vendor,
)
from atm_logistics.services.import_lifecycle import create_import_batch
from atm_logistics.services.import_pipeline import run_import
from atm_logistics.services.import_report import RowOutcome
from atm_logistics.services.sheet_reader import WorkbookError

from conftest import build_workbook, standard_row


def do_import(db, rows, filename="movements.xlsx", headers=None, batch_size=None):
    content = build_workbook(rows, headers=headers)
    batch = create_import_batch(db, original_filename=filename, file_size=len(content))
    return run_import(db, batch, content, filename, batch_size=batch_size)


class TestSingleRowImport:

    def test_creates_vendor_asset_costing_and_movement(self, db_session):
        outcome = do_import(db_session, [standard_row()])

        assert outcome.vendors_created == 1
        assert outcome.assets.created == 1
        assert outcome.movements.created == 1
        assert outcome.assets.total_processed == 1

        vendor = db_session.query(Vendor).one()
        asset = db_session.query(Asset).one()
        costing = db_session.query(Costing).one()
        movement = db_session.query(Movement).one()

        assert vendor.name == "Acme Movers"
        assert vendor.assets_allocated == 1
        assert vendor.total_cost == Decimal("1500")
        assert vendor.freight_category == "Heavy"
        assert vendor.email.endswith("@vendor.com")

        assert asset.serial_number == "BNA001"
        assert asset.name == "ATM-BNA001"
        assert asset.location == "Mumbai"
        assert asset.branch == "MH"
        assert asset.asset_status == "Delivered"
        assert asset.manufacturer == "Standard"
        assert asset.model == "Model-Unknown"
        assert asset.transaction_count == 0
        assert asset.current_cash_balance == Decimal("0")
        assert asset.value == Decimal("1500")
        assert asset.billing_month == "Nov-25"
        assert asset.billing_status == "Billed"
        assert asset.vendor_id == vendor.id
        assert asset.import_batch_id == outcome.batch.id

        assert costing.asset_id == asset.id
        assert costing.vendor_id == vendor.id
        assert costing.base_cost == Decimal("1500")
        assert costing.maintenance_cost == Decimal("100")
        assert costing.operational_cost == Decimal("50")
        assert costing.total_cost == Decimal("1350")
        assert costing.margin == Decimal("0")
        assert costing.status == CostingStatus.PENDING
        assert costing.submitted_by == "system"
        assert costing.submitted_date == date.today()

        assert movement.asset_id == asset.id
        assert movement.status == MovementStatus.PENDING
        assert movement.initiated_by == "System"
        assert movement.initiated_date == date.today()
        assert movement.expected_delivery == date.today() + timedelta(days=7)
        assert movement.movement_type == "Installation"
        assert movement.from_location == "Mumbai"
        assert movement.to_location == "Pune"
        assert movement.docket_no == "DK-100"
        assert re.fullmatch(r"TRK-[0-9A-F]{8}", movement.tracking_number)

    def test_batch_is_finalized(self, db_session):
        outcome = do_import(db_session, [standard_row()])
        batch = db_session.get(ImportBatch, outcome.batch.id)

        assert batch.status == ImportBatchStatus.COMPLETED
        assert batch.total_rows == 1
        assert batch.unique_vendors == 1
        assert batch.vendors_created == 1
        assert batch.assets_created == 1
        assert batch.movements_created == 1
        assert batch.processed_at is not None
        assert batch.summary["assets"]["created"] == 1
        assert batch.summary["costings_created"] == 1
        assert batch.notes.startswith("Successfully parsed 1 rows")

    def test_defaults_for_sparse_row(self, db_session):
        row = standard_row(
            from_location=None, status=None, billing_month=None, billing=None,
            hold=None, deduction=None, final_amount=None, type_of_movement=None, to_location=None,
        )
        do_import(db_session, [row])
        asset = db_session.query(Asset).one()
        movement = db_session.query(Movement).one()

        assert asset.location == "Unknown"
        assert asset.asset_status == "Unknown"
        assert asset.billing_month == "N/A"
        assert asset.billing_status == "PENDING"
        assert asset.hold == Decimal("0")
        assert asset.final_amount == Decimal("0")
        assert movement.movement_type == "Unknown"
        assert movement.from_location == "Unknown"
        assert movement.to_location == "Unknown"


class TestValueDerivation:

    def test_per_asset_cost_used_when_total_not_positive(self, db_session):
        do_import(db_session, [standard_row(total_cost=0, per_asset_cost=800)])
        asset = db_session.query(Asset).one()
        assert asset.value == Decimal("800")
        assert asset.total_amount == Decimal("0")
        assert asset.vendor_cost == Decimal("800")

    def test_value_zero_when_no_costs(self, db_session):
        do_import(db_session, [standard_row(total_cost=None, per_asset_cost=None)])
        asset = db_session.query(Asset).one()
        assert asset.value == Decimal("0")
        assert db_session.query(Vendor).one().total_cost == Decimal("0")


class TestReimport:

    def test_unchanged_reupload_skips_everything(self, db_session):
        do_import(db_session, [standard_row()])
        outcome = do_import(db_session, [standard_row()])

        assert outcome.vendors_created == 0
        assert outcome.assets.created == 0
        assert outcome.assets.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        assert outcome.movements.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        assert db_session.query(Asset).count() == 1
        assert db_session.query(Movement).count() == 1
        assert db_session.query(Costing).count() == 1
        assert db_session.query(Vendor).count() == 1

    def test_reupload_of_sparse_row_is_idempotent(self, db_session):
        row = standard_row(from_location=None, billing_month=None, billing=None, total_cost=None)
        do_import(db_session, [row])
        outcome = do_import(db_session, [row])
        assert outcome.assets.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        assert outcome.movements.count(RowOutcome.SKIPPED_DUPLICATE) == 1

    def test_reupload_with_sub_cent_cost_is_duplicate(self, db_session):
        do_import(db_session, [standard_row(total_cost=1500.125)])
        outcome = do_import(db_session, [standard_row(total_cost=1500.125)])

        assert outcome.assets.updated == 0
        assert outcome.assets.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        assert db_session.query(Asset).one().total_amount == Decimal("1500.13")

    def test_changed_total_cost_updates_asset(self, db_session):
        do_import(db_session, [standard_row()])
        outcome = do_import(db_session, [standard_row(total_cost=2000)])

        assert outcome.assets.updated == 1
        assert outcome.movements.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        asset = db_session.query(Asset).one()
        assert asset.total_amount == Decimal("2000")
        assert asset.value == Decimal("2000")
        assert db_session.query(Vendor).one().total_cost == Decimal("2000")
        assert db_session.query(Costing).count() == 1

    def test_serial_match_is_case_insensitive(self, db_session):
        do_import(db_session, [standard_row(atm_bna_id="bna001")])
        outcome = do_import(db_session, [standard_row(atm_bna_id="BNA001 ")])
        assert outcome.assets.count(RowOutcome.SKIPPED_DUPLICATE) == 1
        assert db_session.query(Asset).count() == 1

    def test_partial_update_leaves_absent_fields(self, db_session):
        do_import(db_session, [standard_row(pick_up_date="2025-11-03")])
        do_import(db_session, [standard_row(total_cost=900, hold=None, pick_up_date=None, billing=None)])
        asset = db_session.query(Asset).one()
        assert asset.total_amount == Decimal("900")
        assert asset.hold == Decimal("100")
        assert asset.pickup_date == date(2025, 11, 3)
        assert asset.billing_status == "Billed"

    def test_vendor_change_recomputes_both_vendors(self, db_session):
        do_import(db_session, [standard_row()])
        outcome = do_import(db_session, [standard_row(vendor_name="Blue Dart")])

        assert outcome.assets.updated == 1
        old = db_session.query(Vendor).filter(Vendor.name == "Acme Movers").one()
        new = db_session.query(Vendor).filter(Vendor.name == "Blue Dart").one()
        assert old.assets_allocated == 0
        assert old.total_cost == Decimal("0")
        assert new.assets_allocated == 1
        assert new.total_cost == Decimal("1500")

    def test_changed_route_updates_movement_in_place(self, db_session):
        do_import(db_session, [standard_row()])
        second = do_import(db_session, [standard_row(to_location="Nashik")])

        assert second.movements.updated == 1
        movement = db_session.query(Movement).one()
        assert movement.to_location == "Nashik"
        assert movement.import_batch_id == second.batch.id
        assert movement.notes.startswith("Updated from spreadsheet")


class TestRowIsolation:

    def test_missing_serial_is_skipped_but_counted(self, db_session):
        outcome = do_import(db_session, [standard_row(atm_bna_id=None)])

        assert outcome.assets.total_processed == 1
        assert outcome.assets.count(RowOutcome.SKIPPED_MISSING) == 1
        assert outcome.movements.count(RowOutcome.SKIPPED_MISSING) == 1
        assert outcome.assets.details[0].message == "missing ATM BNA ID"
        assert db_session.query(Asset).count() == 0

    def test_failing_row_does_not_affect_neighbours(self, db_session, monkeypatch):
        from atm_logistics.services.asset_reconciler import AssetReconciler

        original = AssetReconciler.reconcile

        def flaky(self, record, vendor):
            if record.atm_bna_id == "BNA002":
                raise RuntimeError("disk on fire")
            return original(self, record, vendor)

        monkeypatch.setattr(AssetReconciler, "reconcile", flaky)
        rows = [standard_row(), standard_row(atm_bna_id="BNA002"), standard_row(atm_bna_id="BNA003")]
        outcome = do_import(db_session, rows)

        assert outcome.assets.created == 2
        assert outcome.assets.errors == 1
        error = [d for d in outcome.assets.details if d.outcome == RowOutcome.ERROR][0]
        assert error.row_number == 3
        assert "disk on fire" in error.message
        assert outcome.movements.created == 2
        assert {a.serial_number for a in db_session.query(Asset)} == {"BNA001", "BNA003"}

    def test_one_active_movement_per_asset_within_a_sheet(self, db_session):
        rows = [standard_row(), standard_row(to_location="Nashik")]
        outcome = do_import(db_session, rows)

        assert outcome.movements.created == 1
        assert outcome.movements.updated == 1
        movement = db_session.query(Movement).one()
        assert movement.to_location == "Nashik"

    def test_cancelled_movement_is_not_current(self, db_session):
        do_import(db_session, [standard_row()])
        movement = db_session.query(Movement).one()
        movement.status = MovementStatus.CANCELLED.value
        db_session.commit()

        outcome = do_import(db_session, [standard_row()])
        assert outcome.movements.created == 1
        active = (
            db_session.query(Movement)
            .filter(Movement.status != MovementStatus.CANCELLED)
            .count()
        )
        assert active == 1

    def test_small_batches_flush_everything(self, db_session):
        rows = [standard_row(atm_bna_id=f"BNA{i:03d}") for i in range(1, 6)]
        outcome = do_import(db_session, rows, batch_size=2)

        assert outcome.costings_created == 5
        assert outcome.movements.created == 5
        assert db_session.query(Costing).count() == 5
        assert db_session.query(Vendor).one().assets_allocated == 5


class TestLayoutsAndStructure:

    def test_pickup_date_header_variant(self, db_session):
        headers = ["ATM BNA ID", "Vendor Name", "From Location", "Pickup Date"]
        rows = [["BNA500", "Acme Movers", "Delhi", datetime(2025, 11, 3)]]
        outcome = do_import(db_session, rows, headers=headers)

        assert outcome.assets.created == 1
        asset = db_session.query(Asset).one()
        assert asset.pickup_date == date(2025, 11, 3)
        assert asset.location == "Delhi"

    def test_csv_upload(self, db_session):
        content = (
            "ATM BNA ID,Vendor Name,From Location,To Location,Type of Movement,Total Cost\n"
            "BNA600,Acme Movers,Delhi,Agra,Shifting,\"1,250.00\"\n"
        ).encode("utf-8")
        batch = create_import_batch(db_session, original_filename="export.csv", file_size=len(content))
        outcome = run_import(db_session, batch, content, "export.csv")

        assert outcome.assets.created == 1
        assert db_session.query(Asset).one().value == Decimal("1250")

    def test_csv_row_with_extra_field_is_imported(self, db_session):
        content = (
            "ATM BNA ID,Vendor Name,From Location\n"
            "BNA1,Acme Movers,Delhi\n"
            "BNA2,Acme Movers,Agra,stray note\n"
            "BNA3,Acme Movers,Pune"
        ).encode("utf-8")
        batch = create_import_batch(db_session, original_filename="export.csv", file_size=len(content))
        outcome = run_import(db_session, batch, content, "export.csv")

        assert outcome.assets.created == 3
        assert outcome.assets.errors == 0
        locations = {a.serial_number: a.location for a in db_session.query(Asset)}
        assert locations == {"BNA1": "Delhi", "BNA2": "Agra", "BNA3": "Pune"}

    def test_freight_category_backfilled_on_existing_vendor(self, db_session):
        do_import(db_session, [standard_row(freight_category=None)])
        assert db_session.query(Vendor).one().freight_category is None
        do_import(db_session, [standard_row(atm_bna_id="BNA002", freight_category="Light")])
        assert db_session.query(Vendor).one().freight_category == "Light"

    def test_header_only_sheet_is_structural_error(self, db_session):
        with pytest.raises(WorkbookError):
            do_import(db_session, [])

    def test_unreadable_file_is_structural_error(self, db_session):
        batch = create_import_batch(db_session, original_filename="broken.xlsx")
        with pytest.raises(WorkbookError):
            run_import(db_session, batch, b"garbage", "broken.xlsx")
