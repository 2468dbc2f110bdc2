"""
Script to import one or more ATM logistics spreadsheets from disk.

Usage: python scripts/import_workbook.py <file.xlsx|file.csv> [...]
"""
import sys
import os
import logging
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from atm_logistics.db.database import SessionLocal, engine, Base
import atm_logistics.models  # noqa: F401
from atm_logistics.services.import_lifecycle import create_import_batch, mark_import_failed
from atm_logistics.services.import_pipeline import run_import
from atm_logistics.services.sheet_reader import WorkbookError


def import_workbooks(paths):
    """Import each file as its own batch."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    failures = 0

    try:
        for raw_path in paths:
            path = Path(raw_path)
            if not path.exists():
                print(f"✗ File not found: {path}")
                failures += 1
                continue

            print(f"\nImporting {path}...")
            content = path.read_bytes()
            batch = create_import_batch(
                db,
                original_filename=path.name,
                file_size=len(content),
            )
            try:
                outcome = run_import(db, batch, content, path.name)
            except WorkbookError as e:
                mark_import_failed(db, batch, str(e))
                print(f"✗ {path.name}: {e}")
                failures += 1
                continue

            print(f"✓ {outcome.extraction.message}")
            for report in (outcome.assets, outcome.movements):
                print(
                    f"  {report.stage}: {report.created} created, {report.updated} updated, "
                    f"{report.skipped} skipped, {report.errors} errors"
                )
            for warning in outcome.extraction.warnings:
                print(f"  ! {warning}")
            print(f"  Import ID: {batch.id}")

    except Exception as e:
        print(f"\n✗ Error importing spreadsheets: {e}")
        import traceback
        traceback.print_exc()
        db.rollback()
        failures += 1
    finally:
        db.close()

    return failures


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__.strip())
        sys.exit(2)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(1 if import_workbooks(sys.argv[1:]) else 0)
