"""
Test configuration and fixtures for pytest tests.
Provides an isolated in-memory SQLite database and spreadsheet builders.
"""
import io
import os

# Must be set before atm_logistics.db.database creates its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atm_logistics.db.database import Base, get_db, settings
import atm_logistics.models  # noqa: F401

# Header row of the extended layout; positions match the column layout fallback indices
HEADERS = [
    "S.No", "Provision Month", "ATM BNA ID", "Docket No", "Bank Name",
    "From Location", "From State", "To Location", "To State", "Business Group",
    "Mode of Bill", "Type of Movement", "Assets/Service Description", "Total Cost", "Hold",
    "Deduction", "Final Amount", "Per Asset Cost", None, None,
    "Assets Delivery Pending", "Reason for Additional Charges", "Pick Up Date", "Status", "Date",
    "Vendor Name", "Freight Category", "Project", "Invoice No", "Billing Month",
    "Billing", "Delivery Date", "Amount Received",
]

COLUMNS = {
    "s_no": 0, "provision_month": 1, "atm_bna_id": 2, "docket_no": 3, "bank_name": 4,
    "from_location": 5, "from_state": 6, "to_location": 7, "to_state": 8, "business_group": 9,
    "mode_of_bill": 10, "type_of_movement": 11, "assets_service_description": 12,
    "total_cost": 13, "hold": 14, "deduction": 15, "final_amount": 16, "per_asset_cost": 17,
    "assets_delivery_pending": 20, "reason_for_additional_charges": 21, "pick_up_date": 22,
    "status": 23, "date": 24, "vendor_name": 25, "freight_category": 26, "project": 27,
    "invoice_no": 28, "billing_month": 29, "billing": 30, "delivery_date": 31, "amount_received": 32,
}


def build_row(**values):
    row = [None] * len(HEADERS)
    for name, value in values.items():
        row[COLUMNS[name]] = value
    return row


def standard_row(**overrides):
    values = dict(
        s_no=1,
        atm_bna_id="BNA001",
        docket_no="DK-100",
        bank_name="State Bank",
        from_location="Mumbai",
        from_state="MH",
        to_location="Pune",
        to_state="MH",
        business_group="Retail",
        mode_of_bill="Road",
        type_of_movement="Installation",
        assets_service_description="Cash dispenser relocation",
        total_cost=1500,
        hold=100,
        deduction=50,
        final_amount=1350,
        per_asset_cost=1500,
        status="Delivered",
        vendor_name="Acme Movers",
        freight_category="Heavy",
        billing_month="Nov-25",
        billing="Billed",
    )
    values.update(overrides)
    return build_row(**values)


def build_workbook(rows, headers=None):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Movements"
    sheet.append(list(headers if headers is not None else HEADERS))
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_row():
    return standard_row


@pytest.fixture
def make_workbook():
    return build_workbook


@pytest.fixture
def engine():
    """Fresh in-memory database with foreign keys enforced."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
def client(db_session, upload_dir):
    """API client sharing the test session."""
    from atm_logistics.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
