"""Initial import schema: import batches, vendors, ATMs, movements, costings

Revision ID: 20261019_initial_import_schema
Revises: 
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial_import_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "import_batches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("original_filename", sa.String(), nullable=False),
        sa.Column("stored_filename", sa.String(), nullable=False, unique=True),
        sa.Column("storage_path", sa.String(), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("content_type", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=10), nullable=True),
        sa.Column("total_rows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_vendors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("vendors_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assets_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("movements_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("summary", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "vendors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("phone", sa.String(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("contact_person", sa.String(), nullable=True),
        sa.Column("tax_id", sa.String(), nullable=True),
        sa.Column("assets_allocated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("active_sites", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("freight_category", sa.String(), nullable=True),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("joined_date", sa.Date(), nullable=True),
        sa.Column("contract_start_date", sa.Date(), nullable=True),
        sa.Column("contract_end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("import_batch_id", sa.Uuid(), sa.ForeignKey("import_batches.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_vendors_name_lower", "vendors", [sa.text("lower(name)")])

    op.create_table(
        "atms",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("serial_number", sa.String(), nullable=False, unique=True),
        sa.Column("asset_status", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("branch", sa.String(), nullable=True),
        sa.Column("vendor_id", sa.Uuid(), sa.ForeignKey("vendors.id"), nullable=True),
        sa.Column("import_batch_id", sa.Uuid(), sa.ForeignKey("import_batches.id"), nullable=True),
        sa.Column("value", sa.Numeric(15, 2), nullable=True),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=True),
        sa.Column("hold", sa.Numeric(15, 2), nullable=True),
        sa.Column("deduction", sa.Numeric(15, 2), nullable=True),
        sa.Column("final_amount", sa.Numeric(15, 2), nullable=True),
        sa.Column("vendor_cost", sa.Numeric(15, 2), nullable=True),
        sa.Column("installation_date", sa.Date(), nullable=True),
        sa.Column("last_maintenance_date", sa.Date(), nullable=True),
        sa.Column("next_maintenance_date", sa.Date(), nullable=True),
        sa.Column("billing_month", sa.String(), nullable=True),
        sa.Column("billing_status", sa.String(), nullable=True),
        sa.Column("pickup_date", sa.Date(), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("amount_received", sa.String(), nullable=True),
        sa.Column("notice_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("manufacturer", sa.String(), nullable=True),
        sa.Column("model", sa.String(), nullable=True),
        sa.Column("cash_capacity", sa.Numeric(15, 2), nullable=True),
        sa.Column("current_cash_balance", sa.Numeric(15, 2), nullable=True),
        sa.Column("transaction_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_atms_serial_number_lower", "atms", [sa.text("lower(serial_number)")])
    op.create_index("ix_atms_import_batch_id", "atms", ["import_batch_id"])

    op.create_table(
        "movements",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("asset_id", sa.Uuid(), sa.ForeignKey("atms.id"), nullable=False),
        sa.Column("import_batch_id", sa.Uuid(), sa.ForeignKey("import_batches.id"), nullable=True),
        sa.Column("from_location", sa.String(), nullable=False),
        sa.Column("to_location", sa.String(), nullable=False),
        sa.Column("movement_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("mode_of_bill", sa.String(), nullable=True),
        sa.Column("docket_no", sa.String(), nullable=True),
        sa.Column("business_group", sa.String(), nullable=True),
        sa.Column("initiated_by", sa.String(), nullable=False),
        sa.Column("initiated_date", sa.Date(), nullable=False),
        sa.Column("expected_delivery", sa.Date(), nullable=True),
        sa.Column("actual_delivery", sa.Date(), nullable=True),
        sa.Column("tracking_number", sa.String(), nullable=False, unique=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_movements_asset_id", "movements", ["asset_id"])

    op.create_table(
        "costings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("asset_id", sa.Uuid(), sa.ForeignKey("atms.id"), nullable=False),
        sa.Column("vendor_id", sa.Uuid(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("base_cost", sa.Numeric(15, 2), nullable=False),
        sa.Column("maintenance_cost", sa.Numeric(15, 2), nullable=False),
        sa.Column("operational_cost", sa.Numeric(15, 2), nullable=False),
        sa.Column("margin", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_cost", sa.Numeric(15, 2), nullable=False),
        sa.Column("status", sa.String(length=8), nullable=False),
        sa.Column("submitted_by", sa.String(), nullable=False),
        sa.Column("submitted_date", sa.Date(), nullable=False),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("approved_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_costings_asset_id", "costings", ["asset_id"])


def downgrade():
    op.drop_index("ix_costings_asset_id", table_name="costings")
    op.drop_table("costings")
    op.drop_index("ix_movements_asset_id", table_name="movements")
    op.drop_table("movements")
    op.drop_index("ix_atms_import_batch_id", table_name="atms")
    op.drop_index("ix_atms_serial_number_lower", table_name="atms")
    op.drop_table("atms")
    op.drop_index("ix_vendors_name_lower", table_name="vendors")
    op.drop_table("vendors")
    op.drop_table("import_batches")
