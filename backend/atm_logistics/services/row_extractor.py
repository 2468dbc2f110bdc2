"""
Row extraction - turns sheet rows into typed ImportRecords.
"""
import logging
import re
from dataclasses import dataclass, field, fields
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from atm_logistics.config.mapping_loader import FieldSpec, get_column_layout
from atm_logistics.services.cell_coercion import (
    cell_as_decimal,
    cell_as_string,
    normalize_month_label,
)
from atm_logistics.services.column_resolver import ColumnResolver
from atm_logistics.services.sheet_reader import SheetGrid

logger = logging.getLogger(__name__)

UNKNOWN_VENDOR = "Unknown"

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
TRAILING_PUNCTUATION = re.compile(r"[,;:()\[\]{}]+$")

DECIMAL_FIELDS = {"total_cost", "hold", "deduction", "final_amount", "per_asset_cost"}
CENTS = Decimal("0.01")


@dataclass
class ImportRecord:
    """One spreadsheet row, typed. Every field is optional."""
    row_number: int
    s_no: Optional[str] = None
    provision_month: Optional[str] = None
    atm_bna_id: Optional[str] = None
    docket_no: Optional[str] = None
    bank_name: Optional[str] = None
    from_location: Optional[str] = None
    from_state: Optional[str] = None
    to_location: Optional[str] = None
    to_state: Optional[str] = None
    business_group: Optional[str] = None
    mode_of_bill: Optional[str] = None
    type_of_movement: Optional[str] = None
    assets_service_description: Optional[str] = None
    total_cost: Optional[Decimal] = None
    hold: Optional[Decimal] = None
    deduction: Optional[Decimal] = None
    final_amount: Optional[Decimal] = None
    per_asset_cost: Optional[Decimal] = None
    assets_delivery_pending: Optional[str] = None
    reason_for_additional_charges: Optional[str] = None
    pick_up_date: Optional[str] = None
    status: Optional[str] = None
    date: Optional[str] = None
    vendor_name: Optional[str] = None
    freight_category: Optional[str] = None
    project: Optional[str] = None
    invoice_no: Optional[str] = None
    billing_month: Optional[str] = None
    billing: Optional[str] = None
    delivery_date: Optional[str] = None
    amount_received: Optional[str] = None
    vendor_email: Optional[str] = None


RECORD_FIELDS = {f.name for f in fields(ImportRecord)} - {"row_number", "vendor_email"}


@dataclass
class ExtractionResult:
    records: List[ImportRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_rows: int = 0
    vendor_rows: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def unique_vendors(self) -> int:
        return len(self.vendor_rows)

    @property
    def message(self) -> str:
        parts = [
            f"Successfully parsed {self.total_rows} rows from spreadsheet.",
            f"Found {self.unique_vendors} unique vendors.",
        ]
        if self.warnings:
            parts.append(f"{len(self.warnings)} warnings were generated during parsing.")
        parts.append("Vendor data has been extracted and is ready for use.")
        return " ".join(parts)


def is_row_blank(row: List[Any]) -> bool:
    return all(cell_as_string(value) is None for value in row)


def _match_email(text: str) -> Optional[str]:
    candidate = TRAILING_PUNCTUATION.sub("", text.strip())
    if candidate and EMAIL_PATTERN.match(candidate):
        return candidate.lower()
    return None


def find_email_in_row(row: List[Any]) -> Optional[str]:
    """First e-mail address found in any cell, whole cell text before tokens."""
    for value in row:
        text = cell_as_string(value)
        if not text:
            continue
        email = _match_email(text)
        if email:
            return email
        for token in text.split():
            email = _match_email(token)
            if email:
                return email
    return None


def _read_field(sheet: SheetGrid, row_index: int, name: str, spec: FieldSpec, column: int):
    raw = sheet.cell(row_index, column)
    if name in DECIMAL_FIELDS:
        amount = cell_as_decimal(raw)
        # Amounts are stored with two decimals
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP) if amount is not None else None
    text = cell_as_string(raw, month_format=spec.month_format)
    if spec.month_format:
        return normalize_month_label(text)
    return text


def build_record(
    sheet: SheetGrid,
    row_index: int,
    columns: Dict[str, int],
    layout: Dict[str, FieldSpec],
) -> ImportRecord:
    values = {}
    for name, column in columns.items():
        if name not in RECORD_FIELDS:
            continue
        values[name] = _read_field(sheet, row_index, name, layout[name], column)
    values["vendor_email"] = find_email_in_row(sheet.row(row_index))
    return ImportRecord(row_number=row_index + 1, **values)


def extract_records(sheet: SheetGrid, layout: Optional[Dict[str, FieldSpec]] = None) -> ExtractionResult:
    """
    Scan every data row of a sheet.

    Row 0 is the header. Blank rows are skipped without being counted; a row
    that fails to build is recorded as a warning and left out of the records.
    Rows without a vendor name or without an e-mail address are kept, each
    with a warning.
    """
    layout = layout if layout is not None else get_column_layout()
    result = ExtractionResult()
    if sheet.last_row_index < 0:
        return result

    resolver = ColumnResolver(sheet.row(0))
    columns = resolver.resolve_all(layout)
    logger.debug("Resolved columns: %s", columns)

    for row_index in range(1, sheet.last_row_index + 1):
        row = sheet.row(row_index)
        if is_row_blank(row):
            continue
        result.total_rows += 1
        row_number = row_index + 1
        try:
            record = build_record(sheet, row_index, columns, layout)
        except Exception as e:
            logger.warning("Row %d could not be parsed: %s", row_number, e)
            result.warnings.append(f"Row {row_number}: Error parsing row: {e}")
            continue

        if not record.vendor_name:
            record.vendor_name = UNKNOWN_VENDOR
            result.warnings.append(f"Row {row_number}: Vendor name is missing")
        result.vendor_rows.setdefault(record.vendor_name, []).append(row_number)
        if not record.vendor_email:
            result.warnings.append(
                f"Row {row_number} ({record.vendor_name}): No email address found in row (email column may be missing)"
            )
        result.records.append(record)

    return result
