"""
Cell coercion - converts raw spreadsheet cell values into typed values.

Cells arrive as whatever the sheet decoder produced: str, int, float, bool,
datetime/date/time, Decimal, pandas NaN or None. Workbooks are opened in
cached-value mode, so formula cells already hold their last computed string or
number. Every helper returns None for blank or unparseable input and never
raises.
"""
import logging
import math
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)

MONTH_FORMAT = "%b-%y"  # "Nov-25"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_CURRENCY_PREFIX = re.compile(r"^(rs\.?|inr|usd|₹|\$)\s*", re.IGNORECASE)


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def format_date(value: Any, month_format: bool = False) -> Optional[str]:
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return None
    if month_format:
        return value.strftime(MONTH_FORMAT)
    return value.isoformat()


def _format_number(value: float) -> Optional[str]:
    if math.isnan(value) or math.isinf(value):
        return None
    if value == math.floor(value):
        return str(int(value))
    return str(value)


def cell_as_string(value: Any, month_format: bool = False) -> Optional[str]:
    """
    Render a cell as text.

    Dates render as ISO ``YYYY-MM-DD``, or ``Mon-YY`` when ``month_format`` is
    set. Whole numbers render without a trailing ``.0``.
    """
    if is_blank(value):
        return None
    try:
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (datetime, date, pd.Timestamp)):
            return format_date(value, month_format)
        if isinstance(value, time):
            return value.isoformat()
        if isinstance(value, Decimal):
            if value == value.to_integral_value():
                return str(int(value))
            return str(value.normalize())
        if isinstance(value, (int, float)):
            return _format_number(float(value)) if isinstance(value, float) else str(value)
        text = str(value).strip()
        return text or None
    except (TypeError, ValueError, ArithmeticError) as exc:
        logger.warning("Could not read cell value %r as text: %s", value, exc)
        return None


def cell_as_int(value: Any) -> Optional[int]:
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            return int(value)
        if isinstance(value, str):
            text = value.strip().replace(",", "")
            try:
                return int(text)
            except ValueError:
                return int(float(text))
    except (TypeError, ValueError, OverflowError) as exc:
        logger.warning("Could not read cell value %r as integer: %s", value, exc)
    return None


def cell_as_decimal(value: Any) -> Optional[Decimal]:
    """
    Safely convert a cell to Decimal.

    Handles common finance sheet formats like:
    - "1,234.56"
    - "Rs. 1,234.56" / "$1,234.56"
    - "(1,234.56)" for negatives
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, float)):
            if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
                return None
            return Decimal(str(value))
        if isinstance(value, str):
            s = value.strip()
            negative = s.startswith("(") and s.endswith(")")
            s = _CURRENCY_PREFIX.sub("", s.strip("()").strip())
            s = _NON_NUMERIC.sub("", s)
            if not s or s in ("-", "."):
                return None
            if negative and not s.startswith("-"):
                s = "-" + s
            return Decimal(s)
    except (InvalidOperation, ValueError, TypeError) as exc:
        logger.warning("Could not read cell value %r as decimal: %s", value, exc)
    return None


def normalize_month_label(value: Optional[str]) -> Optional[str]:
    """Normalize month labels to "Mon-YY": "Oct'25" / "Oct_25" -> "Oct-25"."""
    if value is None or not value.strip():
        return None
    normalized = value.strip()
    for ch in ("'", "’", "_"):
        normalized = normalized.replace(ch, "-")
    return normalized


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a date string: ISO first, then day-first free-form formats."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    parsed = pd.to_datetime(text, errors="coerce", dayfirst=True)
    if pd.isna(parsed):
        logger.warning("Invalid date value: %s", text)
        return None
    return parsed.date()
