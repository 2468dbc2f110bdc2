"""
Sheet decoding - turns uploaded spreadsheet bytes into a grid of raw cells.
"""
import io
import logging
import warnings
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd
from openpyxl import load_workbook

logger = logging.getLogger(__name__)

WORKBOOK_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}
SUPPORTED_EXTENSIONS = WORKBOOK_EXTENSIONS | CSV_EXTENSIONS

CSV_ENCODINGS = ("utf-8", "latin-1", "cp1252")


class WorkbookError(ValueError):
    """The upload cannot be read as a spreadsheet at all."""


class SheetGrid:
    """Row-major view over the first sheet of a workbook."""

    def __init__(self, rows: List[List[Any]], name: Optional[str] = None):
        self.rows = rows
        self.name = name

    @property
    def last_row_index(self) -> int:
        return len(self.rows) - 1

    def row(self, row_index: int) -> List[Any]:
        if 0 <= row_index < len(self.rows):
            return self.rows[row_index]
        return []

    def last_column_index(self, row_index: int) -> int:
        return len(self.row(row_index)) - 1

    def cell(self, row_index: int, col_index: int) -> Any:
        if col_index < 0:
            return None
        row = self.row(row_index)
        if col_index >= len(row):
            return None
        return row[col_index]


def file_extension(filename: Optional[str]) -> str:
    return Path(filename or "").suffix.lower()


def _read_workbook(content: bytes) -> SheetGrid:
    # data_only=True reads the cached result of formula cells
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        if not workbook.sheetnames:
            raise WorkbookError("Workbook contains no sheets")
        sheet = workbook[workbook.sheetnames[0]]
        rows = [list(values) for values in sheet.iter_rows(values_only=True)]
        return SheetGrid(rows, name=sheet.title)
    finally:
        workbook.close()


def _keep_overlong_line(line: List[str]) -> List[str]:
    # Fields past the header width are dropped by pandas; the row itself is kept
    logger.warning("CSV row has %d fields, more than the header; extra fields ignored", len(line))
    return line


def _read_csv(content: bytes) -> SheetGrid:
    last_error: Optional[Exception] = None
    for encoding in CSV_ENCODINGS:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", pd.errors.ParserWarning)
                df = pd.read_csv(
                    io.BytesIO(content),
                    header=None,
                    index_col=False,
                    dtype=str,
                    keep_default_na=False,
                    encoding=encoding,
                    skip_blank_lines=False,
                    engine="python",
                    on_bad_lines=_keep_overlong_line,
                )
            rows = [[value if value != "" else None for value in record] for record in df.itertuples(index=False)]
            return SheetGrid(rows)
        except UnicodeDecodeError as exc:
            last_error = exc
            continue
        except pd.errors.EmptyDataError:
            return SheetGrid([])
    raise WorkbookError(f"Could not decode CSV file: {last_error}")


def read_sheet(content: bytes, filename: Optional[str]) -> SheetGrid:
    """Decode the first sheet of an uploaded file."""
    ext = file_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise WorkbookError(
            f"Unsupported file type '{ext or filename}'. Expected one of: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
    try:
        if ext in CSV_EXTENSIONS:
            grid = _read_csv(content)
        else:
            grid = _read_workbook(content)
    except WorkbookError:
        raise
    except Exception as exc:
        logger.error("Failed to read %s: %s", filename, exc)
        raise WorkbookError(f"Could not read spreadsheet '{filename}': {exc}") from exc
    logger.info("Read %s: %d row(s) including header", filename, len(grid.rows))
    return grid
