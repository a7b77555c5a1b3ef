"""
Workbook access.

Sheets are held as plain row grids (list of rows, each a list of cell values
with None for empty cells) plus the merged ranges and hidden rows that only
openpyxl can tell us about. Everything downstream works on these grids, so
tests can build sheets in memory without touching Excel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
import math
import re

import openpyxl
import pandas as pd

from tariff_engine.errors import WorkbookError


# Excel serial 25569 is 1970-01-01
_EXCEL_EPOCH = datetime(1970, 1, 1)
_EXCEL_EPOCH_SERIAL = 25569

_NOT_APPLICABLE_RE = re.compile(r"not\s*applicable", re.IGNORECASE)


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def cell_text(value) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def to_number(value) -> float | None:
    """Parse a price cell. Thousands separators are dropped; text gives None."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    if _NOT_APPLICABLE_RE.search(s):
        return None
    s = re.sub(r"[,\s]", "", s)
    try:
        n = float(s)
    except ValueError:
        return None
    if math.isnan(n) or math.isinf(n):
        return None
    return n


def excel_serial_to_date(serial: float) -> date:
    return (_EXCEL_EPOCH + timedelta(days=math.floor(serial - _EXCEL_EPOCH_SERIAL))).date()


def to_iso_date(value) -> str | None:
    """Dates come as datetimes, Excel serials, or already-formatted text."""
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return excel_serial_to_date(float(value)).isoformat()
    return str(value).strip()


@dataclass
class Sheet:
    name: str
    rows: list[list] = field(default_factory=list)
    # (first_row, first_col, last_row, last_col), 0-based and inclusive
    merged_ranges: list[tuple[int, int, int, int]] = field(default_factory=list)
    hidden_rows: frozenset[int] = frozenset()

    def __len__(self) -> int:
        return len(self.rows)

    def row(self, r: int) -> list:
        if 0 <= r < len(self.rows):
            return self.rows[r]
        return []

    def cell(self, r: int, c: int | None):
        if c is None or c < 0:
            return None
        row = self.row(r)
        if c >= len(row):
            return None
        value = row[c]
        return None if is_blank(value) else value

    def text(self, r: int, c: int | None) -> str:
        return cell_text(self.cell(r, c))

    def merged_value(self, r: int, c: int | None):
        """Cell value, falling back to the anchor of a merged range covering it."""
        value = self.cell(r, c)
        if value is not None or c is None:
            return value
        for r1, c1, r2, c2 in self.merged_ranges:
            if r1 <= r <= r2 and c1 <= c <= c2:
                return self.cell(r1, c1)
        return None

    def is_hidden(self, r: int) -> bool:
        return r in self.hidden_rows

    def is_empty_row(self, r: int) -> bool:
        return all(is_blank(v) for v in self.row(r))

    def texts(self, r: int) -> list[str]:
        return [cell_text(v) for v in self.row(r)]


@dataclass
class Workbook:
    sheets: list[Sheet]
    path: Path | None = None

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    def get(self, name: str) -> Sheet | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None

    def find(self, contains: str, *, excludes: tuple[str, ...] = ()) -> Sheet | None:
        """First sheet whose name contains `contains` and none of `excludes` (case-insensitive)."""
        needle = contains.casefold()
        for sheet in self.sheets:
            name = sheet.name.casefold()
            if needle in name and not any(x.casefold() in name for x in excludes):
                return sheet
        return None

    @property
    def first(self) -> Sheet | None:
        return self.sheets[0] if self.sheets else None


def _frame_to_rows(df: pd.DataFrame) -> list[list]:
    df = df.astype(object).where(pd.notna(df), None)
    return [list(row) for row in df.itertuples(index=False, name=None)]


def _sheet_layout(path: Path) -> dict[str, tuple[list[tuple[int, int, int, int]], frozenset[int]]]:
    """Merged ranges and hidden rows per sheet. Only .xlsx/.xlsm carry these."""
    if path.suffix.lower() not in {".xlsx", ".xlsm"}:
        return {}
    wb = openpyxl.load_workbook(path, data_only=True)
    layout = {}
    try:
        for ws in wb.worksheets:
            merged = [
                (rng.min_row - 1, rng.min_col - 1, rng.max_row - 1, rng.max_col - 1)
                for rng in ws.merged_cells.ranges
            ]
            hidden = frozenset(idx - 1 for idx, dim in ws.row_dimensions.items() if dim.hidden)
            layout[ws.title] = (merged, hidden)
    finally:
        wb.close()
    return layout


def load_workbook(path: Path) -> Workbook:
    path = Path(path)
    if not path.exists():
        raise WorkbookError(f"Workbook not found: {path}")
    try:
        xl = pd.ExcelFile(path)
        frames = {name: pd.read_excel(xl, sheet_name=name, header=None) for name in xl.sheet_names}
        layout = _sheet_layout(path)
    except (ValueError, OSError, KeyError) as e:
        raise WorkbookError(f"Could not read workbook {path}: {e}") from e

    sheets = []
    for name, df in frames.items():
        merged, hidden = layout.get(name, ([], frozenset()))
        sheets.append(Sheet(name=name, rows=_frame_to_rows(df), merged_ranges=merged, hidden_rows=hidden))
    return Workbook(sheets=sheets, path=path)
