"""
Auto-detect the tariff layout of a workbook.

Analyzes sheet names and content to decide which variant profile applies.
"""

from __future__ import annotations

import re
from typing import Literal

import pandas as pd

from tariff_engine.errors import UnknownVariantError
from tariff_engine.workbook import Sheet, Workbook, cell_text, is_blank, to_iso_date


Variant = Literal["qhof", "svc_3117_contract", "svc_3117_feeder", "svc_3118"]

VARIANTS: tuple[str, ...] = ("qhof", "svc_3117_contract", "svc_3117_feeder", "svc_3118")

QHOF_PATTERN = r"\bQHOF\w*"
DEFAULT_QHOF_CONTRACT = "QHOF-Contract"


def _frame(sheet: Sheet, nrows: int | None = None) -> pd.DataFrame:
    df = pd.DataFrame(sheet.rows[:nrows] if nrows is not None else sheet.rows)
    return df.where(df.notna(), "").astype(str)


def _contains(sheet: Sheet, pattern: str, *, regex: bool = False, case: bool = True, nrows: int | None = None) -> bool:
    df = _frame(sheet, nrows)
    if df.empty:
        return False
    return bool(df.apply(lambda col: col.str.contains(pattern, regex=regex, case=case, na=False)).any().any())


def find_cover_sheet(workbook: Workbook) -> Sheet | None:
    return workbook.get("Cover") or workbook.find("cover")


def detect_variant(workbook: Workbook, mode: str | None = None) -> Variant:
    """
    Analyze workbook structure to determine the tariff layout.

    Detection rules:
    1. An explicit mode wins (this is the only way to pick svc_3117_feeder)
    2. A cover sheet mentioning "service contract" and 3117 -> svc_3117_contract
    3. Same with 3118 -> svc_3118
    4. A QHOF contract code anywhere on the first sheet -> qhof
    """
    if mode:
        if mode not in VARIANTS:
            raise UnknownVariantError(workbook.path, workbook.sheet_names)
        return mode  # type: ignore[return-value]

    cover = find_cover_sheet(workbook)
    if cover is not None and _contains(cover, "service contract", case=False):
        if _contains(cover, "3117"):
            return "svc_3117_contract"
        if _contains(cover, "3118"):
            return "svc_3118"

    first = workbook.first
    if first is not None and _contains(first, QHOF_PATTERN, regex=True):
        return "qhof"

    raise UnknownVariantError(workbook.path, workbook.sheet_names)


def read_contract_number(sheet: Sheet, *, max_rows: int = 8) -> str:
    """The first QHOF contract code in the top rows of the sheet."""
    for r in range(min(max_rows, len(sheet))):
        for value in sheet.row(r):
            if is_blank(value):
                continue
            m = re.search(QHOF_PATTERN, cell_text(value))
            if m:
                return m.group(0)
    return DEFAULT_QHOF_CONTRACT


def read_cover_dates(sheet: Sheet | None) -> tuple[str | None, str | None]:
    """Contract effective and expiration dates from a cover sheet, as ISO dates."""
    effective = expiration = None
    if sheet is None:
        return effective, expiration
    for r in range(len(sheet)):
        row_text = " ".join(sheet.texts(r)).lower()
        value = next(
            (v for v in sheet.row(r) if not is_blank(v) and not isinstance(v, (str, bool))),
            None,
        )
        if value is None:
            continue
        if "contract effective date" in row_text and effective is None:
            effective = to_iso_date(value)
        if "contract expiration date" in row_text and expiration is None:
            expiration = to_iso_date(value)
    return effective, expiration
