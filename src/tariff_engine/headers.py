"""
Header and table location for rate sheets.

Carrier sheets put their header row wherever they like, sometimes split over
two rows, sometimes not at all. A TableLayout describes what the header of a
given table looks like (keyword tiers, column roles, positional fallbacks)
and locate_table turns a sheet into a TableLocation the extractors can read.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tariff_engine.diagnostics import Diagnostics
from tariff_engine.matching import normalize
from tariff_engine.workbook import Sheet, cell_text


def _has_keyword(cell: str, keyword: str) -> bool:
    # short codes like "soc" or "dg" must be whole words, or "north" would count as "nor"
    if len(keyword) <= 3:
        return keyword in cell.split()
    return keyword in cell


@dataclass(frozen=True)
class HeaderTier:
    """Keywords that mark a header row. With require_all, every keyword must appear in the row."""

    keywords: tuple[str, ...]
    require_all: bool = False

    def matches(self, cells: list[str]) -> bool:
        if self.require_all:
            return all(any(_has_keyword(cell, kw) for cell in cells) for kw in self.keywords)
        return any(_has_keyword(cell, kw) for kw in self.keywords for cell in cells)


@dataclass(frozen=True)
class ColumnRole:
    name: str
    keywords: tuple[str, ...]
    default: int | None = None
    required: bool = True


@dataclass(frozen=True)
class TableLayout:
    tiers: tuple[HeaderTier, ...]
    roles: tuple[ColumnRole, ...]
    default_header_row: int | None = None
    split_header: bool = False
    data_offset: int = 1


@dataclass
class TableLocation:
    header_row: int
    columns: dict[str, int]
    data_start: int
    header_found: bool = True
    missing_roles: list[str] = field(default_factory=list)

    def col(self, role: str) -> int | None:
        return self.columns.get(role)


def normalized_row(sheet: Sheet, r: int) -> list[str]:
    return [normalize(cell_text(v)) for v in sheet.row(r)]


def find_header_row(sheet: Sheet, tiers: tuple[HeaderTier, ...], *, start: int = 0) -> int | None:
    """First row matching the highest-priority tier that matches anywhere in the sheet."""
    rows = [normalized_row(sheet, r) for r in range(len(sheet))]
    for tier in tiers:
        for r in range(start, len(rows)):
            if rows[r] and tier.matches(rows[r]):
                return r
    return None


def find_rows_containing(sheet: Sheet, marker: str, *, start: int = 0) -> list[int]:
    """Rows where any cell's normalized text contains the marker."""
    marker = normalize(marker)
    return [r for r in range(start, len(sheet)) if any(marker in cell for cell in normalized_row(sheet, r))]


def header_texts(sheet: Sheet, header_row: int, *, split: bool = False) -> list[str]:
    """Normalized header text per column. Split headers join the row below."""
    top = sheet.texts(header_row)
    if not split:
        return [normalize(t) for t in top]
    bottom = sheet.texts(header_row + 1)
    width = max(len(top), len(bottom))
    out = []
    for c in range(width):
        parts = [p for p in (top[c] if c < len(top) else "", bottom[c] if c < len(bottom) else "") if p]
        out.append(normalize(" ".join(parts)))
    return out


def resolve_columns(headers: list[str], roles: tuple[ColumnRole, ...]) -> tuple[dict[str, int], list[str]]:
    """
    Map each role to a column.

    A header equal to one of the role's keywords wins; otherwise the first
    header containing one of them. Roles with no match fall back to their
    default position and are reported as missing.
    """
    columns: dict[str, int] = {}
    missing: list[str] = []
    for role in roles:
        keywords = [normalize(k) for k in role.keywords]
        idx = next((i for i, h in enumerate(headers) if h and h in keywords), None)
        if idx is None:
            idx = next((i for i, h in enumerate(headers) if h and any(k in h for k in keywords)), None)
        if idx is None:
            if role.required:
                missing.append(role.name)
            if role.default is None:
                continue
            idx = role.default
        columns[role.name] = idx
    return columns, missing


def default_columns(roles: tuple[ColumnRole, ...]) -> dict[str, int]:
    return {role.name: role.default for role in roles if role.default is not None}


def locate_table(sheet: Sheet, layout: TableLayout, diagnostics: Diagnostics | None = None) -> TableLocation | None:
    """Find the header row and column positions of a rate table, or None if there is nothing to read."""
    header_row = find_header_row(sheet, layout.tiers)
    if header_row is None:
        if layout.default_header_row is None:
            if diagnostics:
                diagnostics.warn(f"No header row found on sheet {sheet.name!r}", category="header")
            return None
        if diagnostics:
            diagnostics.warn(
                f"Header row not found on sheet {sheet.name!r}, using row {layout.default_header_row + 1}",
                category="header",
            )
        return TableLocation(
            header_row=layout.default_header_row,
            columns=default_columns(layout.roles),
            data_start=layout.default_header_row + layout.data_offset,
            header_found=False,
            missing_roles=[r.name for r in layout.roles if r.required],
        )

    headers = header_texts(sheet, header_row, split=layout.split_header)
    columns, missing = resolve_columns(headers, layout.roles)
    if diagnostics:
        for role in missing:
            where = f"using column {columns[role] + 1}" if role in columns else "column skipped"
            diagnostics.warn(f"Missing header key on sheet {sheet.name!r}: {role} ({where})", category="header")
    return TableLocation(
        header_row=header_row,
        columns=columns,
        data_start=header_row + layout.data_offset,
        missing_roles=missing,
    )
