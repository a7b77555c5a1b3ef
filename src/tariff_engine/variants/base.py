from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from tariff_engine.headers import TableLayout
from tariff_engine.port_groups import PortGroups
from tariff_engine.workbook import Sheet, Workbook


@dataclass(frozen=True)
class RateSheetSpec:
    layout: TableLayout
    # None selects the first sheet of the workbook
    contains: str | None = None
    excludes: tuple[str, ...] = ()
    port_groups: PortGroups | None = None
    stop_at_empty_route: bool = False
    skip_hidden_rows: bool = False
    keep_last_occurrence: bool = False
    split_origin_lines: bool = False
    receipt_feeders: bool = False
    feeder_base_floor: float | None = None

    @property
    def label(self) -> str:
        return self.contains or "first sheet"

    def find(self, workbook: Workbook) -> Sheet | None:
        if self.contains is None:
            return workbook.first
        exact = workbook.get(self.contains)
        if exact is not None:
            return exact
        return workbook.find(self.contains, excludes=self.excludes)


@dataclass(frozen=True)
class VariantProfile:
    name: str
    rate_sheets: tuple[RateSheetSpec, ...]
    validity: Literal["columns", "cover"] = "columns"
    contract_number_from_sheet: bool = False
    exclude_flagged: bool = False
    maintenance_sheet: str | None = None
    tariff_book_feeders: bool = False
    emit_base_rates: bool = True
    hc40_from_40ft: bool = False
