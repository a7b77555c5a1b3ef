"""
Feeder (pre-carriage) tables.

Two layouts are supported:
- tariff book: a dedicated sheet with one row per (out port, main POL, equipment)
  and a single rate column; rows are folded into one FeederLeg per port pair
- receipt table: a second table on a contract sheet listing Place of Receipt,
  POL and D20/D40 prices
"""

from __future__ import annotations

from tariff_engine.diagnostics import Diagnostics
from tariff_engine.headers import ColumnRole, HeaderTier, TableLayout, locate_table
from tariff_engine.matching import LocationMatcher, city_part
from tariff_engine.models import ContainerRates, FeederLeg
from tariff_engine.workbook import Sheet, Workbook, to_number


FEEDER_SHEET_NAME = "Feeder tariff book"

TARIFF_BOOK_LAYOUT = TableLayout(
    tiers=(HeaderTier(("out port", "main pol", "main pod")),),
    roles=(
        ColumnRole("out_port", ("out port",)),
        ColumnRole("main_pol", ("main pol",)),
        ColumnRole("main_pod", ("main pod",), required=False),
        ColumnRole("equipment", ("eq", "equipment")),
        ColumnRole("rate", ("rate",)),
    ),
)

RECEIPT_TABLE_LAYOUT = TableLayout(
    tiers=(HeaderTier(("country", "place of receipt", "pol"), require_all=True),),
    roles=(
        ColumnRole("pol", ("pol",)),
        ColumnRole("place_of_receipt", ("place of receipt",)),
        ColumnRole("20ft", ("d20",)),
        ColumnRole("40ft", ("d40",)),
    ),
)

EQUIPMENT_SIZES = {
    "20ST": "20ft",
    "20GP": "20ft",
    "40ST": "40ft",
    "40GP": "40ft",
    "40HC": "40HC",
    "40HQ": "40HC",
    "45HC": "45HC",
}


def find_feeder_sheet(workbook: Workbook) -> Sheet | None:
    return workbook.get(FEEDER_SHEET_NAME) or workbook.find("feeder")


def parse_tariff_book(
    sheet: Sheet,
    matcher: LocationMatcher,
    diagnostics: Diagnostics | None = None,
) -> list[FeederLeg]:
    """
    Read a feeder tariff book into one FeederLeg per (out port, main POL).

    Ports are resolved through carrier codes first. When the same pair and
    equipment appear twice, the higher rate is kept.
    """
    table = locate_table(sheet, TARIFF_BOOK_LAYOUT, diagnostics)
    if table is None:
        return []
    cols = table.columns

    folded: dict[tuple, dict] = {}
    for r in range(table.data_start, len(sheet)):
        if sheet.is_empty_row(r):
            continue
        out_port = sheet.text(r, cols.get("out_port"))
        main_pol = sheet.text(r, cols.get("main_pol"))
        origin = matcher.resolve_port_cell(out_port)
        if not origin.matched:
            if diagnostics:
                diagnostics.warn(f"Row {r + 1}: feeder port not found: {out_port!r}", category="feeder_port")
            continue
        transshipment = matcher.resolve_port_cell(main_pol)
        if not transshipment.matched and diagnostics:
            diagnostics.warn(f"Row {r + 1}: feeder main POL not found: {main_pol!r}", category="feeder_port")

        equipment = sheet.text(r, cols.get("equipment")).upper()
        size = EQUIPMENT_SIZES.get(equipment)
        rate = to_number(sheet.cell(r, cols.get("rate")))
        if size is None or rate is None:
            continue

        key = (origin.location_id, transshipment.location_id)
        entry = folded.setdefault(
            key,
            {"origin_name": out_port, "transshipment_name": main_pol, "row_number": r + 1, "sizes": {}},
        )
        current = entry["sizes"].get(size)
        if current is None or rate > current:
            entry["sizes"][size] = rate
            entry["row_number"] = r + 1

    feeders = []
    for (origin_id, transshipment_id), entry in folded.items():
        sizes = entry["sizes"]
        feeders.append(
            FeederLeg(
                origin_id=origin_id,
                transshipment_id=transshipment_id,
                rates=ContainerRates(
                    rate_20ft=sizes.get("20ft"),
                    rate_40ft=sizes.get("40ft"),
                    rate_40hc=sizes.get("40HC"),
                    rate_45hc=sizes.get("45HC"),
                ),
                origin_name=" ".join(entry["origin_name"].split()),
                transshipment_name=" ".join(entry["transshipment_name"].split()),
                row_number=entry["row_number"],
            )
        )
    return feeders


def parse_receipt_table(
    sheet: Sheet,
    matcher: LocationMatcher,
    diagnostics: Diagnostics | None = None,
) -> list[FeederLeg]:
    """Read the Place of Receipt / POL / D20 / D40 table that some contract sheets carry below the rates."""
    table = locate_table(sheet, RECEIPT_TABLE_LAYOUT)
    if table is None:
        return []
    cols = table.columns

    feeders = []
    for r in range(table.data_start, len(sheet)):
        pol = city_part(sheet.text(r, cols.get("pol")))
        receipt = city_part(sheet.text(r, cols.get("place_of_receipt")))
        if not pol and not receipt:
            break
        origin = matcher.resolve(receipt)
        if not origin.matched:
            if diagnostics:
                diagnostics.warn(f"Row {r + 1}: {origin.describe()}", category="feeder_port")
            continue
        feeders.append(
            FeederLeg(
                origin_id=origin.location_id,
                transshipment_id=matcher.resolve_id(pol),
                rates=ContainerRates(
                    rate_20ft=to_number(sheet.cell(r, cols.get("20ft"))),
                    rate_40ft=to_number(sheet.cell(r, cols.get("40ft"))),
                ),
                origin_name=receipt,
                transshipment_name=pol,
                row_number=r + 1,
            )
        )
    return feeders
