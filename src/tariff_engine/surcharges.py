"""
Container maintenance surcharges from the "Standard charges" sheet.

The sheet is a stack of blocks, each opened by a "Container charges" row.
The block's first row names the route in (usually merged) port cells; inside
the block one row carries the offered rate per container and another the
maintenance charge to add on top of it.
"""

from __future__ import annotations

from dataclasses import dataclass

from tariff_engine.diagnostics import Diagnostics
from tariff_engine.headers import ColumnRole, HeaderTier, TableLayout, find_rows_containing, locate_table
from tariff_engine.matching import LocationMatcher, first_line, last_line, normalize
from tariff_engine.models import CONTAINER_SIZES, ContainerRates, MaintenanceCharge, RateLeg
from tariff_engine.workbook import Sheet, cell_text, to_number


BLOCK_MARKER = "container charges"
CHARGE_MARKER = "container maintenance charge"
OFFER_MARKERS = ("rate offer per container", "rate offer")

MAINTENANCE_LAYOUT = TableLayout(
    tiers=(HeaderTier(("place of receipt", "load port", "discharge port", "place of delivery")),),
    roles=(
        ColumnRole("20ft", ("20st",)),
        ColumnRole("40ft", ("40st",)),
        ColumnRole("40HC", ("40hc",)),
        ColumnRole("45HC", ("45hc",)),
        ColumnRole("description", ("charge description",)),
        ColumnRole("load_port", ("load port",)),
        ColumnRole("discharge_port", ("discharge port",)),
        ColumnRole("delivery", ("place of delivery",), required=False),
    ),
)


@dataclass(frozen=True)
class _Block:
    start: int
    end: int


def _blocks(sheet: Sheet, header_row: int) -> list[_Block]:
    starts = find_rows_containing(sheet, BLOCK_MARKER)
    if not starts:
        # no markers: whatever follows the header is one block
        first = next((r for r in range(header_row + 1, len(sheet)) if not sheet.is_empty_row(r)), None)
        starts = [first] if first is not None else []
    ends = starts[1:] + [len(sheet)]
    return [_Block(start=s, end=e) for s, e in zip(starts, ends)]


def _size_values(sheet: Sheet, r: int, columns: dict[str, int]) -> list[float | None]:
    return [to_number(sheet.cell(r, columns.get(size))) for size in CONTAINER_SIZES]


def parse_maintenance_charges(
    sheet: Sheet,
    matcher: LocationMatcher,
    diagnostics: Diagnostics | None = None,
) -> list[MaintenanceCharge]:
    table = locate_table(sheet, MAINTENANCE_LAYOUT, diagnostics)
    if table is None:
        return []
    columns = table.columns
    desc_col = columns.get("description")
    if desc_col is None:
        return []

    charges = []
    for block in _blocks(sheet, table.header_row):
        load_port = last_line(cell_text(sheet.merged_value(block.start, columns.get("load_port"))))
        discharge_port = last_line(cell_text(sheet.merged_value(block.start, columns.get("discharge_port"))))
        delivery = first_line(cell_text(sheet.merged_value(block.start, columns.get("delivery"))))

        load_id = matcher.resolve_id(load_port) if load_port else None
        discharge_id = matcher.resolve_id(discharge_port) if discharge_port else None
        delivery_id = matcher.resolve_id(delivery) if delivery else discharge_id

        charge_values = None
        offered_values = None
        for r in range(block.start, block.end):
            desc = normalize(sheet.text(r, desc_col))
            if not desc:
                continue
            if CHARGE_MARKER in desc:
                charge_values = [v or 0 for v in _size_values(sheet, r, columns)]
            if any(marker in desc for marker in OFFER_MARKERS):
                offered_values = [v or 0 for v in _size_values(sheet, r, columns)]

        # an all-zero offer places no constraint on the base rate
        if offered_values is None:
            continue
        charges.append(
            MaintenanceCharge(
                block_start=block.start,
                load_port=load_port,
                discharge_port=discharge_port,
                delivery=delivery,
                load_port_id=load_id,
                discharge_port_id=discharge_id,
                delivery_id=delivery_id,
                charge=ContainerRates.from_values(charge_values or [0, 0, 0, 0]),
                offered=ContainerRates.from_values(offered_values),
            )
        )
    return charges


def charge_applies(charge: MaintenanceCharge, leg: RateLeg) -> bool:
    if (charge.load_port_id, charge.discharge_port_id, charge.delivery_id) != (
        leg.origin_id,
        leg.destination_id,
        leg.delivery_id,
    ):
        return False
    for offered, actual in zip(charge.offered.values(), leg.rates.values()):
        if offered and offered != actual:
            return False
    return True


def apply_maintenance_charges(
    legs: list[RateLeg],
    charges: list[MaintenanceCharge],
    diagnostics: Diagnostics | None = None,
) -> list[RateLeg]:
    """Add the first applicable maintenance charge to each leg. Sizes the leg has no price for stay empty."""
    out = []
    for leg in legs:
        charge = next((c for c in charges if charge_applies(c, leg)), None)
        if charge is None:
            out.append(leg)
            continue
        added = [
            None if price is None else price + (extra or 0)
            for price, extra in zip(leg.rates.values(), charge.charge.values())
        ]
        out.append(leg.with_rates(ContainerRates.from_values(added)))
        if diagnostics:
            diagnostics.count("maintenance_applied")
    return out
