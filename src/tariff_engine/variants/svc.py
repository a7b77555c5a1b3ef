"""
Service contracts 3117 / 3118.

Rates sit on trade-lane sheets (USWC, USEC, ISC-US...) with POL / POD /
Place of Delivery / D20 / D40 columns. Ports are often port-group codes, the
validity period comes from the Cover sheet, and the 3117 feeder variant
reads a Place of Receipt table under the rates and emits only the
feeder-combined rates.
"""

from __future__ import annotations

from tariff_engine.headers import ColumnRole, HeaderTier, TableLayout
from tariff_engine.port_groups import (
    TRANSPACIFIC_EAST_3117,
    TRANSPACIFIC_EAST_3118,
    TRANSPACIFIC_WEST_3117,
    TRANSPACIFIC_WEST_3118,
)
from tariff_engine.variants.base import RateSheetSpec, VariantProfile


SVC_ROLES = (
    ColumnRole("origin", ("pol",)),
    ColumnRole("destination", ("pod",)),
    ColumnRole("delivery", ("place of delivery",), required=False),
    ColumnRole("currency", ("curr",), required=False),
    ColumnRole("20ft", ("d20",)),
    ColumnRole("40ft", ("d40",)),
    ColumnRole("40HC", ("h40", "40hc", "d40hc"), required=False),
    ColumnRole("45HC", ("h45", "45hc", "d45"), required=False),
    ColumnRole("note", ("note",), required=False),
)

ROUTE_TIERS = (
    HeaderTier(("pol", "pod"), require_all=True),
    HeaderTier(("place of delivery", "d20", "d40")),
)

WEST_COAST_LAYOUT = TableLayout(
    tiers=(HeaderTier(("fak/bullets", "pol"), require_all=True), *ROUTE_TIERS),
    roles=SVC_ROLES,
)

EAST_COAST_LAYOUT = TableLayout(tiers=ROUTE_TIERS, roles=SVC_ROLES)

# header text is split over two rows; data starts below the second one
SUBCONTINENT_LAYOUT = TableLayout(tiers=ROUTE_TIERS, roles=SVC_ROLES, split_header=True, data_offset=2)

_CONTRACT_SHEET = dict(stop_at_empty_route=True, skip_hidden_rows=True, keep_last_occurrence=True)


SVC_3117_CONTRACT = VariantProfile(
    name="svc_3117_contract",
    rate_sheets=(
        RateSheetSpec(
            layout=WEST_COAST_LAYOUT, contains="USWC", excludes=("ISC",),
            port_groups=TRANSPACIFIC_WEST_3117, **_CONTRACT_SHEET,
        ),
        RateSheetSpec(
            layout=EAST_COAST_LAYOUT, contains="USEC", excludes=("ISC",),
            port_groups=TRANSPACIFIC_EAST_3117, **_CONTRACT_SHEET,
        ),
        RateSheetSpec(
            layout=SUBCONTINENT_LAYOUT, contains="ISC-US", excludes=("ISC-USWC", "ISC-USEC"), **_CONTRACT_SHEET,
        ),
        RateSheetSpec(layout=SUBCONTINENT_LAYOUT, contains="ISC-USWC", **_CONTRACT_SHEET),
    ),
    validity="cover",
    hc40_from_40ft=True,
)

SVC_3117_FEEDER = VariantProfile(
    name="svc_3117_feeder",
    rate_sheets=(
        RateSheetSpec(
            layout=WEST_COAST_LAYOUT, contains="USWC", excludes=("ISC",),
            port_groups=TRANSPACIFIC_WEST_3117, receipt_feeders=True, **_CONTRACT_SHEET,
        ),
        RateSheetSpec(
            layout=EAST_COAST_LAYOUT, contains="USEC", excludes=("ISC",),
            port_groups=TRANSPACIFIC_EAST_3117, receipt_feeders=True, feeder_base_floor=1.0, **_CONTRACT_SHEET,
        ),
    ),
    validity="cover",
    emit_base_rates=False,
    hc40_from_40ft=True,
)

SVC_3118 = VariantProfile(
    name="svc_3118",
    rate_sheets=(
        RateSheetSpec(
            layout=WEST_COAST_LAYOUT, contains="USWC", excludes=("ISC",),
            port_groups=TRANSPACIFIC_WEST_3118, **_CONTRACT_SHEET,
        ),
        RateSheetSpec(
            layout=EAST_COAST_LAYOUT, contains="USEC", excludes=("ISC",),
            port_groups=TRANSPACIFIC_EAST_3118, **_CONTRACT_SHEET,
        ),
    ),
    validity="cover",
    hc40_from_40ft=True,
)
