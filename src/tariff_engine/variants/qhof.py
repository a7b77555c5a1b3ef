"""QHOF FAK contract: one rate table on the first sheet, a feeder tariff book and a standard-charges sheet."""

from __future__ import annotations

from tariff_engine.headers import ColumnRole, HeaderTier, TableLayout
from tariff_engine.variants.base import RateSheetSpec, VariantProfile


QHOF_LAYOUT = TableLayout(
    tiers=(
        HeaderTier(("load", "discharge", "delivery", "soc", "nor", "haz")),
        HeaderTier(("dg", "nref")),
    ),
    roles=(
        ColumnRole("origin", ("load", "origin"), default=2),
        ColumnRole("destination", ("discharge", "unloading"), default=3),
        ColumnRole("delivery", ("delivery", "destination", "arrival"), default=4),
        ColumnRole("soc", ("soc", "shipper owned container"), default=5),
        ColumnRole("nor", ("nor", "non-reff", "nref"), default=6),
        ColumnRole("haz", ("haz", "hazardous", "dg"), default=7),
        ColumnRole("valid_from", ("valid from", "start date", "effective date"), default=8),
        ColumnRole("valid_to", ("valid to", "end date", "expiry date"), default=9),
        ColumnRole("20ft", ("20st", "20 standard", "20"), default=11),
        ColumnRole("40ft", ("40st", "40 standard"), default=12),
        ColumnRole("40HC", ("40hc", "40 high container"), default=13),
        ColumnRole("45HC", ("45hc", "45 high container", "45"), default=14),
    ),
    default_header_row=5,
)


QHOF_PROFILE = VariantProfile(
    name="qhof",
    rate_sheets=(RateSheetSpec(layout=QHOF_LAYOUT, split_origin_lines=True),),
    validity="columns",
    contract_number_from_sheet=True,
    exclude_flagged=True,
    maintenance_sheet="Standard charges",
    tariff_book_feeders=True,
)
