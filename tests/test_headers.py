"""
Tests for header row detection and column mapping.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tariff_engine.headers import (
    ColumnRole,
    HeaderTier,
    TableLayout,
    find_header_row,
    find_rows_containing,
    header_texts,
    locate_table,
    resolve_columns,
)
from tariff_engine.variants.qhof import QHOF_LAYOUT
from tariff_engine.variants.svc import SUBCONTINENT_LAYOUT, WEST_COAST_LAYOUT
from tariff_engine.workbook import Sheet


QHOF_HEADER = [
    "", "", "Load Port", "Discharge Port", "Place of Delivery", "SOC", "NOR", "HAZ",
    "Valid from", "Valid to", "", "20ST", "40ST", "40HC", "45HC",
]


def test_short_keywords_match_whole_words_only():
    tier = HeaderTier(("nor",))
    assert tier.matches(["nor"])
    assert not tier.matches(["north america"])


def test_require_all_tier():
    tier = HeaderTier(("pol", "pod"), require_all=True)
    assert tier.matches(["pol", "pod", "d20"])
    assert not tier.matches(["pol", "place of delivery"])


def test_qhof_header_found_below_title():
    sheet = Sheet("Rates", rows=[["QHOF24001 FAK rates"], [], QHOF_HEADER, [None, None, "Shanghai"]])
    table = locate_table(sheet, QHOF_LAYOUT)
    assert table.header_row == 2
    assert table.data_start == 3
    assert table.header_found
    assert table.col("origin") == 2
    assert table.col("delivery") == 4
    assert table.col("soc") == 5
    assert table.col("valid_to") == 9
    assert table.col("20ft") == 11
    assert table.col("45HC") == 14
    assert table.missing_roles == []


def test_higher_priority_tier_wins_over_earlier_row():
    rows = [
        ["Region", "Place of Delivery", "D20", "D40"],
        ["FAK/Bullets", "POL", "POD", "Place of Delivery", "D20", "D40"],
    ]
    assert find_header_row(Sheet("USWC", rows=rows), WEST_COAST_LAYOUT.tiers) == 1


def test_header_not_found_uses_default_row(diagnostics):
    sheet = Sheet("Rates", rows=[["nothing here"]] * 8)
    table = locate_table(sheet, QHOF_LAYOUT, diagnostics)
    assert not table.header_found
    assert table.header_row == 5
    assert table.data_start == 6
    assert table.col("40ft") == 12
    assert diagnostics.counters["header"] == 1


def test_header_not_found_without_default(diagnostics):
    layout = TableLayout(tiers=(HeaderTier(("pol",)),), roles=(ColumnRole("origin", ("pol",)),))
    assert locate_table(Sheet("X", rows=[["a", "b"]]), layout, diagnostics) is None
    assert diagnostics.messages("header") == ["No header row found on sheet 'X'"]


def test_exact_header_beats_contains():
    roles = (ColumnRole("40ft", ("d40",)), ColumnRole("40HC", ("d40hc",)))
    columns, missing = resolve_columns(["pol", "d40hc", "d40"], roles)
    assert columns == {"40ft": 2, "40HC": 1}
    assert missing == []


def test_missing_role_reported_and_defaulted():
    roles = (ColumnRole("origin", ("pol",), default=0), ColumnRole("note", ("note",), required=False))
    columns, missing = resolve_columns(["port", "rate"], roles)
    assert columns == {"origin": 0}
    assert missing == ["origin"]


def test_split_header_joins_rows():
    rows = [
        ["POL", "POD", "Place of", "D20", "D40"],
        [None, None, "Delivery", None, None],
        ["Nhava Sheva", "New York", "New York", 1000, 2000],
    ]
    sheet = Sheet("ISC-US", rows=rows)
    assert header_texts(sheet, 0, split=True)[2] == "place of delivery"
    table = locate_table(sheet, SUBCONTINENT_LAYOUT)
    assert table.col("delivery") == 2
    assert table.data_start == 2


def test_find_rows_containing():
    rows = [["Container Charges"], ["x"], ["Container charges - reefer"]]
    assert find_rows_containing(Sheet("S", rows=rows), "container charges") == [0, 2]
