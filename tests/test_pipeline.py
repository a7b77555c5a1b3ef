"""
End-to-end tests: in-memory workbooks through process_workbook.

One workbook per layout, each small enough to work the expected records
out by hand.
"""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from conftest import HAMBURG, LONG_BEACH, LOS_ANGELES, NINGBO, SHANGHAI
from tariff_engine.config import AppConfig, VariantSettings
from tariff_engine.errors import UnknownVariantError, WorkbookError
from tariff_engine.pipeline import process_workbook, run_workbook, write_json
from tariff_engine.records import OUTPUT_FIELDS
from tariff_engine.reference import CanonicalLocation, ReferenceContext
from tariff_engine.workbook import Sheet, Workbook


QHOF_HEADER = [
    "", "", "Load Port", "Discharge Port", "Place of Delivery", "SOC", "NOR", "HAZ",
    "Valid from", "Valid to", "", "20ST", "40ST", "40HC", "45HC",
]

CHARGES_HEADER = [
    "Charge description", "Place of Receipt", "Load Port", "Discharge Port", "Place of Delivery",
    "20ST", "40ST", "40HC", "45HC",
]


def qhof_row(origin, soc=None, prices=(100, 200, 220, 250)):
    return [None, None, origin, "Rotterdam", "Rotterdam", soc, None, None, 45292, 45657, None, *prices]


def qhof_workbook():
    rates = Sheet(
        "Rates",
        rows=[
            ["QHOF24001 FAK rates"],
            [],
            QHOF_HEADER,
            qhof_row("Shanghai, China"),
            qhof_row("Ningbo", soc="Y", prices=(90, 190, 210, 240)),
            qhof_row("Qwxzbury"),
            qhof_row("Shanghai, China", prices=(150, 250, 260, 300)),
        ],
    )
    charges = Sheet(
        "Standard charges",
        rows=[
            CHARGES_HEADER,
            ["Container charges", None, "Shanghai", "Rotterdam", None, None, None, None, None],
            ["Rate offer per container", None, None, None, None, 100, 200, None, None],
            ["Container maintenance charge", None, None, None, None, 10, 20, None, None],
        ],
    )
    feeders = Sheet(
        "Feeder tariff book",
        rows=[
            ["Out Port", "Main POL", "Main POD", "Eq", "Rate"],
            ["CNNGB", "CNSHA", "NLRTM", "20ST", 50],
            ["CNNGB", "CNSHA", "NLRTM", "40ST", 80],
        ],
    )
    return Workbook(sheets=[rates, charges, feeders])


def cover(contract):
    return Sheet(
        "Cover",
        rows=[
            [f"SERVICE CONTRACT {contract}"],
            ["Contract Effective Date", 45292],
            ["Contract Expiration Date", 45657],
        ],
    )


def usec_with_receipts():
    return Sheet(
        "USEC",
        rows=[
            ["POL", "POD", "Place of Delivery", "D20", "D40"],
            ["SHANGHAI, CN", "HAMBURG", None, 1000, 2000],
            [None] * 5,
            ["Country", "Place of Receipt", "POL", "D20", "D40"],
            ["China", "Ningbo", "Shanghai", 100, 150],
            ["China", "Ningbo", "Shanghai", 90, 200],
        ],
    )


# =============================================================================
# QHOF
# =============================================================================

class TestQhof:
    @pytest.fixture
    def result(self, context, config, diagnostics):
        return process_workbook(qhof_workbook(), context, config, diagnostics=diagnostics)

    def test_detects_layout_and_contract(self, result):
        assert result.variant == "qhof"
        assert result.contract_number == "QHOF24001"

    def test_direct_rate_with_maintenance_charge(self, result):
        direct = result.records[0]
        assert tuple(direct) == OUTPUT_FIELDS
        assert (direct["port_origin"], direct["port_discharge"], direct["port_destination"]) == ("1", "2", "2")
        assert (direct["20ft"], direct["40ft"], direct["40HC"], direct["45HC"]) == ("110", "220", "220", "250")
        assert (direct["valid_from"], direct["valid_to"]) == ("2024-01-01", "2024-12-31")
        assert direct["service"] == "AEX1"
        assert direct["contract"] == "33"
        assert direct["carrier_contract_number"] == "QHOF24001"

    def test_feeder_through_rate(self, result):
        assert len(result.records) == 2
        through = result.records[1]
        assert through["port_origin"] == str(NINGBO)
        assert (through["20ft"], through["40ft"], through["40HC"], through["45HC"]) == ("160", "300", "220", "250")
        assert result.legs[1].via_feeder == "Shanghai"

    def test_flagged_and_unmatched_rows_excluded(self, result):
        reasons = {e.row_number: e.reason for e in result.excluded}
        assert reasons[5] == "flagged SOC"
        assert "No match found for 'Qwxzbury'" in reasons[6]
        assert len(result.excluded) == 2

    def test_diagnostics(self, result):
        assert result.diagnostics.counters["location_unmatched"] == 1
        assert result.diagnostics.counters["maintenance_applied"] == 1
        assert result.diagnostics.counters["feeder_merged"] == 1
        assert result.summary()["records"] == 2


def test_minimal_sheet_uses_default_columns(diagnostics):
    context = ReferenceContext(
        locations=[CanonicalLocation(1, "Shanghai"), CanonicalLocation(2, "Los Angeles")],
    )
    rates = Sheet(
        "Rates",
        rows=[
            [None, None, "Load Port", "Discharge Port"],
            [None, None, "SHANGHAI, CN", "LOS ANGELES, US", None, None, None, None, None, None, None,
             100, 150, 160, 180],
        ],
    )
    result = process_workbook(Workbook(sheets=[rates]), context, AppConfig(), mode="qhof", diagnostics=diagnostics)

    assert len(result.records) == 1
    rec = result.records[0]
    assert (rec["port_origin"], rec["port_discharge"], rec["port_destination"]) == ("1", "2", "2")
    assert (rec["20ft"], rec["40ft"], rec["40HC"], rec["45HC"]) == ("100", "150", "160", "180")
    assert rec["carrier_contract_number"] == "QHOF-Contract"
    assert diagnostics.counters["header"] > 0
    assert diagnostics.counters["sheet_missing"] == 2


# =============================================================================
# SERVICE CONTRACTS
# =============================================================================

def test_svc_3118_port_groups_and_cover_dates(context, config, diagnostics):
    uswc = Sheet(
        "USWC",
        rows=[
            ["FAK/Bullets", "POL", "POD", "Place of Delivery", "D20", "D40", "Note"],
            [None, "SHANGHAI, CN", "LAX-LGB", None, 1000, 2000, None],
            [None, "SHANGHAI, CN", "LAX-LGB", None, 900, 1900, "revised"],
            [None] * 7,
            [None, "NINGBO", "LAX-LGB", None, 1, 1, None],
        ],
    )
    result = process_workbook(Workbook(sheets=[cover(3118), uswc]), context, config, diagnostics=diagnostics)

    assert result.variant == "svc_3118"
    assert result.contract_number == "SVC3118"
    assert [(r["port_origin"], r["port_discharge"], r["port_destination"]) for r in result.records] == [
        (str(SHANGHAI), str(LOS_ANGELES), str(LOS_ANGELES)),
        (str(SHANGHAI), str(LONG_BEACH), str(LONG_BEACH)),
    ]
    for rec in result.records:
        assert (rec["20ft"], rec["40ft"], rec["40HC"], rec["45HC"]) == ("900", "1900", "1900", "2280")
        assert (rec["valid_from"], rec["valid_to"]) == ("2024-01-01", "2024-12-31")
        assert rec["contract"] == "38"
    assert diagnostics.counters["superseded_rows"] == 1
    assert diagnostics.counters["sheet_missing"] == 1


def test_svc_3117_feeder_emits_only_through_rates(context, config, diagnostics):
    wb = Workbook(sheets=[cover(3117), usec_with_receipts()])
    result = process_workbook(wb, context, config, mode="svc_3117_feeder", diagnostics=diagnostics)

    assert result.variant == "svc_3117_feeder"
    assert len(result.records) == 1
    rec = result.records[0]
    assert (rec["port_origin"], rec["port_discharge"], rec["port_destination"]) == (
        str(NINGBO),
        str(HAMBURG),
        str(HAMBURG),
    )
    assert (rec["20ft"], rec["40ft"], rec["40HC"], rec["45HC"]) == ("1100", "2150", "2150", "2580")
    assert rec["carrier_contract_number"] == "SVC3117"


def test_svc_3117_feeder_keeps_receipt_origin_with_own_pol_row(context, config, diagnostics):
    usec = Sheet(
        "USEC",
        rows=[
            ["POL", "POD", "Place of Delivery", "D20", "D40"],
            ["SHANGHAI, CN", "HAMBURG", None, 1000, 2000],
            ["NINGBO", "HAMBURG", None, 1200, 2300],
            [None] * 5,
            ["Country", "Place of Receipt", "POL", "D20", "D40"],
            ["China", "Ningbo", "Shanghai", 100, 150],
        ],
    )
    wb = Workbook(sheets=[cover(3117), usec])
    result = process_workbook(wb, context, config, mode="svc_3117_feeder", diagnostics=diagnostics)

    assert len(result.records) == 1
    rec = result.records[0]
    assert (rec["port_origin"], rec["port_discharge"]) == (str(NINGBO), str(HAMBURG))
    assert (rec["20ft"], rec["40ft"]) == ("1100", "2150")
    assert diagnostics.counters["feeder_suppressed"] == 0
    assert diagnostics.counters["feeder_merged"] == 1


def test_blocked_delivery_excluded(context, diagnostics):
    config = AppConfig(variants={"svc_3117_feeder": VariantSettings("38", "SVC3117", (str(HAMBURG),))})
    wb = Workbook(sheets=[cover(3117), usec_with_receipts()])
    result = process_workbook(wb, context, config, mode="svc_3117_feeder", diagnostics=diagnostics)

    assert result.records == []
    assert [e.reason for e in result.excluded] == ["blocked delivery"]


def test_unknown_workbook(context, config, diagnostics):
    with pytest.raises(UnknownVariantError):
        process_workbook(Workbook(sheets=[Sheet("Summary", rows=[["hello"]])]), context, config, diagnostics=diagnostics)


# =============================================================================
# RUN / OUTPUT
# =============================================================================

def test_run_workbook_reports_errors(tmp_path, context, config, diagnostics):
    with pytest.raises(WorkbookError):
        run_workbook(tmp_path / "missing.xlsx", context, config, diagnostics=diagnostics)
    assert len(diagnostics.messages("error")) == 1


def test_write_json(tmp_path):
    records = [{"carrier": "653309", "port_origin": "1"}]
    path = write_json(records, tmp_path / "out" / "rates.json", variant="qhof")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["variant"] == "qhof"
    assert payload["rates"] == records
    assert "timestamp" in payload
