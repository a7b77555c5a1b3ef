"""
Tests for config loading and the diagnostics collector.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
import requests

from tariff_engine import diagnostics as diagnostics_module
from tariff_engine.config import AppConfig, DiagnosticsConfig, load_app_config
from tariff_engine.diagnostics import Diagnostics


CONFIG_TOML = """
[reference]
locations_file = "data/locations.json"

[matching]
max_edit_distance = 2

[matching.aliases]
"Ho Chi Minh" = ["Saigon"]

[output]
carrier = "111"

[variants.svc_3118]
carrier_contract_number = "SVC3118-B"
"""


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch also removes whatever load_dotenv sets
    for name in ("TARIFF_API_TOKEN", "TARIFF_ERROR_WEBHOOK"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


# =============================================================================
# CONFIG
# =============================================================================

def test_defaults():
    config = AppConfig()
    assert config.matching.max_edit_distance == 3
    assert config.backfill.ratio_20ft == 0.9
    assert config.variant("qhof").contract == "33"
    assert config.variant("svc_3117_feeder").blocked_delivery_ids
    assert config.variant("unknown").contract == ""


def test_load_app_config(tmp_path, clean_env):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG_TOML, encoding="utf-8")

    config = load_app_config(path)
    assert config.reference.locations_file == (tmp_path / "data" / "locations.json").resolve()
    assert config.reference.services_file is None
    assert config.matching.max_edit_distance == 2
    assert config.matching.aliases == {"Ho Chi Minh": ["Saigon"]}
    assert config.output.carrier == "111"
    assert config.output.rate_source == "111"
    assert config.variant("svc_3118").carrier_contract_number == "SVC3118-B"
    assert config.variant("svc_3118").contract == "38"
    assert config.diagnostics.webhook_url is None


def test_env_file_beside_config(tmp_path, clean_env):
    (tmp_path / "config.toml").write_text("", encoding="utf-8")
    (tmp_path / ".env").write_text(
        "TARIFF_API_TOKEN=abc123\nTARIFF_ERROR_WEBHOOK=https://hooks.example/errors\n", encoding="utf-8"
    )

    config = load_app_config(tmp_path / "config.toml")
    assert config.reference.api_token == "abc123"
    assert config.diagnostics.webhook_url == "https://hooks.example/errors"


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_app_config(tmp_path / "nope.toml")


# =============================================================================
# DIAGNOSTICS
# =============================================================================

def test_warnings_are_counted_and_printed(capsys):
    diag = Diagnostics()
    diag.warn("Row 4: no match", category="location_unmatched")
    diag.step("Read 3 rate rows", summary="header row 2")
    diag.count("superseded_rows", 2)

    out = capsys.readouterr().out
    assert "[Pipeline] WARNING: Row 4: no match" in out
    assert "[Pipeline] Read 3 rate rows - header row 2" in out
    assert diag.summary() == {"location_unmatched": 1, "superseded_rows": 2}
    assert diag.warnings == ["Row 4: no match"]


def test_quiet_diagnostics_print_nothing(capsys):
    Diagnostics(verbose=False).warn("hidden")
    assert capsys.readouterr().out == ""


def test_report_error_posts_to_webhook(monkeypatch):
    sent = {}

    class Response:
        def raise_for_status(self):
            pass

    def fake_post(url, json=None, timeout=None):
        sent.update(url=url, json=json, timeout=timeout)
        return Response()

    monkeypatch.setattr(diagnostics_module.requests, "post", fake_post)
    diag = Diagnostics(config=DiagnosticsConfig(webhook_url="https://hooks.example/errors"), verbose=False)

    assert diag.report_error("ERROR: workbook unreadable")
    assert sent["json"] == {"parser-name": "carrier-tariff-engine", "error-message": "ERROR: workbook unreadable"}
    assert sent["timeout"] == 10.0


def test_report_error_survives_webhook_failure(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(diagnostics_module.requests, "post", fake_post)
    diag = Diagnostics(config=DiagnosticsConfig(webhook_url="https://hooks.example/errors"), verbose=False)

    assert diag.report_error("boom") is False
    assert diag.counters["error"] == 1
    assert diag.counters["webhook"] == 1


def test_report_error_without_webhook():
    diag = Diagnostics(verbose=False)
    assert diag.report_error("boom") is False
    assert diag.messages("error") == ["boom"]
