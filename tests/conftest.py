"""
Shared fixtures for the tariff engine tests.

Sheets are built in memory from plain row lists, so most tests never touch
Excel. Location ids are small ints to keep expected records readable.
"""
import sys
from pathlib import Path

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from tariff_engine.config import AppConfig, DiagnosticsConfig
from tariff_engine.diagnostics import Diagnostics
from tariff_engine.matching import LocationMatcher
from tariff_engine.reference import CanonicalLocation, ReferenceContext, ServiceDirectory, ServiceEntry


SHANGHAI, ROTTERDAM, NINGBO, LOS_ANGELES, LONG_BEACH, YANTIAN = 1, 2, 3, 4, 5, 6
KAOHSIUNG, TAIPEI, PORT_KLANG, SINGAPORE, HO_CHI_MINH, HAMBURG = 7, 8, 9, 10, 11, 12

LOCATIONS = [
    CanonicalLocation(SHANGHAI, "Shanghai, China"),
    CanonicalLocation(ROTTERDAM, "Rotterdam, Netherlands"),
    CanonicalLocation(NINGBO, "Ningbo, China"),
    CanonicalLocation(LOS_ANGELES, "Los Angeles, United States"),
    CanonicalLocation(LONG_BEACH, "Long Beach, United States"),
    CanonicalLocation(YANTIAN, "Yantian, China"),
    CanonicalLocation(KAOHSIUNG, "Kaohsiung, Taiwan"),
    CanonicalLocation(TAIPEI, "Taipei, Taiwan"),
    CanonicalLocation(PORT_KLANG, "Port Klang, Malaysia"),
    CanonicalLocation(SINGAPORE, "Singapore"),
    CanonicalLocation(HO_CHI_MINH, "Ho Chi Minh"),
    CanonicalLocation(HAMBURG, "Hamburg, Germany"),
]

CARRIER_CODES = {"CNSHA": SHANGHAI, "CNNGB": NINGBO, "NLRTM": ROTTERDAM}

ALIASES = {"Ho Chi Minh": ["HO CHI MINH CITY", "Saigon"]}


@pytest.fixture
def locations():
    return list(LOCATIONS)


@pytest.fixture
def matcher():
    return LocationMatcher(
        LOCATIONS,
        aliases=ALIASES,
        generic_words=("port", "tanjung", "st"),
        max_edit_distance=3,
        carrier_codes=CARRIER_CODES,
    )


@pytest.fixture
def diagnostics():
    return Diagnostics(config=DiagnosticsConfig(), verbose=False)


@pytest.fixture
def services():
    return ServiceDirectory(
        entries=[
            ServiceEntry("AEX1", "Asia Europe Express 1", ("Shanghai", "Ningbo"), "Rotterdam"),
        ]
    )


@pytest.fixture
def context(services):
    return ReferenceContext(locations=list(LOCATIONS), carrier_codes=dict(CARRIER_CODES), services=services)


@pytest.fixture
def config():
    return AppConfig()
