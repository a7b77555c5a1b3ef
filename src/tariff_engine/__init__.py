"""
Carrier Tariff Engine

Turns carrier freight-rate workbooks into normalized rate records:
- Locates header rows and rate tables in messy sheets
- Resolves free-text port names to canonical location ids
- Expands port-group codes, merges feeder legs, adds maintenance surcharges
- De-duplicates routes and back-fills missing container sizes

Usage:
    from tariff_engine import ReferenceContext, load_app_config, run_workbook

    config = load_app_config(Path("config.toml"))
    context = ReferenceContext.from_config(config)
    result = run_workbook(Path("contract.xlsx"), context, config)
    for record in result.records:
        print(record["port_origin"], record["40ft"])
"""

from .config import AppConfig, load_app_config
from .diagnostics import Diagnostics
from .errors import ReferenceDataError, TariffEngineError, UnknownVariantError, WorkbookError
from .matching import LocationMatcher, LocationResolution
from .pipeline import PipelineResult, process_workbook, run_workbook, write_json
from .reference import CanonicalLocation, ReferenceContext
from .workbook import Sheet, Workbook, load_workbook

__all__ = [
    "AppConfig",
    "load_app_config",
    "Diagnostics",
    "TariffEngineError",
    "ReferenceDataError",
    "WorkbookError",
    "UnknownVariantError",
    "LocationMatcher",
    "LocationResolution",
    "PipelineResult",
    "process_workbook",
    "run_workbook",
    "write_json",
    "CanonicalLocation",
    "ReferenceContext",
    "Sheet",
    "Workbook",
    "load_workbook",
]
