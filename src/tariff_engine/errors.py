"""Exceptions raised by the tariff engine.

Row-level problems (an unmatched port, a missing header, a bad number) are
never raised: they become warnings on the run's Diagnostics. Only problems
that make a whole workbook unprocessable end up here.
"""

from __future__ import annotations


class TariffEngineError(Exception):
    """Base class for all tariff engine errors."""


class ReferenceDataError(TariffEngineError):
    """Reference data (locations, carrier codes, services) could not be loaded."""


class WorkbookError(TariffEngineError):
    """The workbook could not be read, or a required sheet is missing."""


class UnknownVariantError(WorkbookError):
    """The workbook does not look like any supported tariff layout."""

    def __init__(self, path, sheet_names: list[str]):
        self.path = path
        self.sheet_names = sheet_names
        super().__init__(
            f"Could not detect tariff layout for {path} (sheets: {', '.join(sheet_names) or 'none'})"
        )
