from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import requests

from tariff_engine.config import DiagnosticsConfig


@dataclass
class DiagnosticEntry:
    category: str
    message: str
    data: Any | None = None


@dataclass
class TraceStep:
    title: str
    summary: str | None = None


@dataclass
class Diagnostics:
    """
    Collects everything that went wrong (or was skipped) during one run.

    Warnings never stop processing. Each one is printed with the pipeline
    prefix, counted per category, and kept so the caller can report on it.
    If a webhook is configured, errors are also posted there.
    """

    config: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    verbose: bool = True
    prefix: str = "[Pipeline]"
    entries: list[DiagnosticEntry] = field(default_factory=list)
    steps: list[TraceStep] = field(default_factory=list)
    counters: Counter = field(default_factory=Counter)

    def step(self, title: str, *, summary: str | None = None) -> None:
        self.steps.append(TraceStep(title=title, summary=summary))
        if self.verbose:
            line = f"{self.prefix} {title}"
            if summary:
                line += f" - {summary}"
            print(line)

    def warn(self, message: str, *, category: str = "general", data: Any | None = None) -> None:
        self.entries.append(DiagnosticEntry(category=category, message=message, data=data))
        self.counters[category] += 1
        if self.verbose:
            print(f"{self.prefix} WARNING: {message}")

    def count(self, category: str, amount: int = 1) -> None:
        self.counters[category] += amount

    def messages(self, category: str | None = None) -> list[str]:
        return [e.message for e in self.entries if category is None or e.category == category]

    @property
    def warnings(self) -> list[str]:
        return self.messages()

    def report_error(self, message: str) -> bool:
        """Record an error and post it to the error webhook, if one is set."""
        self.warn(message, category="error")
        if not self.config.webhook_url:
            return False
        payload = {"parser-name": self.config.parser_name, "error-message": message}
        try:
            resp = requests.post(self.config.webhook_url, json=payload, timeout=self.config.timeout_seconds)
            resp.raise_for_status()
        except requests.RequestException as e:
            self.warn(f"Error webhook failed: {e}", category="webhook")
            return False
        return True

    def summary(self) -> dict[str, int]:
        return dict(sorted(self.counters.items()))
