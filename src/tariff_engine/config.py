from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import tomllib

from dotenv import load_dotenv


DEFAULT_GENERIC_WORDS = ("port", "tanjung", "st")

DEFAULT_VARIANTS = {
    "qhof": {"contract": "33", "carrier_contract_number": "QHOF-Contract"},
    "svc_3117_contract": {"contract": "38", "carrier_contract_number": "SVC3117"},
    "svc_3117_feeder": {
        "contract": "38",
        "carrier_contract_number": "SVC3117",
        "blocked_delivery_ids": ["649220", "657528", "656284", "657301", "660208"],
    },
    "svc_3118": {"contract": "38", "carrier_contract_number": "SVC3118"},
}


@dataclass(frozen=True)
class ReferenceConfig:
    locations_file: Path | None = None
    locations_url: str | None = None
    carrier_codes_file: Path | None = None
    carrier_codes_url: str | None = None
    services_file: Path | None = None
    services_url: str | None = None
    api_token: str | None = None


@dataclass(frozen=True)
class MatchingConfig:
    max_edit_distance: int = 3
    generic_words: tuple[str, ...] = DEFAULT_GENERIC_WORDS
    aliases: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class OutputConfig:
    carrier: str = "653309"
    rate_source: str = "653309"


@dataclass(frozen=True)
class BackfillConfig:
    ratio_20ft: float = 0.9
    ratio_45hc: float = 1.2


@dataclass(frozen=True)
class DiagnosticsConfig:
    webhook_url: str | None = None
    parser_name: str = "carrier-tariff-engine"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class VariantSettings:
    contract: str
    carrier_contract_number: str
    blocked_delivery_ids: tuple[str, ...] = ()


def _variant_settings(raw: dict) -> dict[str, VariantSettings]:
    merged = {name: dict(values) for name, values in DEFAULT_VARIANTS.items()}
    for name, values in raw.items():
        merged.setdefault(name, {}).update(values)
    return {
        name: VariantSettings(
            contract=str(values.get("contract", "")),
            carrier_contract_number=str(values.get("carrier_contract_number", "")),
            blocked_delivery_ids=tuple(str(x) for x in values.get("blocked_delivery_ids", [])),
        )
        for name, values in merged.items()
    }


@dataclass(frozen=True)
class AppConfig:
    reference: ReferenceConfig = field(default_factory=ReferenceConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    backfill: BackfillConfig = field(default_factory=BackfillConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    variants: dict[str, VariantSettings] = field(default_factory=lambda: _variant_settings({}))

    def variant(self, name: str) -> VariantSettings:
        return self.variants.get(name) or VariantSettings(contract="", carrier_contract_number="")


def _optional_path(app_dir: Path, value: str | None) -> Path | None:
    if not value:
        return None
    return (app_dir / value).resolve()


def load_app_config(config_path: Path) -> AppConfig:
    config_path = config_path.resolve()
    app_dir = config_path.parent

    env_path = app_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    with config_path.open("rb") as f:
        raw = tomllib.load(f)

    reference = raw.get("reference", {})
    matching = raw.get("matching", {})
    output = raw.get("output", {})
    backfill = raw.get("backfill", {})
    diagnostics = raw.get("diagnostics", {})

    return AppConfig(
        reference=ReferenceConfig(
            locations_file=_optional_path(app_dir, reference.get("locations_file")),
            locations_url=reference.get("locations_url") or None,
            carrier_codes_file=_optional_path(app_dir, reference.get("carrier_codes_file")),
            carrier_codes_url=reference.get("carrier_codes_url") or None,
            services_file=_optional_path(app_dir, reference.get("services_file")),
            services_url=reference.get("services_url") or None,
            api_token=os.getenv("TARIFF_API_TOKEN") or None,
        ),
        matching=MatchingConfig(
            max_edit_distance=int(matching.get("max_edit_distance", 3)),
            generic_words=tuple(str(w) for w in matching.get("generic_words", DEFAULT_GENERIC_WORDS)),
            aliases={str(k): [str(x) for x in v] for k, v in matching.get("aliases", {}).items()},
        ),
        output=OutputConfig(
            carrier=str(output.get("carrier", "653309")),
            rate_source=str(output.get("rate_source", output.get("carrier", "653309"))),
        ),
        backfill=BackfillConfig(
            ratio_20ft=float(backfill.get("ratio_20ft", 0.9)),
            ratio_45hc=float(backfill.get("ratio_45hc", 1.2)),
        ),
        diagnostics=DiagnosticsConfig(
            webhook_url=os.getenv("TARIFF_ERROR_WEBHOOK") or diagnostics.get("webhook_url") or None,
            parser_name=str(diagnostics.get("parser_name", "carrier-tariff-engine")),
            timeout_seconds=float(diagnostics.get("timeout_seconds", 10)),
        ),
        variants=_variant_settings(raw.get("variants", {})),
    )
