"""
Reference data: canonical locations, carrier port codes and the service directory.

Locations and carrier codes come from a JSON file or an HTTP endpoint; the
service directory is a CSV export. Everything is loaded once per run and
handed to the pipeline as a ReferenceContext.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import io
import json
import re

import pandas as pd
import requests

from tariff_engine.config import AppConfig
from tariff_engine.errors import ReferenceDataError
from tariff_engine.models import LocationId


_PROVINCE_SUFFIX_RE = re.compile(r"\s+(BC|QC|ON|AB|MB|NB|NL|NS|NT|NU|PE|SK|YT)$", re.IGNORECASE)


@dataclass(frozen=True)
class CanonicalLocation:
    id: LocationId
    name: str
    alternate_names: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.alternate_names)


def _field_text(value) -> str | None:
    # some exports wrap every field as {"value": ...}
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_location(record: dict) -> CanonicalLocation | None:
    raw_id = record.get("id")
    if isinstance(raw_id, dict):
        raw_id = raw_id.get("value")
    if raw_id is None:
        return None
    texts = [t for key, v in record.items() if key != "id" and (t := _field_text(v))]
    name = _field_text(record.get("name")) or (texts[0] if texts else None)
    if not name:
        return None
    alternates = tuple(dict.fromkeys(t for t in texts if t != name))
    return CanonicalLocation(id=raw_id, name=name, alternate_names=alternates)


def parse_locations(payload) -> list[CanonicalLocation]:
    if isinstance(payload, dict):
        for key in ("records", "Ports", "ports", "locations"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            raise ReferenceDataError("Locations payload has no list of records")
    if not isinstance(payload, list):
        raise ReferenceDataError("Locations payload must be a list of records")
    locations = [loc for record in payload if isinstance(record, dict) and (loc := _parse_location(record))]
    return locations


def _fetch_json(url: str, api_token: str | None, timeout: float = 30):
    headers = {"Accept": "application/json"}
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"
    try:
        resp = requests.get(url, headers=headers, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        raise ReferenceDataError(f"Could not fetch reference data from {url}: {e}") from e


def _read_json(path: Path):
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ReferenceDataError(f"Could not read reference data from {path}: {e}") from e


def load_locations(path: Path | None = None, *, url: str | None = None, api_token: str | None = None) -> list[CanonicalLocation]:
    if path is not None:
        return parse_locations(_read_json(path))
    if url:
        return parse_locations(_fetch_json(url, api_token))
    return []


def parse_carrier_codes(payload) -> dict[str, LocationId]:
    """Accepts {"CNSHA": 1, ...} or [{"code": "CNSHA", "location_id": 1}, ...]."""
    if isinstance(payload, dict):
        return {str(k).strip().upper(): v for k, v in payload.items() if v is not None}
    codes = {}
    for item in payload or []:
        if not isinstance(item, dict):
            continue
        code = item.get("code") or item.get("scac")
        location_id = item.get("location_id", item.get("id"))
        if code and location_id is not None:
            codes[str(code).strip().upper()] = location_id
    return codes


def load_carrier_codes(path: Path | None = None, *, url: str | None = None, api_token: str | None = None) -> dict[str, LocationId]:
    if path is not None:
        return parse_carrier_codes(_read_json(path))
    if url:
        return parse_carrier_codes(_fetch_json(url, api_token))
    return {}


def normalize_port_name(name) -> str:
    """First line / first comma part, provincial suffix dropped, lower-cased."""
    if not name:
        return ""
    s = re.split(r"[,\n]", str(name))[0].strip()
    s = _PROVINCE_SUFFIX_RE.sub("", s)
    return s.lower().strip()


def ports_match(a: str, b: str) -> bool:
    a, b = normalize_port_name(a), normalize_port_name(b)
    if not a or not b:
        return False
    if a == b:
        return True
    a_words, b_words = a.split(), b.split()
    if a_words[0] == b_words[0]:
        return True
    shorter, longer = (a_words, b_words) if len(a_words) <= len(b_words) else (b_words, a_words)
    return all(w in longer for w in shorter)


@dataclass(frozen=True)
class ServiceEntry:
    service_id: str
    service_name: str
    load_ports: tuple[str, ...]
    discharge_port: str


@dataclass
class ServiceDirectory:
    entries: list[ServiceEntry] = field(default_factory=list)

    def lookup(self, origin_name: str, destination_name: str) -> ServiceEntry | None:
        for entry in self.entries:
            if not ports_match(entry.discharge_port, destination_name):
                continue
            if any(ports_match(port, origin_name) for port in entry.load_ports):
                return entry
        return None

    def __len__(self) -> int:
        return len(self.entries)


def _fetch_csv(url: str, api_token: str | None, timeout: float = 30) -> io.StringIO:
    headers = {"Accept": "text/csv"}
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"
    try:
        resp = requests.get(url, headers=headers, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise ReferenceDataError(f"Could not fetch service directory from {url}: {e}") from e
    return io.StringIO(resp.text)


def load_service_directory(
    path: Path | None = None, *, url: str | None = None, api_token: str | None = None
) -> ServiceDirectory:
    if path is None and not url:
        return ServiceDirectory()
    source = path if path is not None else _fetch_csv(url, api_token)
    try:
        df = pd.read_csv(source, dtype=str).fillna("")
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ReferenceDataError(f"Could not read service directory {path or url}: {e}") from e

    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    missing = {"service_id", "load_ports", "discharge_port"} - set(df.columns)
    if missing:
        raise ReferenceDataError(
            f"Service directory {path or url} is missing columns: {', '.join(sorted(missing))}"
        )

    entries = []
    for row in df.to_dict("records"):
        if not row["service_id"].strip():
            continue
        entries.append(
            ServiceEntry(
                service_id=row["service_id"].strip(),
                service_name=row.get("service_name", "").strip(),
                load_ports=tuple(p.strip() for p in row["load_ports"].split(",") if p.strip()),
                discharge_port=row["discharge_port"].strip(),
            )
        )
    return ServiceDirectory(entries=entries)


@dataclass
class ReferenceContext:
    locations: list[CanonicalLocation]
    carrier_codes: dict[str, LocationId] = field(default_factory=dict)
    services: ServiceDirectory = field(default_factory=ServiceDirectory)

    def __post_init__(self):
        if not self.locations:
            raise ReferenceDataError("No reference locations loaded; cannot resolve any port")

    @classmethod
    def from_config(cls, config: AppConfig) -> "ReferenceContext":
        ref = config.reference
        context = cls(
            locations=load_locations(ref.locations_file, url=ref.locations_url, api_token=ref.api_token),
            carrier_codes=load_carrier_codes(ref.carrier_codes_file, url=ref.carrier_codes_url, api_token=ref.api_token),
            services=load_service_directory(ref.services_file, url=ref.services_url, api_token=ref.api_token),
        )
        print(
            f"[Reference] Loaded {len(context.locations)} locations, "
            f"{len(context.carrier_codes)} carrier codes, {len(context.services)} services"
        )
        return context
