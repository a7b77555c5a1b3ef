"""
Main pipeline: workbook in, normalized rate records out.

Steps:
1. Detect the tariff layout and load its profile
2. Read every rate sheet the profile names (header location, row extraction)
3. Expand port groups and resolve every port to a location id
4. Attach services, maintenance surcharges; drop flagged / blocked rows
5. De-duplicate and merge feeder legs
6. Back-fill missing container sizes, de-duplicate again and format the records
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable
import json
import time

from tariff_engine.config import AppConfig
from tariff_engine.dedupe import dedupe_by_price
from tariff_engine.detector import detect_variant, find_cover_sheet, read_contract_number, read_cover_dates
from tariff_engine.diagnostics import Diagnostics
from tariff_engine.errors import TariffEngineError
from tariff_engine.extract import extract_rate_rows
from tariff_engine.feeders import find_feeder_sheet, parse_receipt_table, parse_tariff_book
from tariff_engine.matching import LocationMatcher, city_part
from tariff_engine.merge import merge_feeders
from tariff_engine.models import ExcludedRate, RateLeg, RawRate
from tariff_engine.port_groups import expand_port_groups
from tariff_engine.records import fill_missing_rates, fill_services, to_output_record
from tariff_engine.reference import ReferenceContext
from tariff_engine.surcharges import apply_maintenance_charges, parse_maintenance_charges
from tariff_engine.variants import RateSheetSpec, get_profile
from tariff_engine.workbook import Workbook, load_workbook


OutputSink = Callable[[list[dict[str, str]]], None]


@dataclass
class PipelineResult:
    variant: str
    contract_number: str
    records: list[dict[str, str]] = field(default_factory=list)
    legs: list[RateLeg] = field(default_factory=list)
    excluded: list[ExcludedRate] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    elapsed_ms: int = 0

    @property
    def warnings(self) -> list[str]:
        return self.diagnostics.warnings

    def summary(self) -> dict[str, int]:
        return {
            "records": len(self.records),
            "excluded": len(self.excluded),
            "warnings": len(self.diagnostics.entries),
            **self.diagnostics.summary(),
        }


def build_matcher(context: ReferenceContext, config: AppConfig) -> LocationMatcher:
    return LocationMatcher(
        context.locations,
        aliases=config.matching.aliases,
        generic_words=config.matching.generic_words,
        max_edit_distance=config.matching.max_edit_distance,
        carrier_codes=context.carrier_codes,
    )


def resolve_rate_rows(
    raw_rows: list[RawRate],
    spec: RateSheetSpec,
    matcher: LocationMatcher,
    diagnostics: Diagnostics | None = None,
) -> tuple[list[RateLeg], list[ExcludedRate]]:
    """
    Turn sheet rows into RateLegs.

    Multi-line origin cells give one leg per line (when the sheet uses them),
    port-group codes give one leg per (origin, destination) pair, and any leg
    whose ports cannot all be resolved is excluded.
    """
    legs: list[RateLeg] = []
    excluded: list[ExcludedRate] = []

    for raw in raw_rows:
        if spec.split_origin_lines:
            origins = [line.strip() for line in raw.origin.splitlines() if line.strip()]
        else:
            origins = [raw.origin]

        for origin_text in origins:
            for origin, destination in expand_port_groups(origin_text, raw.destination, spec.port_groups):
                o = matcher.resolve(origin)
                d = matcher.resolve(destination)
                dl = matcher.resolve(raw.delivery) if raw.delivery else d

                unresolved = [res for res in (o, d, dl) if not res.matched]
                if unresolved:
                    reason = "; ".join(dict.fromkeys(res.describe() for res in unresolved))
                    excluded.append(
                        ExcludedRate(
                            row_number=raw.row_number,
                            origin=origin,
                            destination=destination,
                            delivery=raw.delivery,
                            reason=reason,
                            sheet=raw.sheet,
                        )
                    )
                    if diagnostics:
                        diagnostics.warn(f"Row {raw.row_number}: {reason}", category="location_unmatched")
                    continue

                legs.append(
                    RateLeg(
                        origin_id=o.location_id,
                        destination_id=d.location_id,
                        delivery_id=dl.location_id,
                        rates=raw.rates,
                        origin_name=city_part(origin),
                        destination_name=destination,
                        delivery_name=raw.delivery or destination,
                        valid_from=raw.valid_from,
                        valid_to=raw.valid_to,
                        flags=raw.flags,
                        row_number=raw.row_number,
                        sheet=raw.sheet,
                    )
                )
    return legs, excluded


def _exclude(legs: list[RateLeg], predicate, reason) -> tuple[list[RateLeg], list[ExcludedRate]]:
    kept, dropped = [], []
    for leg in legs:
        if predicate(leg):
            dropped.append(
                ExcludedRate(
                    row_number=leg.row_number,
                    origin=leg.origin_name,
                    destination=leg.destination_name,
                    delivery=leg.delivery_name,
                    reason=reason(leg),
                    sheet=leg.sheet,
                )
            )
        else:
            kept.append(leg)
    return kept, dropped


def process_workbook(
    workbook: Workbook,
    context: ReferenceContext,
    config: AppConfig,
    *,
    mode: str | None = None,
    diagnostics: Diagnostics | None = None,
) -> PipelineResult:
    start = time.time()
    diagnostics = diagnostics or Diagnostics(config=config.diagnostics)

    variant = detect_variant(workbook, mode)
    profile = get_profile(variant)
    settings = config.variant(variant)
    diagnostics.step(f"Detected layout: {variant}")

    matcher = build_matcher(context, config)

    contract_number = settings.carrier_contract_number
    if profile.contract_number_from_sheet and workbook.first is not None:
        contract_number = read_contract_number(workbook.first)

    validity = None
    if profile.validity == "cover":
        validity = read_cover_dates(find_cover_sheet(workbook))
        if validity == (None, None):
            diagnostics.warn("Contract dates not found on cover sheet", category="validity")

    charges = []
    if profile.maintenance_sheet:
        sheet = workbook.get(profile.maintenance_sheet)
        if sheet is None:
            diagnostics.warn(f"Sheet {profile.maintenance_sheet!r} not found", category="sheet_missing")
        else:
            charges = parse_maintenance_charges(sheet, matcher, diagnostics)
            diagnostics.step(f"Read {len(charges)} maintenance charge blocks")

    result = PipelineResult(variant=variant, contract_number=contract_number, diagnostics=diagnostics)
    legs: list[RateLeg] = []

    for spec in profile.rate_sheets:
        sheet = spec.find(workbook)
        if sheet is None:
            diagnostics.warn(f"No sheet found for {spec.label}", category="sheet_missing")
            continue

        raw_rows = extract_rate_rows(sheet, spec, validity=validity, diagnostics=diagnostics)
        sheet_legs, excluded = resolve_rate_rows(raw_rows, spec, matcher, diagnostics)
        result.excluded.extend(excluded)

        sheet_legs, no_service = fill_services(sheet_legs, context.services)
        if no_service and len(context.services):
            diagnostics.count("service_missing", no_service)

        if charges:
            sheet_legs = apply_maintenance_charges(sheet_legs, charges, diagnostics)

        if profile.exclude_flagged:
            sheet_legs, dropped = _exclude(
                sheet_legs, lambda leg: leg.flags.any, lambda leg: f"flagged {leg.flags.describe()}"
            )
            result.excluded.extend(dropped)

        if settings.blocked_delivery_ids:
            blocked = set(settings.blocked_delivery_ids)
            sheet_legs, dropped = _exclude(
                sheet_legs, lambda leg: str(leg.delivery_id) in blocked, lambda leg: "blocked delivery"
            )
            result.excluded.extend(dropped)

        sheet_legs = dedupe_by_price(sheet_legs)

        merged = []
        if spec.receipt_feeders:
            feeders = parse_receipt_table(sheet, matcher, diagnostics)
            merged = merge_feeders(
                sheet_legs,
                feeders,
                base_floor=spec.feeder_base_floor,
                suppress_direct_origins=profile.emit_base_rates,
                cheapest_per_origin=True,
                diagnostics=diagnostics,
            )
            diagnostics.step(f"Merged {len(feeders)} receipt feeders on {sheet.name!r}", summary=f"{len(merged)} legs")

        legs.extend((sheet_legs if profile.emit_base_rates else []) + merged)

    if profile.tariff_book_feeders:
        feeder_sheet = find_feeder_sheet(workbook)
        if feeder_sheet is None:
            diagnostics.warn("No feeder tariff sheet found", category="sheet_missing")
        else:
            feeders = parse_tariff_book(feeder_sheet, matcher, diagnostics)
            merged = merge_feeders(legs, feeders, diagnostics=diagnostics)
            diagnostics.step(f"Merged {len(feeders)} feeder tariffs", summary=f"{len(merged)} legs")
            legs.extend(merged)

    legs = fill_missing_rates(
        legs,
        ratio_20ft=config.backfill.ratio_20ft,
        ratio_45hc=config.backfill.ratio_45hc,
        hc40_from_40ft=profile.hc40_from_40ft,
    )
    # back-filled sizes can make two legs identical
    legs = dedupe_by_price(legs)

    result.legs = legs
    result.records = [
        to_output_record(
            leg,
            carrier=config.output.carrier,
            rate_source=config.output.rate_source,
            contract=settings.contract,
            carrier_contract_number=contract_number,
        )
        for leg in legs
    ]
    result.elapsed_ms = int((time.time() - start) * 1000)
    diagnostics.step(
        f"Complete! {len(result.records)} records, {len(result.excluded)} excluded",
        summary=f"{result.elapsed_ms}ms",
    )
    return result


def run_workbook(
    path: Path,
    context: ReferenceContext,
    config: AppConfig,
    *,
    mode: str | None = None,
    sink: OutputSink | None = None,
    diagnostics: Diagnostics | None = None,
) -> PipelineResult:
    """Load a workbook from disk, process it and hand the records to the sink."""
    diagnostics = diagnostics or Diagnostics(config=config.diagnostics)
    diagnostics.step(f"Loading workbook {Path(path).name}...")
    try:
        workbook = load_workbook(Path(path))
        result = process_workbook(workbook, context, config, mode=mode, diagnostics=diagnostics)
    except TariffEngineError as e:
        diagnostics.report_error(f"ERROR: {e}")
        raise
    if sink is not None:
        sink(result.records)
    return result


def write_json(records: list[dict[str, str]], path: Path, *, variant: str | None = None) -> Path:
    """Write records with a generation timestamp, the way downstream imports expect them."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"timestamp": datetime.now().isoformat(timespec="seconds"), "variant": variant, "rates": records}
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return path
