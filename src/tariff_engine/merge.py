from __future__ import annotations

from dataclasses import replace

from tariff_engine.diagnostics import Diagnostics
from tariff_engine.models import FeederLeg, RateLeg


def select_cheapest_feeders(feeders: list[FeederLeg], *, per_origin: bool = False) -> list[FeederLeg]:
    """
    Keep the cheapest (20ft + 40ft) feeder per true origin and transshipment port.

    With per_origin, one feeder survives per true origin whatever port it
    reaches, as in contract Place-of-Receipt tables.
    """
    best: dict[tuple, FeederLeg] = {}
    for feeder in feeders:
        key = (feeder.origin_id,) if per_origin else (feeder.origin_id, feeder.transshipment_id)
        current = best.get(key)
        if current is None or feeder.sort_cost < current.sort_cost:
            best[key] = feeder
    return list(best.values())


def merge_feeders(
    base_legs: list[RateLeg],
    feeders: list[FeederLeg],
    *,
    base_floor: float | None = None,
    suppress_direct_origins: bool = True,
    cheapest_per_origin: bool = False,
    diagnostics: Diagnostics | None = None,
) -> list[RateLeg]:
    """
    Build through rates for feeder origins.

    Each feeder reaching a transshipment port is combined with every base
    rate leaving that port: the origin becomes the feeder's true origin and
    prices are summed size by size. With suppress_direct_origins, origins
    that already have a direct base rate get no feeder combinations; turn it
    off when the base rates are not emitted themselves.
    """
    direct_origins = {leg.origin_id for leg in base_legs} if suppress_direct_origins else set()
    by_origin: dict = {}
    for leg in base_legs:
        by_origin.setdefault(leg.origin_id, []).append(leg)

    usable = [f for f in feeders if f.transshipment_id is not None]
    merged: list[RateLeg] = []
    for feeder in select_cheapest_feeders(usable, per_origin=cheapest_per_origin):
        if feeder.origin_id in direct_origins:
            if diagnostics:
                diagnostics.count("feeder_suppressed")
            continue
        candidates = by_origin.get(feeder.transshipment_id, [])
        if not candidates:
            if diagnostics:
                diagnostics.warn(
                    f"No base rate leaves {feeder.transshipment_name or feeder.transshipment_id} "
                    f"for feeder from {feeder.origin_name or feeder.origin_id}",
                    category="feeder_unmatched",
                )
            continue
        for base in candidates:
            merged.append(
                replace(
                    base,
                    origin_id=feeder.origin_id,
                    origin_name=feeder.origin_name,
                    rates=base.rates.plus(feeder.rates, base_floor=base_floor),
                    via_feeder=base.origin_name or str(base.origin_id),
                )
            )
    if diagnostics:
        diagnostics.count("feeder_merged", len(merged))
    return merged
