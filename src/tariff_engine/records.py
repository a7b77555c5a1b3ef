from __future__ import annotations

from dataclasses import replace

from tariff_engine.models import ContainerRates, RateLeg
from tariff_engine.reference import ServiceDirectory


OUTPUT_FIELDS = (
    "carrier",
    "port_origin",
    "port_discharge",
    "port_destination",
    "valid_from",
    "valid_to",
    "transit_time",
    "rate_source",
    "20ft",
    "40ft",
    "40HC",
    "45HC",
    "service",
    "contract",
    "carrier_contract_number",
)


def fill_services(legs: list[RateLeg], services: ServiceDirectory) -> tuple[list[RateLeg], int]:
    """Attach the vessel service to each leg. Returns the legs and how many found no service."""
    out = []
    missing = 0
    for leg in legs:
        entry = services.lookup(leg.origin_name, leg.destination_name) if len(services) else None
        if entry is None:
            missing += 1
            out.append(leg)
        else:
            out.append(replace(leg, service=entry.service_id, service_name=entry.service_name))
    return out, missing


def fill_missing_rates(
    legs: list[RateLeg],
    *,
    ratio_20ft: float = 0.9,
    ratio_45hc: float = 1.2,
    hc40_from_40ft: bool = False,
) -> list[RateLeg]:
    """
    Derive missing 20ft / 45HC (and optionally 40HC) prices from the 40ft price.

    Zero counts as missing. Legs without a 40ft price are left alone.
    """
    out = []
    for leg in legs:
        v20, v40, v40hc, v45hc = leg.rates.values()
        if v40:
            if not v20:
                v20 = round(v40 * ratio_20ft, 2)
            if not v45hc:
                v45hc = round(v40 * ratio_45hc, 2)
            if hc40_from_40ft and not v40hc:
                v40hc = v40
        rates = ContainerRates(rate_20ft=v20, rate_40ft=v40, rate_40hc=v40hc, rate_45hc=v45hc)
        out.append(leg if rates == leg.rates else leg.with_rates(rates))
    return out


def format_amount(value: float | None) -> str:
    if value is None:
        return ""
    value = round(float(value), 2)
    if value.is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0")


def to_output_record(
    leg: RateLeg,
    *,
    carrier: str,
    rate_source: str,
    contract: str,
    carrier_contract_number: str,
) -> dict[str, str]:
    """Flatten a leg into the platform's record shape. Every value is text."""
    return {
        "carrier": str(carrier),
        "port_origin": str(leg.origin_id),
        "port_discharge": str(leg.destination_id),
        "port_destination": str(leg.delivery_id),
        "valid_from": leg.valid_from or "",
        "valid_to": leg.valid_to or "",
        "transit_time": "",
        "rate_source": str(rate_source),
        "20ft": format_amount(leg.rates.rate_20ft),
        "40ft": format_amount(leg.rates.rate_40ft),
        "40HC": format_amount(leg.rates.rate_40hc),
        "45HC": format_amount(leg.rates.rate_45hc),
        "service": leg.service,
        "contract": str(contract),
        "carrier_contract_number": carrier_contract_number,
    }
