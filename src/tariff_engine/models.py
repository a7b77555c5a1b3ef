"""
Data models shared across the tariff engine.

A rate moves through three shapes:
- RawRate: one row as it sits in the sheet (names, numbers, flags)
- RateLeg: a resolved origin -> discharge -> delivery rate with location ids
- output record: the flat dict emitted to the downstream platform
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Union


LocationId = Union[int, str]

CONTAINER_SIZES = ("20ft", "40ft", "40HC", "45HC")


@dataclass(frozen=True)
class ContainerRates:
    """Per-container prices. None means the sheet offered no price."""

    rate_20ft: float | None = None
    rate_40ft: float | None = None
    rate_40hc: float | None = None
    rate_45hc: float | None = None

    def values(self) -> tuple[float | None, float | None, float | None, float | None]:
        return (self.rate_20ft, self.rate_40ft, self.rate_40hc, self.rate_45hc)

    def get(self, size: str) -> float | None:
        return self.values()[CONTAINER_SIZES.index(size)]

    @classmethod
    def from_values(cls, values) -> "ContainerRates":
        v20, v40, v40hc, v45hc = values
        return cls(rate_20ft=v20, rate_40ft=v40, rate_40hc=v40hc, rate_45hc=v45hc)

    def is_empty(self) -> bool:
        return all(v is None for v in self.values())

    def plus(self, other: "ContainerRates", *, base_floor: float | None = None) -> "ContainerRates":
        """
        Add another set of rates size by size.

        Absent values count as zero. With base_floor set, a size is only summed
        when this side's value is above the floor, otherwise it becomes 0.
        """
        out = []
        for mine, theirs in zip(self.values(), other.values()):
            if base_floor is not None:
                out.append(mine + (theirs or 0) if mine is not None and mine > base_floor else 0)
            elif mine is None and theirs is None:
                out.append(None)
            else:
                out.append((mine or 0) + (theirs or 0))
        return ContainerRates.from_values(out)


@dataclass(frozen=True)
class RateFlags:
    shipper_owned: bool = False
    non_reefer: bool = False
    hazardous: bool = False

    @property
    def any(self) -> bool:
        return self.shipper_owned or self.non_reefer or self.hazardous

    def describe(self) -> str:
        names = [
            name
            for name, on in (("SOC", self.shipper_owned), ("NOR", self.non_reefer), ("HAZ", self.hazardous))
            if on
        ]
        return "/".join(names)


@dataclass(frozen=True)
class RawRate:
    """One data row of a rate table, before any location matching."""

    row_number: int
    origin: str
    destination: str
    delivery: str
    rates: ContainerRates
    valid_from: str | None = None
    valid_to: str | None = None
    flags: RateFlags = field(default_factory=RateFlags)
    sheet: str = ""

    @property
    def route_text(self) -> tuple[str, str, str]:
        return (self.origin, self.destination, self.delivery)


@dataclass(frozen=True)
class RateLeg:
    origin_id: LocationId
    destination_id: LocationId
    delivery_id: LocationId
    rates: ContainerRates
    origin_name: str = ""
    destination_name: str = ""
    delivery_name: str = ""
    valid_from: str | None = None
    valid_to: str | None = None
    flags: RateFlags = field(default_factory=RateFlags)
    service: str = ""
    service_name: str = ""
    row_number: int | None = None
    sheet: str = ""
    via_feeder: str | None = None

    @property
    def route_key(self) -> tuple:
        return (self.service, self.origin_id, self.destination_id, self.delivery_id)

    def with_rates(self, rates: ContainerRates) -> "RateLeg":
        return replace(self, rates=rates)


@dataclass(frozen=True)
class FeederLeg:
    """Pre-carriage from a true origin to the transshipment port of a base rate."""

    origin_id: LocationId
    transshipment_id: LocationId | None
    rates: ContainerRates
    origin_name: str = ""
    transshipment_name: str = ""
    row_number: int | None = None

    @property
    def sort_cost(self) -> float:
        return (self.rates.rate_20ft or 0) + (self.rates.rate_40ft or 0)


@dataclass(frozen=True)
class MaintenanceCharge:
    """Container maintenance surcharge scoped to one route and one offered price."""

    block_start: int
    load_port: str
    discharge_port: str
    delivery: str
    load_port_id: LocationId | None
    discharge_port_id: LocationId | None
    delivery_id: LocationId | None
    charge: ContainerRates
    offered: ContainerRates


@dataclass(frozen=True)
class ExcludedRate:
    """A row that did not make it to the output, with the reason why."""

    row_number: int | None
    origin: str
    destination: str
    delivery: str
    reason: str
    sheet: str = ""
