"""
Variant profiles.

Each supported carrier layout is described as data: which sheets hold rates,
what their headers look like, which port-group table applies, and which
post-processing steps (maintenance surcharges, feeder merge, validity source)
the variant needs. The pipeline itself is the same for every variant.
"""

from .base import RateSheetSpec, VariantProfile
from .qhof import QHOF_PROFILE
from .svc import SVC_3117_CONTRACT, SVC_3117_FEEDER, SVC_3118


PROFILES: dict[str, VariantProfile] = {
    p.name: p for p in (QHOF_PROFILE, SVC_3117_CONTRACT, SVC_3117_FEEDER, SVC_3118)
}


def get_profile(name: str) -> VariantProfile:
    return PROFILES[name]


__all__ = ["RateSheetSpec", "VariantProfile", "PROFILES", "get_profile"]
