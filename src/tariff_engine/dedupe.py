from __future__ import annotations

from typing import Callable, Hashable, Iterable, TypeVar

import pandas as pd

from tariff_engine.models import RateLeg


T = TypeVar("T")


def _at_least(a: float | None, b: float | None) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    return a >= b


def _dominates(a: RateLeg, b: RateLeg) -> bool:
    """True if `a` costs at least as much as `b` for every container size."""
    return all(_at_least(x, y) for x, y in zip(a.rates.values(), b.rates.values()))


def dedupe_by_price(legs: Iterable[RateLeg]) -> list[RateLeg]:
    """
    Collapse rates offered more than once on the same route.

    For two legs on the same route key: identical prices keep the first one;
    if one is at least as expensive for every size it is dropped; if each is
    cheaper for some size, both stay. Output keeps input order.
    """
    legs = list(legs)
    dropped = [False] * len(legs)
    by_route: dict[tuple, list[int]] = {}
    for i, leg in enumerate(legs):
        by_route.setdefault(leg.route_key, []).append(i)

    for indices in by_route.values():
        for pos, i in enumerate(indices):
            if dropped[i]:
                continue
            for j in indices[pos + 1:]:
                if dropped[j]:
                    continue
                a, b = legs[i], legs[j]
                if a.rates.values() == b.rates.values():
                    dropped[j] = True
                elif _dominates(a, b):
                    dropped[i] = True
                    break
                elif _dominates(b, a):
                    dropped[j] = True

    return [leg for leg, gone in zip(legs, dropped) if not gone]


def keep_last_occurrence(rows: list[T], key: Callable[[T], Hashable]) -> list[T]:
    """Drop every row whose key shows up again further down; survivors keep sheet order."""
    if not rows:
        return []
    keys = pd.Series([key(r) for r in rows], dtype=object)
    keep = ~keys.duplicated(keep="last")
    return [row for row, kept in zip(rows, keep.tolist()) if kept]
