from __future__ import annotations

from dataclasses import dataclass
import re

from rapidfuzz.distance import Levenshtein

from tariff_engine.models import LocationId
from tariff_engine.reference import CanonicalLocation


_STRIP_CHARS_RE = re.compile(r"[()\[\],.]")
_COUNTRY_SUFFIX_RE = re.compile(r"[\s,][A-Z]{2}$")


@dataclass(frozen=True)
class LocationResolution:
    raw: str
    location_id: LocationId | None
    matched_name: str | None
    method: str
    distance: int | None = None
    closest: str | None = None

    @property
    def matched(self) -> bool:
        return self.location_id is not None

    def describe(self) -> str:
        if self.matched:
            return f"{self.raw!r} -> {self.matched_name} ({self.method})"
        if self.closest:
            return f"No match found for {self.raw!r}. Closest match: {self.closest!r} (distance {self.distance})"
        return f"No match found for {self.raw!r}"


def normalize(text) -> str:
    """Lower-case, drop ()[],. and collapse whitespace."""
    s = _STRIP_CHARS_RE.sub("", str(text or "").lower())
    return re.sub(r"\s+", " ", s).strip()


def pick_segment(text: str) -> str:
    """
    Choose the line of a multi-line cell that names the location.

    Cells like "CNSHA\\nShanghai, CN" carry a code line and a place line; the
    line ending in a two-letter country code wins, otherwise the first one.
    """
    parts = [p.strip() for p in str(text or "").splitlines() if p.strip()]
    if not parts:
        return ""
    for part in parts:
        if _COUNTRY_SUFFIX_RE.search(part):
            return part
    return parts[0]


def first_line(text: str) -> str:
    lines = [p.strip() for p in str(text or "").splitlines() if p.strip()]
    return lines[0] if lines else ""


def last_line(text: str) -> str:
    lines = [p.strip() for p in str(text or "").splitlines() if p.strip()]
    return lines[-1] if lines else ""


def city_part(text: str) -> str:
    return str(text or "").split(",", 1)[0].strip()


class LocationMatcher:
    """
    Resolves free-text port names from carrier sheets to canonical location ids.

    Resolution order (first hit wins):
    1. exact: normalized text equals a reference name
    2. alias: text is a known alternate spelling of a reference name
    3. city: the part before the first comma matches exactly
    4. tokens: every input word appears in the reference name
    5. fuzzy: closest reference name within max_edit_distance edits

    Results are memoized per matcher so the same text always gets the same answer.
    """

    def __init__(
        self,
        locations: list[CanonicalLocation],
        *,
        aliases: dict[str, list[str]] | None = None,
        generic_words: tuple[str, ...] = (),
        max_edit_distance: int = 3,
        carrier_codes: dict[str, LocationId] | None = None,
    ):
        self.locations = list(locations)
        self.max_edit_distance = max_edit_distance
        self.generic_words = {w.lower() for w in generic_words}
        self.carrier_codes = {str(k).strip().upper(): v for k, v in (carrier_codes or {}).items()}

        self._by_name: dict[str, CanonicalLocation] = {}
        self._tokens: list[tuple[list[str], CanonicalLocation]] = []
        for loc in self.locations:
            for name in loc.names:
                key = normalize(name)
                if key and key not in self._by_name:
                    self._by_name[key] = loc
                    self._tokens.append((key.split(), loc))

        self._aliases: dict[str, str] = {}
        for canonical, alternates in (aliases or {}).items():
            for alt in alternates:
                self._aliases[normalize(alt)] = normalize(canonical)

        self._memo: dict[tuple[str, bool], LocationResolution] = {}

    def resolve(self, text, *, guard_generic: bool = False) -> LocationResolution:
        raw = str(text or "")
        key = (raw, guard_generic)
        if key not in self._memo:
            self._memo[key] = self._resolve(raw, guard_generic)
        return self._memo[key]

    def resolve_id(self, text, *, guard_generic: bool = False) -> LocationId | None:
        return self.resolve(text, guard_generic=guard_generic).location_id

    def _hit(self, raw: str, loc: CanonicalLocation, method: str, distance: int | None = None) -> LocationResolution:
        return LocationResolution(raw=raw, location_id=loc.id, matched_name=loc.name, method=method, distance=distance)

    def _resolve(self, raw: str, guard_generic: bool) -> LocationResolution:
        segment = pick_segment(raw)
        full = normalize(segment)
        if not full:
            return LocationResolution(raw=raw, location_id=None, matched_name=None, method="missing")

        if guard_generic and self.generic_words.intersection(full.split()):
            return LocationResolution(raw=raw, location_id=None, matched_name=None, method="generic")

        if full in self._by_name:
            return self._hit(raw, self._by_name[full], "exact")

        city = normalize(city_part(segment))

        for candidate in (full, city):
            target = self._aliases.get(candidate)
            if target and target in self._by_name:
                return self._hit(raw, self._by_name[target], "alias")

        if city in self._by_name:
            return self._hit(raw, self._by_name[city], "city")

        words = city.split()
        for ref_words, loc in self._tokens:
            if len(ref_words) == 1:
                if words and words[0] == ref_words[0]:
                    return self._hit(raw, loc, "tokens")
            elif words and all(w in ref_words for w in words):
                return self._hit(raw, loc, "tokens")

        best_loc = None
        best_dist = None
        for name_key, loc in self._by_name.items():
            for candidate in {name_key, normalize(city_part(loc.name))}:
                dist = Levenshtein.distance(city, candidate)
                if best_dist is None or dist < best_dist:
                    best_loc, best_dist = loc, dist
        if best_loc is None:
            return LocationResolution(raw=raw, location_id=None, matched_name=None, method="unmatched")

        if best_dist <= self.max_edit_distance:
            return self._hit(raw, best_loc, "fuzzy", distance=best_dist)
        return LocationResolution(
            raw=raw,
            location_id=None,
            matched_name=None,
            method="unmatched",
            distance=best_dist,
            closest=best_loc.name,
        )

    def resolve_port_cell(self, text) -> LocationResolution:
        """
        Resolve a feeder or surcharge port cell.

        These cells often lead with a carrier port code ("CNSHA\\nShanghai").
        A known code wins outright; otherwise each word is tried from the last
        one backwards (skipping generic words like "Port"), then the whole text.
        """
        raw = str(text or "")
        code = first_line(raw).upper()
        if code and code in self.carrier_codes:
            location_id = self.carrier_codes[code]
            return LocationResolution(raw=raw, location_id=location_id, matched_name=code, method="carrier_code")

        for word in reversed(normalize(raw).split()):
            res = self.resolve(word, guard_generic=True)
            if res.matched and res.method != "fuzzy":
                return LocationResolution(
                    raw=raw, location_id=res.location_id, matched_name=res.matched_name, method=f"word_{res.method}"
                )
        return self.resolve(raw)
