"""
Coarse geography for flow clustering: ISO country code, display name, EU
membership and US coastal sub-region from free-text city/country values.

Resolution never fails. Unknown input falls back to the default country so
that clustering always produces a key.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Optional, Sequence, Tuple

from ..dataclasses import GeoInfo

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "FR"

EU_COUNTRIES = frozenset([
    "AT", "BE", "BG", "CY", "CZ", "DE", "DK", "EE", "ES", "FI",
    "FR", "GR", "HR", "HU", "IE", "IT", "LT", "LU", "LV", "MT",
    "NL", "PL", "PT", "RO", "SE", "SI", "SK",
])

CITY_CODES = {
    "paris": "FR",
    "lyon": "FR",
    "marseille": "FR",
    "bordeaux": "FR",
    "bourg-en-bresse": "FR",
    "bourg en bresse": "FR",
    "moulins": "FR",
    "autun": "FR",
    "autry-issards": "FR",
    "autry issards": "FR",
    "new york": "US",
    "ny": "US",
    "los angeles": "US",
    "la": "US",
    "chicago": "US",
    "london": "GB",
    "londres": "GB",
    "manchester": "GB",
    "berlin": "DE",
    "munich": "DE",
    "madrid": "ES",
    "barcelona": "ES",
    "rome": "IT",
    "roma": "IT",
    "milan": "IT",
    "tokyo": "JP",
    "kyoto": "JP",
    "beijing": "CN",
    "shanghai": "CN",
    "hong kong": "CN",
    "geneva": "CH",
    "geneve": "CH",
    "zurich": "CH",
    "brussels": "BE",
    "bruxelles": "BE",
    "anvers": "BE",
    "antwerp": "BE",
    "kallo": "BE",
    "amsterdam": "NL",
}

COUNTRY_CODES = {
    "france": "FR",
    "usa": "US",
    "united states": "US",
    "etats-unis": "US",
    "états-unis": "US",
    "united kingdom": "GB",
    "uk": "GB",
    "royaume-uni": "GB",
    "germany": "DE",
    "allemagne": "DE",
    "spain": "ES",
    "espagne": "ES",
    "italy": "IT",
    "italie": "IT",
    "japan": "JP",
    "japon": "JP",
    "china": "CN",
    "chine": "CN",
    "switzerland": "CH",
    "suisse": "CH",
    "belgium": "BE",
    "belgique": "BE",
    "netherlands": "NL",
    "pays-bas": "NL",
}

COUNTRY_NAMES = {
    "FR": "France",
    "US": "USA",
    "GB": "UK",
    "DE": "Allemagne",
    "ES": "Espagne",
    "IT": "Italie",
    "JP": "Japon",
    "CN": "Chine",
    "CH": "Suisse",
    "BE": "Belgique",
    "NL": "Pays-Bas",
    "KR": "Corée du Sud",
    "AE": "Émirats arabes unis",
    "QA": "Qatar",
    "SA": "Arabie saoudite",
}

# Ordered (substrings, code) fallbacks tried against the country text
COUNTRY_HEURISTICS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("korea", "corée"), "KR"),
    (("emirates", "uae", "émirats"), "AE"),
    (("qatar",), "QA"),
    (("saudi", "arabie"), "SA"),
)

US_SUB_REGIONS: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    # (region, city substrings, exact city tokens)
    ("East Coast", ("new york", "boston", "philadelphia"), ("ny", "nyc")),
    ("West Coast", ("los angeles", "san francisco", "seattle"), ("la", "sf")),
)

ISO2_RE = re.compile(r"^[a-z]{2}$")


def _clean(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class GeoResolver:
    """
    Table lookup followed by ordered fallback heuristics.

    The heuristics and default country are constructor arguments so callers can
    plug in their own rules (e.g. the organizing country as default).
    """

    def __init__(
        self,
        default_country_code: str = DEFAULT_COUNTRY_CODE,
        heuristics: Sequence[Tuple[Iterable[str], str]] = COUNTRY_HEURISTICS,
        extra_rules: Sequence[Callable[[str, str], Optional[str]]] = (),
    ):
        self.default_country_code = (default_country_code or DEFAULT_COUNTRY_CODE).upper()
        self.heuristics = tuple((tuple(needles), code) for needles, code in heuristics)
        self.extra_rules = tuple(extra_rules)

    def country_code(self, city: Optional[str], country: Optional[str]) -> str:
        city_clean = _clean(city)
        country_clean = _clean(country)

        if city_clean in CITY_CODES:
            return CITY_CODES[city_clean]
        if country_clean in COUNTRY_CODES:
            return COUNTRY_CODES[country_clean]
        if ISO2_RE.match(country_clean):
            return country_clean.upper()

        for needles, code in self.heuristics:
            if any(needle in country_clean for needle in needles):
                return code
        for rule in self.extra_rules:
            code = rule(city_clean, country_clean)
            if code:
                return code.upper()

        if city_clean or country_clean:
            logger.debug(f"Unresolved location '{city}' / '{country}', defaulting to {self.default_country_code}")
        return self.default_country_code

    def resolve(self, city: Optional[str], country: Optional[str]) -> GeoInfo:
        code = self.country_code(city, country)
        name = COUNTRY_NAMES.get(code) or (country or "").strip() or COUNTRY_NAMES.get(self.default_country_code, code)
        return GeoInfo(
            country_code=code,
            country_name=name,
            is_eu=code in EU_COUNTRIES,
            sub_region=us_sub_region(city) if code == "US" else None,
        )


def us_sub_region(city: Optional[str]) -> Optional[str]:
    city_clean = _clean(city)
    tokens = set(re.split(r"[^a-z]+", city_clean))
    for region, substrings, exact_tokens in US_SUB_REGIONS:
        if any(s in city_clean for s in substrings) or tokens.intersection(exact_tokens):
            return region
    return None


_default_resolver = GeoResolver()


def get_country_code(city: Optional[str], country: Optional[str], default: Optional[str] = None) -> str:
    resolver = GeoResolver(default) if default else _default_resolver
    return resolver.country_code(city, country)


def resolve_geo(city: Optional[str], country: Optional[str], default: Optional[str] = None) -> GeoInfo:
    resolver = GeoResolver(default) if default else _default_resolver
    return resolver.resolve(city, country)


def is_city_name(name: Optional[str]) -> bool:
    return _clean(name) in CITY_CODES
