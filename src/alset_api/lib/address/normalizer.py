"""Freeform address normalization and component parsing.

Normalizes freeform address strings per USPS Publication 28 so that visually
equivalent inputs ("123 Main Street, Austin, TX" / "123  main st., austin tx")
collapse to one canonical string, and parses that string into components.
"""

import re
from dataclasses import asdict, dataclass

# USPS Pub 28 directional abbreviations
DIRECTIONAL_MAP: dict[str, str] = {
    "NORTH": "N",
    "SOUTH": "S",
    "EAST": "E",
    "WEST": "W",
    "NORTHEAST": "NE",
    "NORTHWEST": "NW",
    "SOUTHEAST": "SE",
    "SOUTHWEST": "SW",
}

# USPS Pub 28 Appendix C common street suffixes
STREET_TYPE_MAP: dict[str, str] = {
    "ALLEY": "ALY",
    "AVENUE": "AVE",
    "BOULEVARD": "BLVD",
    "CIRCLE": "CIR",
    "COURT": "CT",
    "COVE": "CV",
    "CROSSING": "XING",
    "DRIVE": "DR",
    "EXPRESSWAY": "EXPY",
    "FREEWAY": "FWY",
    "HIGHWAY": "HWY",
    "LANE": "LN",
    "PARKWAY": "PKWY",
    "PLACE": "PL",
    "PLAZA": "PLZ",
    "POINT": "PT",
    "ROAD": "RD",
    "SQUARE": "SQ",
    "STREET": "ST",
    "TERRACE": "TER",
    "TRAIL": "TRL",
    "TURNPIKE": "TPKE",
}

# Secondary unit designators
UNIT_MAP: dict[str, str] = {
    "APARTMENT": "APT",
    "SUITE": "STE",
    "BUILDING": "BLDG",
    "FLOOR": "FL",
    "ROOM": "RM",
    "DEPARTMENT": "DEPT",
}

_REPLACEMENTS: dict[str, str] = {**STREET_TYPE_MAP, **DIRECTIONAL_MAP, **UNIT_MAP}

# Longest words first so NORTHEAST is handled before NORTH
_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"\b{re.escape(word)}\b"), abbrev)
    for word, abbrev in sorted(_REPLACEMENTS.items(), key=lambda x: -len(x[0]))
]

_ALL_STREET_TYPES = set(STREET_TYPE_MAP.values()) | set(STREET_TYPE_MAP.keys())
_ALL_DIRECTIONALS = set(DIRECTIONAL_MAP.values()) | set(DIRECTIONAL_MAP.keys())
_UNIT_INDICATORS = set(UNIT_MAP.values()) | {"UNIT", "#"}

_ZIP_PATTERN = re.compile(r"\b(\d{5}(?:-\d{4})?)\b")
_STREET_NUMBER_PATTERN = re.compile(r"^(\d+[A-Z]?)\b")

_STATE_ABBREVS = frozenset(
    "AL AK AZ AR CA CO CT DE FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO MT NE NV NH "
    "NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY DC".split()
)


def normalize_address(address: str) -> str:
    """Normalize a freeform address string.

    Uppercases, drops periods, tightens comma spacing, collapses whitespace,
    then applies USPS abbreviations with word-boundary matching.

    Args:
        address: Raw freeform address string.

    Returns:
        Canonical address string, or "" for blank input.
    """
    if not address or not address.strip():
        return ""

    result = address.strip().upper()
    result = result.replace(".", "")
    result = re.sub(r"\s*,\s*", ", ", result)
    result = re.sub(r"(,\s*)+", ", ", result)
    result = re.sub(r"\s+", " ", result).strip(" ,")

    for pattern, replacement in _PATTERNS:
        result = pattern.sub(replacement, result)

    return result


@dataclass
class AddressComponents:
    """Parsed address components from a freeform address string."""

    street_number: str | None = None
    pre_direction: str | None = None
    street_name: str | None = None
    street_type: str | None = None
    post_direction: str | None = None
    unit: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


def _find_state(tokens: list[str]) -> str | None:
    for token in tokens:
        if token in _STATE_ABBREVS:
            return token
    return None


def parse_address_components(address: str) -> AddressComponents:
    """Parse a freeform address into structured components.

    Best effort: the input is normalized first, then split on commas into
    street line / city / state+zip.  Ambiguous inputs leave fields empty.

    Args:
        address: Freeform address string.

    Returns:
        AddressComponents with whatever could be extracted.
    """
    normalized = normalize_address(address)
    components = AddressComponents()
    if not normalized:
        return components

    parts = [p.strip() for p in normalized.split(",") if p.strip()]

    zip_match = _ZIP_PATTERN.search(normalized)
    if zip_match:
        components.zipcode = zip_match.group(1)

    if len(parts) >= 2:
        components.state = _find_state(parts[-1].split())
        if components.state is None and len(parts) >= 3:
            components.state = _find_state(parts[-2].split())

    if len(parts) >= 3:
        components.city = parts[1]
    elif len(parts) == 2:
        city_tokens = [t for t in parts[1].split() if t not in _STATE_ABBREVS and not _ZIP_PATTERN.match(t)]
        if city_tokens:
            components.city = " ".join(city_tokens)

    tokens = parts[0].split()
    idx = 0

    num_match = _STREET_NUMBER_PATTERN.match(tokens[0])
    if num_match:
        components.street_number = num_match.group(1)
        idx = 1

    if idx < len(tokens) - 1 and tokens[idx] in _ALL_DIRECTIONALS:
        components.pre_direction = DIRECTIONAL_MAP.get(tokens[idx], tokens[idx])
        idx += 1

    street_tokens = tokens[idx:]
    for i, token in enumerate(street_tokens):
        if token in _UNIT_INDICATORS:
            components.unit = " ".join(street_tokens[i:])
            street_tokens = street_tokens[:i]
            break

    if len(street_tokens) > 1 and street_tokens[-1] in _ALL_DIRECTIONALS:
        components.post_direction = DIRECTIONAL_MAP.get(street_tokens[-1], street_tokens[-1])
        street_tokens = street_tokens[:-1]

    if len(street_tokens) > 1 and street_tokens[-1] in _ALL_STREET_TYPES:
        components.street_type = STREET_TYPE_MAP.get(street_tokens[-1], street_tokens[-1])
        street_tokens = street_tokens[:-1]

    if street_tokens:
        components.street_name = " ".join(street_tokens)

    return components
