"""Extraction of well-known fields from a raw provider payload."""

from dataclasses import asdict, dataclass
from typing import Any

# Field name in the Zillow body -> summary attribute
_FIELD_MAP: dict[str, str] = {
    "zpid": "zpid",
    "zestimate": "zestimate",
    "rentZestimate": "rent_zestimate",
    "price": "price",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "livingArea": "living_area",
    "yearBuilt": "year_built",
    "homeType": "property_type",
    "homeStatus": "home_status",
    "lastSoldPrice": "last_sold_price",
    "lastSoldDate": "last_sold_date",
    "taxAssessedValue": "tax_assessed_value",
    "taxAssessedYear": "tax_assessed_year",
}

_TEXT_FIELDS = frozenset({"property_type", "home_status", "last_sold_date"})
_INT_FIELDS = frozenset({"year_built", "tax_assessed_year"})


@dataclass
class PropertySummary:
    """Flat view of the most commonly displayed property attributes."""

    zpid: Any = None
    zestimate: float | None = None
    rent_zestimate: float | None = None
    price: float | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    living_area: float | None = None
    year_built: int | None = None
    property_type: str | None = None
    home_status: str | None = None
    last_sold_price: float | None = None
    last_sold_date: str | None = None
    tax_assessed_value: float | None = None
    tax_assessed_year: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _to_number(value: Any) -> float | None:
    """Coerce provider numbers, including "$1,234"-style strings, to float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        cleaned = "".join(ch for ch in value if ch.isdigit() or ch == ".")
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def _source(payload: dict[str, Any]) -> dict[str, Any]:
    # search_address returns either the property itself or a {"results": [...]} list
    results = payload.get("results")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        return results[0]
    return payload


def summarize_payload(payload: dict[str, Any] | None) -> PropertySummary:
    """Build a PropertySummary from a raw provider payload.

    Unknown or malformed values are left as None.  The payload is never modified.

    Args:
        payload: Provider JSON body as stored on the property record.

    Returns:
        PropertySummary; all fields None for an empty payload.
    """
    summary = PropertySummary()
    if not payload:
        return summary

    source = _source(payload)
    for key, attr in _FIELD_MAP.items():
        value = source.get(key)
        if value is None:
            continue
        if attr == "zpid":
            summary.zpid = value
        elif attr in _TEXT_FIELDS:
            setattr(summary, attr, str(value))
        elif attr in _INT_FIELDS:
            number = _to_number(value)
            setattr(summary, attr, int(number) if number is not None else None)
        else:
            setattr(summary, attr, _to_number(value))

    return summary
