"""Input parsing shared by the package, trip and wallet services."""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from .exceptions import InvalidInputError


def parse_coordinate(value, label: str, bound: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{label} must be a number")
    if not -bound <= number <= bound:
        raise InvalidInputError(f"{label} must be between -{bound} and {bound}")
    return number


def parse_location(value, label: str) -> Dict[str, Any]:
    """
    Validate a ``{city, address, lat, lng}`` mapping.

    Raises InvalidInputError naming ``label`` when anything is missing or out of range.
    """
    if not isinstance(value, dict):
        raise InvalidInputError(f"{label} is required")

    city = str(value.get("city") or "").strip()
    address = str(value.get("address") or "").strip()
    if not city or not address:
        raise InvalidInputError(f"{label} city and address are required")

    return {
        "city": city,
        "address": address,
        "lat": parse_coordinate(value.get("lat"), f"{label} latitude", 90),
        "lng": parse_coordinate(value.get("lng"), f"{label} longitude", 180),
    }


def location_fields(origin: Dict[str, Any], destination: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten parsed origin/destination mappings into model field names."""
    fields = {}
    for prefix, place in (("origin", origin), ("destination", destination)):
        for key in ("city", "address", "lat", "lng"):
            fields[f"{prefix}_{key}"] = place[key]
    return fields


def parse_amount(value, label: str, allow_zero: bool = True) -> Decimal:
    if value is None or value == "":
        raise InvalidInputError(f"{label} is required")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise InvalidInputError(f"{label} must be a number")
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "a non-negative number" if allow_zero else "greater than zero"
        raise InvalidInputError(f"{label} must be {qualifier}")
    return amount
