"""
Values -- Immutable, self-validating domain value objects and money rounding.

Responsibility:
    Provides the single rounding rule used for every monetary metric
    (round-half-away-from-zero to 2 decimal places), null-safe ratio and
    percentage helpers, and the GeoPoint value object for asset locations.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by engines, services and selectors.

Invariants enforced:
    - Decimal-only arithmetic: floats entering the domain are converted via
      ``str`` so that 0.1 stays 0.1.
    - A ratio with a zero denominator is ``None`` (no data), never 0 and
      never a ZeroDivisionError.

Failure modes:
    - InvalidLocationError when a GeoPoint is out of range.
    - ValueError when ``to_decimal`` receives a non-numeric value.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from poultry_kernel.exceptions import InvalidLocationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric input to Decimal without float artefacts.

    ``None`` is treated as zero so that SQL aggregates over no rows read
    as 0.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric value: {value!r}") from exc


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def safe_ratio(numerator: Any, denominator: Any) -> Decimal | None:
    """
    numerator / denominator rounded as money, or None when denominator is 0.
    """
    denom = to_decimal(denominator)
    if denom == ZERO:
        return None
    return round_money(to_decimal(numerator) / denom)


def percent_of(part: Any, total: Any) -> Decimal:
    """part as a percentage of total, rounded as money; 0 when total is 0."""
    whole = to_decimal(total)
    if whole == ZERO:
        return round_money(ZERO)
    return round_money(to_decimal(part) / whole * HUNDRED)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """
    GPS location of an asset.

    Guarantees:
        - lat in [-90, 90], lng in [-180, 180].
    """

    lat: Decimal
    lng: Decimal

    def __post_init__(self) -> None:
        lat = to_decimal(self.lat)
        lng = to_decimal(self.lng)
        if not (Decimal("-90") <= lat <= Decimal("90")) or not (
            Decimal("-180") <= lng <= Decimal("180")
        ):
            raise InvalidLocationError(self.lat, self.lng)
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lng", lng)
