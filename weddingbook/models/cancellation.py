"""
Cancellation fee tier configuration.

``ServiceListing.cancellation_fee_tiers`` is stored as loosely-typed JSON
(either the raw string or an already-decoded mapping).  ``FeeTierConfig`` is
the typed form it is parsed into at the boundary; nothing downstream of the
parser ever sees the raw JSON.
"""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeeTierBand(str, enum.Enum):
    """Days-until-wedding bands, labelled as vendors configure them."""
    MORE_THAN_90 = ">90"
    DAYS_60_TO_90 = "60-90"
    DAYS_30_TO_59 = "30-59"
    DAYS_7_TO_29 = "7-29"
    FEWER_THAN_7 = "<7"

    @property
    def min_days(self) -> int:
        return _BAND_BOUNDS[self][0]

    @property
    def max_days(self) -> Optional[int]:
        return _BAND_BOUNDS[self][1]

    def contains(self, days: int) -> bool:
        upper = self.max_days
        return days >= self.min_days and (upper is None or days <= upper)


# Inclusive [min, max] day bounds; None means unbounded.
_BAND_BOUNDS: dict[FeeTierBand, tuple[int, Optional[int]]] = {
    FeeTierBand.MORE_THAN_90: (91, None),
    FeeTierBand.DAYS_60_TO_90: (60, 90),
    FeeTierBand.DAYS_30_TO_59: (30, 59),
    FeeTierBand.DAYS_7_TO_29: (7, 29),
    FeeTierBand.FEWER_THAN_7: (0, 6),
}

# Furthest from the wedding first.
BAND_ORDER: tuple[FeeTierBand, ...] = (
    FeeTierBand.MORE_THAN_90,
    FeeTierBand.DAYS_60_TO_90,
    FeeTierBand.DAYS_30_TO_59,
    FeeTierBand.DAYS_7_TO_29,
    FeeTierBand.FEWER_THAN_7,
)


class FeeTierConfig(BaseModel):
    """Vendor-supplied fee fractions, one optional value per band.

    Unknown band labels and fractions outside ``[0, 1]`` fail validation.
    Bands left out (or set to ``null``) fall back to the platform defaults.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    more_than_90: Optional[Decimal] = Field(default=None, alias=">90", ge=0, le=1)
    days_60_to_90: Optional[Decimal] = Field(default=None, alias="60-90", ge=0, le=1)
    days_30_to_59: Optional[Decimal] = Field(default=None, alias="30-59", ge=0, le=1)
    days_7_to_29: Optional[Decimal] = Field(default=None, alias="7-29", ge=0, le=1)
    fewer_than_7: Optional[Decimal] = Field(default=None, alias="<7", ge=0, le=1)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_fraction(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("fee fraction must be a number, not a boolean")
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    def configured(self) -> dict[FeeTierBand, Decimal]:
        """Return only the bands the vendor actually set."""
        values = {
            FeeTierBand.MORE_THAN_90: self.more_than_90,
            FeeTierBand.DAYS_60_TO_90: self.days_60_to_90,
            FeeTierBand.DAYS_30_TO_59: self.days_30_to_59,
            FeeTierBand.DAYS_7_TO_29: self.days_7_to_29,
            FeeTierBand.FEWER_THAN_7: self.fewer_than_7,
        }
        return {band: fraction for band, fraction in values.items() if fraction is not None}
