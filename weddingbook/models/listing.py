"""
Service listing types consumed by the pricing engine.

Listings are owned by the catalog layer; the engine only reads them.  Any
object exposing the same attribute names (an ORM row, a decoded JSON
mapping) is accepted wherever a ``ServiceListing`` is expected.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

Number = Union[Decimal, int, float, str]


class PricingPolicy(str, enum.Enum):
    PER_UNIT = "per_unit"
    PER_TABLE = "per_table"
    FIXED_PACKAGE = "fixed_package"
    TIERED_PACKAGE = "tiered_package"
    TIME_BASED = "time_based"
    # Stored value did not match any known policy
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, value: Any) -> "PricingPolicy":
        """Map a raw stored value onto a policy, never raising.

        Values outside the five known policies map to ``UNRECOGNIZED`` so the
        caller can decide how to degrade.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                policy = cls(value.strip().lower())
            except ValueError:
                return cls.UNRECOGNIZED
            return policy
        return cls.UNRECOGNIZED


@dataclass(frozen=True)
class PricingTier:
    """One selectable package tier of a ``tiered_package`` listing."""
    price: Optional[Number] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ServiceListing:
    id: Optional[str] = None
    pricing_policy: Union[PricingPolicy, str, None] = PricingPolicy.FIXED_PACKAGE
    price: Optional[Number] = None
    hourly_rate: Optional[Number] = None
    tiered_pricing: Optional[tuple[Any, ...]] = None
    # JSON string or mapping of band label -> fee fraction
    cancellation_fee_tiers: Union[str, dict[str, Any], None] = None


@dataclass(frozen=True)
class PricingContext:
    """Usage context for a single quote.

    Only the field relevant to the listing's policy is read; the rest are
    ignored.
    """
    quantity: Optional[Number] = None
    table_count: Optional[Number] = None
    selected_tier_index: Optional[int] = None
    event_duration: Optional[Number] = None
