"""
Pydantic v2 schemas for the Pricing API (WB-BE-PRICING-001).

Covers:
- Quoting a single service listing
- Pre-validating a pricing context (booking form)
- Event duration from start/end timestamps
- Booking totals across several listings

Numeric context fields carry no range constraints here; range checks
belong to the pricing calculator so every caller gets the same field-level
messages.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Shared input schemas
# ---------------------------------------------------------------------------

class PricingTierIn(BaseModel):
    """One tier of a ``tiered_package`` listing."""

    name: Optional[str] = None
    price: Optional[Decimal] = None


class ServiceListingIn(BaseModel):
    """Snapshot of the service listing being priced."""

    id: Optional[str] = Field(default=None, description="Service listing ID")
    pricing_policy: str = Field(
        description="per_unit, per_table, fixed_package, tiered_package or time_based",
    )
    price: Optional[Decimal] = Field(default=None, description="Base price")
    hourly_rate: Optional[Decimal] = Field(
        default=None,
        description="Hourly rate (time_based listings)",
    )
    tiered_pricing: Optional[list[PricingTierIn]] = Field(
        default=None,
        description="Ordered tiers (tiered_package listings)",
    )
    cancellation_fee_tiers: Any = None


class PricingContextIn(BaseModel):
    """Usage context; only the field relevant to the policy is read."""

    quantity: Optional[Decimal] = None
    table_count: Optional[Decimal] = None
    selected_tier_index: Optional[int] = None
    event_duration: Optional[Decimal] = Field(default=None, description="Hours")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class PriceQuoteRequest(BaseModel):
    listing: ServiceListingIn
    context: PricingContextIn = Field(default_factory=PricingContextIn)


class ValidateContextRequest(BaseModel):
    pricing_policy: str
    context: PricingContextIn = Field(default_factory=PricingContextIn)
    tier_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Number of tiers on the listing, enables the tier range check",
    )


class EventDurationRequest(BaseModel):
    start: datetime
    end: datetime


class BookingTotalItem(BaseModel):
    listing: ServiceListingIn
    context: PricingContextIn = Field(default_factory=PricingContextIn)


class BookingTotalRequest(BaseModel):
    items: list[BookingTotalItem] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class PriceQuoteOut(BaseModel):
    listing_id: Optional[str] = None
    pricing_policy: str
    total_price: Decimal


class ValidateContextOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class EventDurationOut(BaseModel):
    duration_hours: Decimal


class BookingTotalLineOut(BaseModel):
    listing_id: Optional[str] = None
    total_price: Decimal


class BookingTotalOut(BaseModel):
    items: list[BookingTotalLineOut]
    total: Decimal
