"""
Pydantic v2 schemas for the Cancellation API (WB-BE-CANCEL-002).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from weddingbook.models.booking import BookingStatus, PaymentType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class PaymentIn(BaseModel):
    amount: Decimal
    payment_type: PaymentType = PaymentType.DEPOSIT


class SelectedServiceIn(BaseModel):
    service_listing_id: Optional[str] = None
    total_price: Decimal


class BookingIn(BaseModel):
    """Point-in-time snapshot of the booking being cancelled."""

    id: Optional[str] = None
    status: BookingStatus
    reserved_date: Union[datetime, date] = Field(description="Wedding date")
    selected_services: list[SelectedServiceIn]
    payments: list[PaymentIn] = Field(default_factory=list)


class CancellationListingIn(BaseModel):
    id: Optional[str] = None
    cancellation_fee_tiers: Any = Field(
        default=None,
        description=(
            "Band label -> fee fraction, as JSON text or an object; any "
            "malformed value falls back to the default tiers"
        ),
    )


class CancellationQuoteRequest(BaseModel):
    booking: BookingIn
    listing: Optional[CancellationListingIn] = None
    as_of: Optional[datetime] = Field(
        default=None,
        description="Reference time for the day count (defaults to now)",
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class CancellationOutcomeOut(BaseModel):
    """Fee and settlement figures for a cancellation."""

    model_config = ConfigDict(from_attributes=True)

    fee_amount: Decimal
    fee_percentage: Decimal
    amount_paid: Decimal
    fee_difference: Decimal = Field(
        description="Amount the couple still owes towards the fee (never negative)",
    )
    requires_payment: bool
    days_until_wedding: int
    tier: str
    total_booking_amount: Decimal
    reason: Optional[str] = None
