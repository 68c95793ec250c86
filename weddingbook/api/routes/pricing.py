"""
Pricing API routes -- WB-BE-PRICING-001
=======================================

Stateless endpoints over the pricing calculator.  The caller sends the
listing snapshot with every request; nothing is read from storage.

  POST /api/v1/pricing/quote            -- Quote one listing
  POST /api/v1/pricing/validate         -- Pre-validate a pricing context
  POST /api/v1/pricing/event-duration   -- Hours between event start and end
  POST /api/v1/pricing/booking-total    -- Quote several listings and sum them
"""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, HTTPException, status

from weddingbook.api.schemas.pricing import (
    BookingTotalLineOut,
    BookingTotalOut,
    BookingTotalRequest,
    EventDurationOut,
    EventDurationRequest,
    PriceQuoteOut,
    PriceQuoteRequest,
    ValidateContextOut,
    ValidateContextRequest,
)
from weddingbook.models.listing import PricingPolicy
from weddingbook.services.pricingCalculator import (
    PricingError,
    calculate_booking_total,
    calculate_event_duration,
    calculate_price,
    validate_pricing_context,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])


def _reject(exc: ValueError) -> NoReturn:
    """Turn a pricing failure into a 422 with a field-level message."""
    if isinstance(exc, PricingError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": exc.field, "message": exc.message},
        )
    raise HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=str(exc),
    )


# ---------------------------------------------------------------------------
# POST /api/v1/pricing/quote
# ---------------------------------------------------------------------------

@router.post(
    "/quote",
    response_model=PriceQuoteOut,
    summary="Quote a service listing",
    description=(
        "Calculates the amount owed for a service listing under its pricing "
        "policy.  Missing or invalid context values reject the request; an "
        "unknown policy falls back to the listing's base price."
    ),
)
async def quote_listing(body: PriceQuoteRequest) -> PriceQuoteOut:
    try:
        total = calculate_price(body.listing, body.context)
    except ValueError as exc:
        _reject(exc)

    return PriceQuoteOut(
        listing_id=body.listing.id,
        pricing_policy=PricingPolicy.parse(body.listing.pricing_policy).value,
        total_price=total,
    )


# ---------------------------------------------------------------------------
# POST /api/v1/pricing/validate
# ---------------------------------------------------------------------------

@router.post(
    "/validate",
    response_model=ValidateContextOut,
    summary="Validate a pricing context",
    description="Non-throwing check used by booking forms before quoting.",
)
async def validate_context(body: ValidateContextRequest) -> ValidateContextOut:
    result = validate_pricing_context(
        body.pricing_policy,
        body.context,
        tier_count=body.tier_count,
    )
    return ValidateContextOut.model_validate(result)


# ---------------------------------------------------------------------------
# POST /api/v1/pricing/event-duration
# ---------------------------------------------------------------------------

@router.post(
    "/event-duration",
    response_model=EventDurationOut,
    summary="Compute event duration in hours",
)
async def event_duration(body: EventDurationRequest) -> EventDurationOut:
    try:
        hours = calculate_event_duration(body.start, body.end)
    except ValueError as exc:
        _reject(exc)
    return EventDurationOut(duration_hours=hours)


# ---------------------------------------------------------------------------
# POST /api/v1/pricing/booking-total
# ---------------------------------------------------------------------------

@router.post(
    "/booking-total",
    response_model=BookingTotalOut,
    summary="Quote several listings and sum them into a booking total",
)
async def booking_total(body: BookingTotalRequest) -> BookingTotalOut:
    lines: list[BookingTotalLineOut] = []
    try:
        for item in body.items:
            lines.append(
                BookingTotalLineOut(
                    listing_id=item.listing.id,
                    total_price=calculate_price(item.listing, item.context),
                )
            )
        total = calculate_booking_total([line.total_price for line in lines])
    except ValueError as exc:
        _reject(exc)

    logger.info("Booking total quoted for %d service(s): %s", len(lines), total)
    return BookingTotalOut(items=lines, total=total)
