"""
Cancellation Fee Calculator for WeddingBook -- WB-BE-CANCEL-002.

Computes the cancellation fee for a booking and reconciles it against what
the couple has already paid ("fee deducted from amount already paid"):

1. Sum the payments already made.
2. No-penalty fast path: a booking the vendor has not confirmed yet, or one
   still awaiting its deposit with nothing paid, cancels for free.
3. Sum the selected services into the total booking amount.
4. Count whole days until the wedding (ceiling).
5. Resolve the listing's fee tiers, falling back to the defaults for any
   band the vendor left out (or for the whole table if it is malformed).
6. Normalise: apply the deposit floor to every band inside 90 days, then
   force the fractions to be non-decreasing as the wedding approaches.
7. Look up the band for the day count and compute the fee in cents.
8. ``fee_difference = max(0, fee - paid)``; a positive difference means the
   couple owes a settlement payment.  Surplus refunds are handled by the
   refund workflow, not here.

Default fee table (fraction of the total booking amount):

    >90 days   0%
    60-90      30%   (equal to the deposit)
    30-59      50%
    7-29       70%
    <7         100%

The only clock read is the default for ``now``; pass it explicitly for
deterministic results.  The caller must supply a consistent booking/payments
snapshot and re-run the calculation if the booking changes before the
outcome is persisted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from weddingbook.core.config import settings
from weddingbook.models.booking import BookingStatus
from weddingbook.models.cancellation import BAND_ORDER, FeeTierBand, FeeTierConfig
from weddingbook.services.pricingCalculator import (
    parse_timestamp,
    quantize_money,
    read_field,
    to_decimal,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_FEE_TIERS: dict[FeeTierBand, Decimal] = {
    FeeTierBand.MORE_THAN_90: Decimal("0.00"),
    FeeTierBand.DAYS_60_TO_90: Decimal("0.30"),
    FeeTierBand.DAYS_30_TO_59: Decimal("0.50"),
    FeeTierBand.DAYS_7_TO_29: Decimal("0.70"),
    FeeTierBand.FEWER_THAN_7: Decimal("1.00"),
}

# Tier labels outside the configurable bands
PAST_EVENT_TIER = "past"
PENDING_CONFIRMATION_TIER = "pending_confirmation"
NO_PAYMENT_TIER = "no_payment"

PENDING_CONFIRMATION_REASON = "No penalty: Booking request not yet confirmed by vendor"
NO_PAYMENT_REASON = "No penalty: Booking cancelled before any payment was made"

_ZERO = Decimal("0")
_ONE_DAY = timedelta(days=1)
_ONE_MICROSECOND = timedelta(microseconds=1)
_MICROSECONDS_PER_DAY = _ONE_DAY // _ONE_MICROSECOND


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CancellationFee:
    """Fee for cancelling at a given distance from the wedding."""
    fee_percentage: Decimal
    fee_amount: Decimal
    days_until_wedding: int
    tier: str


@dataclass(frozen=True)
class CancellationOutcome:
    """Fee and settlement figures for a cancelled booking.

    Valid only for the booking snapshot it was computed from.
    """
    fee_amount: Decimal
    fee_percentage: Decimal
    amount_paid: Decimal
    fee_difference: Decimal
    requires_payment: bool
    days_until_wedding: int
    tier: str
    total_booking_amount: Decimal
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def calculate_amount_paid(payments: Optional[Iterable[Any]]) -> Decimal:
    """Sum the amounts of all payments recorded against a booking."""
    if not payments:
        return quantize_money(_ZERO)
    total = _ZERO
    for position, payment in enumerate(payments):
        total += to_decimal(read_field(payment, "amount"), f"payments[{position}].amount")
    return quantize_money(total, "amount_paid")


def calculate_total_booking_amount(selected_services: Optional[Iterable[Any]]) -> Decimal:
    """Sum ``total_price`` across a booking's selected services.

    Raises:
        ValueError: If ``selected_services`` is missing or a price is invalid.
    """
    if selected_services is None:
        raise ValueError("Booking selected_services is required")
    total = _ZERO
    for position, service in enumerate(selected_services):
        total += to_decimal(
            read_field(service, "total_price"),
            f"selected_services[{position}].total_price",
        )
    return quantize_money(total, "total_booking_amount")


def calculate_days_until(reserved_date: Any, now: Optional[datetime] = None) -> int:
    """Whole days from ``now`` until ``reserved_date``, rounded up.

    A date without a time is taken as midnight UTC.  Zero or negative means
    the reserved moment has already been reached.
    """
    if reserved_date is None:
        raise ValueError("Booking reserved_date is required")
    wedding_at = parse_timestamp(reserved_date, "reserved_date")
    current = now if now is not None else datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    microseconds = (wedding_at - current) // _ONE_MICROSECOND
    return -(-microseconds // _MICROSECONDS_PER_DAY)


def resolve_fee_tiers(
    raw_tiers: Any,
    *,
    listing_id: Any = None,
) -> dict[FeeTierBand, Decimal]:
    """Merge a listing's ``cancellation_fee_tiers`` over the defaults.

    Accepts a JSON string, a mapping, a ``FeeTierConfig`` or None.  Anything
    that fails to parse or validate is logged and the full default table is
    returned instead.
    """
    tiers = dict(DEFAULT_FEE_TIERS)
    if raw_tiers is None:
        return tiers
    if isinstance(raw_tiers, (str, bytes)) and not raw_tiers.strip():
        return tiers

    try:
        if isinstance(raw_tiers, FeeTierConfig):
            config = raw_tiers
        else:
            payload = (
                json.loads(raw_tiers, parse_float=Decimal)
                if isinstance(raw_tiers, (str, bytes))
                else raw_tiers
            )
            if payload is None:
                return tiers
            if not isinstance(payload, Mapping):
                raise ValueError(
                    f"expected an object of band -> fraction, got {type(payload).__name__}"
                )
            config = FeeTierConfig.model_validate(dict(payload))
    except (ValueError, ValidationError) as exc:
        logger.warning(
            "Invalid cancellation_fee_tiers for listing %s, using defaults: %s",
            listing_id,
            exc,
            extra={
                "event": "cancellation.fee_tiers_invalid",
                "listing_id": listing_id,
                "error": str(exc),
            },
        )
        return tiers

    tiers.update(config.configured())
    return tiers


def normalize_fee_tiers(
    tiers: Mapping[FeeTierBand, Decimal],
    *,
    deposit_floor: Optional[Decimal] = None,
    enforce_deposit_floor: Optional[bool] = None,
) -> dict[FeeTierBand, Decimal]:
    """Apply the deposit floor, then make fractions non-decreasing toward
    the wedding date.

    The ">90" band is exempt from the deposit floor.  Bands missing from
    ``tiers`` take their default value.
    """
    if deposit_floor is None:
        deposit_floor = settings.cancellation_deposit_floor
    if enforce_deposit_floor is None:
        enforce_deposit_floor = settings.cancellation_enforce_deposit_floor

    normalized: dict[FeeTierBand, Decimal] = {}
    previous = _ZERO
    for band in BAND_ORDER:
        configured = tiers.get(band, DEFAULT_FEE_TIERS[band])
        value = max(_ZERO, configured)
        if enforce_deposit_floor and band is not FeeTierBand.MORE_THAN_90:
            value = max(deposit_floor, value)
        if value < previous:
            value = previous
        if value != configured:
            logger.debug(
                "Fee tier %s raised from %s to %s", band.value, configured, value
            )
        normalized[band] = value
        previous = value
    return normalized


def resolve_band(days_until_wedding: int) -> Optional[FeeTierBand]:
    """Return the band containing the day count, or None once it has passed."""
    for band in BAND_ORDER:
        if band.contains(days_until_wedding):
            return band
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def calculate_cancellation_fee(
    listing: Any,
    reserved_date: Any,
    total_booking_amount: Any,
    *,
    now: Optional[datetime] = None,
    deposit_floor: Optional[Decimal] = None,
    enforce_deposit_floor: Optional[bool] = None,
) -> CancellationFee:
    """Compute the fee for cancelling a booking of the given total.

    Args:
        listing: Service listing carrying optional ``cancellation_fee_tiers``
            (None uses the defaults).
        reserved_date: Wedding date (date, datetime or ISO string).
        total_booking_amount: Total of the booking's selected services.
        now: Reference time; defaults to the current UTC time.
        deposit_floor: Overrides ``settings.cancellation_deposit_floor``.
        enforce_deposit_floor: Overrides
            ``settings.cancellation_enforce_deposit_floor``.

    Returns:
        CancellationFee with the fraction, amount (cents), day count and
        band label.
    """
    total = to_decimal(total_booking_amount, "total_booking_amount")
    days = calculate_days_until(reserved_date, now)

    band = resolve_band(days)
    if band is None:
        # Wedding already passed; nothing sensible to charge
        return CancellationFee(
            fee_percentage=_ZERO,
            fee_amount=quantize_money(_ZERO),
            days_until_wedding=days,
            tier=PAST_EVENT_TIER,
        )

    tiers = normalize_fee_tiers(
        resolve_fee_tiers(
            read_field(listing, "cancellation_fee_tiers"),
            listing_id=read_field(listing, "id"),
        ),
        deposit_floor=deposit_floor,
        enforce_deposit_floor=enforce_deposit_floor,
    )
    fee_percentage = tiers[band]

    return CancellationFee(
        fee_percentage=fee_percentage,
        fee_amount=quantize_money(total * fee_percentage, "fee_amount"),
        days_until_wedding=days,
        tier=band.value,
    )


def calculate_cancellation_fee_and_payment(
    booking: Any,
    listing: Any,
    *,
    now: Optional[datetime] = None,
    deposit_floor: Optional[Decimal] = None,
    enforce_deposit_floor: Optional[bool] = None,
) -> CancellationOutcome:
    """Compute the cancellation fee for a booking and the settlement owed.

    Args:
        booking: Booking snapshot exposing ``status``, ``reserved_date``,
            ``selected_services`` and ``payments``.
        listing: Service listing whose fee tiers apply (may be None).
        now: Reference time for the day count.
        deposit_floor / enforce_deposit_floor: See
            ``calculate_cancellation_fee``.

    Returns:
        CancellationOutcome.  ``requires_payment`` is True only when the fee
        exceeds what has already been paid.

    Raises:
        ValueError: If the booking, its ``reserved_date`` or its
            ``selected_services`` are missing, or an amount is invalid.
    """
    if booking is None:
        raise ValueError("Booking is required")

    reserved_date = read_field(booking, "reserved_date")
    if reserved_date is None:
        raise ValueError("Booking reserved_date is required")

    amount_paid = calculate_amount_paid(read_field(booking, "payments"))
    total_booking_amount = calculate_total_booking_amount(
        read_field(booking, "selected_services")
    )
    status = _status_value(read_field(booking, "status"))

    no_penalty: Optional[tuple[str, str]] = None
    if status == BookingStatus.PENDING_VENDOR_CONFIRMATION.value:
        no_penalty = (PENDING_CONFIRMATION_TIER, PENDING_CONFIRMATION_REASON)
    elif status == BookingStatus.PENDING_DEPOSIT_PAYMENT.value and amount_paid == 0:
        no_penalty = (NO_PAYMENT_TIER, NO_PAYMENT_REASON)

    if no_penalty is not None:
        tier, reason = no_penalty
        days = calculate_days_until(reserved_date, now)
        logger.info(
            "Cancellation without penalty: booking=%s, status=%s, days_until_wedding=%d",
            read_field(booking, "id"),
            status,
            days,
        )
        return CancellationOutcome(
            fee_amount=quantize_money(_ZERO),
            fee_percentage=_ZERO,
            amount_paid=amount_paid,
            fee_difference=quantize_money(_ZERO),
            requires_payment=False,
            days_until_wedding=days,
            tier=tier,
            total_booking_amount=total_booking_amount,
            reason=reason,
        )

    fee = calculate_cancellation_fee(
        listing,
        reserved_date,
        total_booking_amount,
        now=now,
        deposit_floor=deposit_floor,
        enforce_deposit_floor=enforce_deposit_floor,
    )

    fee_difference = max(quantize_money(_ZERO), fee.fee_amount - amount_paid)
    requires_payment = fee_difference > 0

    logger.info(
        "Cancellation fee computed: booking=%s, tier=%s, days_until_wedding=%d, "
        "fee=%s (%s of %s), paid=%s, difference=%s",
        read_field(booking, "id"),
        fee.tier,
        fee.days_until_wedding,
        fee.fee_amount,
        fee.fee_percentage,
        total_booking_amount,
        amount_paid,
        fee_difference,
    )

    return CancellationOutcome(
        fee_amount=fee.fee_amount,
        fee_percentage=fee.fee_percentage,
        amount_paid=amount_paid,
        fee_difference=fee_difference,
        requires_payment=requires_payment,
        days_until_wedding=fee.days_until_wedding,
        tier=fee.tier,
        total_booking_amount=total_booking_amount,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _status_value(status: Any) -> Optional[str]:
    """Normalise a status to its lowercase string value.

    Any enum (ours or an ORM model's own) is unwrapped via ``.value``.
    """
    status = getattr(status, "value", status)
    if status is None:
        return None
    return str(status).strip().lower()
