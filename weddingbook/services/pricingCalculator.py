"""
Pricing Calculator for WeddingBook -- WB-BE-PRICING-001.

Quotes the amount owed for a single service listing under its pricing
policy:

- per_unit:        price x quantity
- per_table:       price x table_count
- fixed_package:   price (context ignored)
- tiered_package:  tiered_pricing[selected_tier_index].price
- time_based:      hourly_rate x event_duration (hours)

Unknown policies do not fail: the bare listing price is returned and a
structured warning is logged so policy drift is visible to operators.

All arithmetic is done in ``Decimal``.  Numbers and numeric strings are
normalised to ``Decimal`` before any multiplication.  Quotes are returned
exact; only the booking total is rounded half-up to whole cents.

Every function here is pure: inputs are never mutated and no clock or
global state is consulted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from weddingbook.models.listing import PricingPolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CENT = Decimal("0.01")

# Event durations are reported in hours with 2 decimal places
HOURS_QUANTUM = Decimal("0.01")

_MICROSECONDS_PER_HOUR = Decimal(3_600_000_000)
_ONE_MICROSECOND = timedelta(microseconds=1)

_DATETIME_ADAPTER: TypeAdapter[datetime] = TypeAdapter(datetime)
_DATE_ADAPTER: TypeAdapter[date] = TypeAdapter(date)

# Human-readable labels for the context fields each policy requires
_FIELD_LABELS: dict[str, str] = {
    "quantity": "Quantity",
    "table_count": "Table count",
    "event_duration": "Event duration",
    "selected_tier_index": "Selected tier index",
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PricingError(ValueError):
    """Base class for pricing failures that must abort the calling request.

    ``field`` names the offending input so the API layer can return a
    field-level message.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class MissingRequiredFieldError(PricingError):
    """A value mandated by the listing's pricing policy was not supplied."""


class InvalidValueError(PricingError):
    """A supplied value is negative, out of range, or cannot be parsed."""


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------

@dataclass
class PricingContextValidation:
    """Outcome of a non-throwing pricing context check."""
    is_valid: bool
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Input normalisation helpers (shared with the cancellation calculator)
# ---------------------------------------------------------------------------

def read_field(source: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an attribute-bearing object."""
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Normalise a number or numeric string to ``Decimal`` without going
    through binary floating point.

    Raises:
        MissingRequiredFieldError: If ``value`` is None.
        InvalidValueError: If ``value`` is not a finite number.
    """
    if value is None:
        raise MissingRequiredFieldError(field_name, f"{field_name} is required")
    if isinstance(value, bool):
        raise InvalidValueError(field_name, f"{field_name} must be a number")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidValueError(
                field_name, f"{field_name} must be a number (got {value!r})"
            ) from None
    else:
        raise InvalidValueError(
            field_name, f"{field_name} must be a number (got {type(value).__name__})"
        )

    if not result.is_finite():
        raise InvalidValueError(field_name, f"{field_name} must be a finite number")
    return result


def quantize_money(amount: Decimal, field_name: str = "amount") -> Decimal:
    """Round a monetary amount half-up to whole cents.

    Raises:
        InvalidValueError: If the amount is too large to hold in cents.
    """
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidValueError(
            field_name, f"{field_name} is too large to represent in cents"
        ) from None


def parse_timestamp(value: Any, field_name: str) -> datetime:
    """Parse a datetime, date, ISO-8601 string or epoch number into an aware
    UTC-comparable ``datetime``.

    Naive values are assumed to be UTC.  Bare dates map to midnight.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingRequiredFieldError(field_name, f"{field_name} is required")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        try:
            parsed = _DATETIME_ADAPTER.validate_python(value)
        except ValidationError:
            try:
                parsed = datetime.combine(_DATE_ADAPTER.validate_python(value), time.min)
            except ValidationError:
                raise InvalidValueError(
                    field_name, f"{field_name} is not a valid date/time: {value!r}"
                ) from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _policy_value(policy: Any) -> str:
    if isinstance(policy, PricingPolicy):
        return policy.value
    return str(policy)


def _listing_price(listing: Any) -> Decimal:
    price = read_field(listing, "price")
    if price is None:
        raise MissingRequiredFieldError("price", "Listing price is required")
    amount = to_decimal(price, "price")
    if amount < 0:
        raise InvalidValueError("price", "Listing price cannot be negative")
    return amount


def _required_non_negative(context: Any, key: str, policy: PricingPolicy) -> Decimal:
    label = _FIELD_LABELS[key]
    value = read_field(context, key)
    if value is None:
        raise MissingRequiredFieldError(
            key, f"{label} is required for {policy.value} pricing"
        )
    amount = to_decimal(value, key)
    if amount < 0:
        raise InvalidValueError(key, f"{label} cannot be negative")
    return amount


def _tier_index(value: Any) -> int:
    """Coerce a selected tier index to a non-negative ``int``."""
    key = "selected_tier_index"
    if value is None:
        raise MissingRequiredFieldError(
            key, "Selected tier index is required for tiered_package pricing"
        )
    if isinstance(value, bool):
        raise InvalidValueError(key, "Selected tier index must be an integer")
    if isinstance(value, int):
        index = value
    else:
        try:
            number = to_decimal(value, key)
        except PricingError:
            raise InvalidValueError(key, "Selected tier index must be an integer") from None
        if number != number.to_integral_value():
            raise InvalidValueError(key, "Selected tier index must be an integer")
        index = int(number)
    if index < 0:
        raise InvalidValueError(key, "Selected tier index cannot be negative")
    return index


def _tiers(listing: Any) -> list[Any]:
    tiers = read_field(listing, "tiered_pricing")
    if tiers is None or isinstance(tiers, (str, bytes, Mapping)):
        raise MissingRequiredFieldError(
            "tiered_pricing", "Tiered pricing is required for tiered_package pricing"
        )
    tiers = list(tiers)
    if not tiers:
        raise MissingRequiredFieldError(
            "tiered_pricing", "Tiered pricing must contain at least one tier"
        )
    return tiers


# ---------------------------------------------------------------------------
# Per-policy quoters
# ---------------------------------------------------------------------------

def _quote_per_unit(listing: Any, context: Any) -> Decimal:
    price = _listing_price(listing)
    return price * _required_non_negative(context, "quantity", PricingPolicy.PER_UNIT)


def _quote_per_table(listing: Any, context: Any) -> Decimal:
    price = _listing_price(listing)
    return price * _required_non_negative(context, "table_count", PricingPolicy.PER_TABLE)


def _quote_fixed_package(listing: Any, context: Any) -> Decimal:
    return _listing_price(listing)


def _quote_tiered_package(listing: Any, context: Any) -> Decimal:
    tiers = _tiers(listing)
    index = _tier_index(read_field(context, "selected_tier_index"))
    if index >= len(tiers):
        raise InvalidValueError(
            "selected_tier_index",
            f"Selected tier index {index} is out of range "
            f"(listing has {len(tiers)} tier(s), valid indexes 0-{len(tiers) - 1})",
        )

    tier_price = read_field(tiers[index], "price")
    if tier_price is None:
        # Tier without its own price falls back to the listing's base price
        return _listing_price(listing)
    amount = to_decimal(tier_price, f"tiered_pricing[{index}].price")
    if amount < 0:
        raise InvalidValueError(
            f"tiered_pricing[{index}].price", "Tier price cannot be negative"
        )
    return amount


def _quote_time_based(listing: Any, context: Any) -> Decimal:
    hourly_rate = read_field(listing, "hourly_rate")
    if hourly_rate is None:
        raise MissingRequiredFieldError(
            "hourly_rate", "Hourly rate is required for time_based pricing"
        )
    rate = to_decimal(hourly_rate, "hourly_rate")
    if rate < 0:
        raise InvalidValueError("hourly_rate", "Hourly rate cannot be negative")
    return rate * _required_non_negative(context, "event_duration", PricingPolicy.TIME_BASED)


def _quote_unrecognized(listing: Any, context: Any) -> Decimal:
    raw_policy = read_field(listing, "pricing_policy")
    listing_id = read_field(listing, "id")
    logger.warning(
        "Unknown pricing policy %r for listing %s; using base price",
        raw_policy,
        listing_id,
        extra={
            "event": "pricing.unknown_policy",
            "pricing_policy": raw_policy,
            "listing_id": listing_id,
        },
    )
    return _listing_price(listing)


_QUOTERS: dict[PricingPolicy, Callable[[Any, Any], Decimal]] = {
    PricingPolicy.PER_UNIT: _quote_per_unit,
    PricingPolicy.PER_TABLE: _quote_per_table,
    PricingPolicy.FIXED_PACKAGE: _quote_fixed_package,
    PricingPolicy.TIERED_PACKAGE: _quote_tiered_package,
    PricingPolicy.TIME_BASED: _quote_time_based,
    PricingPolicy.UNRECOGNIZED: _quote_unrecognized,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def calculate_price(listing: Any, context: Any = None) -> Decimal:
    """Quote the amount owed for ``listing`` under its pricing policy.

    Args:
        listing: ``ServiceListing`` (or any object/mapping) exposing
            ``pricing_policy``, ``price`` and, depending on the policy,
            ``hourly_rate`` or ``tiered_pricing``.
        context: ``PricingContext`` (or mapping) carrying ``quantity``,
            ``table_count``, ``selected_tier_index`` or ``event_duration``.
            Only the field relevant to the policy is read.

    Returns:
        The exact quoted amount as a ``Decimal``; round with
        ``quantize_money`` (or ``calculate_booking_total``) when persisting.

    Raises:
        MissingRequiredFieldError: A value required by the policy is absent.
        InvalidValueError: A value is negative, unparseable, or the selected
            tier index is out of range.
    """
    if listing is None:
        raise MissingRequiredFieldError("listing", "Service listing is required")

    policy = PricingPolicy.parse(read_field(listing, "pricing_policy"))
    amount = _QUOTERS[policy](listing, context if context is not None else {})

    logger.debug(
        "Quoted listing %s (%s): %s",
        read_field(listing, "id"),
        policy.value,
        amount,
    )
    return amount


def calculate_event_duration(start: Any, end: Any) -> Decimal:
    """Return the event duration in hours, rounded half-up to 2 places.

    Raises:
        MissingRequiredFieldError: If either timestamp is missing.
        InvalidValueError: If either timestamp cannot be parsed, or
            ``end`` is not after ``start``.
    """
    if start is None or end is None:
        raise MissingRequiredFieldError(
            "event_start_time" if start is None else "event_end_time",
            "Both event start time and end time are required",
        )

    start_at = parse_timestamp(start, "event_start_time")
    end_at = parse_timestamp(end, "event_end_time")
    if end_at <= start_at:
        raise InvalidValueError(
            "event_end_time", "Event end time must be after start time"
        )

    microseconds = (end_at - start_at) // _ONE_MICROSECOND
    hours = Decimal(microseconds) / _MICROSECONDS_PER_HOUR
    return hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def validate_pricing_context(
    pricing_policy: Union[PricingPolicy, str, None],
    context: Any,
    *,
    tier_count: Optional[int] = None,
) -> PricingContextValidation:
    """Check a pricing context without raising.

    Applies the same rules ``calculate_price`` enforces for the context
    fields, so a context that validates here will not be rejected for its
    context values later.  ``tier_count`` enables the range check for
    ``tiered_package`` listings.

    Returns:
        ``PricingContextValidation`` with ``is_valid`` and a list of
        human-readable field errors.
    """
    errors: list[str] = []
    policy = PricingPolicy.parse(pricing_policy)
    context = context if context is not None else {}

    if policy in (PricingPolicy.PER_UNIT, PricingPolicy.PER_TABLE, PricingPolicy.TIME_BASED):
        key = {
            PricingPolicy.PER_UNIT: "quantity",
            PricingPolicy.PER_TABLE: "table_count",
            PricingPolicy.TIME_BASED: "event_duration",
        }[policy]
        label = _FIELD_LABELS[key]
        try:
            _required_non_negative(context, key, policy)
        except MissingRequiredFieldError:
            errors.append(f"{label} is required")
        except InvalidValueError:
            errors.append(f"{label} must be a non-negative number")

    elif policy is PricingPolicy.TIERED_PACKAGE:
        try:
            index = _tier_index(read_field(context, "selected_tier_index"))
        except MissingRequiredFieldError:
            errors.append("Selected tier index is required")
        except InvalidValueError:
            errors.append("Selected tier index must be a non-negative integer")
        else:
            if tier_count is not None:
                if tier_count <= 0:
                    errors.append("Tiered pricing must contain at least one tier")
                elif index >= tier_count:
                    errors.append(
                        f"Selected tier index must be between 0 and {tier_count - 1}"
                    )

    elif policy is PricingPolicy.UNRECOGNIZED:
        errors.append(f"Unknown pricing policy: {_policy_value(pricing_policy)}")

    # fixed_package needs no context

    return PricingContextValidation(is_valid=not errors, errors=errors)


def calculate_service_prices(
    listings: Iterable[Any],
    context_map: Optional[Mapping[Any, Any]] = None,
) -> dict[Any, Decimal]:
    """Quote several listings at once, keyed by listing id.

    ``context_map`` maps listing id to that listing's pricing context.  Any
    pricing error aborts the whole batch.
    """
    context_map = context_map or {}
    prices: dict[Any, Decimal] = {}
    for listing in listings:
        listing_id = read_field(listing, "id")
        if listing_id is None:
            raise MissingRequiredFieldError("id", "Service listing id is required")
        prices[listing_id] = calculate_price(listing, context_map.get(listing_id))
    return prices


def calculate_booking_total(
    prices: Union[Mapping[Any, Any], Iterable[Any]],
) -> Decimal:
    """Sum quoted service amounts into the booking total."""
    values = prices.values() if isinstance(prices, Mapping) else prices
    total = Decimal("0")
    for position, value in enumerate(values):
        total += to_decimal(value, f"prices[{position}]")
    return quantize_money(total, "total")
