"""
Shared pytest fixtures for the WeddingBook pricing engine tests.

Provides sample listings for every pricing policy, a fixed reference clock
and a booking factory so cancellation tests never depend on the real date.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable

import pytest

from weddingbook.models import (
    Booking,
    BookingStatus,
    Payment,
    PaymentType,
    PricingPolicy,
    PricingTier,
    SelectedService,
    ServiceListing,
)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Reference time used for every day-until-wedding calculation."""
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Listing fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def per_unit_listing() -> ServiceListing:
    """Chair covers at 25.00 each."""
    return ServiceListing(
        id="svc_chair_covers",
        pricing_policy=PricingPolicy.PER_UNIT,
        price=Decimal("25.00"),
    )


@pytest.fixture
def per_table_listing() -> ServiceListing:
    """Centerpieces at 50.00 per table."""
    return ServiceListing(
        id="svc_centerpieces",
        pricing_policy=PricingPolicy.PER_TABLE,
        price=Decimal("50.00"),
    )


@pytest.fixture
def fixed_package_listing() -> ServiceListing:
    return ServiceListing(
        id="svc_photography",
        pricing_policy=PricingPolicy.FIXED_PACKAGE,
        price=Decimal("1200.00"),
    )


@pytest.fixture
def tiered_listing() -> ServiceListing:
    """Catering with bronze/silver/gold packages."""
    return ServiceListing(
        id="svc_catering",
        pricing_policy=PricingPolicy.TIERED_PACKAGE,
        price=Decimal("500.00"),
        tiered_pricing=(
            PricingTier(name="Bronze", price=Decimal("500")),
            PricingTier(name="Silver", price=Decimal("800")),
            PricingTier(name="Gold", price=Decimal("1200")),
        ),
    )


@pytest.fixture
def time_based_listing() -> ServiceListing:
    """DJ billed by the hour."""
    return ServiceListing(
        id="svc_dj",
        pricing_policy=PricingPolicy.TIME_BASED,
        price=Decimal("0"),
        hourly_rate=Decimal("120.00"),
    )


# ---------------------------------------------------------------------------
# Booking factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_booking(now: datetime) -> Callable[..., Booking]:
    """Build a booking ``days_out`` whole days after the fixed clock.

    ``paid`` is a list of payment amounts; ``totals`` the selected service
    totals.
    """

    def _make(
        status: Any = BookingStatus.CONFIRMED,
        days_out: int = 45,
        totals: tuple[Any, ...] = (Decimal("1000.00"),),
        paid: tuple[Any, ...] = (),
        listing: Any = None,
    ) -> Booking:
        return Booking(
            id="bkg_test",
            status=status,
            reserved_date=now + timedelta(days=days_out),
            selected_services=tuple(
                SelectedService(service_listing=listing, total_price=total)
                for total in totals
            ),
            payments=tuple(
                Payment(amount=amount, payment_type=PaymentType.DEPOSIT)
                for amount in paid
            ),
        )

    return _make
