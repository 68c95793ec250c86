"""
WeddingBook domain types
========================

Central import point for the plain data types the pricing engine reads.

Usage::

    from weddingbook.models import Booking, PricingPolicy, ServiceListing
"""

# -- Listings & pricing --
from .listing import PricingContext, PricingPolicy, PricingTier, ServiceListing

# -- Bookings & payments --
from .booking import Booking, BookingStatus, Payment, PaymentType, SelectedService

# -- Cancellation fee tiers --
from .cancellation import BAND_ORDER, FeeTierBand, FeeTierConfig

__all__ = [
    # Listings
    "PricingContext",
    "PricingPolicy",
    "PricingTier",
    "ServiceListing",
    # Bookings
    "Booking",
    "BookingStatus",
    "Payment",
    "PaymentType",
    "SelectedService",
    # Cancellation
    "BAND_ORDER",
    "FeeTierBand",
    "FeeTierConfig",
]
