"""
Booking snapshot types passed to the cancellation settlement calculator.

The booking orchestrator is expected to read the booking and its payments
inside one transaction and hand the engine a consistent snapshot.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union


class BookingStatus(str, enum.Enum):
    PENDING_VENDOR_CONFIRMATION = "pending_vendor_confirmation"
    PENDING_DEPOSIT_PAYMENT = "pending_deposit_payment"
    CONFIRMED = "confirmed"
    PENDING_FINAL_PAYMENT = "pending_final_payment"
    CANCELLED_BY_COUPLE = "cancelled_by_couple"
    CANCELLED_BY_VENDOR = "cancelled_by_vendor"
    REJECTED = "rejected"
    COMPLETED = "completed"


class PaymentType(str, enum.Enum):
    DEPOSIT = "deposit"
    FINAL = "final"
    CANCELLATION_FEE = "cancellation_fee"


@dataclass(frozen=True)
class Payment:
    amount: Union[Decimal, int, float, str]
    payment_type: PaymentType = PaymentType.DEPOSIT


@dataclass(frozen=True)
class SelectedService:
    service_listing: Any
    total_price: Union[Decimal, int, float, str]


@dataclass(frozen=True)
class Booking:
    status: Union[BookingStatus, str]
    reserved_date: Union[date, datetime, str, None]
    selected_services: Optional[tuple[SelectedService, ...]] = ()
    payments: tuple[Payment, ...] = field(default_factory=tuple)
    id: Optional[str] = None
