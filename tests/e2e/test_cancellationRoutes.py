"""
E2E: Cancellation quote flow tests.

Posts booking snapshots to /api/v1/cancellations/quote with a pinned
``as_of`` clock and checks the fee tier, the fee amount and the settlement
figures that come back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient

from tests.e2e.conftest import AS_OF


pytestmark = pytest.mark.asyncio

QUOTE_URL = "/api/v1/cancellations/quote"


def _money(value: Any) -> Decimal:
    return Decimal(str(value))


class TestCancellationQuote:

    async def test_fee_exceeds_deposit(self, client: AsyncClient, booking_payload):
        resp = await client.post(
            QUOTE_URL,
            json={"booking": booking_payload, "as_of": AS_OF},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["days_until_wedding"] == 45
        assert data["tier"] == "30-59"
        assert _money(data["fee_percentage"]) == Decimal("0.5")
        assert _money(data["fee_amount"]) == Decimal("500.00")
        assert _money(data["amount_paid"]) == Decimal("300.00")
        assert _money(data["fee_difference"]) == Decimal("200.00")
        assert data["requires_payment"] is True
        assert _money(data["total_booking_amount"]) == Decimal("1000.00")
        assert data["reason"] is None

    async def test_listing_tiers_override_defaults(self, client: AsyncClient, booking_payload):
        resp = await client.post(
            QUOTE_URL,
            json={
                "booking": booking_payload,
                "listing": {"id": "svc_venue", "cancellation_fee_tiers": {"30-59": 0.6}},
                "as_of": AS_OF,
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert _money(data["fee_amount"]) == Decimal("600.00")
        assert _money(data["fee_difference"]) == Decimal("300.00")

    async def test_malformed_tiers_use_defaults(self, client: AsyncClient, booking_payload):
        resp = await client.post(
            QUOTE_URL,
            json={
                "booking": booking_payload,
                "listing": {"id": "svc_venue", "cancellation_fee_tiers": "{not json"},
                "as_of": AS_OF,
            },
        )
        assert resp.status_code == 200
        assert _money(resp.json()["fee_amount"]) == Decimal("500.00")

    @pytest.mark.parametrize("raw_tiers", [[0.1, 0.2], 0.5, True])
    async def test_non_object_tiers_use_defaults(
        self, client: AsyncClient, booking_payload, raw_tiers,
    ):
        resp = await client.post(
            QUOTE_URL,
            json={
                "booking": booking_payload,
                "listing": {"id": "svc_venue", "cancellation_fee_tiers": raw_tiers},
                "as_of": AS_OF,
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["tier"] == "30-59"
        assert _money(data["fee_amount"]) == Decimal("500.00")
        assert _money(data["fee_difference"]) == Decimal("200.00")

    async def test_deposit_covers_fee(self, client: AsyncClient, booking_payload):
        booking_payload["payments"].append({"amount": "300.00", "payment_type": "final"})
        resp = await client.post(
            QUOTE_URL,
            json={"booking": booking_payload, "as_of": AS_OF},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert _money(data["fee_difference"]) == Decimal("0.00")
        assert data["requires_payment"] is False

    async def test_pending_vendor_confirmation_is_free(
        self, client: AsyncClient, booking_payload,
    ):
        booking_payload["status"] = "pending_vendor_confirmation"
        booking_payload["payments"] = []
        resp = await client.post(
            QUOTE_URL,
            json={"booking": booking_payload, "as_of": AS_OF},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert _money(data["fee_amount"]) == Decimal("0.00")
        assert data["requires_payment"] is False
        assert data["tier"] == "pending_confirmation"
        assert data["reason"].startswith("No penalty")

    async def test_past_wedding_is_free(self, client: AsyncClient, booking_payload):
        booking_payload["reserved_date"] = "2025-12-01"
        resp = await client.post(
            QUOTE_URL,
            json={"booking": booking_payload, "as_of": AS_OF},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["tier"] == "past"
        assert data["days_until_wedding"] < 0
        assert _money(data["fee_amount"]) == Decimal("0.00")

    async def test_unknown_status_rejected_by_schema(
        self, client: AsyncClient, booking_payload,
    ):
        booking_payload["status"] = "on_hold"
        resp = await client.post(QUOTE_URL, json={"booking": booking_payload})
        assert resp.status_code == 422
