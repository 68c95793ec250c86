"""
E2E test fixtures for the WeddingBook pricing API.

Provides an httpx AsyncClient wired to the FastAPI app via ASGI transport,
so the full route -> schema -> service flow runs in-process with no network.
The API is stateless, so no database or seed data is needed.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from weddingbook.main import app

AS_OF = "2026-01-01T12:00:00Z"


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient connected to the app via ASGI transport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def booking_payload() -> dict[str, Any]:
    """A confirmed booking 45 days after ``AS_OF`` with a 300.00 deposit."""
    return {
        "id": "bkg_e2e",
        "status": "confirmed",
        "reserved_date": "2026-02-15T12:00:00Z",
        "selected_services": [
            {"service_listing_id": "svc_venue", "total_price": "1000.00"},
        ],
        "payments": [
            {"amount": "300.00", "payment_type": "deposit"},
        ],
    }
