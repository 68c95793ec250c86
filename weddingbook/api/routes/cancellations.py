"""
Cancellation API routes -- WB-BE-CANCEL-002
===========================================

  POST /api/v1/cancellations/quote   -- Fee and settlement for a booking snapshot

The endpoint only computes; persisting the cancellation record and issuing
refunds stay with the booking orchestrator.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from weddingbook.api.schemas.cancellation import (
    CancellationOutcomeOut,
    CancellationQuoteRequest,
)
from weddingbook.services.cancellationFeeCalculator import (
    calculate_cancellation_fee_and_payment,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cancellations", tags=["Cancellations"])


@router.post(
    "/quote",
    response_model=CancellationOutcomeOut,
    summary="Quote the cancellation fee for a booking",
    description=(
        "Applies the listing's cancellation fee tiers (or the platform "
        "defaults) to the booking snapshot and reconciles the fee against "
        "payments already made.  A malformed tier configuration never fails "
        "the request; the default tiers are used instead."
    ),
)
async def quote_cancellation(body: CancellationQuoteRequest) -> CancellationOutcomeOut:
    try:
        outcome = calculate_cancellation_fee_and_payment(
            body.booking,
            body.listing,
            now=body.as_of,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    return CancellationOutcomeOut.model_validate(outcome)
