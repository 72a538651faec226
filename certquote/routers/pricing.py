"""
Quote pricing API endpoints.
"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from certquote.exceptions import PricingError, pricing_error_to_http_exception
from certquote.models.requests import QuotePricingRequest, TurnaroundEstimateRequest
from certquote.models.responses import (
    PricingConfigResponse,
    QuotePricingResponse,
    RateBreakdown,
    RateBreakdownResponse,
    RecalculationResponse,
    ReferenceDataResponse,
    TurnaroundEstimate,
    TurnaroundEstimateResponse,
)
from certquote.services.pricing_service import PricingService, get_pricing_service
from certquote.services.recalculation_service import RecalculationService, get_recalculation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/pricing", tags=["Pricing"])


@router.get("/config", response_model=PricingConfigResponse)
async def get_pricing_config(service: PricingService = Depends(get_pricing_service)):
    """Active pricing configuration (rates, multipliers, minimums)."""
    logger.info("Request received for pricing configuration")
    return PricingConfigResponse(data=service.get_config())


@router.get("/reference-data", response_model=ReferenceDataResponse)
async def get_reference_data(service: PricingService = Depends(get_pricing_service)):
    """Languages, active certification types, active delivery options, tax rates and holidays."""
    logger.info("Request received for pricing reference data")
    data = service.get_reference_data()
    logger.info(
        f"Response sent with {len(data['languages'])} languages, "
        f"{len(data['certification_types'])} certification types"
    )
    return ReferenceDataResponse(data=data)


@router.get("/rate", response_model=RateBreakdownResponse)
async def get_rate(
    language_id: Optional[str] = Query(None, description="Language id to take the multiplier from"),
    multiplier: Optional[Decimal] = Query(None, gt=0, description="Explicit language multiplier"),
    service: PricingService = Depends(get_pricing_service),
):
    """
    Per-page rate breakdown, e.g. `$65.00 × 1.30 = $84.50 → $85.00`.
    """
    try:
        breakdown = service.get_rate_breakdown(language_id=language_id, multiplier=multiplier)
    except PricingError as e:
        raise pricing_error_to_http_exception(e)
    return RateBreakdownResponse(data=RateBreakdown(**breakdown))


@router.post("/quotes/preview", response_model=QuotePricingResponse)
async def preview_quote(
    request: QuotePricingRequest,
    service: PricingService = Depends(get_pricing_service),
):
    """
    Price a quote locally.

    The preview is for display while editing; the quote cannot be finalized
    until the recalculation endpoint has persisted authoritative totals.
    """
    logger.info(
        f"Quote preview requested: language={request.language_id}, documents={len(request.documents)}"
    )
    try:
        totals = service.calculate_quote(request)
    except PricingError as e:
        raise pricing_error_to_http_exception(e)

    for warning in totals.warnings:
        logger.warning(f"Quote preview warning ({warning.field}): {warning.message}")

    return QuotePricingResponse(
        message="Preview totals; not authoritative until recalculated",
        data=totals,
        display=totals.display(),
    )


@router.post("/quotes/{quote_id}/recalculate", response_model=RecalculationResponse)
async def recalculate_quote(
    quote_id: str,
    preview: Optional[QuotePricingRequest] = Body(None),
    service: PricingService = Depends(get_pricing_service),
    recalculation: RecalculationService = Depends(get_recalculation_service),
):
    """
    Trigger the authoritative recalculation for a persisted quote.

    When the current editing state is sent as the body, the local preview is
    reconciled against the persisted totals and every divergence is reported.
    The persisted totals always win.
    """
    logger.info(f"Recalculation requested for quote {quote_id}")
    try:
        preview_totals = service.calculate_quote(preview) if preview is not None else None
        reconciled = await recalculation.recalculate_and_reconcile(quote_id, preview_totals)
    except PricingError as e:
        raise pricing_error_to_http_exception(e)

    message = "Totals recalculated" if reconciled.matches_preview else (
        f"Totals recalculated; preview differed in {len(reconciled.discrepancies)} field(s)"
    )
    return RecalculationResponse(message=message, data=reconciled)


@router.post("/turnaround/estimate", response_model=TurnaroundEstimateResponse)
async def estimate_turnaround(
    request: TurnaroundEstimateRequest,
    service: PricingService = Depends(get_pricing_service),
):
    """Business days and estimated delivery date for a turnaround tier."""
    try:
        estimate = service.estimate_turnaround(request.turnaround, request.page_count, request.start_date)
    except PricingError as e:
        raise pricing_error_to_http_exception(e)
    return TurnaroundEstimateResponse(data=TurnaroundEstimate(**estimate))
