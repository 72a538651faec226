"""
Response models for the CertQuote pricing API.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from certquote.models.pricing import QuoteTotals, TurnaroundTier
from certquote.models.recalculation import ReconciledTotals


# Base Response Models
class BaseResponse(BaseModel):
    """Base response model with common fields."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseResponse):
    """Error response model."""
    success: bool = False
    error_code: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = "healthy"
    version: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    services: Dict[str, str] = {}


# Pricing Responses
class QuotePricingResponse(BaseResponse):
    """Pricing preview for a quote. Not authoritative until recalculated."""
    data: QuoteTotals
    display: Dict[str, str] = {}


class RecalculationResponse(BaseResponse):
    """Persisted totals after the authoritative recalculation."""
    data: ReconciledTotals


class RateBreakdown(BaseModel):
    language_id: Optional[str] = None
    base_rate: Decimal
    multiplier: Decimal
    raw_rate: Decimal
    per_page_rate: Decimal
    breakdown_text: str


class RateBreakdownResponse(BaseResponse):
    data: RateBreakdown


class TurnaroundEstimate(BaseModel):
    turnaround: TurnaroundTier
    page_count: int
    business_days: int
    start_date: date
    estimated_delivery_date: date


class TurnaroundEstimateResponse(BaseResponse):
    data: TurnaroundEstimate


class PricingConfigResponse(BaseResponse):
    data: Dict[str, Any]


class ReferenceDataResponse(BaseResponse):
    data: Dict[str, Any]
