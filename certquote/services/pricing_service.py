"""
Pricing Service for the CertQuote pricing API.

Orchestrates quote pricing previews on top of the pricing engine: resolves ids
from API requests against reference data, runs the quote aggregator and
exposes rate breakdowns and turnaround estimates.
"""

import logging
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Optional

from certquote.config import get_settings
from certquote.models.pricing import LanguageSelection, QuoteTotals, TurnaroundTier
from certquote.models.requests import QuotePricingRequest
from certquote.pricing.document_billing import get_rate_breakdown
from certquote.pricing.pricing_config import load_pricing_config
from certquote.pricing.quote_calculator import compute_quote_totals, resolve_language_multiplier
from certquote.pricing.reference_data import PricingContext, load_reference_data
from certquote.pricing.turnaround import calculate_turnaround_days, estimate_delivery_date

# Set up module logger
logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class PricingService:
    """
    Service for pricing quote previews.

    Previews are never persisted; the authoritative values come from the
    recalculation service. The service supports dependency injection of the
    pricing context for testing while loading the configured YAML files by
    default.
    """

    def __init__(self, context: Optional[PricingContext] = None, default_tax_rate_id: Optional[str] = None):
        """
        Initialize the pricing service.

        Args:
            context: Optional pricing context for testing.
                If None, loads configuration and reference data from the
                paths in settings.
            default_tax_rate_id: Tax rate applied when a request names none.
        """
        if context is None:
            settings = get_settings()
            logger.debug("Loading pricing context from configured files")
            context = PricingContext(
                config=load_pricing_config(settings.pricing_settings_path),
                reference=load_reference_data(settings.reference_data_path),
            )
            default_tax_rate_id = default_tax_rate_id or settings.default_tax_rate_id
        else:
            logger.debug("Using injected pricing context (likely for testing)")

        self._context = context
        self._default_tax_rate_id = default_tax_rate_id
        logger.info("PricingService initialized successfully")

    @property
    def context(self) -> PricingContext:
        return self._context

    def resolve_tax_rate(self, tax_rate_id: Optional[str]) -> Decimal:
        """
        Tax rate for an id, falling back to the default tax rate id.

        Without any id the quote is untaxed.

        Raises:
            PricingConfigurationError: If the id is not in reference data.
        """
        tax_rate_id = tax_rate_id or self._default_tax_rate_id
        if not tax_rate_id:
            logger.debug("No tax rate selected; using 0")
            return ZERO
        return self._context.reference.get_tax_rate(tax_rate_id).rate

    def calculate_quote(self, request: QuotePricingRequest) -> QuoteTotals:
        """
        Price a quote preview from an API request.

        Raises:
            PricingConfigurationError: If reference ids cannot be resolved.
            PricingValidationError: If the request data is out of domain.
        """
        logger.debug(
            f"calculate_quote called: language='{request.language_id}', "
            f"documents={len(request.documents)}, turnaround='{request.rush.turnaround.value}'"
        )

        totals = compute_quote_totals(
            self._context,
            request.to_documents(),
            request.to_adjustments(),
            request.rush.to_selection(),
            request.to_delivery(),
            self.resolve_tax_rate(request.tax_rate_id),
            request.to_overrides(),
            language=request.to_language(),
            certifications=request.to_certifications(),
        )

        logger.info(
            f"Quote preview: {totals.total_documents} documents, "
            f"{totals.total_billable_pages} billable pages = ${totals.total}"
        )
        return totals

    def get_rate_breakdown(
        self,
        language_id: Optional[str] = None,
        multiplier: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        """
        Get the per-page rate breakdown for a language or an explicit multiplier.

        Examples:
            >>> service.get_rate_breakdown(multiplier=Decimal("1.3"))["breakdown_text"]
            '$65.00 × 1.30 = $84.50 → $85.00'
        """
        if multiplier is None and language_id is not None:
            multiplier = resolve_language_multiplier(LanguageSelection(language_id=language_id), self._context)
        elif multiplier is None:
            multiplier = Decimal("1.0")

        breakdown = get_rate_breakdown(multiplier, self._context.config)
        breakdown["language_id"] = language_id
        logger.debug(f"Rate breakdown: {breakdown}")
        return breakdown

    def estimate_turnaround(
        self,
        turnaround: TurnaroundTier,
        page_count: int,
        start_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Estimate business days and delivery date for a turnaround tier."""
        start_date = start_date or date.today()
        config = self._context.config
        days = calculate_turnaround_days(turnaround, page_count, config)
        delivery_date = estimate_delivery_date(
            turnaround, page_count, start_date, config, self._context.reference.holidays
        )
        return {
            "turnaround": turnaround,
            "page_count": page_count,
            "business_days": days,
            "start_date": start_date,
            "estimated_delivery_date": delivery_date,
        }

    def get_config(self) -> Dict[str, Any]:
        """Active pricing configuration as plain JSON-friendly values."""
        return self._context.config.model_dump(mode="json")

    def get_reference_data(self) -> Dict[str, Any]:
        """Active (selectable) reference data."""
        reference = self._context.reference
        return {
            "languages": [language.model_dump(mode="json") for language in reference.languages],
            "certification_types": [c.model_dump(mode="json") for c in reference.active_certification_types()],
            "delivery_options": [o.model_dump(mode="json") for o in reference.active_delivery_options()],
            "tax_rates": [t.model_dump(mode="json") for t in reference.tax_rates],
            "holidays": [holiday.isoformat() for holiday in reference.holidays],
        }


@lru_cache()
def get_pricing_service() -> PricingService:
    """Cached service instance built from the configured pricing files."""
    return PricingService()
