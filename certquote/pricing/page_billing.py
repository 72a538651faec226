"""
Page billing calculator.

Converts one page's word count and complexity into billable-page units:

    billable_pages = ceil(word_count / words_per_page × complexity × 10) / 10

The result is rounded UP to the nearest 0.1 page. Rounding to nearest or to
whole pages under- or over-charges, so the ceiling is computed in Decimal
with an exact numerator and a single division.
"""

import logging
from decimal import Decimal, ROUND_CEILING
from typing import Optional

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import PageBilling, PageInput
from certquote.pricing.pricing_config import (
    PricingConfig,
    canonical_complexity,
    resolve_complexity_multiplier,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TEN = Decimal("10")


def calculate_page_billable(
    word_count: int,
    complexity_multiplier: Decimal,
    config: PricingConfig,
) -> Decimal:
    """
    Calculate billable pages for a single page.

    Zero words yields zero billable pages; the per-document minimum is applied
    later by the document aggregator, never per page.

    Args:
        word_count: Words on the page. Must be >= 0.
        complexity_multiplier: Multiplier resolved from the page's tier.
        config: Pricing configuration supplying words_per_page.

    Returns:
        Decimal: Billable pages with one decimal place.

    Raises:
        PricingValidationError: If word_count is negative or not an integer,
            or the multiplier is not positive.

    Examples:
        >>> calculate_page_billable(500, Decimal("1.15"), config)
        Decimal('2.6')
        >>> calculate_page_billable(50, Decimal("1.0"), config)
        Decimal('0.3')
        >>> calculate_page_billable(0, Decimal("1.25"), config)
        Decimal('0.0')
    """
    if isinstance(word_count, bool) or not isinstance(word_count, int):
        raise PricingValidationError(
            f"Word count must be an integer, received: {word_count!r}", field="word_count"
        )
    if word_count < 0:
        error_msg = f"Word count cannot be negative, received: {word_count}"
        logger.error(error_msg)
        raise PricingValidationError(error_msg, field="word_count")
    if complexity_multiplier <= 0:
        error_msg = f"Complexity multiplier must be positive, received: {complexity_multiplier}"
        logger.error(error_msg)
        raise PricingValidationError(error_msg, field="complexity_multiplier")

    if word_count == 0:
        return Decimal("0.0")

    tenths = (Decimal(word_count) * complexity_multiplier * TEN) / Decimal(config.words_per_page)
    billable = tenths.to_integral_value(rounding=ROUND_CEILING) / TEN

    logger.debug(
        f"Page billable: ceil({word_count} / {config.words_per_page} × {complexity_multiplier} × 10) / 10 "
        f"= {billable}"
    )
    return billable.quantize(Decimal("0.1"))


def bill_page(
    page: PageInput,
    config: PricingConfig,
    default_complexity: Optional[str] = None,
) -> PageBilling:
    """
    Bill one page, resolving its complexity tier (or the document default).

    Raises:
        PricingValidationError: If the page has no resolvable complexity tier
            or an invalid word count.
    """
    tier = page.complexity or default_complexity
    if not tier:
        raise PricingValidationError(
            f"Page {page.page_number} has no complexity tier and the document sets no default",
            field="complexity",
        )

    multiplier = resolve_complexity_multiplier(tier, config)

    try:
        billable = calculate_page_billable(page.word_count, multiplier, config)
    except PricingValidationError as e:
        raise PricingValidationError(
            f"Page {page.page_number}: {e.message}", field=e.field
        ) from e

    return PageBilling(
        page_number=page.page_number,
        word_count=page.word_count,
        complexity=canonical_complexity(tier, config),
        complexity_multiplier=multiplier,
        billable_pages=billable,
    )
