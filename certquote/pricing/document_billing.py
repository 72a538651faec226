"""
Document billing aggregator.

Combines per-page billables into a document's translation cost and adds the
flat certification prices to get the document line total:

    billable_pages   = max(Σ page billables, min_billable_pages)   (non-empty only)
    per_page_rate    = ceil(base_rate × language_multiplier / 2.50) × 2.50
    translation_cost = billable_pages × per_page_rate
    line_total       = translation_cost + certification_cost

Complexity is already embedded in billable_pages; it is never multiplied into
the rate as well.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional, Sequence, Union

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import DocumentBilling, DocumentInput
from certquote.pricing.page_billing import bill_page
from certquote.pricing.pricing_config import PricingConfig
from certquote.utils.amount_converter import AmountConverter

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def round_up_to_increment(amount: Decimal, increment: Decimal = Decimal("2.50")) -> Decimal:
    """
    Round an amount UP to the next increment.

    Examples:
        >>> round_up_to_increment(Decimal("58.50"))
        Decimal('60.00')
        >>> round_up_to_increment(Decimal("65.00"))
        Decimal('65.00')
        >>> round_up_to_increment(Decimal("91.00"))
        Decimal('92.50')
    """
    return AmountConverter.ceil_to_increment(amount, increment)


def check_language_multiplier(multiplier: Decimal, config: PricingConfig) -> None:
    """
    Raises:
        PricingValidationError: If the multiplier is outside the configured bounds.
    """
    if not (config.language_multiplier_min <= multiplier <= config.language_multiplier_max):
        error_msg = (
            f"Language multiplier {multiplier} is outside the allowed range "
            f"[{config.language_multiplier_min}, {config.language_multiplier_max}]"
        )
        logger.error(error_msg)
        raise PricingValidationError(error_msg, field="language_multiplier")


def calculate_per_page_rate(
    language_multiplier: Decimal,
    config: PricingConfig,
    base_rate: Optional[Decimal] = None,
) -> Decimal:
    """
    Calculate the per-page rate for a language multiplier.

    Args:
        language_multiplier: Language tier multiplier (or quote-level override).
        config: Pricing configuration (base rate, increment, bounds).
        base_rate: Optional base rate replacing config.base_rate.

    Returns:
        Decimal: Rate rounded up to the configured increment ($2.50 by default).

    Examples:
        >>> calculate_per_page_rate(Decimal("1.3"), config)
        Decimal('85.00')
    """
    check_language_multiplier(language_multiplier, config)
    rate = config.base_rate if base_rate is None else base_rate
    raw_rate = rate * language_multiplier
    per_page_rate = round_up_to_increment(raw_rate, config.rate_increment)
    logger.debug(f"Per-page rate: ${rate} × {language_multiplier} = ${raw_rate} → ${per_page_rate}")
    return per_page_rate


def get_rate_breakdown(
    language_multiplier: Decimal,
    config: PricingConfig,
    base_rate: Optional[Decimal] = None,
) -> Dict[str, Union[Decimal, str]]:
    """
    Get the per-page rate breakdown for display.

    Example:
        >>> get_rate_breakdown(Decimal("1.3"), config)["breakdown_text"]
        '$65.00 × 1.30 = $84.50 → $85.00'
    """
    rate = config.base_rate if base_rate is None else base_rate
    raw_rate = rate * language_multiplier
    per_page_rate = calculate_per_page_rate(language_multiplier, config, base_rate=rate)

    return {
        "base_rate": rate,
        "multiplier": language_multiplier,
        "raw_rate": raw_rate,
        "per_page_rate": per_page_rate,
        "breakdown_text": (
            f"${rate:.2f} × {language_multiplier:.2f} = ${raw_rate:.2f} → ${per_page_rate:.2f}"
        ),
    }


def calculate_document_billing(
    document: DocumentInput,
    config: PricingConfig,
    per_page_rate: Decimal,
    certification_prices: Sequence[Decimal] = (),
) -> DocumentBilling:
    """
    Calculate billable pages, translation cost and line total for a document.

    A document whose pages total zero billable pages (no pages, or all pages
    empty) contributes nothing; the minimum is applied once per document and
    only when there is content.

    Args:
        document: The document and its pages.
        config: Pricing configuration (words per page, minimum, complexity).
        per_page_rate: Rate from calculate_per_page_rate().
        certification_prices: Primary plus additional certification prices,
            already looked up from reference data.

    Returns:
        DocumentBilling with `min_applied` set when the minimum raised the
        billable pages.

    Raises:
        PricingValidationError: On invalid page data or negative prices.
    """
    pages = tuple(bill_page(page, config, document.complexity) for page in document.pages)

    raw_billable = sum((page.billable_pages for page in pages), ZERO)

    if raw_billable > 0:
        billable_pages = max(raw_billable, config.min_billable_pages)
        min_applied = raw_billable < config.min_billable_pages
    else:
        billable_pages = ZERO
        min_applied = False

    for price in certification_prices:
        if price < 0:
            raise PricingValidationError(
                f"Certification price cannot be negative for document '{document.id}'",
                field="certification_price",
            )

    translation_cost = billable_pages * per_page_rate
    certification_cost = sum(certification_prices, ZERO)
    line_total = translation_cost + certification_cost

    if min_applied:
        logger.debug(
            f"Document '{document.id}': minimum {config.min_billable_pages} applied "
            f"(raw billable {raw_billable})"
        )

    logger.debug(
        f"Document '{document.id}': {billable_pages} pages × ${per_page_rate} = ${translation_cost} "
        f"+ certifications ${certification_cost} = ${line_total}"
    )

    return DocumentBilling(
        document_id=document.id,
        label=document.label,
        pages=pages,
        total_words=sum(page.word_count for page in pages),
        raw_billable_pages=raw_billable,
        billable_pages=billable_pages,
        min_applied=min_applied,
        per_page_rate=per_page_rate,
        translation_cost=translation_cost,
        certification_cost=certification_cost,
        line_total=line_total,
    )
