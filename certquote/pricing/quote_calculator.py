"""
Quote cost aggregator.

Runs the whole pricing pipeline for one quote:

    subtotal         = Σ document line totals + quote-level certifications
    adjustments      = each discount/surcharge resolved against subtotal
    taxable_amount   = subtotal + adjustments_total + rush_fee + delivery_fee
    tax_amount       = round2(taxable_amount × tax_rate)
    total            = taxable_amount + tax_amount

The function is pure: the same inputs always produce the same totals, and
nothing is persisted. The server-side recalculation runs the same pipeline and
its persisted result always wins over a local preview.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import (
    Adjustment,
    AdjustmentKind,
    DeliverySelection,
    DocumentInput,
    LanguageSelection,
    QuoteCertification,
    QuoteOverrides,
    QuoteTotals,
    RushFeeSelection,
)
from certquote.pricing.adjustments import resolve_adjustments
from certquote.pricing.document_billing import (
    calculate_document_billing,
    calculate_per_page_rate,
    check_language_multiplier,
)
from certquote.pricing.reference_data import DeliveryType, PricingContext
from certquote.pricing.rush_fee import resolve_rush_fee
from certquote.utils.amount_converter import AmountConverter

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
OVERRIDABLE_FIELDS = ("certification_total", "rush_fee", "delivery_fee", "tax_rate")


def resolve_language_multiplier(language: LanguageSelection, context: PricingContext) -> Decimal:
    """
    Quote-level override wins over the language tier default.

    Raises:
        PricingConfigurationError: If the language id is unknown.
        PricingValidationError: If the multiplier is outside configured bounds.
    """
    default = context.reference.get_language(language.language_id).multiplier
    multiplier = default if language.multiplier_override is None else language.multiplier_override
    check_language_multiplier(multiplier, context.config)
    return multiplier


def document_certification_prices(document: DocumentInput, context: PricingContext) -> List[Decimal]:
    """
    Look up primary and additional certification prices for a document.

    Raises:
        PricingValidationError: If any certification id is not active.
    """
    prices = []
    if document.primary_certification_id:
        prices.append(context.reference.get_certification_price(
            document.primary_certification_id, field=f"documents[{document.id}].primary_certification_id"
        ))
    for certification_id in document.additional_certification_ids:
        prices.append(context.reference.get_certification_price(
            certification_id, field=f"documents[{document.id}].additional_certification_ids"
        ))
    return prices


def calculate_quote_certification_total(
    certifications: Sequence[QuoteCertification], context: PricingContext
) -> Decimal:
    """
    Sum price × quantity of certifications ordered for the whole quote.

    Raises:
        PricingValidationError: If a certification id is not active.
    """
    total = ZERO
    for certification in certifications:
        price = context.reference.get_certification_price(
            certification.certification_id, field="certifications.certification_id"
        )
        total += price * certification.quantity
    return total


def calculate_delivery_fee(delivery: DeliverySelection, context: PricingContext) -> Decimal:
    """
    Physical delivery price plus every digital add-on price.

    Raises:
        PricingValidationError: If an option id is unknown or of the wrong type.
    """
    fee = ZERO
    if delivery.physical_option_id:
        option = context.reference.get_delivery_option(delivery.physical_option_id, field="physical_option_id")
        if option.delivery_type != DeliveryType.PHYSICAL:
            raise PricingValidationError(
                f"Delivery option '{option.id}' is not a physical delivery option",
                field="physical_option_id",
            )
        fee += option.price

    if len(set(delivery.digital_option_ids)) != len(delivery.digital_option_ids):
        raise PricingValidationError("Digital delivery add-ons must not repeat", field="digital_option_ids")

    for option_id in delivery.digital_option_ids:
        option = context.reference.get_delivery_option(option_id, field="digital_option_ids")
        if option.delivery_type != DeliveryType.DIGITAL:
            raise PricingValidationError(
                f"Delivery option '{option.id}' is not a digital delivery option",
                field="digital_option_ids",
            )
        fee += option.price

    return fee


def _check_tax_rate(tax_rate: Decimal, field: str) -> None:
    if tax_rate < 0 or tax_rate > ONE:
        raise PricingValidationError(f"Tax rate must be between 0 and 1, received: {tax_rate}", field=field)


def _check_override_amount(value: Decimal, field: str) -> None:
    if value < 0:
        raise PricingValidationError(f"Override for {field} cannot be negative, received: {value}", field=field)


def compute_quote_totals(
    context: PricingContext,
    documents: Sequence[DocumentInput],
    adjustments: Sequence[Adjustment],
    turnaround: RushFeeSelection,
    delivery: DeliverySelection,
    tax_rate: Decimal,
    overrides: Optional[QuoteOverrides] = None,
    *,
    language: LanguageSelection,
    certifications: Sequence[QuoteCertification] = (),
) -> QuoteTotals:
    """
    Compute every derived total of a quote.

    Args:
        context: Pricing configuration and reference data.
        documents: Documents with their pages and certification selections.
        adjustments: Adjustment ledger entries in order.
        turnaround: Turnaround tier and rush override state; a custom rush fee
            is applied only on the tier it was entered for.
        delivery: Physical delivery option and digital add-ons.
        tax_rate: Tax rate as a fraction (0.05 for 5%).
        overrides: Optional staff overrides for certification total, delivery
            fee and tax rate. Computed values stay available in the
            `computed_*` fields.
        language: Source language and optional multiplier override.
        certifications: Quote-level certifications added to the document ones.

    Returns:
        QuoteTotals with per-document and per-adjustment breakdowns.

    Raises:
        PricingConfigurationError: If reference data cannot be resolved.
        PricingValidationError: If any input is out of domain. No partial
            totals are returned.

    Example:
        >>> totals = compute_quote_totals(context, docs, [], RushFeeSelection(),
        ...                               DeliverySelection(), Decimal("0.05"),
        ...                               language=LanguageSelection(language_id="lang-es"))
        >>> totals.total
        Decimal('71.40')
    """
    overrides = overrides or QuoteOverrides()
    config = context.config

    logger.debug(
        f"Computing quote totals: {len(documents)} documents, {len(adjustments)} adjustments, "
        f"turnaround={turnaround.turnaround.value}, language={language.language_id}"
    )

    # Step 1: language multiplier and per-page rate
    language_multiplier = resolve_language_multiplier(language, context)
    per_page_rate = calculate_per_page_rate(language_multiplier, config)

    # Step 2: documents
    seen_ids = set()
    billed = []
    for document in documents:
        if document.id in seen_ids:
            raise PricingValidationError(f"Duplicate document id '{document.id}'", field="documents")
        seen_ids.add(document.id)
        prices = document_certification_prices(document, context)
        billed.append(calculate_document_billing(document, config, per_page_rate, prices))

    translation_total = sum((doc.translation_cost for doc in billed), ZERO)
    document_certification_total = sum((doc.certification_cost for doc in billed), ZERO)
    quote_certification_total = calculate_quote_certification_total(certifications, context)
    computed_certification_total = document_certification_total + quote_certification_total

    certification_total = computed_certification_total
    if overrides.certification_total is not None:
        _check_override_amount(overrides.certification_total, "certification_total")
        certification_total = overrides.certification_total

    subtotal = translation_total + certification_total

    # Step 3: adjustments against the current subtotal
    adjustment_lines = resolve_adjustments(adjustments, subtotal)
    surcharge_total = sum(
        (line.calculated_amount for line in adjustment_lines if line.kind == AdjustmentKind.SURCHARGE), ZERO
    )
    discount_total = sum(
        (line.calculated_amount for line in adjustment_lines if line.kind == AdjustmentKind.DISCOUNT), ZERO
    )
    adjustments_total = surcharge_total - discount_total

    # Step 4: rush and delivery fees
    rush = resolve_rush_fee(turnaround, subtotal, config)
    rush_fee = rush.fee

    computed_delivery_fee = calculate_delivery_fee(delivery, context)
    delivery_fee = computed_delivery_fee
    if overrides.delivery_fee is not None:
        _check_override_amount(overrides.delivery_fee, "delivery_fee")
        delivery_fee = overrides.delivery_fee

    # Step 5: tax on the post-adjustment, pre-tax amount
    _check_tax_rate(tax_rate, "tax_rate")
    effective_tax_rate = tax_rate
    if overrides.tax_rate is not None:
        _check_tax_rate(overrides.tax_rate, "overrides.tax_rate")
        effective_tax_rate = overrides.tax_rate

    taxable_amount = subtotal + adjustments_total + rush_fee + delivery_fee
    tax_amount = AmountConverter.round_currency(taxable_amount * effective_tax_rate)
    total = taxable_amount + tax_amount

    overridden_fields = overrides.overridden_fields
    if rush.is_custom:
        overridden_fields = tuple(sorted(overridden_fields + ("rush_fee",), key=OVERRIDABLE_FIELDS.index))

    totals = QuoteTotals(
        documents=tuple(billed),
        adjustments=tuple(adjustment_lines),
        language_id=language.language_id,
        language_multiplier=language_multiplier,
        language_multiplier_overridden=language.multiplier_override is not None,
        per_page_rate=per_page_rate,
        total_documents=len(billed),
        total_pages=sum(len(doc.pages) for doc in billed),
        total_words=sum(doc.total_words for doc in billed),
        total_billable_pages=sum((doc.billable_pages for doc in billed), ZERO),
        translation_total=translation_total,
        document_certification_total=document_certification_total,
        quote_certification_total=quote_certification_total,
        certification_total=certification_total,
        subtotal=subtotal,
        surcharge_total=surcharge_total,
        discount_total=discount_total,
        adjustments_total=adjustments_total,
        turnaround=rush.turnaround,
        rush_fee=rush_fee,
        rush_fee_is_custom=rush.is_custom,
        delivery_fee=delivery_fee,
        taxable_amount=taxable_amount,
        tax_rate=effective_tax_rate,
        tax_amount=tax_amount,
        total=total,
        computed_certification_total=computed_certification_total,
        computed_rush_fee=rush.computed_fee,
        computed_delivery_fee=computed_delivery_fee,
        computed_tax_rate=tax_rate,
        overridden_fields=overridden_fields,
        warnings=rush.warnings,
    )

    logger.info(
        f"Quote totals: subtotal=${subtotal} adjustments=${adjustments_total} rush=${rush_fee} "
        f"delivery=${delivery_fee} tax=${tax_amount} total=${total}"
        + (f" overrides={list(totals.overridden_fields)}" if totals.overridden_fields else "")
    )
    return totals
