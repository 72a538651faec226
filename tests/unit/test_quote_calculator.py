"""
Unit tests for the quote cost aggregator.

Uses the synthetic context: base rate $100, so a 450-word easy page is 2.0
billable pages and costs exactly $200 at multiplier 1.0.
"""

from decimal import Decimal

import pytest

from certquote.exceptions import PricingConfigurationError, PricingValidationError
from certquote.models.pricing import (
    Adjustment,
    AdjustmentKind,
    DeliverySelection,
    DocumentInput,
    LanguageSelection,
    OverrideMode,
    PageInput,
    QuoteCertification,
    QuoteOverrides,
    RushFeeSelection,
    RushOverride,
    TurnaroundTier,
    ValueType,
)
from certquote.pricing.quote_calculator import compute_quote_totals

TAX_5 = Decimal("0.05")
LANGUAGE = LanguageSelection(language_id="lang-std")


def two_hundred_dollar_document(doc_id="doc-1", **kwargs):
    return DocumentInput(id=doc_id, complexity="easy", pages=(PageInput(word_count=450),), **kwargs)


def ten_percent_discount():
    return Adjustment(
        id="adj-1", kind=AdjustmentKind.DISCOUNT, value_type=ValueType.PERCENTAGE,
        value=Decimal("10"), reason="Returning customer",
    )


class TestQuoteTotals:
    """Test suite for the full pricing pipeline."""

    def test_discount_then_tax_on_adjusted_amount(self, synthetic_context):
        """Subtotal 200, 10% discount, 5% tax -> 180 taxable, 9.00 tax, 189.00 total."""
        # Act
        totals = compute_quote_totals(
            synthetic_context,
            [two_hundred_dollar_document()],
            [ten_percent_discount()],
            RushFeeSelection(),
            DeliverySelection(),
            TAX_5,
            language=LANGUAGE,
        )

        # Assert
        assert totals.subtotal == Decimal("200")
        assert totals.adjustments_total == Decimal("-20.00")
        assert totals.discount_total == Decimal("20.00")
        assert totals.surcharge_total == Decimal("0")
        assert totals.rush_fee == Decimal("0")
        assert totals.delivery_fee == Decimal("0")
        assert totals.taxable_amount == Decimal("180.00")
        assert totals.tax_amount == Decimal("9.00")
        assert totals.total == Decimal("189.00")

    def test_rush_and_delivery_are_taxed(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context,
            [two_hundred_dollar_document()],
            [ten_percent_discount()],
            RushFeeSelection(turnaround=TurnaroundTier.RUSH),
            DeliverySelection(physical_option_id="del-mail", digital_option_ids=("del-signed",)),
            TAX_5,
            language=LANGUAGE,
        )

        # rush is computed on the subtotal, not the adjusted amount
        assert totals.rush_fee == Decimal("60.00")
        assert totals.delivery_fee == Decimal("25.00")
        assert totals.taxable_amount == Decimal("265.00")
        assert totals.tax_amount == Decimal("13.25")
        assert totals.total == Decimal("278.25")

    def test_subtotal_is_sum_of_line_totals(self, synthetic_context):
        documents = [
            two_hundred_dollar_document("doc-1", primary_certification_id="cert-a"),
            DocumentInput(
                id="doc-2", complexity="hard",
                pages=(PageInput(word_count=300), PageInput(page_number=2, word_count=0)),
                primary_certification_id="cert-a",
                additional_certification_ids=("cert-b",),
            ),
        ]

        totals = compute_quote_totals(
            synthetic_context, documents, [], RushFeeSelection(), DeliverySelection(), TAX_5, language=LANGUAGE,
        )

        assert totals.subtotal == sum(doc.line_total for doc in totals.documents)
        assert totals.subtotal == totals.translation_total + totals.certification_total
        assert totals.certification_total == Decimal("125.00")
        assert totals.total == totals.taxable_amount + totals.tax_amount
        assert totals.total_documents == 2
        assert totals.total_pages == 3
        assert totals.total_words == 750

    def test_language_multiplier_from_reference_data(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [], RushFeeSelection(), DeliverySelection(),
            Decimal("0"), language=LanguageSelection(language_id="lang-hard"),
        )

        assert totals.language_multiplier == Decimal("1.3")
        assert totals.per_page_rate == Decimal("130.00")
        assert totals.subtotal == Decimal("260.00")
        assert totals.language_multiplier_overridden is False

    def test_language_multiplier_override_wins(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [], RushFeeSelection(), DeliverySelection(),
            Decimal("0"), language=LanguageSelection(language_id="lang-std", multiplier_override=Decimal("1.5")),
        )

        assert totals.per_page_rate == Decimal("150.00")
        assert totals.language_multiplier_overridden is True

    def test_language_override_reset_restores_tier_rate(self, synthetic_context):
        overridden = LanguageSelection(language_id="lang-hard", multiplier_override=Decimal("1.5"))

        def rate_for(language):
            return compute_quote_totals(
                synthetic_context, [two_hundred_dollar_document()], [], RushFeeSelection(), DeliverySelection(),
                Decimal("0"), language=language,
            )

        before = rate_for(overridden)
        after = rate_for(overridden.reset_override())

        assert before.per_page_rate == Decimal("150.00")
        assert after.per_page_rate == Decimal("130.00")
        assert after.language_multiplier == Decimal("1.3")
        assert after.language_multiplier_overridden is False

    def test_quote_level_certifications_join_certification_total(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context,
            [two_hundred_dollar_document(primary_certification_id="cert-a")],
            [], RushFeeSelection(), DeliverySelection(), Decimal("0"),
            language=LANGUAGE,
            certifications=[
                QuoteCertification(certification_id="cert-b", quantity=2),
                QuoteCertification(certification_id="cert-a"),
            ],
        )

        assert totals.document_certification_total == Decimal("50.00")
        assert totals.quote_certification_total == Decimal("100.00")
        assert totals.computed_certification_total == Decimal("150.00")
        assert totals.certification_total == Decimal("150.00")
        assert totals.subtotal == Decimal("350.00")

    def test_no_documents_gives_zero_totals(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context, [], [], RushFeeSelection(turnaround=TurnaroundTier.RUSH),
            DeliverySelection(), TAX_5, language=LANGUAGE,
        )

        assert totals.subtotal == Decimal("0")
        assert totals.rush_fee == Decimal("0")
        assert totals.total == Decimal("0")

    def test_same_inputs_same_totals(self, synthetic_context):
        args = (
            synthetic_context,
            [two_hundred_dollar_document(primary_certification_id="cert-b")],
            [ten_percent_discount()],
            RushFeeSelection(turnaround=TurnaroundTier.SAME_DAY),
            DeliverySelection(physical_option_id="del-mail"),
            TAX_5,
        )

        first = compute_quote_totals(*args, language=LANGUAGE)
        second = compute_quote_totals(*args, language=LANGUAGE)

        assert first == second

    def test_stale_rush_override_surfaces_warning(self, synthetic_context):
        turnaround = RushFeeSelection(
            turnaround=TurnaroundTier.SAME_DAY,
            override=RushOverride(
                mode=OverrideMode.CUSTOM, value_type=ValueType.FIXED,
                value=Decimal("50"), turnaround=TurnaroundTier.RUSH,
            ),
        )

        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [], turnaround, DeliverySelection(),
            Decimal("0"), language=LANGUAGE,
        )

        assert totals.rush_fee == Decimal("200.00")
        assert len(totals.warnings) == 1

    def test_display_values_are_formatted(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [ten_percent_discount()],
            RushFeeSelection(), DeliverySelection(), TAX_5, language=LANGUAGE,
        )

        display = totals.display()

        assert display["total"] == "$189.00"
        assert display["adjustments_total"] == "-$20.00"


class TestQuoteOverrides:
    """Test suite for staff overrides."""

    def test_certification_total_override_replaces_computed(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context,
            [two_hundred_dollar_document(primary_certification_id="cert-a")],
            [], RushFeeSelection(), DeliverySelection(), Decimal("0"),
            QuoteOverrides(certification_total=Decimal("10.00")),
            language=LANGUAGE,
        )

        assert totals.certification_total == Decimal("10.00")
        assert totals.computed_certification_total == Decimal("50.00")
        assert totals.subtotal == Decimal("210.00")
        assert totals.overridden_fields == ("certification_total",)
        assert totals.is_overridden is True

    def test_rush_delivery_and_tax_overrides(self, synthetic_context):
        totals = compute_quote_totals(
            synthetic_context,
            [two_hundred_dollar_document()],
            [], RushFeeSelection(turnaround=TurnaroundTier.RUSH).with_custom_fee(ValueType.FIXED, Decimal("40")),
            DeliverySelection(physical_option_id="del-mail"),
            TAX_5,
            QuoteOverrides(delivery_fee=Decimal("0"), tax_rate=Decimal("0.13")),
            language=LANGUAGE,
        )

        assert totals.rush_fee == Decimal("40")
        assert totals.computed_rush_fee == Decimal("60.00")
        assert totals.delivery_fee == Decimal("0")
        assert totals.computed_delivery_fee == Decimal("15.00")
        assert totals.tax_rate == Decimal("0.13")
        assert totals.computed_tax_rate == TAX_5
        assert totals.taxable_amount == Decimal("240")
        assert totals.tax_amount == Decimal("31.20")
        assert totals.overridden_fields == ("rush_fee", "delivery_fee", "tax_rate")

    def test_custom_rush_fee_ignored_on_standard(self, synthetic_context):
        """Standard turnaround is always free, even with a custom fee entered for it."""
        turnaround = RushFeeSelection().with_custom_fee(ValueType.FIXED, Decimal("50"))

        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [], turnaround, DeliverySelection(),
            TAX_5, language=LANGUAGE,
        )

        assert totals.rush_fee == Decimal("0")
        assert totals.rush_fee_is_custom is False
        assert "rush_fee" not in totals.overridden_fields
        assert totals.total == Decimal("210.00")

    def test_custom_rush_fee_reset_after_tier_change(self, synthetic_context):
        """A $50 fee entered on rush does not survive a switch to same-day."""
        entered = RushFeeSelection(turnaround=TurnaroundTier.RUSH).with_custom_fee(ValueType.FIXED, Decimal("50"))
        switched, warning = entered.change_turnaround(TurnaroundTier.SAME_DAY)

        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [], switched, DeliverySelection(),
            Decimal("0"), language=LANGUAGE,
        )

        assert warning is not None
        assert warning.previous_value == Decimal("50")
        assert totals.rush_fee == Decimal("200.00")
        assert totals.computed_rush_fee == Decimal("200.00")
        assert totals.rush_fee_is_custom is False
        assert totals.overridden_fields == ()

    def test_stale_custom_rush_fee_is_not_charged(self, synthetic_context):
        entered = RushFeeSelection(turnaround=TurnaroundTier.RUSH).with_custom_fee(ValueType.FIXED, Decimal("50"))
        stale = entered.model_copy(update={"turnaround": TurnaroundTier.SAME_DAY})

        totals = compute_quote_totals(
            synthetic_context, [two_hundred_dollar_document()], [], stale, DeliverySelection(),
            Decimal("0"), language=LANGUAGE,
        )

        assert totals.rush_fee == Decimal("200.00")
        assert totals.warnings[0].previous_turnaround == TurnaroundTier.RUSH
        assert totals.warnings[0].current_turnaround == TurnaroundTier.SAME_DAY

    def test_negative_override_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError) as exc_info:
            compute_quote_totals(
                synthetic_context, [two_hundred_dollar_document()], [], RushFeeSelection(),
                DeliverySelection(), TAX_5, QuoteOverrides(delivery_fee=Decimal("-1")), language=LANGUAGE,
            )

        assert exc_info.value.field == "delivery_fee"


class TestQuoteErrors:
    """Test suite for out-of-domain inputs; no partial totals are returned."""

    def run(self, context, documents=None, delivery=None, tax_rate=TAX_5, language=LANGUAGE):
        return compute_quote_totals(
            context,
            documents if documents is not None else [two_hundred_dollar_document()],
            [],
            RushFeeSelection(),
            delivery or DeliverySelection(),
            tax_rate,
            language=language,
        )

    def test_unknown_language_is_configuration_error(self, synthetic_context):
        with pytest.raises(PricingConfigurationError) as exc_info:
            self.run(synthetic_context, language=LanguageSelection(language_id="lang-missing"))

        assert exc_info.value.field == "language_id"

    def test_language_override_out_of_bounds(self, synthetic_context):
        with pytest.raises(PricingValidationError):
            self.run(
                synthetic_context,
                language=LanguageSelection(language_id="lang-std", multiplier_override=Decimal("4")),
            )

    def test_inactive_certification_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError) as exc_info:
            self.run(synthetic_context, documents=[two_hundred_dollar_document(primary_certification_id="cert-old")])

        assert "primary_certification_id" in exc_info.value.field

    def test_unknown_additional_certification_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError):
            self.run(
                synthetic_context,
                documents=[two_hundred_dollar_document(additional_certification_ids=("cert-nope",))],
            )

    def test_unknown_quote_level_certification_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError) as exc_info:
            compute_quote_totals(
                synthetic_context, [two_hundred_dollar_document()], [], RushFeeSelection(), DeliverySelection(),
                TAX_5, language=LANGUAGE, certifications=[QuoteCertification(certification_id="cert-nope")],
            )

        assert exc_info.value.field == "certifications.certification_id"

    def test_unknown_complexity_rejected(self, synthetic_context):
        document = DocumentInput(id="doc-1", pages=(PageInput(word_count=100, complexity="impossible"),))

        with pytest.raises(PricingValidationError):
            self.run(synthetic_context, documents=[document])

    def test_duplicate_document_ids_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError):
            self.run(synthetic_context, documents=[two_hundred_dollar_document(), two_hundred_dollar_document()])

    def test_digital_option_as_physical_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError) as exc_info:
            self.run(synthetic_context, delivery=DeliverySelection(physical_option_id="del-email"))

        assert exc_info.value.field == "physical_option_id"

    def test_physical_option_as_digital_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError):
            self.run(synthetic_context, delivery=DeliverySelection(digital_option_ids=("del-mail",)))

    def test_repeated_digital_option_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError):
            self.run(synthetic_context, delivery=DeliverySelection(digital_option_ids=("del-signed", "del-signed")))

    def test_tax_rate_above_one_rejected(self, synthetic_context):
        with pytest.raises(PricingValidationError) as exc_info:
            self.run(synthetic_context, tax_rate=Decimal("1.5"))

        assert exc_info.value.field == "tax_rate"
