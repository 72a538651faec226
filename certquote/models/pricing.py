"""
Domain models for quote pricing.

Inputs describe what staff and the analysis pipeline supplied (documents,
pages, adjustments, turnaround and delivery choices, overrides). Results are
the derived totals; none of them are authoritative until the server-side
recalculation persists them.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from certquote.utils.amount_converter import AmountConverter


class AdjustmentKind(str, Enum):
    """Adjustment direction."""
    DISCOUNT = "discount"
    SURCHARGE = "surcharge"


class ValueType(str, Enum):
    """How an adjustment or custom rush fee value is interpreted."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TurnaroundTier(str, Enum):
    """Delivery-speed tier driving the rush surcharge."""
    STANDARD = "standard"
    RUSH = "rush"
    SAME_DAY = "same_day"


class OverrideMode(str, Enum):
    """Rush fee override sub-mode."""
    AUTO = "auto"
    CUSTOM = "custom"


# ============================================================================
# Inputs
# ============================================================================

class PageInput(BaseModel):
    """One analysed page of a document."""

    model_config = ConfigDict(frozen=True)

    page_number: int = 1
    word_count: int
    complexity: Optional[str] = None


class DocumentInput(BaseModel):
    """
    A document and its certification selections.

    `complexity` applies to every page that does not carry its own tier.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: Optional[str] = None
    pages: Tuple[PageInput, ...] = ()
    complexity: Optional[str] = None
    primary_certification_id: Optional[str] = None
    additional_certification_ids: Tuple[str, ...] = ()


class LanguageSelection(BaseModel):
    """Source language of a quote with its optional quote-level multiplier override."""

    model_config = ConfigDict(frozen=True)

    language_id: str
    multiplier_override: Optional[Decimal] = None

    def reset_override(self) -> "LanguageSelection":
        """Clear the override so the language tier default applies again."""
        return self.model_copy(update={"multiplier_override": None})


class Adjustment(BaseModel):
    """
    A staff-entered discount or surcharge.

    `calculated_amount` is the snapshot taken at insertion for fixed entries;
    percentage entries leave it unset and float with the subtotal.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: AdjustmentKind
    value_type: ValueType
    value: Decimal
    reason: str
    calculated_amount: Optional[Decimal] = None


class OverrideConflictWarning(BaseModel):
    """Non-fatal notice that a manual override was reset by a structural change."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    previous_value: Optional[Decimal] = None
    previous_turnaround: Optional[TurnaroundTier] = None
    current_turnaround: Optional[TurnaroundTier] = None


class RushOverride(BaseModel):
    """Staff override of the rush fee, remembered with the tier it was entered for."""

    model_config = ConfigDict(frozen=True)

    mode: OverrideMode = OverrideMode.AUTO
    value_type: ValueType = ValueType.PERCENTAGE
    value: Decimal = Decimal("0")
    turnaround: Optional[TurnaroundTier] = None

    @property
    def is_custom(self) -> bool:
        return self.mode == OverrideMode.CUSTOM


class RushFeeSelection(BaseModel):
    """Selected turnaround tier and rush fee override state."""

    model_config = ConfigDict(frozen=True)

    turnaround: TurnaroundTier = TurnaroundTier.STANDARD
    override: RushOverride = Field(default_factory=RushOverride)

    def with_custom_fee(self, value_type: ValueType, value: Decimal) -> "RushFeeSelection":
        """Enter a custom rush fee for the current tier."""
        return self.model_copy(update={
            "override": RushOverride(
                mode=OverrideMode.CUSTOM,
                value_type=value_type,
                value=value,
                turnaround=self.turnaround,
            )
        })

    def change_turnaround(
        self, turnaround: TurnaroundTier
    ) -> Tuple["RushFeeSelection", Optional[OverrideConflictWarning]]:
        """
        Switch turnaround tier, resetting the override back to auto.

        Returns the new selection and, when a custom fee was discarded, the
        warning to surface next to the recalculated totals.
        """
        warning = None
        if self.override.is_custom and turnaround != self.turnaround:
            warning = OverrideConflictWarning(
                field="rush_fee",
                message=(
                    f"Custom rush fee entered for '{self.turnaround.value}' was reset to auto "
                    f"after switching to '{turnaround.value}'"
                ),
                previous_value=self.override.value,
                previous_turnaround=self.turnaround,
                current_turnaround=turnaround,
            )
        if turnaround == self.turnaround:
            return self, None
        return RushFeeSelection(turnaround=turnaround), warning


class QuoteCertification(BaseModel):
    """A certification ordered once for the whole quote, priced per unit."""

    model_config = ConfigDict(frozen=True)

    certification_id: str
    quantity: int = Field(1, ge=1)


class DeliverySelection(BaseModel):
    """At most one physical delivery option plus digital add-ons."""

    model_config = ConfigDict(frozen=True)

    physical_option_id: Optional[str] = None
    digital_option_ids: Tuple[str, ...] = ()


class QuoteOverrides(BaseModel):
    """
    Quote-level manual values that replace the computed ones for a run.

    The rush fee is overridden through `RushFeeSelection` so the value stays
    tied to the tier it was entered for.
    """

    model_config = ConfigDict(frozen=True)

    certification_total: Optional[Decimal] = None
    delivery_fee: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = None

    @property
    def overridden_fields(self) -> Tuple[str, ...]:
        return tuple(
            name for name in ("certification_total", "delivery_fee", "tax_rate")
            if getattr(self, name) is not None
        )


# ============================================================================
# Results
# ============================================================================

class PageBilling(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_number: int
    word_count: int
    complexity: str
    complexity_multiplier: Decimal
    billable_pages: Decimal


class DocumentBilling(BaseModel):
    """Billing result for one document; `min_applied` is informational only."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    label: Optional[str] = None
    pages: Tuple[PageBilling, ...] = ()
    total_words: int
    raw_billable_pages: Decimal
    billable_pages: Decimal
    min_applied: bool
    per_page_rate: Decimal
    translation_cost: Decimal
    certification_cost: Decimal
    line_total: Decimal


class AdjustmentLine(BaseModel):
    """An adjustment resolved against a subtotal."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: AdjustmentKind
    value_type: ValueType
    value: Decimal
    reason: str
    calculated_amount: Decimal
    signed_amount: Decimal


class RushFeeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    turnaround: TurnaroundTier
    fee: Decimal
    computed_fee: Decimal
    is_custom: bool
    warnings: Tuple[OverrideConflictWarning, ...] = ()


class QuoteTotals(BaseModel):
    """
    Full pricing breakdown of a quote.

    `computed_*` fields always hold the engine's own values so the UI can
    offer them as defaults next to any staff override.
    """

    model_config = ConfigDict(frozen=True)

    documents: Tuple[DocumentBilling, ...] = ()
    adjustments: Tuple[AdjustmentLine, ...] = ()

    language_id: str
    language_multiplier: Decimal
    language_multiplier_overridden: bool = False
    per_page_rate: Decimal

    total_documents: int
    total_pages: int
    total_words: int
    total_billable_pages: Decimal

    translation_total: Decimal
    document_certification_total: Decimal
    quote_certification_total: Decimal = Decimal("0")
    certification_total: Decimal
    subtotal: Decimal
    surcharge_total: Decimal
    discount_total: Decimal
    adjustments_total: Decimal

    turnaround: TurnaroundTier
    rush_fee: Decimal
    rush_fee_is_custom: bool = False
    delivery_fee: Decimal
    taxable_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal

    computed_certification_total: Decimal
    computed_rush_fee: Decimal
    computed_delivery_fee: Decimal
    computed_tax_rate: Decimal

    overridden_fields: Tuple[str, ...] = ()
    warnings: Tuple[OverrideConflictWarning, ...] = ()

    @property
    def is_overridden(self) -> bool:
        return bool(self.overridden_fields) or self.rush_fee_is_custom

    def display(self) -> Dict[str, str]:
        """Currency values rounded to the cent for presentation."""
        fields = (
            "per_page_rate", "translation_total", "certification_total", "subtotal",
            "surcharge_total", "discount_total", "adjustments_total", "rush_fee",
            "delivery_fee", "taxable_amount", "tax_amount", "total",
        )
        return {name: AmountConverter.format_currency(getattr(self, name)) for name in fields}
