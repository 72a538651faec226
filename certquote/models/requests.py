"""
Request models for the CertQuote pricing API.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

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


class PageRequest(BaseModel):
    """One analysed page."""
    page_number: int = Field(1, ge=1, description="Page number within the document")
    word_count: int = Field(..., ge=0, description="Words on the page")
    complexity: Optional[str] = Field(None, description="Complexity tier (easy, medium, hard or an alias)")


class DocumentRequest(BaseModel):
    """A document with its pages and certification selections."""
    id: str = Field(..., min_length=1, description="Document identifier, unique within the quote")
    label: Optional[str] = Field(None, description="Document label shown on the quote")
    complexity: Optional[str] = Field(None, description="Default complexity for pages without their own tier")
    pages: List[PageRequest] = Field(default_factory=list, description="Analysed pages")
    primary_certification_id: Optional[str] = Field(None, description="Primary certification type id")
    additional_certification_ids: List[str] = Field(default_factory=list, description="Additional certification ids")

    def to_input(self) -> DocumentInput:
        return DocumentInput(
            id=self.id,
            label=self.label,
            complexity=self.complexity,
            pages=tuple(PageInput(**page.model_dump()) for page in self.pages),
            primary_certification_id=self.primary_certification_id,
            additional_certification_ids=tuple(self.additional_certification_ids),
        )


class AdjustmentRequest(BaseModel):
    """A discount or surcharge entered by staff."""
    id: Optional[str] = Field(None, description="Adjustment id (generated when omitted)")
    kind: AdjustmentKind = Field(..., description="discount or surcharge")
    value_type: ValueType = Field(..., description="percentage or fixed")
    value: Decimal = Field(..., gt=0, description="Percentage points or fixed amount")
    reason: str = Field(..., min_length=1, max_length=500, description="Audit reason")
    calculated_amount: Optional[Decimal] = Field(None, description="Amount snapshotted at insertion")

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError("Adjustment reason cannot be empty or whitespace only")
        return v.strip()


class RushRequest(BaseModel):
    """Turnaround tier and rush fee override state."""
    turnaround: TurnaroundTier = Field(TurnaroundTier.STANDARD, description="Turnaround tier")
    override_mode: OverrideMode = Field(OverrideMode.AUTO, description="auto or custom")
    override_value_type: ValueType = Field(ValueType.PERCENTAGE, description="Custom fee value type")
    override_value: Decimal = Field(Decimal("0"), ge=0, description="Custom fee value")
    override_turnaround: Optional[TurnaroundTier] = Field(
        None, description="Tier the custom fee was entered for; required for custom fees and echoed back unchanged"
    )

    @model_validator(mode="after")
    def validate_custom_turnaround(self):
        if self.override_mode == OverrideMode.CUSTOM and self.override_turnaround is None:
            raise ValueError("override_turnaround is required when override_mode is custom")
        return self

    def to_selection(self) -> RushFeeSelection:
        override = RushOverride(
            mode=self.override_mode,
            value_type=self.override_value_type,
            value=self.override_value,
            turnaround=self.override_turnaround,
        )
        return RushFeeSelection(turnaround=self.turnaround, override=override)


class QuoteCertificationRequest(BaseModel):
    """A certification ordered for the whole quote."""
    certification_id: str = Field(..., min_length=1, description="Certification type id")
    quantity: int = Field(1, ge=1, description="Number of certificates")


class OverridesRequest(BaseModel):
    """Staff overrides replacing computed quote values."""
    certification_total: Optional[Decimal] = Field(None, ge=0)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)


class QuotePricingRequest(BaseModel):
    """Request model for a quote pricing preview."""
    language_id: str = Field(..., min_length=1, description="Source language id")
    language_multiplier_override: Optional[Decimal] = Field(
        None, gt=0, description="Quote-level language multiplier override"
    )
    documents: List[DocumentRequest] = Field(default_factory=list, description="Documents in the quote")
    certifications: List[QuoteCertificationRequest] = Field(
        default_factory=list, description="Quote-level certifications"
    )
    adjustments: List[AdjustmentRequest] = Field(default_factory=list, description="Adjustment ledger entries")
    rush: RushRequest = Field(default_factory=RushRequest, description="Turnaround and rush fee state")
    physical_delivery_option_id: Optional[str] = Field(None, description="Physical delivery option id")
    digital_delivery_option_ids: List[str] = Field(default_factory=list, description="Digital add-on ids")
    tax_rate_id: Optional[str] = Field(None, description="Tax rate id from reference data")
    overrides: Optional[OverridesRequest] = Field(None, description="Staff overrides")

    def to_language(self) -> LanguageSelection:
        return LanguageSelection(
            language_id=self.language_id, multiplier_override=self.language_multiplier_override
        )

    def to_documents(self) -> List[DocumentInput]:
        return [document.to_input() for document in self.documents]

    def to_certifications(self) -> List[QuoteCertification]:
        return [QuoteCertification(**certification.model_dump()) for certification in self.certifications]

    def to_adjustments(self) -> List[Adjustment]:
        return [
            Adjustment(
                id=adjustment.id or f"adj-{index + 1}",
                kind=adjustment.kind,
                value_type=adjustment.value_type,
                value=adjustment.value,
                reason=adjustment.reason,
                calculated_amount=adjustment.calculated_amount,
            )
            for index, adjustment in enumerate(self.adjustments)
        ]

    def to_delivery(self) -> DeliverySelection:
        return DeliverySelection(
            physical_option_id=self.physical_delivery_option_id,
            digital_option_ids=tuple(self.digital_delivery_option_ids),
        )

    def to_overrides(self) -> QuoteOverrides:
        if self.overrides is None:
            return QuoteOverrides()
        return QuoteOverrides(**self.overrides.model_dump())


class TurnaroundEstimateRequest(BaseModel):
    """Request model for a delivery date estimate."""
    turnaround: TurnaroundTier = Field(TurnaroundTier.STANDARD, description="Turnaround tier")
    page_count: int = Field(..., ge=1, description="Total pages in the order")
    start_date: Optional[date] = Field(None, description="Order date (defaults to today)")
