"""
Data models for the CertQuote pricing service.
"""

from .pricing import (
    AdjustmentKind,
    ValueType,
    TurnaroundTier,
    OverrideMode,
    PageInput,
    DocumentInput,
    LanguageSelection,
    Adjustment,
    OverrideConflictWarning,
    RushOverride,
    RushFeeSelection,
    DeliverySelection,
    QuoteOverrides,
    PageBilling,
    DocumentBilling,
    AdjustmentLine,
    RushFeeResult,
    QuoteTotals,
)

__all__ = [
    "AdjustmentKind",
    "ValueType",
    "TurnaroundTier",
    "OverrideMode",
    "PageInput",
    "DocumentInput",
    "LanguageSelection",
    "Adjustment",
    "OverrideConflictWarning",
    "RushOverride",
    "RushFeeSelection",
    "DeliverySelection",
    "QuoteOverrides",
    "PageBilling",
    "DocumentBilling",
    "AdjustmentLine",
    "RushFeeResult",
    "QuoteTotals",
]
