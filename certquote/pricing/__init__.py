"""
Pricing module for certified translation quotes.
"""

from .pricing_config import PricingConfig, load_pricing_config
from .reference_data import PricingContext, ReferenceData, load_reference_data
from .quote_calculator import compute_quote_totals

__all__ = [
    "PricingConfig",
    "load_pricing_config",
    "PricingContext",
    "ReferenceData",
    "load_reference_data",
    "compute_quote_totals",
]
