"""
Custom exceptions for the CertQuote pricing service.
"""

from .pricing_exceptions import (
    PricingError,
    PricingConfigurationError,
    PricingValidationError,
    RecalculationError,
    pricing_error_to_http_exception,
)

__all__ = [
    "PricingError",
    "PricingConfigurationError",
    "PricingValidationError",
    "RecalculationError",
    "pricing_error_to_http_exception",
]
