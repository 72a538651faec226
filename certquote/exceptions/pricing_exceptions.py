"""
Pricing specific exceptions and error handling.
"""

from typing import Optional
from fastapi import HTTPException
import logging


class PricingError(Exception):
    """Base class for pricing related errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.field = field
        self.original_error = original_error
        super().__init__(self.message)


class PricingConfigurationError(PricingError):
    """Raised when a required rate, multiplier or reference id is missing or unresolvable."""

    def __init__(self, message: str = "Pricing configuration is invalid", field: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, 500, field, original_error)


class PricingValidationError(PricingError):
    """Raised when caller-supplied quote data is out of domain."""

    def __init__(self, message: str = "Pricing input is invalid", field: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, 422, field, original_error)


class RecalculationError(PricingError):
    """Raised when the authoritative recalculation endpoint fails."""

    def __init__(self, message: str = "Authoritative recalculation failed", status_code: int = 502,
                 original_error: Optional[Exception] = None):
        super().__init__(message, status_code, None, original_error)


def pricing_error_to_http_exception(error: PricingError) -> HTTPException:
    """
    Convert PricingError to FastAPI HTTPException.

    Args:
        error: PricingError instance

    Returns:
        HTTPException: FastAPI compatible exception
    """
    if error.status_code >= 500:
        logging.error(f"Pricing error ({type(error).__name__}): {error.message}")
    else:
        logging.warning(f"Pricing error ({type(error).__name__}): {error.message}")

    if isinstance(error, PricingValidationError):
        error_type = "pricing_validation_error"
    elif isinstance(error, PricingConfigurationError):
        error_type = "pricing_configuration_error"
    elif isinstance(error, RecalculationError):
        error_type = "recalculation_error"
    else:
        error_type = "pricing_error"

    return HTTPException(
        status_code=error.status_code,
        detail={
            "error": error_type,
            "message": error.message,
            "field": error.field,
            "blocks_finalization": True,
            "retry_recommended": isinstance(error, RecalculationError),
        }
    )
