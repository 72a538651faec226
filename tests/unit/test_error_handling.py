"""
Unit tests for pricing exceptions and their HTTP mapping.
"""

from certquote.exceptions import (
    PricingConfigurationError,
    PricingError,
    PricingValidationError,
    RecalculationError,
    pricing_error_to_http_exception,
)


class TestPricingErrors:
    """Test the exception hierarchy."""

    def test_validation_error_defaults(self):
        error = PricingValidationError("Word count cannot be negative", field="word_count")

        assert isinstance(error, PricingError)
        assert error.status_code == 422
        assert error.field == "word_count"
        assert str(error) == "Word count cannot be negative"

    def test_configuration_error_is_server_side(self):
        error = PricingConfigurationError("Language 'x' not found", field="language_id")

        assert error.status_code == 500

    def test_recalculation_error_keeps_original(self):
        original = ConnectionError("refused")
        error = RecalculationError("Recalculation request failed", original_error=original)

        assert error.status_code == 502
        assert error.original_error is original
        assert error.field is None


class TestHttpMapping:
    """Test conversion to FastAPI HTTPException."""

    def test_validation_error_mapping(self):
        http_error = pricing_error_to_http_exception(
            PricingValidationError("Unknown complexity tier", field="complexity")
        )

        assert http_error.status_code == 422
        assert http_error.detail["error"] == "pricing_validation_error"
        assert http_error.detail["field"] == "complexity"
        assert http_error.detail["blocks_finalization"] is True
        assert http_error.detail["retry_recommended"] is False

    def test_configuration_error_mapping(self):
        http_error = pricing_error_to_http_exception(PricingConfigurationError("Tax rate missing"))

        assert http_error.status_code == 500
        assert http_error.detail["error"] == "pricing_configuration_error"

    def test_recalculation_error_recommends_retry(self):
        http_error = pricing_error_to_http_exception(RecalculationError("timed out", status_code=504))

        assert http_error.status_code == 504
        assert http_error.detail["error"] == "recalculation_error"
        assert http_error.detail["retry_recommended"] is True

    def test_base_error_mapping(self):
        http_error = pricing_error_to_http_exception(PricingError("Something failed"))

        assert http_error.status_code == 500
        assert http_error.detail["error"] == "pricing_error"
