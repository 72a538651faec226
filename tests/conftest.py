"""
Pytest configuration for the CertQuote pricing tests.

Environment variables are set before any certquote import so the strict
Settings class can be built without a .env file.
"""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
PRICING_SETTINGS_PATH = REPO_ROOT / "pricing-settings.yaml"
REFERENCE_DATA_PATH = REPO_ROOT / "reference-data.yaml"

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
os.environ.setdefault("PRICING_SETTINGS_PATH", str(PRICING_SETTINGS_PATH))
os.environ.setdefault("REFERENCE_DATA_PATH", str(REFERENCE_DATA_PATH))
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "certquote-tests", "certquote.log"))

from certquote.pricing.pricing_config import PricingConfig, load_pricing_config  # noqa: E402
from certquote.pricing.reference_data import (  # noqa: E402
    CertificationType,
    DeliveryOption,
    DeliveryType,
    Language,
    PricingContext,
    ReferenceData,
    TaxRate,
    load_reference_data,
)
from certquote.services.pricing_service import PricingService  # noqa: E402


@pytest.fixture
def config() -> PricingConfig:
    """Pricing config loaded from the repository pricing-settings.yaml."""
    return load_pricing_config(str(PRICING_SETTINGS_PATH))


@pytest.fixture
def default_config() -> PricingConfig:
    """Pricing config built only from documented defaults."""
    return PricingConfig.from_settings({})


@pytest.fixture
def reference() -> ReferenceData:
    return load_reference_data(str(REFERENCE_DATA_PATH))


@pytest.fixture
def context(config, reference) -> PricingContext:
    return PricingContext(config=config, reference=reference)


@pytest.fixture
def synthetic_reference() -> ReferenceData:
    """Small reference tables with round numbers for hand-checked totals."""
    return ReferenceData(
        languages=(
            Language(id="lang-std", code="xx", name="Standard", tier=1, multiplier=Decimal("1.0")),
            Language(id="lang-hard", code="yy", name="Scarce", tier=3, multiplier=Decimal("1.3")),
        ),
        certification_types=(
            CertificationType(id="cert-a", code="a", name="Notarization", price=Decimal("50.00")),
            CertificationType(id="cert-b", code="b", name="Apostille", price=Decimal("25.00")),
            CertificationType(id="cert-old", code="old", name="Retired", price=Decimal("10.00"), is_active=False),
        ),
        delivery_options=(
            DeliveryOption(id="del-mail", code="mail", name="Mail", price=Decimal("15.00"),
                           delivery_type=DeliveryType.PHYSICAL, requires_address=True),
            DeliveryOption(id="del-email", code="email", name="Email", price=Decimal("0.00"),
                           delivery_type=DeliveryType.DIGITAL),
            DeliveryOption(id="del-signed", code="signed", name="Signed PDF", price=Decimal("10.00"),
                           delivery_type=DeliveryType.DIGITAL),
        ),
        tax_rates=(
            TaxRate(id="tax-5", region="AB", rate=Decimal("0.05")),
            TaxRate(id="tax-0", region="EXEMPT", rate=Decimal("0")),
        ),
    )


@pytest.fixture
def synthetic_context(synthetic_reference) -> PricingContext:
    """Base rate 100 so 2.0 billable pages at multiplier 1.0 cost exactly $200."""
    config = PricingConfig.from_settings({"base_rate": "100"})
    return PricingContext(config=config, reference=synthetic_reference)


@pytest.fixture
def pricing_service(context) -> PricingService:
    return PricingService(context=context, default_tax_rate_id="tax-ab")
