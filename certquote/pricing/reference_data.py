"""
Reference data for quote pricing: languages, certification types, delivery
options, tax rates and holidays.

Reference tables are loaded once at session start and treated as read-only.
"""

import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from certquote.exceptions import PricingConfigurationError, PricingValidationError
from certquote.pricing.pricing_config import PricingConfig

logger = logging.getLogger(__name__)


class DeliveryType(str, Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"


class Language(BaseModel):
    """A source language and its pricing tier multiplier."""

    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    name: str
    tier: int = Field(ge=1, le=3)
    multiplier: Decimal = Field(gt=0)


class CertificationType(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    name: str
    price: Decimal = Field(ge=0)
    is_active: bool = True


class DeliveryOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    name: str
    price: Decimal = Field(ge=0)
    delivery_type: DeliveryType = DeliveryType.DIGITAL
    requires_address: bool = False
    is_active: bool = True


class TaxRate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    region: str
    rate: Decimal = Field(ge=0, le=1)


class ReferenceData(BaseModel):
    """Read-only reference tables with id lookups."""

    model_config = ConfigDict(frozen=True)

    languages: Tuple[Language, ...] = ()
    certification_types: Tuple[CertificationType, ...] = ()
    delivery_options: Tuple[DeliveryOption, ...] = ()
    tax_rates: Tuple[TaxRate, ...] = ()
    holidays: Tuple[date, ...] = ()

    def get_language(self, language_id: str) -> Language:
        """
        Raises:
            PricingConfigurationError: If the language id cannot be resolved.
        """
        for language in self.languages:
            if language.id == language_id:
                return language
        error_msg = f"Language '{language_id}' not found in reference data"
        logger.error(error_msg)
        raise PricingConfigurationError(error_msg, field="language_id")

    def get_certification_price(self, certification_id: str, field: str = "certification_id") -> Decimal:
        """
        Look up the fixed price of an active certification type.

        Raises:
            PricingValidationError: If the id is unknown or inactive.
        """
        for certification in self.certification_types:
            if certification.id == certification_id:
                if not certification.is_active:
                    break
                return certification.price
        error_msg = f"Certification '{certification_id}' is not in the active certification set"
        logger.error(error_msg)
        raise PricingValidationError(error_msg, field=field)

    def get_delivery_option(self, option_id: str, field: str = "delivery_option_id") -> DeliveryOption:
        """
        Raises:
            PricingValidationError: If the id is unknown or inactive.
        """
        for option in self.delivery_options:
            if option.id == option_id and option.is_active:
                return option
        error_msg = f"Delivery option '{option_id}' is not an active delivery option"
        logger.error(error_msg)
        raise PricingValidationError(error_msg, field=field)

    def get_tax_rate(self, tax_rate_id: str) -> TaxRate:
        """
        Raises:
            PricingConfigurationError: If the tax rate id cannot be resolved.
        """
        for tax_rate in self.tax_rates:
            if tax_rate.id == tax_rate_id:
                return tax_rate
        error_msg = f"Tax rate '{tax_rate_id}' not found in reference data"
        logger.error(error_msg)
        raise PricingConfigurationError(error_msg, field="tax_rate_id")

    def active_certification_types(self) -> List[CertificationType]:
        return [c for c in self.certification_types if c.is_active]

    def active_delivery_options(self) -> List[DeliveryOption]:
        return [o for o in self.delivery_options if o.is_active]


class PricingContext(BaseModel):
    """
    Configuration and reference data passed explicitly into every calculation.
    """

    model_config = ConfigDict(frozen=True)

    config: PricingConfig
    reference: ReferenceData = Field(default_factory=ReferenceData)


@lru_cache(maxsize=1)
def load_reference_data(path: str = "reference-data.yaml") -> ReferenceData:
    """
    Load and validate reference data from YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        yaml.YAMLError: If the file contains syntax errors.
        PricingConfigurationError: If the structure is invalid.
    """
    data_path = Path(path).resolve()

    logger.info(f"Loading reference data from: {data_path}")

    if not data_path.exists():
        logger.error(f"Reference data file not found: {data_path}")
        raise FileNotFoundError(f"Reference data file not found: {data_path}")

    try:
        with open(data_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML file: {e}")
        raise yaml.YAMLError(f"Invalid YAML format in {data_path}: {e}") from e

    try:
        reference = ReferenceData(**data)
    except (TypeError, ValidationError) as e:
        logger.error(f"Reference data validation failed: {e}")
        raise PricingConfigurationError(
            f"Invalid reference data in {data_path}: {e}", original_error=e
        ) from e

    _check_unique_ids(reference)

    logger.info(
        f"Successfully loaded reference data: {len(reference.languages)} languages, "
        f"{len(reference.certification_types)} certification types, "
        f"{len(reference.delivery_options)} delivery options, "
        f"{len(reference.tax_rates)} tax rates, {len(reference.holidays)} holidays"
    )
    return reference


def _check_unique_ids(reference: ReferenceData) -> None:
    tables: Dict[str, Tuple] = {
        "languages": reference.languages,
        "certification_types": reference.certification_types,
        "delivery_options": reference.delivery_options,
        "tax_rates": reference.tax_rates,
    }
    for table, rows in tables.items():
        seen: Dict[str, int] = {}
        for row in rows:
            seen[row.id] = seen.get(row.id, 0) + 1
        duplicates = [row_id for row_id, count in seen.items() if count > 1]
        if duplicates:
            raise PricingConfigurationError(
                f"Duplicate ids in {table}: {duplicates}", field=table
            )
