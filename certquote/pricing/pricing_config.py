"""
Pricing configuration loader for the quote pricing engine.

Loads tenant pricing settings from a flat key/value mapping (as stored in the
settings table) or from a YAML file, and validates them into an immutable
PricingConfig. Implements caching for the YAML loader.
"""

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from certquote.exceptions import PricingConfigurationError, PricingValidationError
from certquote.utils.amount_converter import AmountConverter

# Set up module logger
logger = logging.getLogger(__name__)

COMPLEXITY_PREFIX = "complexity_"

# Documented defaults for keys absent from the settings mapping
DEFAULT_SETTINGS: Dict[str, str] = {
    "base_rate": "65.00",
    "words_per_page": "225",
    "complexity_easy": "1.0",
    "complexity_medium": "1.15",
    "complexity_hard": "1.25",
    "min_billable_pages": "1.0",
    "rush_multiplier": "0.30",
    "same_day_multiplier": "2.00",
    "standard_days": "2",
    "rush_days": "1",
}

# Optional keys that keep the model default when absent
OPTIONAL_SETTINGS = ("rate_increment", "language_multiplier_min", "language_multiplier_max")

INTEGER_SETTINGS = ("words_per_page", "standard_days", "rush_days")

DEFAULT_COMPLEXITY_ALIASES: Dict[str, str] = {
    "low": "easy",
    "standard": "medium",
    "high": "hard",
    "complex": "hard",
}


class PricingConfig(BaseModel):
    """
    Tenant pricing configuration.

    Immutable per calculation; loaded once and cached for a session.

    Attributes:
        base_rate: Currency per billable page before the language multiplier.
        words_per_page: Divisor turning word counts into pages.
        complexity_multipliers: Canonical complexity tier -> multiplier.
            Example: {"easy": 1.0, "medium": 1.15, "hard": 1.25}
        complexity_aliases: Tenant vocabulary -> canonical tier.
            Example: {"standard": "medium", "complex": "hard"}
        min_billable_pages: Minimum billable pages for a non-empty document.
        rush_multiplier: Rush fee as a fraction of the subtotal.
        same_day_multiplier: Same-day price multiplier (fee is multiplier - 1).
        standard_days: Business days for a one-page standard order.
        rush_days: Business days for a one-page rush order.
        rate_increment: Per-page rates are rounded up to this increment.
        language_multiplier_min: Lowest accepted language multiplier.
        language_multiplier_max: Highest accepted language multiplier.
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        frozen=True,  # Make immutable after creation
    )

    base_rate: Decimal = Field(gt=0)
    words_per_page: int = Field(gt=0)
    complexity_multipliers: Dict[str, Decimal]
    complexity_aliases: Dict[str, str] = Field(default_factory=dict)
    min_billable_pages: Decimal = Field(default=Decimal("1.0"), ge=0)
    rush_multiplier: Decimal = Field(default=Decimal("0.30"), ge=0)
    same_day_multiplier: Decimal = Field(default=Decimal("2.00"), ge=1)
    standard_days: int = Field(default=2, ge=0)
    rush_days: int = Field(default=1, ge=0)
    rate_increment: Decimal = Field(default=Decimal("2.50"), gt=0)
    language_multiplier_min: Decimal = Field(default=Decimal("0.5"), gt=0)
    language_multiplier_max: Decimal = Field(default=Decimal("3.0"), gt=0)

    @model_validator(mode="after")
    def check_consistency(self) -> "PricingConfig":
        if not self.complexity_multipliers:
            raise ValueError("At least one complexity multiplier is required")
        for tier, multiplier in self.complexity_multipliers.items():
            if multiplier <= 0:
                raise ValueError(f"Complexity multiplier for '{tier}' must be positive, got {multiplier}")
        for alias, target in self.complexity_aliases.items():
            if target not in self.complexity_multipliers:
                raise ValueError(f"Complexity alias '{alias}' points to unknown tier '{target}'")
        if self.language_multiplier_min > self.language_multiplier_max:
            raise ValueError("language_multiplier_min cannot exceed language_multiplier_max")
        if self.rush_days > self.standard_days:
            raise ValueError("rush_days cannot exceed standard_days")
        return self

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, Any],
        complexity_aliases: Optional[Mapping[str, str]] = None,
    ) -> "PricingConfig":
        """
        Build a config from a flat key/value settings mapping.

        Keys absent from the mapping take the documented defaults. Keys that
        are present but unparseable raise PricingConfigurationError naming
        the key; they are never replaced by a guessed default. Every
        `complexity_<tier>` key defines a complexity tier, so tenants can
        extend the vocabulary.

        Example:
            >>> config = PricingConfig.from_settings({"base_rate": "70"})
            >>> config.base_rate
            Decimal('70')
            >>> config.words_per_page
            225
        """
        values: Dict[str, Any] = {}
        complexity: Dict[str, Decimal] = {}

        keys = list(DEFAULT_SETTINGS.keys()) + [
            key for key in settings.keys()
            if key.startswith(COMPLEXITY_PREFIX) and key not in DEFAULT_SETTINGS
        ]

        for key in keys:
            if key in settings and settings[key] is not None:
                raw = settings[key]
            elif key not in DEFAULT_SETTINGS:
                continue
            else:
                raw = DEFAULT_SETTINGS[key]
                logger.info(f"Pricing setting '{key}' not set, using default {raw}")

            parsed = _parse_setting(key, raw)

            if key.startswith(COMPLEXITY_PREFIX):
                complexity[key[len(COMPLEXITY_PREFIX):].lower()] = parsed
            else:
                values[key] = parsed

        for key in OPTIONAL_SETTINGS:
            if settings.get(key) is not None:
                values[key] = _parse_setting(key, settings[key])

        ignored = [
            key for key in settings.keys()
            if key not in DEFAULT_SETTINGS and key not in OPTIONAL_SETTINGS
            and not key.startswith(COMPLEXITY_PREFIX)
        ]
        if ignored:
            logger.debug(f"Ignoring non-pricing settings: {ignored}")

        aliases = dict(DEFAULT_COMPLEXITY_ALIASES if complexity_aliases is None else complexity_aliases)
        # Aliases for tiers this tenant does not define are dropped
        aliases = {
            alias.lower(): target.lower() for alias, target in aliases.items()
            if target.lower() in complexity
        }

        try:
            config = cls(complexity_multipliers=complexity, complexity_aliases=aliases, **values)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or None
            logger.error(f"Pricing configuration validation failed: {e}")
            raise PricingConfigurationError(
                f"Invalid pricing configuration: {first['msg']}",
                field=field,
                original_error=e,
            ) from e

        logger.debug(
            f"Pricing config built: base_rate={config.base_rate}, "
            f"words_per_page={config.words_per_page}, tiers={sorted(config.complexity_multipliers)}"
        )
        return config


def _parse_setting(key: str, raw: Any):
    """Parse one settings value, raising PricingConfigurationError on bad input."""
    try:
        value = AmountConverter.to_decimal(raw)
    except (TypeError, ValueError) as e:
        error_msg = f"Pricing setting '{key}' has invalid value: {raw!r}"
        logger.error(error_msg)
        raise PricingConfigurationError(error_msg, field=key, original_error=e) from e

    if key in INTEGER_SETTINGS:
        if value != value.to_integral_value():
            error_msg = f"Pricing setting '{key}' must be a whole number, got {raw!r}"
            logger.error(error_msg)
            raise PricingConfigurationError(error_msg, field=key)
        return int(value)

    return value


def resolve_complexity_multiplier(tier: Optional[str], config: PricingConfig) -> Decimal:
    """
    Map a tenant complexity tier name to exactly one multiplier.

    Matching is case-insensitive and alias-aware ("standard" -> "medium").

    Raises:
        PricingValidationError: If the tier is empty or unknown.

    Example:
        >>> resolve_complexity_multiplier("Standard", config)
        Decimal('1.15')
    """
    if tier is None or not str(tier).strip():
        raise PricingValidationError("Complexity tier is required", field="complexity")

    key = str(tier).strip().lower()
    key = config.complexity_aliases.get(key, key)

    try:
        return config.complexity_multipliers[key]
    except KeyError:
        available = ", ".join(sorted(set(config.complexity_multipliers) | set(config.complexity_aliases)))
        error_msg = f"Unknown complexity tier: '{tier}'. Available tiers: {available}"
        logger.error(error_msg)
        raise PricingValidationError(error_msg, field="complexity") from None


def canonical_complexity(tier: str, config: PricingConfig) -> str:
    """Return the canonical tier name for a tenant tier (aliases resolved)."""
    key = str(tier).strip().lower()
    return config.complexity_aliases.get(key, key)


@lru_cache(maxsize=1)
def load_pricing_config(path: str = "pricing-settings.yaml") -> PricingConfig:
    """
    Load and validate pricing configuration from YAML file.

    This function is cached using @lru_cache to avoid re-loading the YAML file
    on every call. The cache is invalidated when the path changes.

    The file holds a flat `settings` mapping and an optional
    `complexity_aliases` mapping.

    Raises:
        FileNotFoundError: If configuration file doesn't exist at the specified path.
        yaml.YAMLError: If YAML file contains syntax errors.
        PricingConfigurationError: If the settings are missing or invalid.

    Example:
        >>> config = load_pricing_config("pricing-settings.yaml")
        >>> config.base_rate
        Decimal('65.00')
    """
    # Resolve path (handles both absolute and relative paths)
    config_path = Path(path).resolve()

    logger.info(f"Loading pricing configuration from: {config_path}")

    if not config_path.exists():
        logger.error(f"Pricing configuration file not found: {config_path}")
        raise FileNotFoundError(f"Pricing configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML file: {e}")
        raise yaml.YAMLError(f"Invalid YAML format in {config_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("settings"), dict):
        error_msg = f"Pricing configuration {config_path} must contain a 'settings' mapping"
        logger.error(error_msg)
        raise PricingConfigurationError(error_msg, field="settings")

    aliases = data.get("complexity_aliases")
    if aliases is not None and not isinstance(aliases, dict):
        raise PricingConfigurationError(
            f"'complexity_aliases' in {config_path} must be a mapping",
            field="complexity_aliases",
        )

    config = PricingConfig.from_settings(data["settings"], complexity_aliases=aliases)
    logger.info(
        f"Successfully validated pricing config: base_rate={config.base_rate}, "
        f"{len(config.complexity_multipliers)} complexity tiers"
    )
    return config
