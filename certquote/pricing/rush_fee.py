"""
Rush fee resolver.

Turnaround tiers and their automatic fee:
    standard -> 0
    rush     -> subtotal × rush_multiplier
    same_day -> subtotal × (same_day_multiplier − 1)

A non-standard tier may carry a custom override (percentage of subtotal or a
fixed amount). The override remembers the tier it was entered for; a custom
fee found on a different tier is stale and is reset to auto with an
OverrideConflictWarning instead of being silently kept or dropped.
"""

import logging
from decimal import Decimal

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import (
    OverrideConflictWarning,
    RushFeeResult,
    RushFeeSelection,
    TurnaroundTier,
    ValueType,
)
from certquote.pricing.pricing_config import PricingConfig
from certquote.utils.amount_converter import AmountConverter

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def calculate_auto_rush_fee(turnaround: TurnaroundTier, subtotal: Decimal, config: PricingConfig) -> Decimal:
    """
    Automatic rush fee for a turnaround tier, rounded to the cent.

    Examples:
        >>> calculate_auto_rush_fee(TurnaroundTier.RUSH, Decimal("200"), config)
        Decimal('60.00')
        >>> calculate_auto_rush_fee(TurnaroundTier.SAME_DAY, Decimal("200"), config)
        Decimal('200.00')
    """
    if turnaround == TurnaroundTier.RUSH:
        fee = subtotal * config.rush_multiplier
    elif turnaround == TurnaroundTier.SAME_DAY:
        fee = subtotal * (config.same_day_multiplier - 1)
    else:
        fee = ZERO
    return AmountConverter.round_currency(fee)


def resolve_rush_fee(selection: RushFeeSelection, subtotal: Decimal, config: PricingConfig) -> RushFeeResult:
    """
    Resolve the rush fee for the selected tier and override state.

    Args:
        selection: Turnaround tier and override sub-mode.
        subtotal: Quote subtotal the fee is computed against.
        config: Pricing configuration (rush and same-day multipliers).

    Returns:
        RushFeeResult with the effective fee, the automatic fee (offered as
        default), whether a custom value was used, and any reset warnings.

    Raises:
        PricingValidationError: If a custom override value is invalid.
    """
    turnaround = selection.turnaround
    override = selection.override
    computed_fee = calculate_auto_rush_fee(turnaround, subtotal, config)

    if turnaround == TurnaroundTier.STANDARD:
        # Standard is always free regardless of override mode
        if override.is_custom:
            logger.debug("Ignoring custom rush fee on standard turnaround")
        return RushFeeResult(turnaround=turnaround, fee=ZERO, computed_fee=ZERO, is_custom=False)

    if override.is_custom and override.turnaround is not None and override.turnaround != turnaround:
        warning = OverrideConflictWarning(
            field="rush_fee",
            message=(
                f"Custom rush fee entered for '{override.turnaround.value}' does not apply to "
                f"'{turnaround.value}'; reset to auto"
            ),
            previous_value=override.value,
            previous_turnaround=override.turnaround,
            current_turnaround=turnaround,
        )
        logger.warning(warning.message)
        return RushFeeResult(
            turnaround=turnaround,
            fee=computed_fee,
            computed_fee=computed_fee,
            is_custom=False,
            warnings=(warning,),
        )

    if not override.is_custom:
        logger.debug(f"Auto rush fee for '{turnaround.value}': ${computed_fee}")
        return RushFeeResult(turnaround=turnaround, fee=computed_fee, computed_fee=computed_fee, is_custom=False)

    if override.value < 0:
        raise PricingValidationError(
            f"Custom rush fee cannot be negative, received: {override.value}", field="rush_fee"
        )

    if override.value_type == ValueType.PERCENTAGE:
        fee = AmountConverter.round_currency(subtotal * override.value / HUNDRED)
    else:
        fee = AmountConverter.round_currency(override.value)

    logger.info(
        f"Custom rush fee for '{turnaround.value}': {override.value_type.value} {override.value} "
        f"= ${fee} (auto would be ${computed_fee})"
    )
    return RushFeeResult(
        turnaround=turnaround,
        fee=fee,
        computed_fee=computed_fee,
        is_custom=True,
    )
