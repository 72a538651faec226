"""
Turnaround delivery estimates.

Standard turnaround grows with document size: `standard_days` for a one-page
order plus one business day for every further two pages. Rush shortens that
by the configured difference (never below `rush_days`); same-day is zero.
Business days skip weekends and holidays.
"""

import logging
from datetime import date, timedelta
from typing import Iterable

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import TurnaroundTier
from certquote.pricing.pricing_config import PricingConfig

logger = logging.getLogger(__name__)


def calculate_standard_days(page_count: int, config: PricingConfig) -> int:
    """
    Examples:
        >>> calculate_standard_days(1, config)
        2
        >>> calculate_standard_days(5, config)
        4
    """
    if page_count < 1:
        raise PricingValidationError(f"Page count must be positive, received: {page_count}", field="page_count")
    return config.standard_days + (page_count - 1) // 2


def calculate_turnaround_days(turnaround: TurnaroundTier, page_count: int, config: PricingConfig) -> int:
    standard = calculate_standard_days(page_count, config)
    if turnaround == TurnaroundTier.SAME_DAY:
        return 0
    if turnaround == TurnaroundTier.RUSH:
        return max(config.rush_days, standard - (config.standard_days - config.rush_days))
    return standard


def add_business_days(start: date, days: int, holidays: Iterable[date] = ()) -> date:
    """
    Add business days to a date, skipping weekends and holidays.

    Example:
        >>> add_business_days(date(2026, 10, 16), 1)  # Friday
        datetime.date(2026, 10, 19)
    """
    holiday_set = set(holidays)
    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if current.weekday() >= 5 or current in holiday_set:
            continue
        added += 1
    return current


def estimate_delivery_date(
    turnaround: TurnaroundTier,
    page_count: int,
    start: date,
    config: PricingConfig,
    holidays: Iterable[date] = (),
) -> date:
    """Estimated delivery date for a turnaround tier starting from `start`."""
    days = calculate_turnaround_days(turnaround, page_count, config)
    delivery = add_business_days(start, days, holidays)
    logger.debug(
        f"Delivery estimate: {turnaround.value}, {page_count} pages, {days} business days "
        f"from {start} -> {delivery}"
    )
    return delivery
