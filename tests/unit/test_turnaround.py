"""
Unit tests for turnaround delivery estimates.
"""

from datetime import date

import pytest

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import TurnaroundTier
from certquote.pricing.turnaround import (
    add_business_days,
    calculate_standard_days,
    calculate_turnaround_days,
    estimate_delivery_date,
)

FRIDAY = date(2026, 10, 16)
THANKSGIVING = date(2026, 10, 12)


class TestTurnaroundDays:
    """Test suite for business-day counts per tier."""

    @pytest.mark.parametrize("pages,expected", [(1, 2), (2, 2), (3, 3), (5, 4), (10, 6)])
    def test_standard_days_grow_every_two_pages(self, config, pages, expected):
        assert calculate_standard_days(pages, config) == expected

    @pytest.mark.parametrize("pages,expected", [(1, 1), (3, 2), (5, 3)])
    def test_rush_is_one_day_shorter(self, config, pages, expected):
        assert calculate_turnaround_days(TurnaroundTier.RUSH, pages, config) == expected

    def test_same_day_is_zero(self, config):
        assert calculate_turnaround_days(TurnaroundTier.SAME_DAY, 40, config) == 0

    def test_zero_pages_rejected(self, config):
        with pytest.raises(PricingValidationError) as exc_info:
            calculate_standard_days(0, config)

        assert exc_info.value.field == "page_count"


class TestBusinessDays:
    """Test suite for weekend and holiday skipping."""

    def test_friday_plus_one_is_monday(self):
        assert add_business_days(FRIDAY, 1) == date(2026, 10, 19)

    def test_holiday_is_skipped(self):
        assert add_business_days(date(2026, 10, 9), 1, [THANKSGIVING]) == date(2026, 10, 13)

    def test_zero_days_is_start_date(self):
        assert add_business_days(FRIDAY, 0) == FRIDAY

    def test_standard_estimate_from_friday(self, config):
        assert estimate_delivery_date(TurnaroundTier.STANDARD, 1, FRIDAY, config) == date(2026, 10, 20)

    def test_same_day_estimate(self, config):
        assert estimate_delivery_date(TurnaroundTier.SAME_DAY, 3, FRIDAY, config) == FRIDAY

    def test_rush_is_never_later_than_standard(self, config):
        for pages in range(1, 12):
            rush = estimate_delivery_date(TurnaroundTier.RUSH, pages, FRIDAY, config, [THANKSGIVING])
            standard = estimate_delivery_date(TurnaroundTier.STANDARD, pages, FRIDAY, config, [THANKSGIVING])
            assert rush <= standard
