"""
Amount conversion utilities for pricing operations.

Provides centralized conversion and rounding for currency and page amounts:
- Arbitrary numeric input (int, str, float, Decimal) to Decimal
- Half-up rounding to the cent for stored and displayed amounts
- Ceiling rounding to a fixed increment ($2.50 rate)

The calculation path only rounds at the checkpoints named by each caller,
so no binary floating point ever reaches a total.
"""

from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_HALF_UP
from typing import Union

Numeric = Union[int, float, str, Decimal]


class AmountConverter:
    """
    Static utility class for converting and rounding amounts.

    All methods validate inputs and raise TypeError or ValueError for values
    that cannot be represented exactly.
    """

    # Constants
    CENT = Decimal("0.01")

    @staticmethod
    def to_decimal(value: Numeric) -> Decimal:
        """
        Convert a numeric value to Decimal without binary float artifacts.

        Floats are converted through their string representation, so 0.1
        becomes Decimal("0.1") rather than 0.1000000000000000055...

        Raises:
            TypeError: If value is a bool, None, or cannot be parsed.
            ValueError: If value is NaN or infinite.

        Examples:
            >>> AmountConverter.to_decimal(0.1)
            Decimal('0.1')
            >>> AmountConverter.to_decimal("65.00")
            Decimal('65.00')
        """
        if isinstance(value, bool) or value is None:
            raise TypeError(f"Cannot convert {value!r} to Decimal")

        if isinstance(value, Decimal):
            result = value
        else:
            try:
                result = Decimal(str(value).strip())
            except (InvalidOperation, ValueError) as e:
                raise TypeError(f"Cannot convert {value!r} to Decimal: {e}") from e

        if not result.is_finite():
            raise ValueError(f"Amount must be finite, got {value!r}")

        return result

    @staticmethod
    def round_currency(amount: Numeric) -> Decimal:
        """
        Round an amount to the cent using half-up rounding.

        Examples:
            >>> AmountConverter.round_currency(Decimal("8.995"))
            Decimal('9.00')
            >>> AmountConverter.round_currency(9)
            Decimal('9.00')
        """
        return AmountConverter.to_decimal(amount).quantize(AmountConverter.CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def ceil_to_increment(amount: Numeric, increment: Numeric) -> Decimal:
        """
        Round an amount UP to the next multiple of increment.

        Examples:
            >>> AmountConverter.ceil_to_increment(Decimal("84.50"), Decimal("2.50"))
            Decimal('85.00')
            >>> AmountConverter.ceil_to_increment(Decimal("65.00"), Decimal("2.50"))
            Decimal('65.00')
        """
        amount = AmountConverter.to_decimal(amount)
        increment = AmountConverter.to_decimal(increment)

        if increment <= 0:
            raise ValueError(f"Increment must be positive, got {increment}")

        steps = (amount / increment).to_integral_value(rounding=ROUND_CEILING)
        return (steps * increment).quantize(AmountConverter.CENT)

    @staticmethod
    def format_currency(amount: Numeric) -> str:
        """
        Format an amount for display.

        Examples:
            >>> AmountConverter.format_currency(Decimal("1234.5"))
            '$1,234.50'
            >>> AmountConverter.format_currency(Decimal("-20"))
            '-$20.00'
        """
        rounded = AmountConverter.round_currency(amount)
        sign = "-" if rounded < 0 else ""
        return f"{sign}${abs(rounded):,.2f}"
