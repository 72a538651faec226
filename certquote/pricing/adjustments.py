"""
Adjustment ledger for quote-scoped discounts and surcharges.

Each adjustment is itemized and independently removable; entries are never
merged or netted against each other. Percentage adjustments float with the
subtotal and are re-resolved on every run; fixed adjustments snapshot their
amount at insertion.
"""

import logging
import uuid
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from certquote.exceptions import PricingValidationError
from certquote.models.pricing import Adjustment, AdjustmentKind, AdjustmentLine, ValueType
from certquote.utils.amount_converter import AmountConverter

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def validate_adjustment(
    kind: AdjustmentKind,
    value_type: ValueType,
    value: Decimal,
    reason: Optional[str],
) -> None:
    """
    Validate one adjustment entry.

    Raises:
        PricingValidationError: If value is not positive, a discount
            percentage exceeds 100, or the audit reason is blank.
    """
    if value is None or value <= 0:
        raise PricingValidationError(
            f"Adjustment value must be greater than zero, received: {value}", field="value"
        )
    if value_type == ValueType.PERCENTAGE and kind == AdjustmentKind.DISCOUNT and value > HUNDRED:
        raise PricingValidationError(
            f"Discount percentage cannot exceed 100, received: {value}", field="value"
        )
    if reason is None or not reason.strip():
        raise PricingValidationError("Adjustment reason is required", field="reason")


def calculate_adjustment_amount(adjustment: Adjustment, subtotal: Decimal) -> Decimal:
    """
    Unsigned amount of an adjustment against a subtotal, rounded to the cent.

    Fixed entries use their insertion snapshot when one was taken.

    Examples:
        >>> calculate_adjustment_amount(ten_percent_discount, Decimal("200"))
        Decimal('20.00')
    """
    if adjustment.value_type == ValueType.PERCENTAGE:
        return AmountConverter.round_currency(subtotal * adjustment.value / HUNDRED)
    if adjustment.calculated_amount is not None:
        return AmountConverter.round_currency(adjustment.calculated_amount)
    return AmountConverter.round_currency(adjustment.value)


def resolve_adjustments(adjustments: Sequence[Adjustment], subtotal: Decimal) -> List[AdjustmentLine]:
    """
    Resolve every adjustment against the current subtotal.

    Discounts get a negative signed amount, surcharges a positive one.

    Raises:
        PricingValidationError: If any entry is invalid.
    """
    lines = []
    for adjustment in adjustments:
        validate_adjustment(adjustment.kind, adjustment.value_type, adjustment.value, adjustment.reason)
        amount = calculate_adjustment_amount(adjustment, subtotal)
        signed = -amount if adjustment.kind == AdjustmentKind.DISCOUNT else amount
        lines.append(AdjustmentLine(
            id=adjustment.id,
            kind=adjustment.kind,
            value_type=adjustment.value_type,
            value=adjustment.value,
            reason=adjustment.reason,
            calculated_amount=amount,
            signed_amount=signed,
        ))
    return lines


class AdjustmentLedger:
    """
    Ordered ledger of adjustments scoped to one quote.

    Mutations return the affected entry; callers re-run the quote aggregator
    (and the authoritative recalculation) after every add or remove.
    """

    def __init__(self, adjustments: Iterable[Adjustment] = ()):
        self._entries: List[Adjustment] = list(adjustments)

    def __iter__(self) -> Iterator[Adjustment]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[Adjustment, ...]:
        return tuple(self._entries)

    def add(
        self,
        kind: AdjustmentKind,
        value_type: ValueType,
        value: Decimal,
        reason: str,
        subtotal: Decimal,
        adjustment_id: Optional[str] = None,
    ) -> Adjustment:
        """
        Append an adjustment.

        Fixed adjustments snapshot their calculated amount now; percentage
        adjustments are left floating and re-resolved against every subtotal.

        Raises:
            PricingValidationError: If the entry is invalid or the id is taken.
        """
        value = AmountConverter.to_decimal(value)
        validate_adjustment(kind, value_type, value, reason)

        adjustment_id = adjustment_id or uuid.uuid4().hex
        if any(entry.id == adjustment_id for entry in self._entries):
            raise PricingValidationError(f"Adjustment '{adjustment_id}' already exists", field="id")

        adjustment = Adjustment(
            id=adjustment_id,
            kind=kind,
            value_type=value_type,
            value=value,
            reason=reason.strip(),
        )
        if value_type == ValueType.FIXED:
            adjustment = adjustment.model_copy(
                update={"calculated_amount": calculate_adjustment_amount(adjustment, subtotal)}
            )

        self._entries.append(adjustment)
        logger.info(
            f"Adjustment added: {kind.value} {value_type.value} {value} ({adjustment.reason}) "
            f"id={adjustment_id}"
        )
        return adjustment

    def remove(self, adjustment_id: str) -> Adjustment:
        """
        Raises:
            PricingValidationError: If no adjustment has this id.
        """
        for index, entry in enumerate(self._entries):
            if entry.id == adjustment_id:
                del self._entries[index]
                logger.info(f"Adjustment removed: id={adjustment_id}")
                return entry
        raise PricingValidationError(f"Adjustment '{adjustment_id}' not found", field="id")

    def resolve(self, subtotal: Decimal) -> List[AdjustmentLine]:
        return resolve_adjustments(self._entries, subtotal)

    def total(self, subtotal: Decimal) -> Decimal:
        """Signed sum of all entries against a subtotal."""
        return sum((line.signed_amount for line in self.resolve(subtotal)), ZERO)
