"""
Models for the authoritative server-side recalculation.

The recalculation endpoint persists totals and returns them flat, with the
stored `calculated_totals` breakdown spread into the same object. Unknown keys
are kept in `model_extra`.
"""

from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

# Fields compared between a local preview and the persisted totals
RECONCILED_FIELDS = (
    "subtotal",
    "certification_total",
    "rush_fee",
    "delivery_fee",
    "tax_rate",
    "tax_amount",
    "total",
)


class AuthoritativeTotals(BaseModel):
    """Totals as persisted by the recalculation endpoint."""

    model_config = ConfigDict(frozen=True, extra="allow")

    subtotal: Decimal
    certification_total: Decimal = Decimal("0")
    rush_fee: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    adjustments_total: Optional[Decimal] = None
    total: Optional[Decimal] = None
    is_rush: Optional[bool] = None


class TotalsDiscrepancy(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    preview: Optional[Decimal] = None
    persisted: Optional[Decimal] = None


class ReconciledTotals(BaseModel):
    """
    Display values after recalculation.

    Values always come from the persisted totals; `discrepancies` lists every
    field where the local preview disagreed.
    """

    model_config = ConfigDict(frozen=True)

    quote_id: str
    subtotal: Decimal
    certification_total: Decimal
    rush_fee: Decimal
    delivery_fee: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    discrepancies: Tuple[TotalsDiscrepancy, ...] = ()

    @property
    def matches_preview(self) -> bool:
        return not self.discrepancies
