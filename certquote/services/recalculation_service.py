"""
Authoritative recalculation client.

The server-side recalculation reruns the pricing pipeline on the persisted
quote and stores the result. Its values always replace any local preview;
a failed call leaves the quote unfinalized and surfaces a RecalculationError.

Uses httpx for HTTP calls.
"""

import logging
from decimal import Decimal
from functools import lru_cache
from typing import List, Optional

import httpx
from pydantic import ValidationError

from certquote.config import get_settings
from certquote.exceptions import RecalculationError
from certquote.models.pricing import QuoteTotals
from certquote.models.recalculation import (
    RECONCILED_FIELDS,
    AuthoritativeTotals,
    ReconciledTotals,
    TotalsDiscrepancy,
)

logger = logging.getLogger(__name__)


def reconcile(quote_id: str, preview: Optional[QuoteTotals], persisted: AuthoritativeTotals) -> ReconciledTotals:
    """
    Merge a local preview with the persisted totals. The persisted values win.

    Every field where the preview differs is listed as a discrepancy and
    logged; a missing persisted `total` is derived from its own components.
    """
    total = persisted.total
    if total is None:
        total = (
            persisted.subtotal + persisted.rush_fee + persisted.delivery_fee + persisted.tax_amount
            + (persisted.adjustments_total or Decimal("0"))
        )

    values = {
        "subtotal": persisted.subtotal,
        "certification_total": persisted.certification_total,
        "rush_fee": persisted.rush_fee,
        "delivery_fee": persisted.delivery_fee,
        "tax_rate": persisted.tax_rate,
        "tax_amount": persisted.tax_amount,
        "total": total,
    }

    discrepancies: List[TotalsDiscrepancy] = []
    if preview is not None:
        for field in RECONCILED_FIELDS:
            local = getattr(preview, field)
            if local != values[field]:
                discrepancies.append(TotalsDiscrepancy(field=field, preview=local, persisted=values[field]))

    if discrepancies:
        summary = ", ".join(f"{d.field}: {d.preview} -> {d.persisted}" for d in discrepancies)
        logger.warning(f"Quote {quote_id}: preview diverged from persisted totals ({summary})")
    else:
        logger.debug(f"Quote {quote_id}: preview matches persisted totals")

    return ReconciledTotals(quote_id=quote_id, discrepancies=tuple(discrepancies), **values)


class RecalculationService:
    """Client for the authoritative recalculation endpoint."""

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def recalculate(self, quote_id: str) -> AuthoritativeTotals:
        """
        Trigger the recalculation for a quote and return the persisted totals.

        Raises:
            RecalculationError: On transport failure, a non-2xx response or an
                unparseable body.
        """
        logger.info(f"Requesting authoritative recalculation for quote {quote_id}")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json={"quoteId": quote_id}, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.error(f"Recalculation timed out for quote {quote_id}: {e}")
            raise RecalculationError(
                f"Recalculation timed out for quote {quote_id}", status_code=504, original_error=e
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Recalculation request failed for quote {quote_id}: {e}")
            raise RecalculationError(
                f"Recalculation request failed for quote {quote_id}: {e}", original_error=e
            ) from e

        if response.status_code != 200:
            try:
                detail = response.json().get("error", response.text)
            except ValueError:
                detail = response.text
            logger.error(f"Recalculation failed for quote {quote_id}: {response.status_code} {detail}")
            raise RecalculationError(f"Recalculation failed for quote {quote_id}: {detail}")

        try:
            totals = AuthoritativeTotals.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Unparseable recalculation response for quote {quote_id}: {e}")
            raise RecalculationError(
                f"Unparseable recalculation response for quote {quote_id}", original_error=e
            ) from e

        logger.info(f"Quote {quote_id} recalculated: subtotal=${totals.subtotal} total=${totals.total}")
        return totals

    async def recalculate_and_reconcile(
        self, quote_id: str, preview: Optional[QuoteTotals] = None
    ) -> ReconciledTotals:
        persisted = await self.recalculate(quote_id)
        return reconcile(quote_id, preview, persisted)


@lru_cache()
def get_recalculation_service() -> RecalculationService:
    """
    Raises:
        RecalculationError: If no recalculation endpoint is configured.
    """
    settings = get_settings()
    if not settings.recalculation_url:
        raise RecalculationError("Recalculation endpoint is not configured", status_code=503)
    return RecalculationService(
        url=settings.recalculation_url,
        api_key=settings.recalculation_api_key,
        timeout=settings.recalculation_timeout,
    )
