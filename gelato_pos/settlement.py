"""Two-step settlement of a finished sale.

The store offers no transaction spanning the order header and its items, so
the commit happens in two writes. A failure between them leaves an order
without items; that case is raised as :class:`SettlementPartialFailure` and
is never repaired automatically.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, TypeVar

from gelato_pos.config import SETTLEMENT_TIMEOUT_SECONDS
from gelato_pos.errors import (
    STEP_CREATE_ORDER,
    STEP_CREATE_ORDER_ITEMS,
    STEP_DELETE_ORDER,
    CreateOrderError,
    EmptyOrderError,
    PrintDispatchError,
    SettlementError,
    SettlementPartialFailure,
    SettlementTimeout,
)
from gelato_pos.models import OrderItem, Totals
from gelato_pos.money import quantize
from gelato_pos.receipt import ReceiptDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PersistenceProvider(Protocol):
    async def create_order(self, fields: Mapping[str, Any]) -> str: ...

    async def create_order_items(self, order_id: str, rows: Sequence[Mapping[str, Any]]) -> None: ...

    async def delete_order(self, order_id: str) -> None: ...


@dataclass(frozen=True)
class SettlementRequest:
    """Everything needed to commit one sale, frozen at checkout time."""

    items: tuple[OrderItem, ...]
    totals: Totals
    staff_id: str
    created_at: datetime


@dataclass
class Settled:
    """Outcome of a fully committed sale."""

    order_id: str
    request: SettlementRequest
    receipt: ReceiptDocument | None = None
    print_error: PrintDispatchError | None = field(default=None)


def order_fields(request: SettlementRequest) -> dict[str, Any]:
    return {
        "staff_id": request.staff_id,
        "subtotal": quantize(request.totals.subtotal),
        "tax": quantize(request.totals.tax),
        "total": quantize(request.totals.total),
        "created_at": request.created_at.isoformat(),
    }


def order_item_rows(order_id: str, items: Sequence[OrderItem]) -> list[dict[str, Any]]:
    return [
        {
            "order_id": order_id,
            "product_id": item.product_id,
            "product_name": item.product_name,
            "quantity": item.quantity,
            "unit_price": quantize(item.unit_price),
            "subtotal": quantize(item.subtotal),
        }
        for item in items
    ]


class SettlementPersister:
    """Commits settlement requests against a persistence provider."""

    def __init__(self, store: PersistenceProvider, timeout: float | None = SETTLEMENT_TIMEOUT_SECONDS) -> None:
        self.store = store
        self.timeout = timeout

    async def _bounded(self, call: Awaitable[T], step: str, order_id: str | None = None) -> T:
        # Cancelling the wait does not recall a write the store already received.
        try:
            return await asyncio.wait_for(call, self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("settlement_timeout step=%s order_id=%s timeout=%s", step, order_id, self.timeout)
            raise SettlementTimeout(step, self.timeout or 0, order_id=order_id) from exc

    async def settle(
        self, request: SettlementRequest, on_order_created: Callable[[str], None] | None = None
    ) -> Settled:
        """
        Write the order header, then its items.

        ``on_order_created`` is called with the new order id between the two
        writes, so a caller cancelled during the item write still knows which
        stored order lacks its items.
        """
        if not request.items:
            raise EmptyOrderError()

        try:
            order_id = await self._bounded(self.store.create_order(order_fields(request)), STEP_CREATE_ORDER)
        except SettlementTimeout:
            raise
        except Exception as exc:
            logger.error("settlement_create_order_failed staff_id=%s error=%r", request.staff_id, exc)
            raise CreateOrderError(f"Error creating order: {exc}") from exc
        logger.info("settlement_order_created order_id=%s total=%s", order_id, quantize(request.totals.total))
        if on_order_created is not None:
            on_order_created(order_id)

        await self._write_items(order_id, request)
        return Settled(order_id=order_id, request=request)

    async def retry_items(self, failure: SettlementPartialFailure | SettlementTimeout, request: SettlementRequest) -> Settled:
        """Write the items of an order left without them by an earlier attempt."""
        if failure.order_id is None:
            raise ValueError("failure does not reference a stored order")
        await self._write_items(failure.order_id, request)
        return Settled(order_id=failure.order_id, request=request)

    async def discard_orphan(self, order_id: str) -> None:
        """Delete an order header whose items were never written."""
        try:
            await self._bounded(self.store.delete_order(order_id), STEP_DELETE_ORDER, order_id=order_id)
        except SettlementTimeout:
            raise
        except Exception as exc:
            logger.error("settlement_discard_failed order_id=%s error=%r", order_id, exc)
            raise SettlementError(f"Error deleting order: {exc}", step=STEP_DELETE_ORDER, order_id=order_id) from exc
        logger.info("settlement_orphan_discarded order_id=%s", order_id)

    async def _write_items(self, order_id: str, request: SettlementRequest) -> None:
        rows = order_item_rows(order_id, request.items)
        try:
            await self._bounded(self.store.create_order_items(order_id, rows), STEP_CREATE_ORDER_ITEMS, order_id)
        except SettlementTimeout:
            raise
        except Exception as exc:
            logger.error("settlement_items_failed order_id=%s rows=%d error=%r", order_id, len(rows), exc)
            raise SettlementPartialFailure(order_id, f"Error saving order items: {exc}") from exc
        logger.info("settlement_items_written order_id=%s rows=%d", order_id, len(rows))
