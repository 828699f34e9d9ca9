"""Order session: the state machine driving one terminal's sales."""

from __future__ import annotations

import asyncio
import enum
import logging
from datetime import datetime
from typing import Callable, Protocol

from gelato_pos.builder import OrderBuilder
from gelato_pos.errors import (
    CheckoutInProgressError,
    CreateOrderError,
    EmptyOrderError,
    PosError,
    PrintDispatchError,
    SettlementError,
    SettlementPartialFailure,
    SettlementTimeout,
    UnreconciledOrderError,
)
from gelato_pos.models import Product, ShopSettings, StaffIdentity, Totals
from gelato_pos.receipt import ReceiptDocument, render_receipt
from gelato_pos.settlement import Settled, SettlementPersister, SettlementRequest
from gelato_pos.totals import TaxPolicy, calculate_totals, no_tax

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    EMPTY = "EMPTY"
    BUILDING = "BUILDING"
    SETTLING = "SETTLING"
    SETTLED = "SETTLED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    FAILED = "FAILED"


# The item list cannot change while a commit or its receipt is in flight.
_FROZEN_STATES = {SessionState.SETTLING, SessionState.SETTLED}


class PrintDispatcher(Protocol):
    def dispatch(self, document: ReceiptDocument) -> None: ...


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _no_settings() -> ShopSettings | None:
    return None


class OrderSession:
    """
    Coordinates builder, totals, settlement and receipt printing.

    Checkout outcomes:

    - success: receipt rendered and dispatched, builder cleared, state EMPTY;
    - parent order not written (or timed out): state FAILED, builder kept;
    - parent written, items not: state PARTIAL_FAILURE, builder kept, and
      further checkouts are refused until the orphan is retried or discarded.
    """

    def __init__(
        self,
        persister: SettlementPersister,
        printer: PrintDispatcher,
        staff: StaffIdentity,
        settings_provider: Callable[[], ShopSettings | None] = _no_settings,
        tax_policy: TaxPolicy = no_tax,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.persister = persister
        self.printer = printer
        self.staff = staff
        self.settings_provider = settings_provider
        self.tax_policy = tax_policy
        self.clock = clock

        self.builder = OrderBuilder()
        self.state = SessionState.EMPTY
        self.totals: Totals = calculate_totals((), tax_policy)
        self.last_error: PosError | None = None
        self.last_settlement: Settled | None = None
        self._pending: tuple[SettlementRequest, SettlementError] | None = None

    @property
    def pending_order_id(self) -> str | None:
        """Id of the stored order still missing its items, if any."""
        if self._pending is None:
            return None
        return self._pending[1].order_id

    # -- builder mutations -------------------------------------------------

    def add_item(self, product: Product) -> None:
        if self._frozen("add_item"):
            return
        self.builder.add_item(product)
        self._refresh()

    def set_quantity(self, product_id: str, quantity: object) -> None:
        if self._frozen("set_quantity"):
            return
        self.builder.set_quantity(product_id, quantity)
        self._refresh()

    def increment(self, product_id: str) -> None:
        if self._frozen("increment"):
            return
        self.builder.increment(product_id)
        self._refresh()

    def decrement(self, product_id: str) -> None:
        if self._frozen("decrement"):
            return
        self.builder.decrement(product_id)
        self._refresh()

    def remove_item(self, product_id: str) -> None:
        if self._frozen("remove_item"):
            return
        self.builder.remove_item(product_id)
        self._refresh()

    def clear(self) -> None:
        if self._frozen("clear"):
            return
        self.builder.clear()
        self._refresh()

    def _frozen(self, action: str) -> bool:
        if self.state in _FROZEN_STATES:
            logger.debug("session_mutation_ignored action=%s state=%s", action, self.state.value)
            return True
        return False

    def _refresh(self) -> None:
        self.totals = calculate_totals(self.builder.items(), self.tax_policy)
        if self.state is SessionState.PARTIAL_FAILURE:
            return
        self.state = SessionState.BUILDING if len(self.builder) else SessionState.EMPTY

    # -- settlement ----------------------------------------------------------

    async def checkout(self) -> Settled:
        """Commit the current order, print its receipt and reset the builder."""
        if self.state is SessionState.SETTLING:
            raise CheckoutInProgressError()
        if self.state is SessionState.PARTIAL_FAILURE and self.pending_order_id is not None:
            raise UnreconciledOrderError(self.pending_order_id)
        if self.builder.is_empty:
            self.last_error = EmptyOrderError()
            raise self.last_error

        self.state = SessionState.SETTLING
        created: list[str] = []
        try:
            items = self.builder.items()
            request = SettlementRequest(
                items=items,
                totals=calculate_totals(items, self.tax_policy),
                staff_id=self.staff.staff_id,
                created_at=self.clock(),
            )
            settings = await asyncio.to_thread(self.settings_provider)
            logger.info("checkout_start staff_id=%s rows=%d", request.staff_id, len(items))
            settled = await self.persister.settle(request, on_order_created=created.append)
        except SettlementPartialFailure as exc:
            self._orphaned(request, exc)
            raise
        except SettlementTimeout as exc:
            if exc.order_id is None:
                self._failed(exc)
            else:
                self._orphaned(request, exc)
            raise
        except CreateOrderError as exc:
            self._failed(exc)
            raise
        except BaseException:
            if created:
                # the header is stored; keep it reconcilable instead of writing a second one
                interrupted = SettlementPartialFailure(created[0], "Checkout interrupted before order items were saved")
                self._orphaned(request, interrupted)
            else:
                self._failed(None)
            raise
        return await self._complete(settled, settings)

    async def retry_order_items(self) -> Settled:
        """Write the items of the orphaned order again, using the checkout-time snapshot."""
        if self._pending is None or self.state is not SessionState.PARTIAL_FAILURE:
            raise RuntimeError("no orphaned order to retry")
        request, failure = self._pending

        self.state = SessionState.SETTLING
        try:
            settings = await asyncio.to_thread(self.settings_provider)
            settled = await self.persister.retry_items(failure, request)
        except SettlementError as exc:
            self._orphaned(request, exc)
            raise
        except BaseException:
            self.state = SessionState.PARTIAL_FAILURE
            raise
        return await self._complete(settled, settings)

    async def discard_orphan(self) -> None:
        """Delete the orphaned order; the builder keeps its items for a fresh checkout."""
        if self._pending is None or self.state is not SessionState.PARTIAL_FAILURE:
            raise RuntimeError("no orphaned order to discard")
        _, failure = self._pending
        if failure.order_id is None:
            raise RuntimeError("orphaned order has no stored id")

        self.state = SessionState.SETTLING
        try:
            await self.persister.discard_orphan(failure.order_id)
        except BaseException:
            self.state = SessionState.PARTIAL_FAILURE
            raise
        self._pending = None
        self.last_error = None
        self.state = SessionState.EMPTY
        self._refresh()

    async def reprint_last(self) -> PrintDispatchError | None:
        """Send the last settled receipt to the printer again."""
        if self.last_settlement is None or self.last_settlement.receipt is None:
            return None
        return await self._dispatch(self.last_settlement.receipt, self.last_settlement.order_id)

    def _orphaned(self, request: SettlementRequest, exc: SettlementError) -> None:
        self._pending = (request, exc)
        self.last_error = exc
        self.state = SessionState.PARTIAL_FAILURE
        logger.error("checkout_partial_failure order_id=%s step=%s", exc.order_id, exc.step)

    def _failed(self, exc: SettlementError | None) -> None:
        self.last_error = exc
        self.state = SessionState.FAILED
        logger.error("checkout_failed error=%r", exc)

    async def _complete(self, settled: Settled, settings: ShopSettings | None) -> Settled:
        self.state = SessionState.SETTLED
        request = settled.request
        settled.receipt = render_receipt(settings, request.items, request.totals, request.created_at)
        settled.print_error = await self._dispatch(settled.receipt, settled.order_id)

        self.builder.clear()
        self._pending = None
        self.last_error = settled.print_error
        self.last_settlement = settled
        self.state = SessionState.EMPTY
        self._refresh()
        logger.info("checkout_settled order_id=%s printed=%s", settled.order_id, settled.print_error is None)
        return settled

    async def _dispatch(self, document: ReceiptDocument, order_id: str) -> PrintDispatchError | None:
        try:
            await asyncio.to_thread(self.printer.dispatch, document)
        except PrintDispatchError as exc:
            logger.warning("receipt_print_failed order_id=%s error=%r", order_id, exc)
            return exc
        except Exception as exc:
            logger.warning("receipt_print_failed order_id=%s error=%r", order_id, exc)
            error = PrintDispatchError(str(exc))
            error.__cause__ = exc
            return error
        return None
