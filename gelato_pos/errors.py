"""Order engine errors and message keys."""

from __future__ import annotations


class errmsg:
    """Message keys surfaced to the operator."""

    ORDER_EMPTY = "orders.empty"
    CHECKOUT_IN_PROGRESS = "orders.checkoutInProgress"
    ORDER_UNRECONCILED = "orders.unreconciled"
    CREATE_ORDER_FAILED = "orders.createFailed"
    ORDER_ITEMS_FAILED = "orders.itemsFailed"
    SETTLEMENT_TIMEOUT = "orders.timeout"
    PRINT_FAILED = "orders.printFailed"


# Settlement steps, in commit order.
STEP_CREATE_ORDER = "create_order"
STEP_CREATE_ORDER_ITEMS = "create_order_items"
STEP_DELETE_ORDER = "delete_order"


class PosError(Exception):
    """Base class for order engine errors."""

    key = ""


class EmptyOrderError(PosError):
    """Checkout was attempted with no items."""

    key = errmsg.ORDER_EMPTY

    def __init__(self) -> None:
        super().__init__("No items in order")


class CheckoutInProgressError(PosError):
    """A checkout was triggered while another one is still settling."""

    key = errmsg.CHECKOUT_IN_PROGRESS

    def __init__(self) -> None:
        super().__init__("Checkout already in progress")


class UnreconciledOrderError(PosError):
    """A previous settlement left an order without items that must be resolved first."""

    key = errmsg.ORDER_UNRECONCILED

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} has no items; retry or discard it first")
        self.order_id = order_id


class SettlementError(PosError):
    """A storage write failed during settlement.

    ``step`` names the write that failed; ``order_id`` is set once the parent
    order exists in storage.
    """

    def __init__(self, message: str, step: str, order_id: str | None = None) -> None:
        super().__init__(message)
        self.step = step
        self.order_id = order_id


class CreateOrderError(SettlementError):
    """The parent order could not be written. Nothing was stored."""

    key = errmsg.CREATE_ORDER_FAILED

    def __init__(self, message: str = "Error creating order") -> None:
        super().__init__(message, step=STEP_CREATE_ORDER)


class SettlementPartialFailure(SettlementError):
    """The parent order was written but its items were not."""

    key = errmsg.ORDER_ITEMS_FAILED

    def __init__(self, order_id: str, message: str = "Error saving order items") -> None:
        super().__init__(f"{message} (order {order_id})", step=STEP_CREATE_ORDER_ITEMS, order_id=order_id)


class SettlementTimeout(SettlementError):
    """A settlement write did not answer in time; its outcome is unknown."""

    key = errmsg.SETTLEMENT_TIMEOUT

    def __init__(self, step: str, timeout: float, order_id: str | None = None) -> None:
        super().__init__(f"{step} timed out after {timeout:g}s", step=step, order_id=order_id)
        self.timeout = timeout


class PrintDispatchError(PosError):
    """The receipt could not be printed. The sale itself is already settled."""

    key = errmsg.PRINT_FAILED
