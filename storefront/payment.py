# storefront/payment.py
"""Payment stage: one processor per consumed checkout snapshot.

State moves Idle -> Submitting -> Succeeded | Failed, and Failed -> Idle so
the shopper can retry with the same snapshot and form. Succeeded is terminal.
All transitions go through ``reduce_payment``; the processor only holds the
current state and performs the asynchronous work between transitions.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from storefront.clients import OrderServiceClient
from storefront.errors import (
    OrderSubmissionFailed,
    PaymentDetailsMissing,
    SessionInvalid,
    SubmissionInProgress,
)
from storefront.models import (
    CardDetails,
    CheckoutSnapshot,
    OrderConfirmation,
    OrderItem,
    OrderRequest,
    PaymentMode,
)

logger = logging.getLogger(__name__)


class PaymentStatus(str, Enum):
    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class PaymentState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PaymentStatus = PaymentStatus.IDLE
    mode: PaymentMode = PaymentMode.CARD
    card: CardDetails = CardDetails()
    error: Optional[str] = None
    message: Optional[str] = None
    confirmation: Optional[OrderConfirmation] = None


# -------------------------
# Events
# -------------------------

class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class SelectMode(_Event):
    mode: PaymentMode


class EnterCard(_Event):
    card: CardDetails


class SubmitStarted(_Event):
    pass


class SubmitSucceeded(_Event):
    message: str
    confirmation: OrderConfirmation


class SubmitFailed(_Event):
    error: str


class Acknowledge(_Event):
    pass


PaymentEvent = Union[SelectMode, EnterCard, SubmitStarted, SubmitSucceeded, SubmitFailed, Acknowledge]


def reduce_payment(state: PaymentState, event: PaymentEvent) -> PaymentState:
    if state.status is PaymentStatus.SUCCEEDED:
        if isinstance(event, (SubmitStarted, SelectMode, EnterCard)):
            raise SessionInvalid("Order already placed for this checkout")
        return state

    if state.status is PaymentStatus.SUBMITTING:
        if isinstance(event, SubmitSucceeded):
            return state.model_copy(update={
                "status": PaymentStatus.SUCCEEDED,
                "message": event.message,
                "confirmation": event.confirmation,
                "error": None,
            })
        if isinstance(event, SubmitFailed):
            return state.model_copy(update={"status": PaymentStatus.FAILED, "error": event.error})
        raise SubmissionInProgress()

    if isinstance(event, SelectMode):
        return state.model_copy(update={"mode": event.mode})
    if isinstance(event, EnterCard):
        return state.model_copy(update={"card": event.card})
    if isinstance(event, SubmitStarted):
        return state.model_copy(update={"status": PaymentStatus.SUBMITTING, "error": None})
    if isinstance(event, Acknowledge) and state.status is PaymentStatus.FAILED:
        # error text stays visible until the next attempt
        return state.model_copy(update={"status": PaymentStatus.IDLE})
    return state


def validate_snapshot(snapshot: Optional[CheckoutSnapshot]) -> CheckoutSnapshot:
    if snapshot is None or not snapshot.items or snapshot.retailer_id is None:
        raise SessionInvalid("Invalid session. Returning to dashboard.")
    return snapshot


class PaymentProcessor:
    def __init__(
        self,
        snapshot: Optional[CheckoutSnapshot],
        customer_id: int,
        orders: OrderServiceClient,
        cash_delay: float = 1.0,
        card_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        currency: str = "₹",
    ) -> None:
        self.snapshot = validate_snapshot(snapshot)
        self.customer_id = customer_id
        self.orders = orders
        self.cash_delay = cash_delay
        self.card_delay = card_delay
        self.currency = currency
        self._sleep = sleep

        self.id = f"p_{uuid.uuid4().hex[:10]}"
        self.state = PaymentState()
        self.history: List[PaymentStatus] = [self.state.status]

    def dispatch(self, event: PaymentEvent) -> PaymentState:
        new_state = reduce_payment(self.state, event)
        if new_state.status is not self.state.status:
            logger.info("Payment %s: %s -> %s", self.id, self.state.status.value, new_state.status.value)
            self.history.append(new_state.status)
        self.state = new_state
        return new_state

    def select_mode(self, mode: PaymentMode) -> PaymentState:
        return self.dispatch(SelectMode(mode=mode))

    def enter_card(self, card: CardDetails) -> PaymentState:
        return self.dispatch(EnterCard(card=card))

    def build_order(self) -> OrderRequest:
        return OrderRequest(
            customer_id=self.customer_id,
            retailer_id=self.snapshot.retailer_id,
            total_amount=self.snapshot.total_amount,
            payment_mode=self.state.mode.wire,
            items=[
                OrderItem(product_id=it.id, quantity=it.quantity, price_at_purchase=it.price)
                for it in self.snapshot.items
            ],
        )

    def confirmation_message(self) -> str:
        if self.state.mode is PaymentMode.CARD:
            return "Payment Verified! Order Placed."
        return f"Order Placed! Please pay {self.currency}{self.snapshot.total_amount:.2f} on delivery."

    async def submit(self) -> PaymentState:
        if self.state.status is PaymentStatus.IDLE and self.state.mode is PaymentMode.CARD:
            missing = self.state.card.missing_fields()
            if missing:
                raise PaymentDetailsMissing(missing)

        self.dispatch(SubmitStarted())
        delay = self.card_delay if self.state.mode is PaymentMode.CARD else self.cash_delay
        await self._sleep(delay)

        order = self.build_order()
        try:
            confirmation = await self.orders.submit(order)
        except OrderSubmissionFailed as e:
            self._fail(e.message)
            raise
        except Exception as e:
            logger.exception("Payment %s: unexpected error while submitting order", self.id)
            self._fail(str(e))
            raise OrderSubmissionFailed(str(e)) from e

        logger.info(
            "Payment %s: order placed for customer %s at retailer %s (%s, %.2f)",
            self.id, self.customer_id, order.retailer_id, order.payment_mode.value, order.total_amount,
        )
        return self.dispatch(SubmitSucceeded(message=self.confirmation_message(), confirmation=confirmation))

    def _fail(self, error: str) -> None:
        logger.warning("Payment %s: order submission failed: %s", self.id, error)
        self.dispatch(SubmitFailed(error=error))
        self.dispatch(Acknowledge())

    def view(self) -> dict:
        return {
            "paymentId": self.id,
            "status": self.state.status.value,
            "mode": self.state.mode.value,
            "card": self.state.card.masked(),
            "totalAmount": self.snapshot.total_amount,
            "retailerId": self.snapshot.retailer_id,
            "items": [it.model_dump(by_alias=True) for it in self.snapshot.items],
            "error": self.state.error,
            "message": self.state.message,
            "confirmation": (
                self.state.confirmation.model_dump(by_alias=True) if self.state.confirmation else None
            ),
        }
