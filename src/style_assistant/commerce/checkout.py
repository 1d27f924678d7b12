"""Checkout stage machine.

shipping -> payment -> processing -> success, then the order completes:
the cart is cleared and the sequencer closes.  Payment is simulated and
always succeeds; form contents are passed through unvalidated.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable

import structlog

from style_assistant.commerce.cart import CartLedger
from style_assistant.models import (
    CheckoutStage,
    OrderConfirmation,
    PaymentDetails,
    ShippingDetails,
)
from style_assistant.scheduler import DelayScheduler

logger = structlog.get_logger(__name__)


class CheckoutSequencer:
    """Gates cart completion behind a linear sequence of stages.

    Parameters
    ----------
    cart:
        The ledger whose totals are charged and which is cleared on completion.
    processing_delay:
        Seconds spent in ``processing`` before ``success``.
    confirmation_delay:
        Seconds ``success`` is shown before the order completes.
    on_stage_change:
        Called with the new stage (``None`` when closed) on every transition.
    on_complete:
        Called with the confirmation once an order completes.
    """

    def __init__(
        self,
        cart: CartLedger,
        processing_delay: float = 2.0,
        confirmation_delay: float = 3.0,
        on_stage_change: Callable[[CheckoutStage | None], None] | None = None,
        on_complete: Callable[[OrderConfirmation], None] | None = None,
    ) -> None:
        self._cart = cart
        self._processing_delay = processing_delay
        self._confirmation_delay = confirmation_delay
        self._on_stage_change = on_stage_change
        self._on_complete = on_complete
        self._scheduler = DelayScheduler("checkout")
        self._stage: CheckoutStage | None = None
        self._shipping: ShippingDetails | None = None
        self._payment: PaymentDetails | None = None
        self.orders: list[OrderConfirmation] = []

    @property
    def stage(self) -> CheckoutStage | None:
        return self._stage

    @property
    def is_open(self) -> bool:
        return self._stage is not None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin(self) -> CheckoutStage | None:
        """Open checkout at the shipping stage. No-op for an empty cart."""
        if self._cart.is_empty():
            logger.info("checkout_skipped_empty_cart")
            return self._stage
        if self._stage is None:
            self._scheduler.bump()
            self._set_stage(CheckoutStage.SHIPPING)
        return self._stage

    def submit_shipping(self, details: ShippingDetails) -> CheckoutStage | None:
        if self._stage != CheckoutStage.SHIPPING:
            return self._stage
        self._shipping = details
        self._set_stage(CheckoutStage.PAYMENT)
        return self._stage

    def back_to_shipping(self) -> CheckoutStage | None:
        if self._stage == CheckoutStage.PAYMENT:
            self._set_stage(CheckoutStage.SHIPPING)
        return self._stage

    def submit_payment(self, details: PaymentDetails) -> CheckoutStage | None:
        """Start the simulated payment, which succeeds after the processing delay."""
        if self._stage != CheckoutStage.PAYMENT:
            return self._stage
        self._payment = details
        self._set_stage(CheckoutStage.PROCESSING)
        self._scheduler.schedule(self._processing_delay, self._payment_succeeded, label="payment")
        return self._stage

    def complete(self) -> OrderConfirmation | None:
        """Finish the order: snapshot totals, clear the cart, and close.

        Returns ``None`` when the cart is empty and there is nothing to order.
        """
        confirmation: OrderConfirmation | None = None
        if not self._cart.is_empty():
            confirmation = OrderConfirmation(
                order_id=f"ORD-{uuid.uuid4().hex[:8].upper()}",
                lines=self._cart.lines,
                totals=self._cart.totals(),
                shipping_details=self._shipping,
                created_at=datetime.now(tz=timezone.utc),
            )
            self.orders.append(confirmation)
            self._cart.clear()
            logger.info(
                "order_completed",
                order_id=confirmation.order_id,
                total=round(confirmation.totals.total, 2),
            )
            if self._on_complete is not None:
                self._on_complete(confirmation)
        self._reset()
        return confirmation

    def cancel(self) -> None:
        """Close checkout, dropping any pending payment timers."""
        self._reset()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _payment_succeeded(self) -> None:
        self._set_stage(CheckoutStage.SUCCESS)
        self._scheduler.schedule(self._confirmation_delay, self.complete, label="confirmation")

    def _reset(self) -> None:
        self._scheduler.bump()
        self._shipping = None
        self._payment = None
        self._set_stage(None)

    def _set_stage(self, stage: CheckoutStage | None) -> None:
        if stage == self._stage:
            return
        previous = self._stage
        self._stage = stage
        logger.info(
            "checkout_stage_changed",
            previous=previous.value if previous else None,
            stage=stage.value if stage else None,
        )
        if self._on_stage_change is not None:
            self._on_stage_change(stage)

    async def drain(self) -> None:
        """Wait for pending payment and confirmation timers."""
        await self._scheduler.drain()
