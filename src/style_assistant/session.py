"""Stylist session: the engine presentation code talks to.

A session owns the conversation history, the thinking-step list, the filter
state and its active prompt cursor, the product bucket, the cart ledger, and
the checkout sequencer.  Every observable change is also published on the
session's :class:`SessionEventStream`.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from pydantic import ValidationError

from style_assistant.catalog.store import CatalogStore
from style_assistant.commerce.cart import CartLedger
from style_assistant.commerce.checkout import CheckoutSequencer
from style_assistant.config import Settings
from style_assistant.filters import (
    FILTER_PROMPTS,
    apply_filters,
    color_response,
    default_filters,
    price_response,
    size_response,
    toggled,
    unique_brands,
    unique_categories,
)
from style_assistant.models import (
    CartLineItem,
    CartTotals,
    CheckoutStage,
    EcommerceMode,
    FilterPrompt,
    Filters,
    Message,
    MessageRole,
    OrderConfirmation,
    PaymentDetails,
    Product,
    Retailer,
    SessionView,
    ShippingDetails,
    ThinkingStep,
    TurnPhase,
)
from style_assistant.orchestrator.graph import compile_turn_graph
from style_assistant.orchestrator.state import TurnState
from style_assistant.scheduler import DelayScheduler
from style_assistant.streaming import (
    EVENT_ASSISTANT_MESSAGE,
    EVENT_CART_UPDATED,
    EVENT_CHECKOUT_STAGE,
    EVENT_FILTER_RESPONSE,
    EVENT_FILTERS_CHANGED,
    EVENT_ORDER_COMPLETED,
    EVENT_PROMPT_ADVANCED,
    EVENT_THINKING,
    EVENT_USER_MESSAGE,
    SessionEventStream,
)

logger = structlog.get_logger(__name__)

GREETING = (
    "Hi! I'm your personal fashion stylist. Tell me about your style, occasion, "
    "or what you're looking for, and I'll curate the perfect pieces for you."
)

SUGGESTIONS: tuple[str, ...] = (
    "Show me elegant dresses for a wedding",
    "I need comfortable everyday outfits",
    "Help me build a work wardrobe",
    "Find me statement accessories",
)


def _new_id() -> str:
    return uuid.uuid4().hex


class StylistSession:
    """One user's shopping conversation.

    Turns must be serialized by the caller.  If a turn is started while
    another is still thinking, the older one is superseded and its pending
    updates are discarded.

    All methods must be called from within a running event loop whenever a
    configured delay is positive.
    """

    def __init__(
        self,
        settings: Settings,
        store: CatalogStore,
        stream: SessionEventStream | None = None,
        session_id: str | None = None,
    ) -> None:
        self.settings = settings
        self.id = session_id or str(uuid.uuid4())
        self.mode = EcommerceMode(settings.ecommerce_mode)
        self._store = store
        self._stream = stream or SessionEventStream()

        self._turns = DelayScheduler("turn")
        # Filter confirmations and cursor advances belong to one assistant reply
        self._filter_timers = DelayScheduler("filters")
        self._phase = TurnPhase.IDLE
        self._messages: list[Message] = [
            Message(id=_new_id(), role=MessageRole.ASSISTANT, content=GREETING)
        ]
        self._thinking_steps: list[ThinkingStep] = []
        self._filter_responses: list[str] = []
        self._filters = default_filters(settings.default_price_range)
        self._products: list[Product] = []

        # Prompt cursor, kept beside the history rather than inside it
        self._prompt_index: int | None = None
        self._prompt_message_id: str | None = None

        self.cart = CartLedger(
            tax_rate=settings.tax_rate,
            free_shipping_threshold=settings.free_shipping_threshold,
            flat_shipping_fee=settings.flat_shipping_fee,
        )
        self.checkout = CheckoutSequencer(
            self.cart,
            processing_delay=settings.payment_processing_delay,
            confirmation_delay=settings.order_confirmation_delay,
            on_stage_change=self._on_checkout_stage,
            on_complete=self._on_order_completed,
        )

        self._graph = compile_turn_graph(settings, store, self)

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    async def submit_utterance(self, text: str) -> Message | None:
        """Run one turn for *text* and return the assistant reply.

        Blank input is ignored.  Returns ``None`` if the turn was superseded
        by a newer one before it finished.
        """
        content = text.strip()
        if not content:
            logger.debug("utterance_rejected", session_id=self.id)
            return None

        generation = self._turns.bump()
        self._filter_timers.bump()
        user_message = Message(id=_new_id(), role=MessageRole.USER, content=content)
        self._messages.append(user_message)
        self._thinking_steps = []
        self._filter_responses = []
        self._clear_prompt()
        self._phase = TurnPhase.ACCEPTING

        logger.info("turn_started", session_id=self.id, generation=generation)
        self._emit(EVENT_USER_MESSAGE, {"id": user_message.id}, message=content)

        initial: TurnState = {"utterance": content, "generation": generation}
        result = await self._graph.ainvoke(initial)

        if result.get("superseded", False):
            return None
        return result.get("reply")

    def advance_prompt(self) -> FilterPrompt | None:
        """Move the prompt cursor forward by one and return the new active prompt.

        A no-op unless the latest message is from the assistant and a prompt
        is currently active.  Returns ``None`` once the sequence is exhausted.
        """
        if not self._messages or self._messages[-1].role != MessageRole.ASSISTANT:
            logger.debug("prompt_advance_ignored", session_id=self.id, reason="no_assistant_message")
            return None
        if self._prompt_index is None:
            return None

        next_index = self._prompt_index + 1
        if next_index < len(FILTER_PROMPTS):
            self._prompt_index = next_index
        else:
            self._clear_prompt()

        prompt = self.active_prompt
        logger.info(
            "prompt_advanced",
            session_id=self.id,
            prompt=prompt.type.value if prompt else None,
        )
        self._emit(EVENT_PROMPT_ADVANCED, {"prompt": prompt.model_dump(mode="json") if prompt else None})
        return prompt

    # ------------------------------------------------------------------
    # Turn graph callbacks
    # ------------------------------------------------------------------

    def is_current_turn(self, generation: int) -> bool:
        return self._turns.is_current(generation)

    def set_phase(self, phase: TurnPhase) -> None:
        self._phase = phase

    def show_thinking_steps(self, steps: list[ThinkingStep]) -> None:
        self._thinking_steps = list(steps)
        self._emit(EVENT_THINKING, {"steps": [s.model_dump(mode="json") for s in steps]})

    def finalize_turn(self, state: TurnState) -> Message:
        message = Message(id=_new_id(), role=MessageRole.ASSISTANT, content=state["response"])
        self._messages.append(message)
        self._products = list(state.get("products", []))
        self._filters = default_filters(self.settings.default_price_range)
        self._filter_responses = []
        self._filter_timers.bump()
        self._prompt_index = 0
        self._prompt_message_id = message.id
        self._thinking_steps = []
        self._phase = TurnPhase.IDLE

        occasion = state.get("occasion")
        logger.info(
            "turn_completed",
            session_id=self.id,
            occasion=occasion.value if occasion else None,
            products=len(self._products),
        )
        self._emit(
            EVENT_ASSISTANT_MESSAGE,
            {
                "id": message.id,
                "occasion": occasion.value if occasion else None,
                "product_count": len(self._products),
                "prompt": FILTER_PROMPTS[0].model_dump(mode="json"),
            },
            message=message.content,
        )
        return message

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def change_filters(self, **partial: Any) -> Filters:
        """Merge *partial* into the filter state without narration."""
        unknown = set(partial) - set(Filters.model_fields)
        if unknown:
            logger.warning("unknown_filter_keys_dropped", session_id=self.id, keys=sorted(unknown))
        update = {key: value for key, value in partial.items() if key not in unknown}

        try:
            filters = Filters.model_validate({**self._filters.model_dump(), **update})
        except ValidationError as exc:
            logger.warning(
                "invalid_filters_rejected",
                session_id=self.id,
                keys=sorted(update),
                errors=exc.error_count(),
            )
            return self.filters

        self._filters = filters
        self._emit(
            EVENT_FILTERS_CHANGED,
            {"filters": self._filters.model_dump(mode="json"), "visible": len(self.visible_products)},
        )
        return self._filters

    def reset_filters(self) -> Filters:
        self._filters = default_filters(self.settings.default_price_range)
        self._emit(
            EVENT_FILTERS_CHANGED,
            {"filters": self._filters.model_dump(mode="json"), "visible": len(self.visible_products)},
        )
        return self._filters

    def select_price_range(self, low: float, high: float) -> Filters:
        """Answer the price prompt. Always confirms and advances the cursor."""
        filters = self.change_filters(price_range=(low, high))
        self._confirm(price_response((low, high)))
        self._schedule_advance()
        return filters

    def toggle_color(self, color: str) -> Filters:
        """Toggle *color*; only switching it on confirms and advances."""
        switching_on = color not in self._filters.colors
        filters = self.change_filters(colors=toggled(self._filters.colors, color))
        if switching_on:
            self._confirm(color_response(color))
            self._schedule_advance()
        return filters

    def toggle_size(self, size: str) -> Filters:
        """Toggle *size*; only switching it on confirms and advances."""
        switching_on = size not in self._filters.sizes
        filters = self.change_filters(sizes=toggled(self._filters.sizes, size))
        if switching_on:
            self._confirm(size_response(size))
            self._schedule_advance()
        return filters

    def _confirm(self, text: str) -> None:
        def append() -> None:
            self._filter_responses.append(text)
            self._emit(EVENT_FILTER_RESPONSE, message=text)

        self._filter_timers.schedule(self.settings.filter_response_delay, append, label="filter_response")

    def _schedule_advance(self) -> None:
        self._filter_timers.schedule(self.settings.filter_advance_delay, self.advance_prompt, label="advance_prompt")

    # ------------------------------------------------------------------
    # Cart and checkout
    # ------------------------------------------------------------------

    @property
    def commerce_enabled(self) -> bool:
        return self.mode == EcommerceMode.FULL

    def add_to_cart(
        self,
        product: Product | str,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLineItem | None:
        """Add one unit of *product* (a product or its id) to the cart."""
        if not self._commerce_allowed("add_to_cart"):
            return None
        if isinstance(product, str):
            resolved = self._store.get(product)
            if resolved is None:
                logger.warning("unknown_product", session_id=self.id, product_id=product)
                return None
            product = resolved

        line = self.cart.add(product, size, color)
        self._emit_cart()
        return line

    def update_cart_quantity(
        self,
        product_id: str,
        quantity: int,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLineItem | None:
        if not self._commerce_allowed("update_cart_quantity"):
            return None
        line = self.cart.set_quantity(product_id, quantity, size, color)
        self._emit_cart()
        return line

    def remove_from_cart(self, product_id: str, size: str | None = None, color: str | None = None) -> bool:
        if not self._commerce_allowed("remove_from_cart"):
            return False
        removed = self.cart.remove(product_id, size, color)
        if removed:
            self._emit_cart()
        return removed

    def begin_checkout(self) -> CheckoutStage | None:
        if not self._commerce_allowed("begin_checkout"):
            return None
        return self.checkout.begin()

    def submit_shipping(self, details: ShippingDetails) -> CheckoutStage | None:
        if not self._commerce_allowed("submit_shipping"):
            return None
        return self.checkout.submit_shipping(details)

    def back_to_shipping(self) -> CheckoutStage | None:
        if not self._commerce_allowed("back_to_shipping"):
            return None
        return self.checkout.back_to_shipping()

    def submit_payment(self, details: PaymentDetails) -> CheckoutStage | None:
        if not self._commerce_allowed("submit_payment"):
            return None
        return self.checkout.submit_payment(details)

    def cancel_checkout(self) -> None:
        self.checkout.cancel()

    def complete_checkout(self) -> OrderConfirmation | None:
        """Complete the order immediately, clearing the cart."""
        if not self._commerce_allowed("complete_checkout"):
            return None
        return self.checkout.complete()

    def retailer_links(self, product_id: str) -> list[Retailer]:
        """Return a product's external retailers (browse-only catalog mode)."""
        if self.commerce_enabled:
            return []
        product = self._store.get(product_id)
        return list(product.retailers) if product else []

    def _commerce_allowed(self, operation: str) -> bool:
        if self.commerce_enabled:
            return True
        logger.warning("commerce_disabled", session_id=self.id, operation=operation, mode=self.mode.value)
        return False

    def _on_checkout_stage(self, stage: CheckoutStage | None) -> None:
        self._emit(EVENT_CHECKOUT_STAGE, {"stage": stage.value if stage else None})

    def _on_order_completed(self, confirmation: OrderConfirmation) -> None:
        self._emit(
            EVENT_ORDER_COMPLETED,
            {"order_id": confirmation.order_id, "total": confirmation.totals.total},
            message=f"Order {confirmation.order_id} confirmed.",
        )
        self._emit_cart()

    def _emit_cart(self) -> None:
        totals = self.cart.totals()
        self._emit(
            EVENT_CART_UPDATED,
            {"lines": self.cart.line_count, "items": self.cart.item_count, "total": totals.total},
        )

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    @property
    def is_loading(self) -> bool:
        return self._phase != TurnPhase.IDLE

    @property
    def active_prompt(self) -> FilterPrompt | None:
        if self._prompt_index is None:
            return None
        return FILTER_PROMPTS[self._prompt_index]

    @property
    def messages(self) -> list[Message]:
        """History with the active prompt joined onto its assistant message."""
        prompt = self.active_prompt
        joined: list[Message] = []
        for message in self._messages:
            if prompt is not None and message.id == self._prompt_message_id:
                message = message.model_copy(update={"filter_prompts": [prompt]})
            joined.append(message)
        return joined

    @property
    def suggestions(self) -> list[str]:
        return list(SUGGESTIONS) if len(self._messages) == 1 else []

    @property
    def thinking_steps(self) -> list[ThinkingStep]:
        return list(self._thinking_steps)

    @property
    def filter_responses(self) -> list[str]:
        return list(self._filter_responses)

    @property
    def filters(self) -> Filters:
        return self._filters.model_copy(deep=True)

    @property
    def products(self) -> list[Product]:
        return list(self._products)

    @property
    def visible_products(self) -> list[Product]:
        return apply_filters(self._products, self._filters)

    @property
    def available_brands(self) -> list[str]:
        return unique_brands(self._products)

    @property
    def available_categories(self) -> list[str]:
        return unique_categories(self._products)

    @property
    def cart_lines(self) -> list[CartLineItem]:
        return self.cart.lines

    @property
    def cart_totals(self) -> CartTotals:
        return self.cart.totals()

    @property
    def checkout_stage(self) -> CheckoutStage | None:
        return self.checkout.stage

    @property
    def stream(self) -> SessionEventStream:
        return self._stream

    def product(self, product_id: str) -> Product | None:
        return self._store.get(product_id)

    def view(self) -> SessionView:
        """Snapshot everything the presentation layer renders."""
        return SessionView(
            session_id=self.id,
            mode=self.mode,
            phase=self._phase,
            messages=self.messages,
            suggestions=self.suggestions,
            thinking_steps=self.thinking_steps,
            filter_responses=self.filter_responses,
            filters=self.filters,
            visible_products=self.visible_products,
            available_brands=self.available_brands,
            available_categories=self.available_categories,
            cart_lines=self.cart_lines,
            cart_totals=self.cart_totals,
            checkout_stage=self.checkout_stage,
        )

    async def drain(self) -> None:
        """Wait for every pending filter and checkout timer to fire."""
        await self._filter_timers.drain()
        await self.checkout.drain()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _clear_prompt(self) -> None:
        self._prompt_index = None
        self._prompt_message_id = None

    def _emit(self, event_type: str, data: dict[str, Any] | None = None, message: str = "") -> None:
        self._stream.emit(self.id, event_type, data=data, message=message)
