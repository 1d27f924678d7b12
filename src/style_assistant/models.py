"""Pydantic models for the style assistant.

Covers catalog products, filter state and prompts, conversation messages,
thinking steps, cart lines and totals, checkout details, session events,
and the read-only session view handed to presentation code.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class Retailer(BaseModel):
    """An external store that sells a product (surfaced in catalog mode)."""

    model_config = ConfigDict(frozen=True)

    name: str
    logo: str = ""
    url: str = "#"


class Product(BaseModel):
    """A single catalog product. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = Field(ge=0)
    category: str
    brand: str
    colors: tuple[str, ...] = Field(min_length=1)
    sizes: tuple[str, ...] = Field(min_length=1)
    image: str = ""
    description: str | None = None
    retailers: tuple[Retailer, ...] = ()


# ---------------------------------------------------------------------------
# Filters and prompts
# ---------------------------------------------------------------------------


class Filters(BaseModel):
    """Five-attribute filter state. An empty dimension constrains nothing."""

    price_range: tuple[float, float] = (0, 1000)
    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    brands: list[str] = Field(default_factory=list)


class FilterPromptType(str, enum.Enum):
    """Kinds of guided filter question."""

    PRICE = "price"
    COLOR = "color"
    SIZE = "size"
    CATEGORY = "category"
    BRAND = "brand"


class FilterPrompt(BaseModel):
    """One pending filter question shown inline in the conversation."""

    model_config = ConfigDict(frozen=True)

    type: FilterPromptType
    label: str
    options: tuple[str, ...] | None = None


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class MessageRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A conversation message. History entries are never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: MessageRole
    content: str
    filter_prompts: list[FilterPrompt] | None = None


class ThinkingStatus(str, enum.Enum):
    THINKING = "thinking"
    COMPLETE = "complete"


class ThinkingStep(BaseModel):
    """A transient "assistant is thinking" caption."""

    model_config = ConfigDict(frozen=True)

    id: str
    step: str
    status: ThinkingStatus = ThinkingStatus.THINKING


class TurnPhase(str, enum.Enum):
    """Lifecycle of a single conversational turn."""

    IDLE = "idle"
    ACCEPTING = "accepting"
    FINALIZING = "finalizing"


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class CartLineItem(BaseModel):
    """A cart entry keyed by (product id, size, color)."""

    product: Product
    quantity: int = Field(default=1, ge=1)
    size: str | None = None
    color: str | None = None

    @property
    def key(self) -> tuple[str, str | None, str | None]:
        return (self.product.id, self.size, self.color)

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


class CartTotals(BaseModel):
    """Derived cart amounts. Never stored; recomputed on every read."""

    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    total: float = 0.0
    amount_to_free_shipping: float = 0.0


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class CheckoutStage(str, enum.Enum):
    """Linear checkout stages."""

    SHIPPING = "shipping"
    PAYMENT = "payment"
    PROCESSING = "processing"
    SUCCESS = "success"


class ShippingDetails(BaseModel):
    """Shipping form contents. Required-ness is enforced by the form, not here."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


class PaymentDetails(BaseModel):
    """Payment form contents for the simulated payment step."""

    card_number: str = ""
    expiry: str = ""
    cvv: str = ""
    name_on_card: str = ""


class OrderConfirmation(BaseModel):
    """Summary of a completed (simulated) order."""

    order_id: str
    lines: list[CartLineItem] = Field(default_factory=list)
    totals: CartTotals = Field(default_factory=CartTotals)
    shipping_details: ShippingDetails | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# Session events and views
# ---------------------------------------------------------------------------


class EcommerceMode(str, enum.Enum):
    FULL = "full"
    CATALOG = "catalog"


class SessionEvent(BaseModel):
    """Event published on every observable session state change."""

    event_type: str
    session_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SessionView(BaseModel):
    """Read-only snapshot of everything presentation code renders."""

    session_id: str
    mode: EcommerceMode
    phase: TurnPhase
    messages: list[Message] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    thinking_steps: list[ThinkingStep] = Field(default_factory=list)
    filter_responses: list[str] = Field(default_factory=list)
    filters: Filters = Field(default_factory=Filters)
    visible_products: list[Product] = Field(default_factory=list)
    available_brands: list[str] = Field(default_factory=list)
    available_categories: list[str] = Field(default_factory=list)
    cart_lines: list[CartLineItem] = Field(default_factory=list)
    cart_totals: CartTotals = Field(default_factory=CartTotals)
    checkout_stage: CheckoutStage | None = None
