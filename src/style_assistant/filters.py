"""Product filter pipeline and guided filter prompts.

``apply_filters`` is a pure, order-preserving conjunctive filter.  The rest
of the module holds the fixed prompt sequence and the canned confirmation
sentences produced when the user answers a prompt.
"""

from __future__ import annotations

from typing import Iterable

from style_assistant.models import FilterPrompt, FilterPromptType, Filters, Product

COLOR_OPTIONS: tuple[str, ...] = (
    "Black", "White", "Navy", "Beige", "Gray", "Blue", "Red", "Pink", "Green",
)
SIZE_OPTIONS: tuple[str, ...] = ("XS", "S", "M", "L", "XL", "XXL")

# The same three prompts are asked every turn, whatever the classification
FILTER_PROMPTS: tuple[FilterPrompt, ...] = (
    FilterPrompt(type=FilterPromptType.PRICE, label="What's your budget?"),
    FilterPrompt(type=FilterPromptType.COLOR, label="Preferred colors?", options=COLOR_OPTIONS),
    FilterPrompt(type=FilterPromptType.SIZE, label="Your size?", options=SIZE_OPTIONS),
)

# Quick-pick price buttons offered by the price prompt
PRICE_PRESETS: dict[str, tuple[float, float]] = {
    "Under $100": (0, 100),
    "$100-$300": (100, 300),
    "$300-$600": (300, 600),
}
PRICE_SLIDER_BOUNDS: tuple[float, float] = (0, 1000)
PRICE_SLIDER_STEP = 50

_COLOR_RESPONSES: dict[str, str] = {
    "Black": "Classic choice! Black is timeless, versatile, and effortlessly sophisticated.",
    "Navy": "Navy is elegant and professional - a wardrobe essential that pairs beautifully with everything.",
    "White": "White pieces add freshness and elegance. Perfect for creating crisp, polished looks.",
    "Beige": "Beige tones are wonderfully neutral and create soft, sophisticated outfits.",
    "Gray": "Gray is understated yet refined - ideal for building a versatile wardrobe.",
    "Red": "Bold and confident! Red makes a powerful statement and adds energy to any look.",
    "Pink": "Pink brings a feminine, romantic touch. It's both playful and elegant.",
    "Blue": "Blue is calming and universally flattering. A great choice for any occasion.",
    "Green": "Green adds a fresh, natural element. It's unique yet surprisingly versatile.",
}


def default_filters(price_range: tuple[float, float] = (0, 1000)) -> Filters:
    """Return a filter state that constrains nothing but price."""
    return Filters(price_range=price_range)


def _matches(product: Product, filters: Filters) -> bool:
    low, high = filters.price_range
    if product.price < low or product.price > high:
        return False

    if filters.categories and product.category not in filters.categories:
        return False

    if filters.brands and product.brand not in filters.brands:
        return False

    # Colors and sizes pass on any overlap, not containment
    if filters.colors and not any(c in product.colors for c in filters.colors):
        return False

    if filters.sizes and not any(s in product.sizes for s in filters.sizes):
        return False

    return True


def apply_filters(products: Iterable[Product], filters: Filters) -> list[Product]:
    """Return the products passing every constrained dimension, in order."""
    return [product for product in products if _matches(product, filters)]


def toggled(values: list[str], value: str) -> list[str]:
    """Return *values* with *value* removed if present, else appended."""
    if value in values:
        return [v for v in values if v != value]
    return [*values, value]


def unique_brands(products: Iterable[Product]) -> list[str]:
    return list(dict.fromkeys(p.brand for p in products))


def unique_categories(products: Iterable[Product]) -> list[str]:
    return list(dict.fromkeys(p.category for p in products))


# ---------------------------------------------------------------------------
# Confirmation sentences
# ---------------------------------------------------------------------------


def _format_amount(amount: float) -> str:
    return f"{amount:g}"


def price_response(price_range: tuple[float, float]) -> str:
    low, high = price_range
    if high <= 100:
        return (
            "Perfect! I'm focusing on budget-friendly pieces under $100. "
            "These options offer great value without compromising on style."
        )
    if low >= 300:
        return (
            "Excellent choice! I'm curating premium pieces in your price range. "
            "These items feature exceptional quality and craftsmanship."
        )
    return (
        f"Great! I've adjusted the selection to show pieces between "
        f"${_format_amount(low)}-${_format_amount(high)}. "
        "This range offers a perfect balance of quality and value."
    )


def color_response(color: str) -> str:
    return _COLOR_RESPONSES.get(
        color,
        f"I love {color}! I'm filtering to show pieces in this beautiful color.",
    )


def size_response(size: str) -> str:
    return (
        f"Filtering for size {size}. All pieces shown will be available in your "
        "selected size for a perfect fit."
    )
