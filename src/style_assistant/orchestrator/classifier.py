"""Keyword classification of user utterances.

An utterance is classified once into an :class:`Occasion`; the thinking-step
captions, the assistant reply, and the product bucket are then three total
lookups over that single value, so they cannot disagree for the same input.
"""

from __future__ import annotations

import enum

from style_assistant.catalog.store import CatalogStore
from style_assistant.models import Product


class Occasion(str, enum.Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    WORK = "work"
    DEFAULT = "default"


# Checked in order; the first group with a matching keyword wins
_KEYWORD_GROUPS: tuple[tuple[Occasion, tuple[str, ...]], ...] = (
    (Occasion.FORMAL, ("dress", "evening", "formal")),
    (Occasion.CASUAL, ("casual", "everyday", "comfortable")),
    (Occasion.WORK, ("work", "office", "professional")),
)

_THINKING_STEPS: dict[Occasion, tuple[str, ...]] = {
    Occasion.FORMAL: (
        "Analyzing your occasion and style preferences...",
        "Searching our formal wear collection...",
        "Evaluating silhouettes and fabrics for elegance...",
        "Curating the perfect pieces for you...",
    ),
    Occasion.CASUAL: (
        "Understanding your comfort priorities...",
        "Exploring casual essentials and versatile pieces...",
        "Considering color palettes and fabric textures...",
        "Selecting items that match your lifestyle...",
    ),
    Occasion.WORK: (
        "Assessing professional style requirements...",
        "Browsing contemporary workwear collections...",
        "Balancing sophistication with comfort...",
        "Building your ideal work wardrobe...",
    ),
    Occasion.DEFAULT: (
        "Processing your style preferences...",
        "Analyzing current trends and timeless pieces...",
        "Matching items to your aesthetic...",
        "Finalizing your personalized selection...",
    ),
}

_RESPONSES: dict[Occasion, str] = {
    Occasion.FORMAL: (
        "I've curated a selection of elegant dresses perfect for formal occasions. "
        "These pieces combine timeless sophistication with modern cuts. "
        "Would you like to see more casual options or accessories to complete the look?"
    ),
    Occasion.CASUAL: (
        "Here are some effortlessly chic casual pieces that prioritize comfort without "
        "sacrificing style. These versatile items can be mixed and matched for endless "
        "outfit possibilities. What's your preferred color palette?"
    ),
    Occasion.WORK: (
        "I've selected polished pieces perfect for the modern workplace. These items "
        "strike the perfect balance between professional and stylish. "
        "Would you like to explore statement accessories?"
    ),
    Occasion.DEFAULT: (
        "Based on your preferences, I've curated a collection that matches your style. "
        "Each piece has been selected for quality, fit, and versatility. Let me know if "
        "you'd like to refine the selection or explore different categories!"
    ),
}

_BUCKETS: dict[Occasion, str | None] = {
    Occasion.FORMAL: "dress",
    Occasion.CASUAL: "casual",
    Occasion.WORK: "work",
    Occasion.DEFAULT: None,
}


def classify(utterance: str) -> Occasion:
    """Classify *utterance* by case-insensitive keyword containment."""
    lowered = utterance.lower()
    for occasion, keywords in _KEYWORD_GROUPS:
        if any(keyword in lowered for keyword in keywords):
            return occasion
    return Occasion.DEFAULT


def thinking_steps_for(occasion: Occasion) -> list[str]:
    return list(_THINKING_STEPS[occasion])


def response_for(occasion: Occasion) -> str:
    return _RESPONSES[occasion]


def bucket_for(occasion: Occasion, store: CatalogStore, default_limit: int = 50) -> list[Product]:
    """Return the product bucket for *occasion*.

    The default bucket is the first *default_limit* products of all buckets
    combined.
    """
    name = _BUCKETS[occasion]
    if name is None:
        return store.combined(limit=default_limit)
    return store.bucket(name)
