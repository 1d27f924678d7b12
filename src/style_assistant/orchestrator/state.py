"""LangGraph state schema for a conversational turn.

``TurnState`` carries one utterance through classify -> think -> settle ->
respond.  Nodes never touch the session directly; they go through the
:class:`TurnHost` callbacks the session implements.
"""

from __future__ import annotations

from typing import Protocol, TypedDict

from style_assistant.models import Message, Product, ThinkingStep, TurnPhase
from style_assistant.orchestrator.classifier import Occasion


class TurnState(TypedDict, total=False):
    """Typed dictionary describing the data flowing through a turn."""

    # --- Input ----------------------------------------------------------------
    utterance: str
    generation: int

    # --- Classification -------------------------------------------------------
    occasion: Occasion
    captions: list[str]
    response: str
    products: list[Product]

    # --- Progress -------------------------------------------------------------
    thinking_steps: list[ThinkingStep]
    superseded: bool

    # --- Output ---------------------------------------------------------------
    reply: Message | None


class TurnHost(Protocol):
    """Callbacks a session exposes to the turn graph."""

    def is_current_turn(self, generation: int) -> bool: ...

    def set_phase(self, phase: TurnPhase) -> None: ...

    def show_thinking_steps(self, steps: list[ThinkingStep]) -> None: ...

    def finalize_turn(self, state: TurnState) -> Message: ...
