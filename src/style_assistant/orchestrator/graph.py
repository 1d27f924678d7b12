"""LangGraph StateGraph for one conversational turn.

Nodes
-----
classify  -- Pick the occasion and its captions, reply, and product bucket
think     -- Reveal captions one at a time with a fixed delay between them
settle    -- Pause, then flip every caption to complete
respond   -- Pause, then emit the assistant message and install the bucket

Edges
-----
classify -> think
think -> settle (if still the current turn) | END
settle -> respond (if still the current turn) | END
respond -> END
"""

from __future__ import annotations

import asyncio

import structlog
from langgraph.graph import END, StateGraph

from style_assistant.catalog.store import CatalogStore
from style_assistant.config import Settings
from style_assistant.models import TurnPhase
from style_assistant.orchestrator.classifier import (
    bucket_for,
    classify,
    response_for,
    thinking_steps_for,
)
from style_assistant.orchestrator.state import TurnHost, TurnState
from style_assistant.orchestrator.thinking import reveal_transitions, settle

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------


def _make_classify_node(store: CatalogStore, settings: Settings):
    """Create the *classify* node function."""

    async def classify_node(state: TurnState) -> TurnState:
        occasion = classify(state["utterance"])
        logger.info(
            "turn_classified",
            occasion=occasion.value,
            generation=state.get("generation"),
        )
        return {
            **state,
            "occasion": occasion,
            "captions": thinking_steps_for(occasion),
            "response": response_for(occasion),
            "products": bucket_for(occasion, store, settings.default_bucket_limit),
            "thinking_steps": [],
            "superseded": False,
        }

    return classify_node


def _make_think_node(host: TurnHost, settings: Settings):
    """Create the *think* node function."""

    async def think_node(state: TurnState) -> TurnState:
        generation = state["generation"]
        steps = state.get("thinking_steps", [])

        for steps in reveal_transitions(state.get("captions", [])):
            await asyncio.sleep(settings.thinking_step_delay)
            if not host.is_current_turn(generation):
                logger.info("turn_superseded", node="think", generation=generation)
                return {**state, "superseded": True}
            host.show_thinking_steps(steps)

        return {**state, "thinking_steps": steps}

    return think_node


def _make_settle_node(host: TurnHost, settings: Settings):
    """Create the *settle* node function."""

    async def settle_node(state: TurnState) -> TurnState:
        generation = state["generation"]
        await asyncio.sleep(settings.thinking_settle_delay)
        if not host.is_current_turn(generation):
            logger.info("turn_superseded", node="settle", generation=generation)
            return {**state, "superseded": True}

        steps = settle(state.get("thinking_steps", []))
        host.set_phase(TurnPhase.FINALIZING)
        host.show_thinking_steps(steps)
        return {**state, "thinking_steps": steps}

    return settle_node


def _make_respond_node(host: TurnHost, settings: Settings):
    """Create the *respond* node function."""

    async def respond_node(state: TurnState) -> TurnState:
        generation = state["generation"]
        await asyncio.sleep(settings.response_delay)
        if not host.is_current_turn(generation):
            logger.info("turn_superseded", node="respond", generation=generation)
            return {**state, "superseded": True}

        reply = host.finalize_turn(state)
        return {**state, "thinking_steps": [], "reply": reply}

    return respond_node


# ---------------------------------------------------------------------------
# Conditional routing
# ---------------------------------------------------------------------------


def _continue_unless_superseded(next_node: str):
    def route(state: TurnState) -> str:
        if state.get("superseded", False):
            return "end"
        return next_node

    return route


# ---------------------------------------------------------------------------
# Graph builder
# ---------------------------------------------------------------------------


def build_turn_graph(
    settings: Settings,
    store: CatalogStore,
    host: TurnHost,
) -> StateGraph:
    """Construct the turn workflow.

    Parameters
    ----------
    settings:
        Supplies the reveal, settle, and response delays.
    store:
        Catalog the product bucket is drawn from.
    host:
        The session receiving step updates and the final message.

    Returns
    -------
    StateGraph
        An uncompiled graph.  Call ``.compile()`` before invoking.
    """
    graph = StateGraph(TurnState)

    graph.add_node("classify", _make_classify_node(store, settings))
    graph.add_node("think", _make_think_node(host, settings))
    graph.add_node("settle", _make_settle_node(host, settings))
    graph.add_node("respond", _make_respond_node(host, settings))

    graph.set_entry_point("classify")

    graph.add_edge("classify", "think")
    graph.add_conditional_edges(
        "think",
        _continue_unless_superseded("settle"),
        {"settle": "settle", "end": END},
    )
    graph.add_conditional_edges(
        "settle",
        _continue_unless_superseded("respond"),
        {"respond": "respond", "end": END},
    )
    graph.add_edge("respond", END)

    return graph


def compile_turn_graph(settings: Settings, store: CatalogStore, host: TurnHost):
    """Build and compile the turn graph into a runnable."""
    return build_turn_graph(settings, store, host).compile()
