"""Tests for the stylist session: turns, prompt cursor, filters, cart, and modes."""

import asyncio

import pytest

from style_assistant.config import Settings
from style_assistant.main import build_session
from style_assistant.models import (
    CheckoutStage,
    FilterPromptType,
    MessageRole,
    PaymentDetails,
    ShippingDetails,
    ThinkingStatus,
    TurnPhase,
)
from style_assistant.orchestrator.classifier import Occasion, thinking_steps_for
from style_assistant.session import GREETING, SUGGESTIONS
from style_assistant.streaming import (
    EVENT_ASSISTANT_MESSAGE,
    EVENT_CHECKOUT_STAGE,
    EVENT_THINKING,
)


def _prompt_type(session):
    prompt = session.active_prompt
    return prompt.type if prompt else None


class TestNewSession:
    def test_starts_with_greeting_and_suggestions(self, session):
        messages = session.messages
        assert len(messages) == 1
        assert messages[0].role == MessageRole.ASSISTANT
        assert messages[0].content == GREETING
        assert session.suggestions == list(SUGGESTIONS)
        assert session.visible_products == []
        assert session.phase == TurnPhase.IDLE

    def test_advance_without_active_prompt_is_noop(self, session):
        assert session.advance_prompt() is None
        assert session.messages[0].filter_prompts is None


class TestTurns:
    async def test_formal_scenario(self, session):
        reply = await session.submit_utterance("Show me elegant dresses for a wedding")

        assert reply is not None
        assert "elegant dresses" in reply.content
        assert len(session.products) == 15
        assert session.visible_products == session.products
        assert _prompt_type(session) == FilterPromptType.PRICE

        messages = session.messages
        assert [m.role for m in messages] == [
            MessageRole.ASSISTANT,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert messages[1].content == "Show me elegant dresses for a wedding"
        assert messages[-1].filter_prompts[0].type == FilterPromptType.PRICE
        assert session.thinking_steps == []
        assert session.suggestions == []

    async def test_thinking_steps_are_revealed_in_order(self, session):
        await session.submit_utterance("Show me elegant dresses for a wedding")

        updates = [e.data["steps"] for e in session.stream.get_history(session.id, EVENT_THINKING)]
        captions = thinking_steps_for(Occasion.FORMAL)

        # four reveals and one settle
        assert len(updates) == 5
        for index, steps in enumerate(updates[:4]):
            assert [s["step"] for s in steps] == captions[: index + 1]
            assert steps[-1]["status"] == ThinkingStatus.THINKING.value
            assert all(s["status"] == ThinkingStatus.COMPLETE.value for s in steps[:-1])
        assert all(s["status"] == ThinkingStatus.COMPLETE.value for s in updates[4])

    async def test_user_message_is_appended_before_thinking(self, store, settings_factory):
        session = build_session(settings_factory(thinking_step_delay=0.02), store=store)
        task = asyncio.create_task(session.submit_utterance("casual weekend"))
        await asyncio.sleep(0.03)

        assert session.messages[-1].role == MessageRole.USER
        assert session.phase == TurnPhase.ACCEPTING
        assert session.is_loading
        assert 1 <= len(session.thinking_steps) <= 4
        assert session.advance_prompt() is None

        await task
        assert session.phase == TurnPhase.IDLE
        assert session.messages[-1].role == MessageRole.ASSISTANT

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_blank_input_is_ignored(self, session, text):
        assert await session.submit_utterance(text) is None
        assert len(session.messages) == 1
        assert session.stream.get_history(session.id) == []

    async def test_input_is_trimmed(self, session):
        await session.submit_utterance("  office looks  ")
        assert session.messages[1].content == "office looks"

    async def test_default_bucket(self, session):
        await session.submit_utterance("Find me statement accessories")
        assert len(session.products) == 43

    async def test_new_turn_resets_filters_and_bucket(self, session):
        await session.submit_utterance("dresses please")
        session.select_price_range(0, 300)
        session.toggle_color("Red")
        assert session.filter_responses

        await session.submit_utterance("something for work")

        assert session.filters.price_range == (0, 1000)
        assert session.filters.colors == []
        assert session.filter_responses == []
        assert [p.id for p in session.visible_products][:2] == ["w1", "w2"]
        assert _prompt_type(session) == FilterPromptType.PRICE

    async def test_older_prompt_is_not_shown_after_new_turn(self, session):
        await session.submit_utterance("dresses please")
        first_reply_id = session.messages[-1].id
        await session.submit_utterance("casual")

        old = next(m for m in session.messages if m.id == first_reply_id)
        assert old.filter_prompts is None
        assert session.messages[-1].filter_prompts is not None

    async def test_superseded_turn_leaves_no_trace(self, store, settings_factory):
        session = build_session(settings_factory(thinking_step_delay=0.03), store=store)
        first = asyncio.create_task(session.submit_utterance("formal evening"))
        await asyncio.sleep(0.04)

        second = await session.submit_utterance("comfortable basics")

        assert await first is None
        assert second is not None
        assert [m.role for m in session.messages] == [
            MessageRole.ASSISTANT,
            MessageRole.USER,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert all(p.id.startswith("c") for p in session.products)
        replies = session.stream.get_history(session.id, EVENT_ASSISTANT_MESSAGE)
        assert [e.data["occasion"] for e in replies] == ["casual"]


class TestPromptCursor:
    @pytest.mark.parametrize(
        "utterance",
        [
            "Show me elegant dresses for a wedding",
            "I need comfortable everyday outfits",
            "Help me build a work wardrobe",
            "Find me statement accessories",
        ],
    )
    async def test_sequence_is_price_color_size_then_none(self, session, utterance):
        await session.submit_utterance(utterance)
        seen = [_prompt_type(session)]
        for _ in range(3):
            session.advance_prompt()
            seen.append(_prompt_type(session))

        assert seen == [
            FilterPromptType.PRICE,
            FilterPromptType.COLOR,
            FilterPromptType.SIZE,
            None,
        ]
        assert session.messages[-1].filter_prompts is None
        assert session.advance_prompt() is None

    async def test_answers_drive_the_cursor(self, session):
        await session.submit_utterance("dresses")

        session.select_price_range(100, 300)
        assert _prompt_type(session) == FilterPromptType.COLOR
        session.toggle_color("Navy")
        assert _prompt_type(session) == FilterPromptType.SIZE
        session.toggle_size("XL")
        assert _prompt_type(session) is None

        assert [p.id for p in session.visible_products] == ["d3"]
        assert len(session.filter_responses) == 3
        assert "between $100-$300" in session.filter_responses[0]

    async def test_color_toggle_off_is_silent(self, session):
        await session.submit_utterance("dresses")
        session.select_price_range(0, 1000)
        session.toggle_color("Black")
        assert _prompt_type(session) == FilterPromptType.SIZE
        responses = session.filter_responses

        session.toggle_color("Black")

        assert session.filters.colors == []
        assert session.filter_responses == responses
        assert _prompt_type(session) == FilterPromptType.SIZE

    async def test_size_toggle_off_is_silent(self, session):
        await session.submit_utterance("dresses")
        session.advance_prompt()
        session.advance_prompt()
        session.toggle_size("M")
        assert _prompt_type(session) is None
        count = len(session.filter_responses)

        session.toggle_size("M")
        assert session.filters.sizes == []
        assert len(session.filter_responses) == count

    async def test_each_pending_advance_moves_one_step(self, store, settings_factory):
        session = build_session(settings_factory(filter_advance_delay=0.01), store=store)
        await session.submit_utterance("dresses")
        session.select_price_range(0, 100)
        session.toggle_color("Black")
        assert _prompt_type(session) == FilterPromptType.PRICE

        await session.drain()
        assert _prompt_type(session) == FilterPromptType.SIZE

    async def test_stale_advance_does_not_touch_next_turn(self, store, settings_factory):
        session = build_session(settings_factory(filter_advance_delay=0.02), store=store)
        await session.submit_utterance("dresses")
        session.toggle_color("Black")

        await session.submit_utterance("casual")
        await session.drain()

        assert _prompt_type(session) == FilterPromptType.PRICE
        assert session.filter_responses == []

    @pytest.mark.parametrize("response_delay", [0, 0.05])
    async def test_answer_during_thinking_does_not_leak_into_reply(
        self, store, settings_factory, response_delay
    ):
        session = build_session(
            settings_factory(
                thinking_step_delay=0.02,
                filter_response_delay=response_delay,
                filter_advance_delay=0.2,
            ),
            store=store,
        )
        await session.submit_utterance("dresses")
        turn = asyncio.create_task(session.submit_utterance("casual"))
        await asyncio.sleep(0.03)
        session.toggle_color("Black")

        assert await turn is not None
        assert session.filters.colors == []
        assert session.filter_responses == []
        assert _prompt_type(session) == FilterPromptType.PRICE

        await session.drain()
        assert session.filter_responses == []
        assert _prompt_type(session) == FilterPromptType.PRICE

    async def test_delayed_confirmations_are_appended(self, store, settings_factory):
        session = build_session(
            settings_factory(filter_response_delay=0.01, filter_advance_delay=0.02),
            store=store,
        )
        await session.submit_utterance("dresses")
        session.toggle_color("Red")
        session.toggle_color("Pink")
        assert session.filter_responses == []

        await session.drain()
        assert len(session.filter_responses) == 2
        assert {r.split()[0] for r in session.filter_responses} == {"Bold", "Pink"}
        assert _prompt_type(session) == FilterPromptType.SIZE


class TestFilters:
    async def test_change_filters_is_silent(self, session):
        await session.submit_utterance("dresses")
        session.change_filters(brands=["ATELIER"], categories=["Dresses"])

        assert {p.brand for p in session.visible_products} == {"ATELIER"}
        assert session.filter_responses == []
        assert _prompt_type(session) == FilterPromptType.PRICE

    async def test_unknown_filter_keys_are_dropped(self, session):
        await session.submit_utterance("dresses")
        filters = session.change_filters(fabric=["silk"], colors=["Gold"])
        assert filters.colors == ["Gold"]
        assert [p.id for p in session.visible_products] == ["d10"]

    @pytest.mark.parametrize(
        "partial",
        [
            {"colors": "Black"},
            {"sizes": 7},
            {"price_range": (50,)},
            {"price_range": ("cheap", "dear")},
        ],
    )
    async def test_malformed_values_keep_previous_filters(self, session, partial):
        await session.submit_utterance("dresses")
        session.change_filters(brands=["ATELIER"])
        before = session.filters

        filters = session.change_filters(**partial)

        assert filters == before
        assert session.filters == before
        assert {p.brand for p in session.visible_products} == {"ATELIER"}

    async def test_sequence_values_are_coerced(self, session):
        await session.submit_utterance("dresses")
        filters = session.change_filters(colors=("Gold",), price_range=[0, 500])
        assert filters.colors == ["Gold"]
        assert filters.price_range == (0, 500)
        assert [p.id for p in session.visible_products] == ["d10"]

    async def test_reset_filters(self, session):
        await session.submit_utterance("dresses")
        session.change_filters(colors=["Chartreuse"])
        assert session.visible_products == []
        session.reset_filters()
        assert len(session.visible_products) == 15

    async def test_available_facets_follow_the_bucket(self, session):
        await session.submit_utterance("work")
        assert session.available_categories == ["Outerwear", "Tops", "Bottoms", "Knitwear", "Shoes", "Accessories"]
        assert session.available_brands[0] == "POWER"


class TestCartAndCheckout:
    async def test_removal_scenario(self, session, dress):
        session.add_to_cart(dress, "M", "Black")
        session.update_cart_quantity("d1", 0, "M", "Black")
        assert session.cart_lines == []

    def test_add_by_id_merges(self, session):
        session.add_to_cart("d1", "M", "Black")
        session.add_to_cart("d1", "M", "Black")
        assert len(session.cart_lines) == 1
        assert session.cart_lines[0].quantity == 2
        assert session.cart_totals.subtotal == 790

    def test_unknown_product_id(self, session):
        assert session.add_to_cart("nope") is None
        assert session.cart_lines == []

    def test_remove_from_cart(self, session):
        session.add_to_cart("c1", "S", "White")
        assert session.remove_from_cart("c1", "S", "Black") is False
        assert session.remove_from_cart("c1", "S", "White") is True

    async def test_checkout_flow_clears_cart(self, session):
        session.add_to_cart("w2", "M", "Beige")
        assert session.begin_checkout() == CheckoutStage.SHIPPING
        assert session.submit_shipping(ShippingDetails(first_name="Ada")) == CheckoutStage.PAYMENT
        session.submit_payment(PaymentDetails(card_number="4242 4242 4242 4242"))

        assert session.cart_lines == []
        assert session.checkout_stage is None
        stages = [e.data["stage"] for e in session.stream.get_history(session.id, EVENT_CHECKOUT_STAGE)]
        assert stages == ["shipping", "payment", "processing", "success", None]

    def test_complete_checkout(self, session):
        session.add_to_cart("w2")
        session.begin_checkout()
        confirmation = session.complete_checkout()
        assert confirmation.totals.total == 575 + 575 * 0.08
        assert session.cart_lines == []


class TestCatalogMode:
    @pytest.fixture
    def catalog_session(self, store, settings_factory):
        return build_session(settings_factory(ecommerce_mode="catalog"), store=store)

    def test_cart_is_inactive(self, catalog_session):
        assert catalog_session.add_to_cart("d1", "M", "Black") is None
        assert catalog_session.begin_checkout() is None
        assert catalog_session.cart_lines == []

    def test_retailer_links(self, catalog_session, session):
        links = catalog_session.retailer_links("d1")
        assert [r.name for r in links] == ["Nordstrom", "Saks Fifth Avenue", "Neiman Marcus"]
        assert session.retailer_links("d1") == []

    async def test_conversation_still_works(self, catalog_session):
        reply = await catalog_session.submit_utterance("professional outfits")
        assert reply is not None
        assert len(catalog_session.products) == 14

    def test_mode_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("ECOMMERCE_MODE", "catalog")
        assert Settings(environment="testing").ecommerce_mode == "catalog"


class TestView:
    async def test_snapshot(self, session):
        await session.submit_utterance("dresses")
        session.add_to_cart("d3", "S", "Red")

        view = session.view()
        assert view.session_id == session.id
        assert view.phase == TurnPhase.IDLE
        assert len(view.messages) == 3
        assert view.messages[-1].filter_prompts[0].type == FilterPromptType.PRICE
        assert len(view.visible_products) == 15
        assert view.cart_totals.subtotal == 285
        assert view.checkout_stage is None
