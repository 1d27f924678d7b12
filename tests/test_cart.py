"""Tests for the cart ledger."""

import pytest

from style_assistant.commerce.cart import CartLedger
from style_assistant.models import Product


@pytest.fixture
def cart():
    return CartLedger()


def _expected_total(subtotal):
    return subtotal + subtotal * 0.08 + (0 if subtotal > 100 else 10)


class TestCartLines:
    def test_same_identity_merges(self, cart, dress):
        cart.add(dress, "M", "Black")
        cart.add(dress, "M", "Black")
        assert cart.line_count == 1
        assert cart.lines[0].quantity == 2

    def test_different_size_or_color_is_a_new_line(self, cart, dress):
        cart.add(dress, "M", "Black")
        cart.add(dress, "S", "Black")
        cart.add(dress, "M", "Navy")
        cart.add(dress)
        assert cart.line_count == 4
        assert cart.item_count == 4

    def test_set_quantity_replaces(self, cart, dress):
        cart.add(dress, "M", "Black")
        line = cart.set_quantity("d1", 5, "M", "Black")
        assert line.quantity == 5
        assert cart.item_count == 5

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_removes(self, cart, dress, quantity):
        cart.add(dress, "M", "Black")
        assert cart.set_quantity("d1", quantity, "M", "Black") is None
        assert cart.line_count == 0

    def test_set_quantity_without_match_is_noop(self, cart, dress):
        cart.add(dress, "M", "Black")
        assert cart.set_quantity("d1", 3, "L", "Black") is None
        assert cart.lines[0].quantity == 1

    def test_remove(self, cart, dress):
        cart.add(dress, "M", "Black")
        assert cart.remove("d1", "M", "Navy") is False
        assert cart.remove("d1", "M", "Black") is True
        assert cart.is_empty()

    def test_order_is_preserved(self, cart, store):
        for product_id in ("c1", "w3", "d2"):
            cart.add(store.get(product_id))
        assert [line.product.id for line in cart.lines] == ["c1", "w3", "d2"]

    def test_clear(self, cart, dress):
        cart.add(dress)
        cart.clear()
        assert cart.is_empty()


class TestCartTotals:
    def test_empty_cart_still_charges_flat_shipping(self, cart):
        totals = cart.totals()
        assert totals.subtotal == 0
        assert totals.shipping == 10
        assert totals.total == 10

    def test_small_order_pays_shipping(self, cart, store):
        cart.add(store.get("c9"))  # 52
        totals = cart.totals()
        assert totals.shipping == 10
        assert totals.amount_to_free_shipping == pytest.approx(48)
        assert totals.total == _expected_total(52)

    def test_exactly_threshold_is_not_free(self, cart):
        cart.add(Product(id="x1", name="Scarf", price=100, category="Accessories",
                         brand="KNIT", colors=("Red",), sizes=("M",)))
        totals = cart.totals()
        assert totals.shipping == 10
        assert totals.amount_to_free_shipping == 0

    def test_above_threshold_ships_free(self, cart, store):
        cart.add(store.get("w6"))  # 165
        assert cart.totals().shipping == 0

    def test_totals_law(self, cart, store):
        for product_id, times in (("d1", 2), ("c6", 3), ("w13", 1)):
            for _ in range(times):
                cart.add(store.get(product_id), "M", None)
            totals = cart.totals()
            assert totals.total == _expected_total(totals.subtotal)
            assert totals.tax == totals.subtotal * 0.08

    def test_subtotal_uses_quantities(self, cart, dress):
        cart.add(dress, "M", "Black")
        cart.set_quantity("d1", 3, "M", "Black")
        assert cart.totals().subtotal == 3 * 395
        assert cart.totals().amount_to_free_shipping == 0
