"""Cart ledger.

Keeps ordered line items keyed by (product id, size, color) and derives
subtotal, tax, shipping, and total on every read.
"""

from __future__ import annotations

import structlog

from style_assistant.models import CartLineItem, CartTotals, Product

logger = structlog.get_logger(__name__)

LineKey = tuple[str, str | None, str | None]


class CartLedger:
    """Ordered collection of cart lines.

    Parameters
    ----------
    tax_rate:
        Fraction of the subtotal charged as tax.
    free_shipping_threshold:
        Subtotals strictly above this ship free.
    flat_shipping_fee:
        Shipping charged at or below the threshold.
    """

    def __init__(
        self,
        tax_rate: float = 0.08,
        free_shipping_threshold: float = 100.0,
        flat_shipping_fee: float = 10.0,
    ) -> None:
        self.tax_rate = tax_rate
        self.free_shipping_threshold = free_shipping_threshold
        self.flat_shipping_fee = flat_shipping_fee
        self._lines: list[CartLineItem] = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, product: Product, size: str | None = None, color: str | None = None) -> CartLineItem:
        """Add one unit, merging into an existing line with the same identity."""
        key = (product.id, size, color)
        index = self._find(key)
        if index is not None:
            line = self._lines[index]
            updated = line.model_copy(update={"quantity": line.quantity + 1})
            self._lines[index] = updated
            logger.debug("cart_line_incremented", product_id=product.id, size=size, color=color, quantity=updated.quantity)
            return updated

        line = CartLineItem(product=product, quantity=1, size=size, color=color)
        self._lines.append(line)
        logger.debug("cart_line_added", product_id=product.id, size=size, color=color)
        return line

    def set_quantity(
        self,
        product_id: str,
        quantity: int,
        size: str | None = None,
        color: str | None = None,
    ) -> CartLineItem | None:
        """Replace a line's quantity; zero or below removes the line.

        Returns the updated line, or ``None`` when the line was removed or
        does not exist.
        """
        if quantity <= 0:
            self.remove(product_id, size, color)
            return None

        index = self._find((product_id, size, color))
        if index is None:
            return None

        updated = self._lines[index].model_copy(update={"quantity": quantity})
        self._lines[index] = updated
        return updated

    def remove(self, product_id: str, size: str | None = None, color: str | None = None) -> bool:
        """Delete the matching line. Returns whether a line was removed."""
        index = self._find((product_id, size, color))
        if index is None:
            return False
        del self._lines[index]
        logger.debug("cart_line_removed", product_id=product_id, size=size, color=color)
        return True

    def clear(self) -> None:
        self._lines.clear()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[CartLineItem]:
        return list(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def totals(self) -> CartTotals:
        subtotal = sum((line.line_total for line in self._lines), 0.0)
        tax = subtotal * self.tax_rate
        shipping = 0.0 if subtotal > self.free_shipping_threshold else self.flat_shipping_fee
        gap = self.free_shipping_threshold - subtotal if subtotal < self.free_shipping_threshold else 0.0
        return CartTotals(
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            total=subtotal + tax + shipping,
            amount_to_free_shipping=gap,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, key: LineKey) -> int | None:
        for index, line in enumerate(self._lines):
            if line.key == key:
                return index
        return None
