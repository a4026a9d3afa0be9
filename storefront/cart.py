# storefront/cart.py
"""Cart ledger: pure transitions over an immutable ``Cart``.

Every operation returns a new ``Cart``; the one passed in is left untouched,
so a reader holding the previous value never sees a half-applied change.
"""

import logging
from typing import Iterable, Optional

from storefront.errors import InsufficientStock, LineNotFound
from storefront.models import Cart, CartLine, InventoryItem

logger = logging.getLogger(__name__)


def empty_cart() -> Cart:
    return Cart()


def add(cart: Cart, item: InventoryItem) -> Cart:
    product_id = item.product.id
    current = cart.get(product_id)
    quantity = (current.quantity if current else 0) + 1

    if quantity > item.stock:
        logger.info("Rejected add of product %s: %s requested, %s in stock", product_id, quantity, item.stock)
        raise InsufficientStock(product_id, item.stock)

    if current is None:
        line = CartLine(product_id=product_id, name=item.product.name, unit_price=item.price, quantity=1)
    else:
        line = current.model_copy(update={"quantity": quantity})

    lines = dict(cart.lines)
    lines[product_id] = line
    return Cart(lines=lines)


def increment(cart: Cart, product_id: int, inventory: Iterable[InventoryItem]) -> Cart:
    """Add one more of a product already in the cart.

    The stock limit comes from the store's current inventory listing, never
    from the cart line itself. A product missing from the listing counts as
    out of stock.
    """
    line = cart.get(product_id)
    if line is None:
        raise LineNotFound(product_id)

    listed = _find(inventory, product_id)
    if listed is None:
        logger.info("Rejected increment of product %s: not in current inventory", product_id)
        raise InsufficientStock(product_id, 0)

    # The line keeps the price it was added at.
    return add(cart, listed.model_copy(update={"price": line.unit_price}))


def remove(cart: Cart, product_id: int) -> Cart:
    line = cart.get(product_id)
    if line is None:
        raise LineNotFound(product_id)

    lines = dict(cart.lines)
    if line.quantity >= 2:
        lines[product_id] = line.model_copy(update={"quantity": line.quantity - 1})
    else:
        del lines[product_id]
    return Cart(lines=lines)


def total(cart: Cart) -> float:
    return round(sum(line.unit_price * line.quantity for line in cart.lines.values()), 2)


def _find(inventory: Iterable[InventoryItem], product_id: int) -> Optional[InventoryItem]:
    for it in inventory:
        if it.product.id == product_id:
            return it
    return None
