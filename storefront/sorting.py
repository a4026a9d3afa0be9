# storefront/sorting.py
from typing import Sequence, Tuple

from storefront.models import InventoryItem

SORT_DEFAULT = "default"
SORT_LOW_HIGH = "low-high"
SORT_HIGH_LOW = "high-low"

SORT_MODES = (SORT_DEFAULT, SORT_LOW_HIGH, SORT_HIGH_LOW)


def sort_inventory(items: Sequence[InventoryItem], mode: str = SORT_DEFAULT) -> Tuple[InventoryItem, ...]:
    if mode == SORT_LOW_HIGH:
        return tuple(sorted(items, key=lambda it: it.price))
    if mode == SORT_HIGH_LOW:
        # reverse=True still keeps equal prices in fetch order
        return tuple(sorted(items, key=lambda it: it.price, reverse=True))
    return tuple(items)
