# storefront/session.py
import logging
import uuid
from typing import Dict, Optional, Tuple

from storefront import cart as ledger
from storefront.clients import InventoryClient
from storefront.data import DEFAULT_STORE_ID, DEMO_POSITION, STORES
from storefront.handoff import HandoffRegistry, build_snapshot
from storefront.locator import (
    ForceLocation,
    LocationDenied,
    LocatorState,
    PositionAcquired,
    ranked_stores,
    reduce_locator,
)
from storefront.models import (
    Cart,
    Coordinates,
    InventoryItem,
    InventoryResult,
    StoreLocation,
)
from storefront.sorting import SORT_DEFAULT, SORT_MODES, sort_inventory

logger = logging.getLogger(__name__)


class BrowsingSession:
    """Everything one shopper's dashboard owns: location, store, inventory, cart.

    State values are immutable; each command swaps in the value returned by
    the matching pure transition.
    """

    def __init__(
        self,
        customer_id: int,
        inventory_client: InventoryClient,
        stores: Tuple[StoreLocation, ...] = STORES,
        demo_position: Optional[Coordinates] = None,
    ) -> None:
        self.id = f"s_{uuid.uuid4().hex[:10]}"
        self.customer_id = customer_id
        self.inventory_client = inventory_client
        self.demo_position = demo_position or DEMO_POSITION

        self.locator = LocatorState(catalog=stores)
        self.store_id: int = DEFAULT_STORE_ID
        self.inventory = InventoryResult()
        self.sort_mode = SORT_DEFAULT
        self.cart: Cart = ledger.empty_cart()

    # ----- location -----

    def position_acquired(self, position: Coordinates) -> LocatorState:
        self.locator = reduce_locator(self.locator, PositionAcquired(position=position))
        return self.locator

    def location_denied(self) -> LocatorState:
        self.locator = reduce_locator(self.locator, LocationDenied())
        return self.locator

    def force_location(self) -> LocatorState:
        self.locator = reduce_locator(self.locator, ForceLocation(position=self.demo_position))
        return self.locator

    def nearby_stores(self) -> Tuple[StoreLocation, ...]:
        return ranked_stores(self.locator)

    # ----- inventory -----

    async def select_store(self, store_id: int) -> InventoryResult:
        self.store_id = store_id
        result = await self.inventory_client.fetch(store_id)
        # a slower fetch for a store the shopper already left is dropped
        if self.store_id == store_id:
            self.inventory = result
        return result

    def set_sort(self, mode: Optional[str]) -> str:
        self.sort_mode = mode if mode in SORT_MODES else SORT_DEFAULT
        return self.sort_mode

    def listing(self) -> Tuple[InventoryItem, ...]:
        return sort_inventory(self.inventory.items, self.sort_mode)

    def find_item(self, product_id: int) -> Optional[InventoryItem]:
        for it in self.inventory.items:
            if it.product.id == product_id:
                return it
        return None

    # ----- cart -----

    def add_to_cart(self, item: InventoryItem) -> Cart:
        self.cart = ledger.add(self.cart, item)
        return self.cart

    def increment(self, product_id: int) -> Cart:
        self.cart = ledger.increment(self.cart, product_id, self.inventory.items)
        return self.cart

    def remove_from_cart(self, product_id: int) -> Cart:
        self.cart = ledger.remove(self.cart, product_id)
        return self.cart

    def cart_total(self) -> float:
        return ledger.total(self.cart)

    def checkout(self, handoffs: HandoffRegistry) -> str:
        snapshot = build_snapshot(self.cart, self.store_id)
        return handoffs.issue(snapshot)

    def discard_cart(self) -> None:
        logger.info("Session %s: cart discarded after successful order", self.id)
        self.cart = ledger.empty_cart()


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: Dict[str, BrowsingSession] = {}

    def add(self, session: BrowsingSession) -> BrowsingSession:
        self._sessions[session.id] = session
        logger.info("Session %s created for customer %s", session.id, session.customer_id)
        return session

    def get(self, session_id: str) -> Optional[BrowsingSession]:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("Session %s ended", session_id)

    def __len__(self) -> int:
        return len(self._sessions)
