# storefront/handoff.py
import logging
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from storefront import cart as ledger
from storefront.errors import EmptyCart, SessionInvalid
from storefront.models import Cart, CheckoutSnapshot, SnapshotItem

logger = logging.getLogger(__name__)


def build_snapshot(cart: Cart, retailer_id: Optional[int]) -> CheckoutSnapshot:
    if len(cart) == 0:
        raise EmptyCart()

    items = tuple(
        SnapshotItem(id=line.product_id, quantity=line.quantity, price=line.unit_price, name=line.name)
        for line in cart.lines.values()
    )
    return CheckoutSnapshot(items=items, total_amount=ledger.total(cart), retailer_id=retailer_id)


class HandoffRegistry:
    """Single-use tokens carrying a checkout snapshot to the payment stage.

    ``consume`` hands the snapshot out exactly once; afterwards the token is
    gone and neither side can read it again.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
        on_expire: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._on_expire = on_expire
        self._pending: Dict[str, Tuple[CheckoutSnapshot, float]] = {}

    def issue(self, snapshot: CheckoutSnapshot) -> str:
        token = f"h_{uuid.uuid4().hex}"
        self._purge()
        self._pending[token] = (snapshot.model_copy(deep=True), self._clock() + self.ttl_seconds)
        logger.info(
            "Checkout handoff %s issued: %d lines, total=%.2f, retailer=%s",
            token, len(snapshot.items), snapshot.total_amount, snapshot.retailer_id,
        )
        return token

    def consume(self, token: Optional[str]) -> CheckoutSnapshot:
        self._purge()
        entry = self._pending.pop(token or "", None)
        if entry is None:
            raise SessionInvalid("Invalid session. Returning to dashboard.")
        logger.info("Checkout handoff %s consumed", token)
        return entry[0]

    def __len__(self) -> int:
        self._purge()
        return len(self._pending)

    def _purge(self) -> None:
        now = self._clock()
        for token in [t for t, (_, expires) in self._pending.items() if expires <= now]:
            del self._pending[token]
            logger.info("Checkout handoff %s expired unused", token)
            if self._on_expire:
                self._on_expire(token)
