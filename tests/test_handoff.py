import pytest

from storefront import cart as ledger
from storefront.errors import EmptyCart, SessionInvalid
from storefront.handoff import HandoffRegistry, build_snapshot
from tests.conftest import make_item


def _cart():
    rice = make_item(1, 100.0, 5, name="Rice")
    dal = make_item(2, 50.0, 5, name="Dal")
    return ledger.add(ledger.add(ledger.add(ledger.empty_cart(), rice), rice), dal)


def test_snapshot_captures_lines_total_and_store():
    snapshot = build_snapshot(_cart(), 3)

    assert snapshot.retailer_id == 3
    assert snapshot.total_amount == 250
    assert [(i.id, i.quantity, i.price, i.name) for i in snapshot.items] == [
        (1, 2, 100.0, "Rice"),
        (2, 1, 50.0, "Dal"),
    ]


def test_empty_cart_cannot_check_out():
    with pytest.raises(EmptyCart):
        build_snapshot(ledger.empty_cart(), 1)


def test_later_cart_changes_do_not_touch_snapshot():
    cart = _cart()
    registry = HandoffRegistry()
    token = registry.issue(build_snapshot(cart, 1))

    cart = ledger.remove(cart, 1)
    cart = ledger.remove(cart, 2)

    snapshot = registry.consume(token)
    assert snapshot.total_amount == 250
    assert len(snapshot.items) == 2


def test_token_is_single_use():
    registry = HandoffRegistry()
    token = registry.issue(build_snapshot(_cart(), 1))

    registry.consume(token)
    with pytest.raises(SessionInvalid):
        registry.consume(token)


@pytest.mark.parametrize("token", [None, "", "h_unknown"])
def test_missing_or_unknown_token_is_invalid(token):
    with pytest.raises(SessionInvalid):
        HandoffRegistry().consume(token)


def test_expired_token_is_invalid():
    now = [0.0]
    registry = HandoffRegistry(ttl_seconds=60, clock=lambda: now[0])
    token = registry.issue(build_snapshot(_cart(), 1))

    now[0] = 61.0
    with pytest.raises(SessionInvalid):
        registry.consume(token)
    assert len(registry) == 0


def test_expiry_is_reported_for_each_unused_token():
    now = [0.0]
    expired = []
    registry = HandoffRegistry(ttl_seconds=60, clock=lambda: now[0], on_expire=expired.append)
    stale = registry.issue(build_snapshot(_cart(), 1))
    now[0] = 30.0
    fresh = registry.issue(build_snapshot(_cart(), 1))

    now[0] = 61.0
    assert len(registry) == 1
    assert expired == [stale]
    assert registry.consume(fresh).total_amount == 250
    assert expired == [stale]
