"""Shared pytest fixtures: inventory items and fake HTTP services."""

import json

import httpx
import pytest

from storefront.clients import InventoryClient, OrderServiceClient
from storefront.config import Settings
from storefront.models import InventoryItem, Product


def make_item(product_id, price, stock, name=None, inventory_id=None):
    return InventoryItem(
        inventory_id=inventory_id if inventory_id is not None else 100 + product_id,
        product=Product(id=product_id, name=name or f"Product {product_id}", category="Grocery"),
        price=price,
        stock=stock,
    )


async def no_sleep(_seconds):
    return None


class FakeInventoryService:
    """Serves ``/retailers/{id}/inventory`` from a dict of item lists."""

    def __init__(self, catalog):
        self.catalog = catalog
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        retailer_id = int(request.url.path.split("/")[2])
        self.calls.append(retailer_id)
        if retailer_id not in self.catalog:
            return httpx.Response(404, json={"message": "Retailer not found"})
        items = [it.model_dump(mode="json", by_alias=True) for it in self.catalog[retailer_id]]
        return httpx.Response(200, json=items)

    def client(self) -> InventoryClient:
        return InventoryClient(httpx.AsyncClient(base_url="http://inventory", transport=httpx.MockTransport(self.handler)))


class FakeOrderService:
    """Records submitted orders; fails the next ``failures`` submissions."""

    def __init__(self):
        self.orders = []
        self.failures = 0
        self.error_message = "Insufficient stock at retailer"

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            customer_id = int(request.url.params["customerId"])
            return httpx.Response(200, json=[o for o in self.orders if o["customerId"] == customer_id])

        payload = json.loads(request.content)
        if self.failures:
            self.failures -= 1
            return httpx.Response(400, json={"message": self.error_message})
        self.orders.append(payload)
        return httpx.Response(201, json={"id": len(self.orders), "status": "PLACED"})

    def client(self) -> OrderServiceClient:
        return OrderServiceClient(httpx.AsyncClient(base_url="http://orders", transport=httpx.MockTransport(self.handler)))


@pytest.fixture
def catalog():
    return {
        1: [make_item(1, 100.0, 3, name="Basmati Rice"), make_item(2, 50.0, 1, name="Toor Dal")],
        3: [make_item(7, 20.0, 10, name="Notebook"), make_item(8, 5.0, 0, name="Pen")],
    }


@pytest.fixture
def inventory_service(catalog):
    return FakeInventoryService(catalog)


@pytest.fixture
def order_service():
    return FakeOrderService()


@pytest.fixture
def settings():
    return Settings(
        order_service_url=None,
        inventory_service_url=None,
        http_timeout=5.0,
        cash_delay_ms=1000,
        card_delay_ms=2000,
        demo_lat=17.5455,
        demo_lng=78.5715,
        handoff_ttl_seconds=300,
        currency="₹",
        log_level="WARNING",
    )
