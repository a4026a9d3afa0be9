# storefront/clients.py
"""HTTP clients for the inventory and order services.

Both take an ``httpx.AsyncClient`` so callers (and tests) control the
transport, base URL and timeout.
"""

import logging
from typing import List

import httpx
from pydantic import TypeAdapter, ValidationError

from storefront.errors import OrderSubmissionFailed
from storefront.models import InventoryItem, InventoryResult, OrderConfirmation, OrderRequest

logger = logging.getLogger(__name__)

_inventory_list = TypeAdapter(List[InventoryItem])


def build_http_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, timeout=timeout)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        for key in ("message", "detail", "error"):
            if data.get(key):
                return str(data[key])
    return response.text or f"HTTP {response.status_code}"


# -------------------------
# Inventory
# -------------------------

class InventoryClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def fetch(self, retailer_id: int) -> InventoryResult:
        """Load a store's inventory; any failure yields an empty, failed result."""
        try:
            response = await self.http.get(f"/retailers/{retailer_id}/inventory")
            response.raise_for_status()
            items = _inventory_list.validate_python(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning("Inventory fetch for retailer %s failed: %s", retailer_id, e)
            return InventoryResult(retailer_id=retailer_id, items=(), load_failed=True)

        return InventoryResult(retailer_id=retailer_id, items=tuple(items))


# -------------------------
# Orders
# -------------------------

class OrderServiceClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def submit(self, order: OrderRequest) -> OrderConfirmation:
        """POST one order. Never retries; failures raise ``OrderSubmissionFailed``."""
        try:
            response = await self.http.post("/orders", json=order.model_dump(mode="json", by_alias=True))
        except httpx.HTTPError as e:
            raise OrderSubmissionFailed(str(e) or e.__class__.__name__) from e

        if response.is_error:
            raise OrderSubmissionFailed(_error_message(response))

        try:
            body = response.json()
        except ValueError:
            body = {}
        return OrderConfirmation.model_validate(body if isinstance(body, dict) else {})

    async def list_orders(self, customer_id: int) -> List[dict]:
        response = await self.http.get("/orders", params={"customerId": customer_id})
        response.raise_for_status()
        data = response.json()
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return data["items"]
        logger.warning("Unexpected order listing payload for customer %s", customer_id)
        return []
