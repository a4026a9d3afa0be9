# storefront/main.py

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Dict, List, Optional

import httpx
from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.clients import InventoryClient, OrderServiceClient, build_http_client
from storefront.config import Settings, load_settings
from storefront.data import STORES_BY_ID
from storefront.errors import GeolocationDenied, SessionInvalid, StorefrontError
from storefront.handoff import HandoffRegistry
from storefront.logging_config import configure_logging
from storefront.models import CardDetails, Cart, Coordinates, PaymentMode
from storefront.payment import PaymentProcessor
from storefront.session import BrowsingSession, SessionRegistry

logger = logging.getLogger(__name__)


# -------------------------
# Request models
# -------------------------

class SelectStoreRequest(BaseModel):
    retailerId: int


class AddItemRequest(BaseModel):
    productId: int


class ModeRequest(BaseModel):
    mode: PaymentMode


# -------------------------
# Helpers
# -------------------------

def cart_view(cart: Cart, total: float) -> dict:
    return {
        "items": [line.model_dump(by_alias=True) for line in cart.lines.values()],
        "count": sum(line.quantity for line in cart.lines.values()),
        "total": total,
    }


def create_app(
    settings: Optional[Settings] = None,
    inventory_client: Optional[InventoryClient] = None,
    order_client: Optional[OrderServiceClient] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    owned_http: List[httpx.AsyncClient] = []
    if inventory_client is None:
        if not settings.inventory_service_url:
            logger.warning("INVENTORY_SERVICE_URL is not set; inventory fetches will fail")
        http = build_http_client(settings.inventory_service_url or "", settings.http_timeout)
        owned_http.append(http)
        inventory_client = InventoryClient(http)
    if order_client is None:
        if not settings.order_service_url:
            logger.warning("ORDER_SERVICE_URL is not set; order submissions will fail")
        http = build_http_client(settings.order_service_url or "", settings.http_timeout)
        owned_http.append(http)
        order_client = OrderServiceClient(http)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        for http in owned_http:
            await http.aclose()

    app = FastAPI(title="Storefront Checkout API", version="1.0.0", lifespan=lifespan)

    sessions = SessionRegistry()
    handoff_owner: Dict[str, str] = {}
    handoffs = HandoffRegistry(
        ttl_seconds=settings.handoff_ttl_seconds,
        on_expire=lambda token: handoff_owner.pop(token, None),
    )
    payments: Dict[str, PaymentProcessor] = {}
    payment_owner: Dict[str, str] = {}
    demo_position = Coordinates(lat=settings.demo_lat, lng=settings.demo_lng)

    app.state.sessions = sessions
    app.state.handoffs = handoffs
    app.state.payments = payments
    app.state.handoff_owner = handoff_owner

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    def get_session(session_id: str) -> BrowsingSession:
        session = sessions.get(session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    def get_payment(payment_id: str) -> PaymentProcessor:
        processor = payments.get(payment_id)
        if not processor:
            raise HTTPException(status_code=404, detail="Payment not found")
        return processor

    # -------------------------
    # Sessions
    # -------------------------

    @app.post("/sessions", status_code=201)
    async def create_session(x_customer_id: int = Header(...)):
        session = sessions.add(
            BrowsingSession(x_customer_id, inventory_client, demo_position=demo_position)
        )
        await session.select_store(session.store_id)
        return {"sessionId": session.id, "retailerId": session.store_id}

    @app.get("/sessions/{session_id}")
    async def get_session_view(session_id: str):
        session = get_session(session_id)
        return {
            "sessionId": session.id,
            "customerId": session.customer_id,
            "retailerId": session.store_id,
            "sort": session.sort_mode,
            "locationDenied": session.locator.denied,
            "cart": cart_view(session.cart, session.cart_total()),
        }

    @app.delete("/sessions/{session_id}", status_code=204)
    async def end_session(session_id: str):
        session = get_session(session_id)
        for payment_id in [p for p, owner in payment_owner.items() if owner == session.id]:
            payments.pop(payment_id, None)
            del payment_owner[payment_id]
        sessions.close(session.id)

    # -------------------------
    # Location
    # -------------------------

    def stores_view(session: BrowsingSession) -> dict:
        try:
            stores = session.nearby_stores()
        except GeolocationDenied as e:
            return {
                "stores": [],
                "locationDenied": True,
                "message": e.message,
                "override": f"/sessions/{session.id}/location/demo",
            }
        return {
            "stores": [s.model_dump(by_alias=True) for s in stores],
            "locationDenied": False,
            "position": session.locator.position.model_dump() if session.locator.position else None,
        }

    @app.post("/sessions/{session_id}/location")
    async def report_location(session_id: str, position: Coordinates):
        session = get_session(session_id)
        session.position_acquired(position)
        return stores_view(session)

    @app.post("/sessions/{session_id}/location/denied")
    async def report_location_denied(session_id: str):
        session = get_session(session_id)
        session.location_denied()
        return stores_view(session)

    @app.post("/sessions/{session_id}/location/demo")
    async def force_demo_location(session_id: str):
        session = get_session(session_id)
        session.force_location()
        return stores_view(session)

    @app.get("/sessions/{session_id}/stores")
    async def nearby_stores(session_id: str):
        return stores_view(get_session(session_id))

    # -------------------------
    # Inventory
    # -------------------------

    def inventory_view(session: BrowsingSession) -> dict:
        store = STORES_BY_ID.get(session.store_id)
        return {
            "retailerId": session.store_id,
            "storeName": store.name if store else None,
            "sort": session.sort_mode,
            "loadFailed": session.inventory.load_failed,
            "items": [it.model_dump(by_alias=True) for it in session.listing()],
        }

    @app.post("/sessions/{session_id}/store")
    async def select_store(session_id: str, req: SelectStoreRequest):
        if req.retailerId < 1:
            raise HTTPException(status_code=400, detail="retailerId must be >= 1")
        session = get_session(session_id)
        await session.select_store(req.retailerId)
        return inventory_view(session)

    @app.get("/sessions/{session_id}/inventory")
    async def get_inventory(session_id: str, sort: Optional[str] = None):
        session = get_session(session_id)
        if sort is not None:
            session.set_sort(sort)
        return inventory_view(session)

    # -------------------------
    # Cart
    # -------------------------

    @app.get("/sessions/{session_id}/cart")
    async def get_cart(session_id: str):
        session = get_session(session_id)
        return cart_view(session.cart, session.cart_total())

    @app.post("/sessions/{session_id}/cart/items")
    async def add_item(session_id: str, req: AddItemRequest):
        session = get_session(session_id)
        item = session.find_item(req.productId)
        if not item:
            raise HTTPException(status_code=404, detail="Product not found")
        session.add_to_cart(item)
        return cart_view(session.cart, session.cart_total())

    @app.post("/sessions/{session_id}/cart/items/{product_id}/increment")
    async def increment_item(session_id: str, product_id: int):
        session = get_session(session_id)
        session.increment(product_id)
        return cart_view(session.cart, session.cart_total())

    @app.delete("/sessions/{session_id}/cart/items/{product_id}")
    async def remove_item(session_id: str, product_id: int):
        session = get_session(session_id)
        session.remove_from_cart(product_id)
        return cart_view(session.cart, session.cart_total())

    # -------------------------
    # Checkout
    # -------------------------

    @app.post("/sessions/{session_id}/checkout")
    async def checkout(session_id: str):
        session = get_session(session_id)
        token = session.checkout(handoffs)
        handoff_owner[token] = session.id
        return {"handoffToken": token, "totalAmount": session.cart_total(), "retailerId": session.store_id}

    # -------------------------
    # Payments
    # -------------------------

    @app.post("/payments", status_code=201)
    async def open_payment(request: Request, x_customer_id: int = Header(...)):
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        token = payload.get("handoffToken") if isinstance(payload, dict) else None
        if not isinstance(token, str):
            token = None
        # the order belongs to the shopper whose session checked out
        owner = sessions.get(handoff_owner.get(token or "", ""))
        if owner is None or owner.customer_id != x_customer_id:
            raise SessionInvalid("Invalid session. Returning to dashboard.")
        snapshot = handoffs.consume(token)
        handoff_owner.pop(token, None)
        processor = PaymentProcessor(
            snapshot,
            owner.customer_id,
            order_client,
            cash_delay=settings.cash_delay_ms / 1000,
            card_delay=settings.card_delay_ms / 1000,
            sleep=sleep or asyncio.sleep,
            currency=settings.currency,
        )
        payments[processor.id] = processor
        payment_owner[processor.id] = owner.id
        return processor.view()

    @app.get("/payments/{payment_id}")
    async def get_payment_view(payment_id: str):
        return get_payment(payment_id).view()

    @app.put("/payments/{payment_id}/mode")
    async def select_mode(payment_id: str, req: ModeRequest):
        processor = get_payment(payment_id)
        processor.select_mode(req.mode)
        return processor.view()

    @app.put("/payments/{payment_id}/card")
    async def enter_card(payment_id: str, card: CardDetails):
        processor = get_payment(payment_id)
        processor.enter_card(card)
        return processor.view()

    @app.post("/payments/{payment_id}/submit")
    async def submit_payment(payment_id: str):
        processor = get_payment(payment_id)
        await processor.submit()

        session = sessions.get(payment_owner.pop(payment_id, ""))
        if session:
            session.discard_cart()
        view = processor.view()
        # a settled snapshot and its card details are not kept
        del payments[payment_id]
        return view

    # -------------------------
    # Orders
    # -------------------------

    @app.get("/orders")
    async def list_orders(x_customer_id: int = Header(...)):
        try:
            items = await order_client.list_orders(x_customer_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Listing orders for customer %s failed: %s", x_customer_id, e)
            raise HTTPException(status_code=502, detail="Order service unavailable")
        return {"items": items}

    return app


app = create_app()
