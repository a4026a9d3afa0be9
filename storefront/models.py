# storefront/models.py
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Wire format is camelCase; Python code uses snake_case names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# -------------------------
# Stores
# -------------------------

class Coordinates(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class StoreLocation(CamelModel):
    id: int
    name: str
    lat: float
    lng: float
    distance_km: Optional[float] = None

    @computed_field(alias="distanceLabel")
    @property
    def distance_label(self) -> Optional[str]:
        if self.distance_km is None:
            return None
        return f"{self.distance_km:.1f} km"


# -------------------------
# Inventory
# -------------------------

class Product(CamelModel):
    id: int
    name: str
    category: Optional[str] = None
    image: Optional[str] = None


class InventoryItem(CamelModel):
    inventory_id: int
    product: Product
    price: float = Field(ge=0)
    stock: int = Field(ge=0)


class InventoryResult(CamelModel):
    retailer_id: Optional[int] = None
    items: Tuple[InventoryItem, ...] = ()
    load_failed: bool = False


# -------------------------
# Cart
# -------------------------

class CartLine(CamelModel):
    product_id: int
    name: str
    unit_price: float
    quantity: int = Field(ge=1)

    @computed_field(alias="lineTotal")
    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


class Cart(CamelModel):
    # Never mutated in place; the ledger always builds a new dict.
    lines: Dict[int, CartLine] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.lines)

    def get(self, product_id: int) -> Optional[CartLine]:
        return self.lines.get(product_id)


# -------------------------
# Checkout / orders
# -------------------------

class SnapshotItem(CamelModel):
    id: int
    quantity: int
    price: float
    name: str


class CheckoutSnapshot(CamelModel):
    items: Tuple[SnapshotItem, ...]
    total_amount: float
    retailer_id: Optional[int] = None


class PaymentMode(str, Enum):
    CARD = "CARD"
    CASH = "CASH"

    @property
    def wire(self) -> "WirePaymentMode":
        return WirePaymentMode.ONLINE if self is PaymentMode.CARD else WirePaymentMode.OFFLINE


class WirePaymentMode(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class OrderItem(CamelModel):
    product_id: int
    quantity: int
    price_at_purchase: float


class OrderRequest(CamelModel):
    customer_id: int
    retailer_id: int
    total_amount: float
    payment_mode: WirePaymentMode
    items: List[OrderItem]


class OrderConfirmation(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    order_id: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices("orderId", "id", "order_id")
    )
    status: Optional[str] = None


class CardDetails(CamelModel):
    number: str = ""
    expiry: str = ""
    cvv: str = ""
    name: str = ""

    def missing_fields(self) -> List[str]:
        return [f for f in ("number", "expiry", "cvv", "name") if not getattr(self, f).strip()]

    def masked(self) -> dict:
        digits = self.number.replace(" ", "")
        return {
            "number": ("**** " + digits[-4:]) if digits else "",
            "expiry": self.expiry,
            "name": self.name,
        }
