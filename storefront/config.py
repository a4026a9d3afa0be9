# storefront/config.py
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def _get_float(key: str, default: float) -> float:
    v = _get_env(key)
    return float(v) if v is not None else default


def _get_int(key: str, default: int) -> int:
    v = _get_env(key)
    return int(v) if v is not None else default


@dataclass(frozen=True)
class Settings:
    order_service_url: Optional[str]
    inventory_service_url: Optional[str]
    http_timeout: float
    cash_delay_ms: int
    card_delay_ms: int
    demo_lat: float
    demo_lng: float
    handoff_ttl_seconds: int
    currency: str
    log_level: str


def load_settings() -> Settings:
    return Settings(
        order_service_url=_get_env("ORDER_SERVICE_URL"),
        inventory_service_url=_get_env("INVENTORY_SERVICE_URL"),
        http_timeout=_get_float("HTTP_TIMEOUT", 10.0),
        cash_delay_ms=_get_int("CASH_DELAY_MS", 1000),
        card_delay_ms=_get_int("CARD_DELAY_MS", 2000),
        demo_lat=_get_float("DEMO_LAT", 17.5455),
        demo_lng=_get_float("DEMO_LNG", 78.5715),
        handoff_ttl_seconds=_get_int("HANDOFF_TTL_SECONDS", 300),
        currency=_get_env("CURRENCY", "₹") or "₹",
        log_level=(_get_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
