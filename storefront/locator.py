# storefront/locator.py
"""Rank candidate stores by great-circle distance from the shopper.

Location arrives as discrete events (a position fix, a denial, or the demo
override) and ``reduce_locator`` folds each one into a new ``LocatorState``.
"""

import logging
import math
from typing import Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from storefront.errors import GeolocationDenied
from storefront.models import Coordinates, StoreLocation

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def rank_stores(position: Coordinates, stores: Iterable[StoreLocation]) -> Tuple[StoreLocation, ...]:
    annotated = [
        s.model_copy(update={"distance_km": haversine_km(position.lat, position.lng, s.lat, s.lng)})
        for s in stores
    ]
    # sorted() is stable, so equal distances keep catalog order
    return tuple(sorted(annotated, key=lambda s: s.distance_km))


# -------------------------
# Events
# -------------------------

class PositionAcquired(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: Coordinates


class LocationDenied(BaseModel):
    model_config = ConfigDict(frozen=True)


class ForceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: Coordinates


LocatorEvent = Union[PositionAcquired, LocationDenied, ForceLocation]


class LocatorState(BaseModel):
    model_config = ConfigDict(frozen=True)

    catalog: Tuple[StoreLocation, ...]
    position: Optional[Coordinates] = None
    ranking: Tuple[StoreLocation, ...] = ()
    denied: bool = False


def reduce_locator(state: LocatorState, event: LocatorEvent) -> LocatorState:
    if isinstance(event, (PositionAcquired, ForceLocation)):
        ranking = rank_stores(event.position, state.catalog)
        logger.info(
            "Ranked %d stores from (%.4f, %.4f); nearest=%s",
            len(ranking), event.position.lat, event.position.lng,
            ranking[0].id if ranking else None,
        )
        return state.model_copy(update={"position": event.position, "ranking": ranking, "denied": False})

    if isinstance(event, LocationDenied):
        logger.info("Location permission denied; waiting for manual override")
        # A fix obtained earlier stays valid.
        if state.position is not None:
            return state
        return state.model_copy(update={"denied": True, "ranking": ()})

    return state


def ranked_stores(state: LocatorState) -> Tuple[StoreLocation, ...]:
    """Return the current ranking.

    Raises ``GeolocationDenied`` when the shopper refused to share a position
    and no override has been applied yet; an empty tuple means the position is
    still pending.
    """
    if state.denied:
        raise GeolocationDenied()
    return state.ranking
