# storefront/data.py
from typing import Tuple

from storefront.models import Coordinates, StoreLocation

STORES: Tuple[StoreLocation, ...] = (
    StoreLocation(id=1, name="Ratnadeep Supermarket (Hitech City)", lat=17.4435, lng=78.3772),
    StoreLocation(id=2, name="Vijetha Supermarket (Jubilee Hills)", lat=17.4326, lng=78.4071),
    StoreLocation(id=3, name="Campus Mart (BITS Hyderabad)", lat=17.5449, lng=78.5718),
)

STORES_BY_ID = {s.id: s for s in STORES}

DEFAULT_STORE_ID = 1

# Demo override position (BITS Hyderabad auditorium)
DEMO_POSITION = Coordinates(lat=17.5455, lng=78.5715)
