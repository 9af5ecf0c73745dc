from typing import List, Optional

from database import TOURS, RecordStore
from errors import NotFoundError
from models import Tour

SORT_KEYS = {
    "price-asc": (lambda tour: tour.price, False),
    "price-desc": (lambda tour: tour.price, True),
    "rating": (lambda tour: tour.rating, True),
}


class TourCatalog:
    """Read-only access to the ``tours`` reference collection."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def all(self) -> List[Tour]:
        return [Tour(**record) for record in await self.store.read_all(TOURS)]

    async def list(
        self,
        location: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        duration: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> List[Tour]:
        tours = await self.all()

        if location:
            tours = [t for t in tours if location.lower() in t.location.lower()]
        if max_price is not None:
            tours = [t for t in tours if t.price <= max_price]
        if min_price is not None:
            tours = [t for t in tours if t.price >= min_price]
        if duration:
            tours = [t for t in tours if duration.lower() in t.duration.lower()]
        if search:
            term = search.lower()
            tours = [
                t
                for t in tours
                if term in t.name.lower() or term in t.description.lower() or term in t.location.lower()
            ]

        if sort in SORT_KEYS:
            key, reverse = SORT_KEYS[sort]
            tours.sort(key=key, reverse=reverse)
        return tours

    async def get(self, tour_id: int) -> Tour:
        record = await self.store.find_one(TOURS, {"id": tour_id})
        if record is None:
            raise NotFoundError("Tour not found")
        return Tour(**record)

    async def destinations(self) -> List[str]:
        # dict keeps first-seen order
        return list(dict.fromkeys(tour.location for tour in await self.all()))
