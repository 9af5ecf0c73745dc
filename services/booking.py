import logging

from database import BOOKINGS, RecordStore
from models import Booking, BookingContact
from services.tours import TourCatalog

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, store: RecordStore, tours: TourCatalog):
        self.store = store
        self.tours = tours

    async def create(self, tour_id: int, contact: BookingContact, travelers: int) -> Booking:
        """Book ``travelers`` places on a tour at the tour's current price.

        Raises ``NotFoundError`` (and writes nothing) for an unknown tour.
        """
        tour = await self.tours.get(tour_id)
        record = await self.store.create(
            BOOKINGS,
            {
                **contact.model_dump(),
                "tour_id": tour.id,
                "tour_name": tour.name,
                "travelers": travelers,
                "total_price": tour.price * travelers,
                "status": "pending",
            },
        )
        logger.info("Booking %s created for tour %s (%s travelers)", record["id"], tour.id, travelers)
        return Booking(**record)
