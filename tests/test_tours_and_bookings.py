from datetime import date, timedelta

import pydantic
import pytest

from database import BOOKINGS
from errors import NotFoundError
from models import BookingContact
from services.booking import BookingService
from services.tours import TourCatalog


@pytest.fixture
def catalog(tour_store):
    return TourCatalog(tour_store)


@pytest.fixture
def bookings(tour_store, catalog):
    return BookingService(tour_store, catalog)


def make_contact(**overrides) -> BookingContact:
    fields = {
        "name": "Grace Traveler",
        "email": "grace@travel.org",
        "phone": "+1 (555) 010-2030",
        "date": date.today() + timedelta(days=30),
    }
    fields.update(overrides)
    return BookingContact(**fields)


async def test_booking_total_is_price_times_travelers(bookings, tour_store):
    booking = await bookings.create(1, make_contact(), travelers=3)

    assert booking.id == 1
    assert booking.total_price == 300
    assert booking.tour_name == "Alpine Hike"
    assert booking.status == "pending"
    assert booking.special_requests == ""
    assert (await tour_store.find_one(BOOKINGS, {"id": 1}))["travelers"] == 3


async def test_booking_unknown_tour_writes_nothing(bookings, tour_store):
    with pytest.raises(NotFoundError):
        await bookings.create(99, make_contact(), travelers=2)

    assert await tour_store.read_all(BOOKINGS) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " A "},
        {"email": "not-an-email"},
        {"phone": "call me"},
        {"date": date.today()},
    ],
)
def test_booking_contact_validation(overrides):
    with pytest.raises(pydantic.ValidationError):
        make_contact(**overrides)


async def test_list_filters_and_sorts(catalog):
    assert [t.name for t in await catalog.list(location="zermatt")] == ["Alpine Hike", "Old Town Walk"]
    assert [t.id for t in await catalog.list(max_price=100)] == [1, 3]
    assert [t.id for t in await catalog.list(min_price=100, max_price=900)] == [1, 2]
    assert [t.id for t in await catalog.list(duration="7 DAYS")] == [2]
    assert [t.id for t in await catalog.list(search="greece")] == [2]
    assert [t.price for t in await catalog.list(sort="price-asc")] == [40, 100, 850]
    assert [t.price for t in await catalog.list(sort="price-desc")] == [850, 100, 40]
    assert [t.rating for t in await catalog.list(sort="rating")] == [4.9, 4.5, 4.2]


async def test_get_and_destinations(catalog):
    assert (await catalog.get("2")).name == "Island Hopping"
    with pytest.raises(NotFoundError):
        await catalog.get(42)
    assert await catalog.destinations() == ["Zermatt, Switzerland", "Cyclades, Greece"]
