from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from database import BOOKS, TOURS, USERS, MemoryStore
from main import create_app

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
async def library(store):
    """Two readers and three books; the last book has no copies left."""
    await store.create(
        USERS,
        {"name": "Ada Reader", "email": "ada@library.com", "password": "hash", "role": "user", "borrowed_books": []},
    )
    await store.create(
        USERS,
        {"name": "Bob Reader", "email": "bob@library.com", "password": "hash", "role": "user", "borrowed_books": []},
    )
    books = [
        ("1984", "George Orwell", "9780451524935", 4, 4),
        ("Dune", "Frank Herbert", "9780441172719", 1, 1),
        ("Emma", "Jane Austen", "9780141439587", 2, 0),
    ]
    for title, author, isbn, quantity, available in books:
        await store.create(
            BOOKS,
            {
                "title": title,
                "author": author,
                "isbn": isbn,
                "category": "Fiction",
                "description": f"{title} by {author}",
                "quantity": quantity,
                "available": available,
            },
        )
    return store


@pytest.fixture
async def tour_store(store):
    tours = [
        ("Alpine Hike", "Zermatt, Switzerland", 100, "3 days", 4.2),
        ("Island Hopping", "Cyclades, Greece", 850, "7 days", 4.9),
        ("Old Town Walk", "Zermatt, Switzerland", 40, "1 day", 4.5),
    ]
    for name, location, price, duration, rating in tours:
        await store.create(
            TOURS,
            {
                "name": name,
                "location": location,
                "price": price,
                "duration": duration,
                "rating": rating,
                "reviews": 10,
                "highlights": [],
                "images": [],
                "description": f"{name} in {location}",
            },
        )
    return store


@pytest.fixture
def client():
    app = create_app(store=MemoryStore(), seed=True)
    with TestClient(app) as test_client:
        yield test_client


def login(client, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin@library.com", "admin123")


@pytest.fixture
def user_headers(client):
    return login(client, "user@library.com", "user123")
