"""
First-use bootstrap of the default users, books and tours.

Only collections that have never been written are filled, so this runs
on every start-up and an emptied collection stays empty.  It can also be run by hand against the configured
backend:

Usage:
    python seed.py
"""

import asyncio
import logging

from config import settings
from database import BOOKS, TOURS, USERS, RecordStore, build_store
from utils.logging_config import setup_logging
from utils.security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"name": "Admin User", "email": "admin@library.com", "password": "admin123", "role": "admin"},
    {"name": "Regular User", "email": "user@library.com", "password": "user123", "role": "user"},
]

DEFAULT_BOOKS = [
    {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "isbn": "9780743273565",
        "category": "Fiction",
        "quantity": 5,
        "available": 5,
        "description": "A classic American novel",
    },
    {
        "title": "To Kill a Mockingbird",
        "author": "Harper Lee",
        "isbn": "9780061120084",
        "category": "Fiction",
        "quantity": 3,
        "available": 3,
        "description": "A gripping tale of racial injustice",
    },
    {
        "title": "1984",
        "author": "George Orwell",
        "isbn": "9780451524935",
        "category": "Science Fiction",
        "quantity": 4,
        "available": 4,
        "description": "Dystopian social science fiction",
    },
]

DEFAULT_TOURS = [
    {
        "name": "Santorini Sunset Escape",
        "location": "Santorini, Greece",
        "price": 1299,
        "duration": "5 days",
        "rating": 4.8,
        "reviews": 214,
        "highlights": ["Oia sunset cruise", "Wine tasting", "Volcano hike"],
        "images": ["images/santorini-1.jpg", "images/santorini-2.jpg"],
        "description": "Whitewashed villages, caldera views and the Aegean at dusk.",
    },
    {
        "name": "Kyoto Temples & Gardens",
        "location": "Kyoto, Japan",
        "price": 1850,
        "duration": "7 days",
        "rating": 4.9,
        "reviews": 187,
        "highlights": ["Fushimi Inari at dawn", "Tea ceremony", "Arashiyama bamboo grove"],
        "images": ["images/kyoto-1.jpg"],
        "description": "Shrines, zen gardens and traditional ryokan stays.",
    },
    {
        "name": "Machu Picchu Trek",
        "location": "Cusco, Peru",
        "price": 2100,
        "duration": "8 days",
        "rating": 4.7,
        "reviews": 156,
        "highlights": ["Inca Trail", "Sacred Valley", "Sun Gate sunrise"],
        "images": ["images/machu-picchu-1.jpg"],
        "description": "Hike the Inca Trail to the lost city in the clouds.",
    },
    {
        "name": "Safari Adventure",
        "location": "Serengeti, Tanzania",
        "price": 3200,
        "duration": "6 days",
        "rating": 4.9,
        "reviews": 98,
        "highlights": ["Great Migration", "Hot-air balloon ride", "Maasai village visit"],
        "images": ["images/serengeti-1.jpg", "images/serengeti-2.jpg"],
        "description": "Game drives across the plains at the height of the migration.",
    },
]


async def initialize_data(store: RecordStore) -> None:
    if not await store.exists(USERS):
        for user in DEFAULT_USERS:
            await store.create(
                USERS, {**user, "password": hash_password(user["password"]), "borrowed_books": []}
            )
        logger.info("Seeded %d users", len(DEFAULT_USERS))

    if not await store.exists(BOOKS):
        for book in DEFAULT_BOOKS:
            await store.create(BOOKS, book)
        logger.info("Seeded %d books", len(DEFAULT_BOOKS))

    if not await store.exists(TOURS):
        for tour in DEFAULT_TOURS:
            await store.create(TOURS, tour)
        logger.info("Seeded %d tours", len(DEFAULT_TOURS))


async def main() -> None:
    store = build_store(settings)
    try:
        await initialize_data(store)
    finally:
        await store.close()


if __name__ == "__main__":
    setup_logging(settings.log_level, settings.log_file)
    asyncio.run(main())
