"""
Borrow/return lifecycle across the ``books``, ``users`` and
``transactions`` collections.

Each step of ``borrow`` and ``return_book`` is its own record store call.
The service holds one lock for the whole of a lending operation, so two
lending operations never interleave, but nothing is rolled back: if a
later step fails, earlier steps stay committed.  Book updates made
outside this service (admin edits) are not serialised against it.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from database import BOOKS, TRANSACTIONS, USERS, RecordStore, utcnow
from errors import ConflictError, NotFoundError, UnavailableError
from models import Book, OverdueTransaction, TransactionDetail, UserPublic

logger = logging.getLogger(__name__)

LOAN_DAYS = 14


class LendingService:
    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], datetime] = utcnow,
        loan_days: int = LOAN_DAYS,
    ):
        self.store = store
        self.clock = clock
        self.loan_days = loan_days
        self._lock = asyncio.Lock()

    async def borrow(self, user_id: int, book_id: int) -> TransactionDetail:
        async with self._lock:
            if await self.store.find_one(USERS, {"id": user_id}) is None:
                raise NotFoundError("User not found")

            book = await self.store.find_one(BOOKS, {"id": book_id})
            if book is None:
                raise NotFoundError("Book not found")
            if book.get("available", 0) <= 0:
                raise UnavailableError("Book is not available")

            existing = await self.store.find_all(
                TRANSACTIONS, {"user": user_id, "book": book_id, "status": "active"}
            )
            if existing:
                raise ConflictError("You have already borrowed this book")

            now = self.clock()
            due_date = now + timedelta(days=self.loan_days)
            transaction = await self.store.create(
                TRANSACTIONS,
                {
                    "user": user_id,
                    "book": book_id,
                    "type": "borrow",
                    "borrow_date": now,
                    "due_date": due_date,
                    "return_date": None,
                    "status": "active",
                },
            )

            book = await self.store.find_one(BOOKS, {"id": book_id})
            if book is None:
                raise NotFoundError("Book not found")
            await self.store.update(BOOKS, book_id, {"available": book.get("available", 0) - 1})

            user = await self.store.find_one(USERS, {"id": user_id})
            if user is None:
                raise NotFoundError("User not found")
            borrowed = (user.get("borrowed_books") or []) + [
                {"book": book_id, "borrow_date": now, "due_date": due_date}
            ]
            await self.store.update(USERS, user_id, {"borrowed_books": borrowed})

        logger.info("User %s borrowed book %s (transaction %s)", user_id, book_id, transaction["id"])
        return await self._detail(transaction, with_user=True)

    async def return_book(self, user_id: int, book_id: int) -> TransactionDetail:
        async with self._lock:
            transaction = await self.store.find_one(
                TRANSACTIONS, {"user": user_id, "book": book_id, "status": "active"}
            )
            if transaction is None:
                raise NotFoundError("No active borrowing transaction found for this book")

            transaction = await self.store.update(
                TRANSACTIONS,
                transaction["id"],
                {"type": "return", "return_date": self.clock(), "status": "returned"},
            )

            book = await self.store.find_one(BOOKS, {"id": book_id})
            if book is None:
                raise NotFoundError("Book not found")
            await self.store.update(BOOKS, book_id, {"available": book.get("available", 0) + 1})

            user = await self.store.find_one(USERS, {"id": user_id})
            if user is None:
                raise NotFoundError("User not found")
            remaining = [r for r in user.get("borrowed_books") or [] if r.get("book") != book_id]
            await self.store.update(USERS, user_id, {"borrowed_books": remaining})

        logger.info("User %s returned book %s (transaction %s)", user_id, book_id, transaction["id"])
        return await self._detail(transaction, with_user=True)

    async def list_for_user(self, user_id: int) -> List[TransactionDetail]:
        records = await self.store.find_all(TRANSACTIONS, {"user": user_id})
        return await self._details(records, with_user=False)

    async def list_all(self) -> List[TransactionDetail]:
        records = await self.store.read_all(TRANSACTIONS)
        return await self._details(records, with_user=True)

    async def list_overdue(self, now: Optional[datetime] = None) -> List[OverdueTransaction]:
        """Active transactions whose due date has passed."""
        now = now or self.clock()
        overdue = []
        for detail in await self._details(
            await self.store.find_all(TRANSACTIONS, {"status": "active"}), with_user=True
        ):
            if detail.due_date < now:
                days = (now - detail.due_date).days
                overdue.append(OverdueTransaction(**detail.model_dump(), days_overdue=days))
        return overdue

    async def _detail(self, record: dict, with_user: bool) -> TransactionDetail:
        book = await self.store.find_one(BOOKS, {"id": record["book"]})
        user = await self.store.find_one(USERS, {"id": record["user"]}) if with_user else None
        return TransactionDetail(
            **record,
            book_details=Book(**book) if book else None,
            user_details=UserPublic(**user) if user else None,
        )

    async def _details(self, records: List[dict], with_user: bool) -> List[TransactionDetail]:
        books = {b["id"]: b for b in await self.store.read_all(BOOKS)}
        users = {u["id"]: u for u in await self.store.read_all(USERS)} if with_user else {}
        details = []
        for record in records:
            book = books.get(record["book"])
            user = users.get(record["user"])
            details.append(
                TransactionDetail(
                    **record,
                    book_details=Book(**book) if book else None,
                    user_details=UserPublic(**user) if user else None,
                )
            )
        details.sort(key=lambda d: d.created_at or d.borrow_date, reverse=True)
        return details
