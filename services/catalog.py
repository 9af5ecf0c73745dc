import logging
from typing import List, Optional

from database import BOOKS, RecordStore
from errors import ConflictError, NotFoundError, ValidationError
from models import Book, BookCreate, BookUpdate

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "author", "isbn")


class BookService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def list(self, search: Optional[str] = None, category: Optional[str] = None) -> List[Book]:
        if search:
            records = await self.store.search(BOOKS, SEARCH_FIELDS, search)
        else:
            records = await self.store.read_all(BOOKS)
        if category:
            records = [r for r in records if r.get("category") == category]
        books = [Book(**r) for r in records]
        books.sort(key=lambda b: (b.created_at is not None, b.created_at), reverse=True)
        return books

    async def get(self, book_id: int) -> Book:
        record = await self.store.find_one(BOOKS, {"id": book_id})
        if record is None:
            raise NotFoundError("Book not found")
        return Book(**record)

    async def create(self, data: BookCreate) -> Book:
        await self._ensure_unique_isbn(data.isbn)
        fields = data.model_dump()
        if fields["available"] is None:
            fields["available"] = fields["quantity"]
        _check_counts(fields["quantity"], fields["available"])
        record = await self.store.create(BOOKS, fields)
        logger.info("Book %s created: %s", record["id"], record["title"])
        return Book(**record)

    async def update(self, book_id: int, data: BookUpdate) -> Book:
        current = await self.get(book_id)
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        if "isbn" in patch and patch["isbn"] != current.isbn:
            await self._ensure_unique_isbn(patch["isbn"])
        _check_counts(patch.get("quantity", current.quantity), patch.get("available", current.available))

        record = await self.store.update(BOOKS, book_id, patch)
        if record is None:
            raise NotFoundError("Book not found")
        return Book(**record)

    async def delete(self, book_id: int) -> Book:
        record = await self.store.delete_one(BOOKS, book_id)
        if record is None:
            raise NotFoundError("Book not found")
        logger.info("Book %s deleted", book_id)
        return Book(**record)

    async def _ensure_unique_isbn(self, isbn: str) -> None:
        if await self.store.find_one(BOOKS, {"isbn": isbn}):
            raise ConflictError("Book with this ISBN already exists")


def _check_counts(quantity: int, available: int) -> None:
    if quantity < 0 or available < 0:
        raise ValidationError("Quantity and available copies cannot be negative")
    if available > quantity:
        raise ValidationError("Available copies cannot exceed quantity")
