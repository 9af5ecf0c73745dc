import logging
from typing import List, Optional

from database import BOOKS, USERS, RecordStore
from errors import ConflictError, NotFoundError
from models import Book, BorrowedBook, User, UserCreate, UserProfile
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def register(self, data: UserCreate) -> User:
        if await self.store.find_one(USERS, {"email": data.email}):
            raise ConflictError("User already exists")

        record = await self.store.create(
            USERS,
            {
                "name": data.name,
                "email": data.email,
                "password": hash_password(data.password),
                "role": data.role,
                "borrowed_books": [],
            },
        )
        logger.info("Registered user %s <%s>", record["id"], record["email"])
        return User(**record)

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        record = await self.store.find_one(USERS, {"email": email})
        if record is None or not verify_password(password, record["password"]):
            return None
        return User(**record)

    async def get(self, user_id: int) -> Optional[User]:
        record = await self.store.find_one(USERS, {"id": user_id})
        return User(**record) if record else None

    async def profile(self, user_id: int) -> UserProfile:
        """The user without its password, borrowed books populated."""
        user = await self.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        books = await self._books_by_id()
        return _profile(user, books)

    async def list_profiles(self) -> List[UserProfile]:
        books = await self._books_by_id()
        profiles = [_profile(User(**r), books) for r in await self.store.read_all(USERS)]
        profiles.sort(key=lambda p: (p.created_at is not None, p.created_at), reverse=True)
        return profiles

    async def _books_by_id(self) -> dict:
        return {b["id"]: Book(**b) for b in await self.store.read_all(BOOKS)}


def _profile(user: User, books: dict) -> UserProfile:
    return UserProfile(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        borrowed_books=[
            BorrowedBook(
                book_id=record.book,
                book=books.get(record.book),
                borrow_date=record.borrow_date,
                due_date=record.due_date,
            )
            for record in user.borrowed_books
        ],
    )
