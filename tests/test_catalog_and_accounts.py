import pytest

from database import BOOKS
from errors import ConflictError, NotFoundError, ValidationError
from models import BookCreate, BookUpdate, UserCreate
from services.accounts import UserService
from services.catalog import BookService
from services.lending import LendingService


def new_book(**overrides) -> BookCreate:
    fields = {
        "title": "Cosmos",
        "author": "Carl Sagan",
        "isbn": "9780345539434",
        "category": "Science",
        "description": "A personal voyage",
        "quantity": 3,
    }
    fields.update(overrides)
    return BookCreate(**fields)


async def test_create_book_defaults_available_to_quantity(store):
    books = BookService(store)

    book = await books.create(new_book())

    assert book.id == 1
    assert book.available == 3
    assert (await store.find_one(BOOKS, {"isbn": "9780345539434"}))["available"] == 3


async def test_create_book_rejects_duplicate_isbn_and_bad_counts(store):
    books = BookService(store)
    await books.create(new_book())

    with pytest.raises(ConflictError):
        await books.create(new_book(title="Other"))
    with pytest.raises(ValidationError):
        await books.create(new_book(isbn="123", available=5))


async def test_update_book(library):
    books = BookService(library)

    updated = await books.update(1, BookUpdate(available=2, description="Big Brother"))

    assert updated.available == 2
    assert updated.quantity == 4
    assert updated.description == "Big Brother"
    with pytest.raises(ValidationError):
        await books.update(1, BookUpdate(quantity=1))
    with pytest.raises(ConflictError):
        await books.update(1, BookUpdate(isbn="9780441172719"))
    with pytest.raises(NotFoundError):
        await books.update(99, BookUpdate(title="x"))


async def test_list_books_search_and_category(library, clock):
    books = BookService(library)
    clock.advance(days=1)
    await books.create(new_book())

    assert [b.title for b in await books.list()][0] == "Cosmos"
    assert [b.title for b in await books.list(search="ORWELL")] == ["1984"]
    assert [b.title for b in await books.list(search="978044")] == ["Dune"]
    assert [b.title for b in await books.list(category="Science")] == ["Cosmos"]
    assert await books.list(search="dune", category="Science") == []


async def test_delete_book(library):
    books = BookService(library)

    assert (await books.delete(2)).title == "Dune"
    with pytest.raises(NotFoundError):
        await books.get(2)
    with pytest.raises(NotFoundError):
        await books.delete(2)


async def test_register_and_authenticate(store):
    users = UserService(store)

    user = await users.register(UserCreate(name="Lin", email="lin@library.com", password="secret1"))

    assert user.role == "user"
    assert user.borrowed_books == []
    assert user.password != "secret1"
    assert (await users.authenticate("lin@library.com", "secret1")).id == user.id
    assert await users.authenticate("lin@library.com", "wrong") is None
    assert await users.authenticate("nobody@library.com", "secret1") is None
    with pytest.raises(ConflictError):
        await users.register(UserCreate(name="Lin 2", email="lin@library.com", password="secret2"))


async def test_profile_populates_borrowed_books(library, clock):
    users = UserService(library)
    await LendingService(library, clock=clock).borrow(1, 2)

    profile = await users.profile(1)

    assert profile.email == "ada@library.com"
    assert [(b.book_id, b.book.title) for b in profile.borrowed_books] == [(2, "Dune")]
    assert "password" not in profile.model_dump()
    with pytest.raises(NotFoundError):
        await users.profile(42)
    assert {p.id for p in await users.list_profiles()} == {1, 2}
