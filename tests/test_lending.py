import asyncio
from datetime import timedelta

import pytest

from database import BOOKS, TRANSACTIONS, USERS
from errors import ConflictError, NotFoundError, UnavailableError
from services.lending import LendingService

from conftest import NOW


@pytest.fixture
def lending(library, clock):
    return LendingService(library, clock=clock)


async def test_borrow_records_transaction_and_updates_book_and_user(lending, library):
    result = await lending.borrow(1, 1)

    assert result.id == 1
    assert result.type == "borrow"
    assert result.status == "active"
    assert result.borrow_date == NOW
    assert result.due_date == NOW + timedelta(days=14)
    assert result.return_date is None
    assert result.book_details.title == "1984"
    assert result.user_details.email == "ada@library.com"
    assert "password" not in result.user_details.model_dump()

    book = await library.find_one(BOOKS, {"id": 1})
    assert book["available"] == 3
    user = await library.find_one(USERS, {"id": 1})
    assert [record["book"] for record in user["borrowed_books"]] == [1]


async def test_borrow_unavailable_book_changes_nothing(lending, library):
    before = await library.find_one(BOOKS, {"id": 3})

    with pytest.raises(UnavailableError):
        await lending.borrow(1, 3)

    assert await library.find_one(BOOKS, {"id": 3}) == before
    assert await library.read_all(TRANSACTIONS) == []


async def test_borrowing_same_book_twice_is_a_conflict(lending, library):
    await lending.borrow(1, 1)
    transactions = await library.read_all(TRANSACTIONS)
    book = await library.find_one(BOOKS, {"id": 1})
    user = await library.find_one(USERS, {"id": 1})

    with pytest.raises(ConflictError):
        await lending.borrow(1, 1)

    assert await library.read_all(TRANSACTIONS) == transactions
    assert await library.find_one(BOOKS, {"id": 1}) == book
    assert await library.find_one(USERS, {"id": 1}) == user


async def test_borrow_unknown_book_or_user(lending):
    with pytest.raises(NotFoundError):
        await lending.borrow(1, 99)
    with pytest.raises(NotFoundError):
        await lending.borrow(99, 1)


async def test_borrow_then_return_restores_state(lending, library, clock):
    await lending.borrow(1, 1)
    clock.advance(days=3)

    result = await lending.return_book(1, 1)

    assert result.status == "returned"
    assert result.type == "return"
    assert result.return_date == NOW + timedelta(days=3)
    assert (await library.find_one(BOOKS, {"id": 1}))["available"] == 4
    assert (await library.find_one(USERS, {"id": 1}))["borrowed_books"] == []

    # the book can be borrowed again once returned
    again = await lending.borrow(1, 1)
    assert again.id == 2


async def test_return_without_active_borrow(lending):
    with pytest.raises(NotFoundError):
        await lending.return_book(1, 1)


async def test_return_keeps_earlier_steps_when_book_is_gone(lending, library):
    await lending.borrow(1, 1)
    await library.delete_one(BOOKS, 1)

    with pytest.raises(NotFoundError):
        await lending.return_book(1, 1)

    transaction = await library.find_one(TRANSACTIONS, {"id": 1})
    assert transaction["status"] == "returned"
    user = await library.find_one(USERS, {"id": 1})
    assert len(user["borrowed_books"]) == 1


async def test_return_only_touches_the_returning_user(lending, library):
    await lending.borrow(1, 1)
    await lending.borrow(2, 1)

    await lending.return_book(1, 1)

    assert (await library.find_one(USERS, {"id": 2}))["borrowed_books"][0]["book"] == 1
    assert (await library.find_one(BOOKS, {"id": 1}))["available"] == 3


async def test_concurrent_borrows_of_last_copy(lending, library):
    results = await asyncio.gather(lending.borrow(1, 2), lending.borrow(2, 2), return_exceptions=True)

    assert sum(isinstance(r, UnavailableError) for r in results) == 1
    assert (await library.find_one(BOOKS, {"id": 2}))["available"] == 0
    assert len(await library.read_all(TRANSACTIONS)) == 1


async def test_transaction_listings(lending, clock):
    await lending.borrow(1, 1)
    clock.advance(hours=1)
    await lending.borrow(1, 2)
    await lending.borrow(2, 1)

    mine = await lending.list_for_user(1)
    assert [t.book for t in mine] == [2, 1]
    assert mine[0].book_details.title == "Dune"
    assert mine[0].user_details is None

    everything = await lending.list_all()
    assert len(everything) == 3
    assert {t.user_details.name for t in everything} == {"Ada Reader", "Bob Reader"}


async def test_list_overdue(lending, clock):
    await lending.borrow(1, 1)
    clock.advance(days=10)
    await lending.borrow(2, 2)

    assert await lending.list_overdue() == []

    overdue = await lending.list_overdue(now=NOW + timedelta(days=20))
    assert [(t.user, t.book, t.days_overdue) for t in overdue] == [(1, 1, 6)]


async def test_borrow_and_return_tolerate_null_borrowed_books(lending, library):
    await library.update(USERS, 2, {"borrowed_books": None})

    await lending.borrow(2, 1)
    user = await library.find_one(USERS, {"id": 2})
    assert [record["book"] for record in user["borrowed_books"]] == [1]

    await library.update(USERS, 2, {"borrowed_books": None})
    await lending.return_book(2, 1)
    assert (await library.find_one(USERS, {"id": 2}))["borrowed_books"] == []
