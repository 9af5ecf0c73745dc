from typing import Optional

from fastapi import APIRouter, Depends, status

import models
from services.catalog import BookService
from utils.dependencies import admin_required, get_book_service

router = APIRouter(prefix="/books", tags=["Books"])


@router.get("/", response_model=list[models.Book])
async def list_books(
    search: Optional[str] = None,
    category: Optional[str] = None,
    books: BookService = Depends(get_book_service),
):
    """List books, newest first; ``search`` matches title, author or ISBN"""
    return await books.list(search=search, category=category)


@router.get("/{book_id}", response_model=models.Book)
async def get_book(book_id: int, books: BookService = Depends(get_book_service)):
    return await books.get(book_id)


@router.post("/", response_model=models.Book, status_code=status.HTTP_201_CREATED)
async def add_book(
    book: models.BookCreate,
    admin=Depends(admin_required),
    books: BookService = Depends(get_book_service),
):
    return await books.create(book)


@router.put("/{book_id}", response_model=models.Book)
async def update_book(
    book_id: int,
    changes: models.BookUpdate,
    admin=Depends(admin_required),
    books: BookService = Depends(get_book_service),
):
    return await books.update(book_id, changes)


@router.delete("/{book_id}")
async def delete_book(
    book_id: int,
    admin=Depends(admin_required),
    books: BookService = Depends(get_book_service),
):
    book = await books.delete(book_id)
    return {"message": f"Book '{book.title}' deleted successfully", "deleted_book_id": book.id}
