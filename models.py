from datetime import date as Date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

Role = Literal["user", "admin"]
Category = Literal[
    "Fiction",
    "Non-Fiction",
    "Science",
    "Science Fiction",
    "Technology",
    "History",
    "Biography",
    "Children",
    "Other",
]

PHONE_PATTERN = r"^\+?[\d\s()-]+$"


def _min_stripped(value: str, length: int, label: str) -> str:
    value = value.strip()
    if len(value) < length:
        raise ValueError(f"{label} must be at least {length} characters long")
    return value


# ---------- Auth ----------
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "user"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    token: str
    token_type: str = "bearer"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ---------- Books ----------
class BookBase(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: str = Field(..., min_length=1)
    category: Category
    description: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=0)


class BookCreate(BookBase):
    available: Optional[int] = Field(None, ge=0)  # defaults to quantity


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    isbn: Optional[str] = Field(None, min_length=1)
    category: Optional[Category] = None
    description: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=0)
    available: Optional[int] = Field(None, ge=0)


class Book(BookBase):
    id: int
    available: int
    created_at: Optional[datetime] = None


# ---------- Users ----------
class BorrowRecord(BaseModel):
    book: int
    borrow_date: datetime
    due_date: datetime


class UserPublic(BaseModel):
    """A user without the password hash."""

    id: int
    name: str
    email: str
    role: Role = "user"
    borrowed_books: List[BorrowRecord] = []
    created_at: Optional[datetime] = None

    @field_validator("borrowed_books", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class User(UserPublic):
    password: str


class BorrowedBook(BaseModel):
    book_id: int
    book: Optional[Book] = None  # None once the book has been deleted
    borrow_date: datetime
    due_date: datetime


class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    borrowed_books: List[BorrowedBook] = []
    created_at: Optional[datetime] = None


# ---------- Transactions ----------
class BorrowRequest(BaseModel):
    book_id: int = Field(..., ge=1)


class Transaction(BaseModel):
    id: int
    user: int
    book: int
    type: Literal["borrow", "return"]
    borrow_date: datetime
    due_date: datetime
    return_date: Optional[datetime] = None
    status: Literal["active", "returned", "overdue"] = "active"
    created_at: Optional[datetime] = None


class TransactionDetail(Transaction):
    book_details: Optional[Book] = None
    user_details: Optional[UserPublic] = None


class OverdueTransaction(TransactionDetail):
    days_overdue: int


# ---------- Tours ----------
class Tour(BaseModel):
    id: int
    name: str
    location: str
    price: float
    duration: str
    rating: float = 0
    reviews: int = 0
    highlights: List[str] = []
    images: List[str] = []
    description: str = ""


# ---------- Bookings ----------
class BookingContact(BaseModel):
    name: str
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    date: Date
    special_requests: str = ""

    @field_validator("name")
    @classmethod
    def _name_length(cls, value: str) -> str:
        return _min_stripped(value, 2, "Name")

    @field_validator("date")
    @classmethod
    def _future_date(cls, value: Date) -> Date:
        if value <= Date.today():
            raise ValueError("Valid future date is required")
        return value


class BookingCreate(BookingContact):
    tour_id: int = Field(..., ge=1)
    travelers: int = Field(..., ge=1, le=50)


class Booking(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    tour_id: int
    tour_name: str
    date: Date
    travelers: int
    total_price: float
    special_requests: str = ""
    status: Literal["pending", "confirmed", "cancelled"] = "pending"
    created_at: Optional[datetime] = None


class ContactMessage(BaseModel):
    name: str
    email: EmailStr
    subject: str
    message: str

    @field_validator("name")
    @classmethod
    def _name_length(cls, value: str) -> str:
        return _min_stripped(value, 2, "Name")

    @field_validator("subject")
    @classmethod
    def _subject_length(cls, value: str) -> str:
        return _min_stripped(value, 3, "Subject")

    @field_validator("message")
    @classmethod
    def _message_length(cls, value: str) -> str:
        return _min_stripped(value, 10, "Message")
