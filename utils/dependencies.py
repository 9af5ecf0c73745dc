from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from config import settings
from models import User
from services.accounts import UserService
from services.booking import BookingService
from services.catalog import BookService
from services.lending import LendingService
from services.tours import TourCatalog
from utils.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix.lstrip('/')}/auth/token")


# Services are built once in main.create_app and kept on app.state
def get_user_service(request: Request) -> UserService:
    return request.app.state.users


def get_book_service(request: Request) -> BookService:
    return request.app.state.books


def get_lending_service(request: Request) -> LendingService:
    return request.app.state.lending


def get_tour_catalog(request: Request) -> TourCatalog:
    return request.app.state.tours


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.bookings


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    users: UserService = Depends(get_user_service),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception

    user = await users.get(payload["sub"])
    if user is None:
        raise credentials_exception
    return user


def authorize(*roles: str):
    """Dependency factory: the current user must have one of ``roles``."""

    async def _role_required(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role '{current_user.role}' is not authorized to access this route",
            )
        return current_user

    return _role_required


admin_required = authorize("admin")
