from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

import models
from services.accounts import UserService
from utils.dependencies import get_current_user, get_user_service
from utils.security import create_access_token

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_for(user: models.User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def _auth_response(user: models.User) -> models.AuthResponse:
    return models.AuthResponse(
        id=user.id, name=user.name, email=user.email, role=user.role, token=_token_for(user)
    )


@router.post("/register", response_model=models.AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: models.UserCreate, users: UserService = Depends(get_user_service)):
    user = await users.register(data)
    return _auth_response(user)


@router.post("/login", response_model=models.AuthResponse)
async def login(credentials: models.LoginRequest, users: UserService = Depends(get_user_service)):
    user = await users.authenticate(credentials.email, credentials.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _auth_response(user)


@router.post("/token", response_model=models.Token)
async def token(
    form_data: OAuth2PasswordRequestForm = Depends(), users: UserService = Depends(get_user_service)
):
    """OAuth2 password flow used by the interactive docs; ``username`` is the e-mail."""
    user = await users.authenticate(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=401, detail="Invalid credentials", headers={"WWW-Authenticate": "Bearer"}
        )
    return models.Token(access_token=_token_for(user))


@router.get("/profile", response_model=models.UserProfile)
async def profile(
    current_user: models.User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Get current user information with borrowed books"""
    return await users.profile(current_user.id)
