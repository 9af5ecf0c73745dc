from fastapi import APIRouter, Depends

import models
from services.accounts import UserService
from utils.dependencies import admin_required, get_user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=list[models.UserProfile])
async def list_users(admin=Depends(admin_required), users: UserService = Depends(get_user_service)):
    """Get all users with their borrowed books (Admin only)"""
    return await users.list_profiles()


@router.get("/{user_id}", response_model=models.UserProfile)
async def get_user(user_id: int, admin=Depends(admin_required), users: UserService = Depends(get_user_service)):
    """Get a specific user by ID (Admin only)"""
    return await users.profile(user_id)
