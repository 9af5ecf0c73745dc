from fastapi import APIRouter, Depends, HTTPException, status

import models
from services.lending import LendingService
from utils.dependencies import admin_required, get_current_user, get_lending_service

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("/borrow", response_model=models.TransactionDetail, status_code=status.HTTP_201_CREATED)
async def borrow_book(
    request: models.BorrowRequest,
    current_user: models.User = Depends(get_current_user),
    lending: LendingService = Depends(get_lending_service),
):
    return await lending.borrow(current_user.id, request.book_id)


@router.post("/return", response_model=models.TransactionDetail)
async def return_book(
    request: models.BorrowRequest,
    current_user: models.User = Depends(get_current_user),
    lending: LendingService = Depends(get_lending_service),
):
    return await lending.return_book(current_user.id, request.book_id)


@router.get("/overdue", response_model=list[models.OverdueTransaction])
async def get_overdue(admin=Depends(admin_required), lending: LendingService = Depends(get_lending_service)):
    """Active borrows past their due date (Admin only)"""
    return await lending.list_overdue()


@router.get("/user/{user_id}", response_model=list[models.TransactionDetail])
async def get_user_transactions(
    user_id: int,
    current_user: models.User = Depends(get_current_user),
    lending: LendingService = Depends(get_lending_service),
):
    # Users can only view their own transactions, admins can view all
    if current_user.id != user_id and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Not authorized to view these transactions")
    return await lending.list_for_user(user_id)


@router.get("/", response_model=list[models.TransactionDetail])
async def get_all_transactions(
    admin=Depends(admin_required), lending: LendingService = Depends(get_lending_service)
):
    return await lending.list_all()
