"""
FastAPI application serving the library and tours APIs.

Run with::

    uvicorn main:app --reload
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import auth
from config import settings
from database import RecordStore, build_store
from errors import AppError, StorageError
from routers import bookings, books, tours, transactions, users
from seed import initialize_data
from services.accounts import UserService
from services.booking import BookingService
from services.catalog import BookService
from services.lending import LendingService
from services.tours import TourCatalog
from utils.dependencies import get_tour_catalog
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(store: Optional[RecordStore] = None, seed: Optional[bool] = None) -> FastAPI:
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.project_name)

    store = store or build_store(settings)
    tour_catalog = TourCatalog(store)
    app.state.store = store
    app.state.users = UserService(store)
    app.state.books = BookService(store)
    app.state.lending = LendingService(store, loan_days=settings.loan_days)
    app.state.tours = tour_catalog
    app.state.bookings = BookingService(store, tour_catalog)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, StorageError):
            logger.exception("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [error.get("msg", "Invalid value") for error in exc.errors()]
        return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})

    # Routers
    prefix = settings.api_prefix
    app.include_router(auth.router, prefix=prefix)
    app.include_router(users.router, prefix=prefix)
    app.include_router(books.router, prefix=prefix)
    app.include_router(transactions.router, prefix=prefix)
    app.include_router(tours.router, prefix=prefix)
    app.include_router(bookings.router, prefix=prefix)

    @app.get(f"{prefix}/destinations", response_model=list[str], tags=["Tours"])
    async def list_destinations(catalog: TourCatalog = Depends(get_tour_catalog)):
        return await catalog.destinations()

    @app.get("/health")
    async def health():
        return {
            "success": True,
            "message": "API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/")
    async def welcome():
        return {
            "message": f"Welcome to the {settings.project_name}",
            "endpoints": {
                "auth": f"{prefix}/auth",
                "books": f"{prefix}/books",
                "users": f"{prefix}/users",
                "transactions": f"{prefix}/transactions",
                "tours": f"{prefix}/tours",
                "tour": f"{prefix}/tours/{{id}}",
                "destinations": f"{prefix}/destinations",
                "bookings": f"{prefix}/bookings",
                "contact": f"{prefix}/contact",
                "health": "/health",
            },
        }

    should_seed = settings.seed_data if seed is None else seed

    @app.on_event("startup")
    async def startup_event() -> None:
        if should_seed:
            await initialize_data(store)
        logger.info("Storage backend: %s", type(store).__name__)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await store.close()

    return app


app = create_app()
