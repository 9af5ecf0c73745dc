from typing import Optional

from fastapi import APIRouter, Depends, Query

import models
from services.tours import TourCatalog
from utils.dependencies import get_tour_catalog

router = APIRouter(prefix="/tours", tags=["Tours"])


@router.get("/", response_model=list[models.Tour])
async def list_tours(
    location: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    duration: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    tours: TourCatalog = Depends(get_tour_catalog),
):
    """Get all tours with optional filtering; ``sort`` is price-asc, price-desc or rating"""
    return await tours.list(
        location=location,
        min_price=min_price,
        max_price=max_price,
        duration=duration,
        search=search,
        sort=sort,
    )


@router.get("/destinations/list", response_model=list[str])
async def list_destinations(tours: TourCatalog = Depends(get_tour_catalog)):
    return await tours.destinations()


@router.get("/{tour_id}", response_model=models.Tour)
async def get_tour(tour_id: int, tours: TourCatalog = Depends(get_tour_catalog)):
    return await tours.get(tour_id)
