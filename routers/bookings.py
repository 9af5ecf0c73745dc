import logging

from fastapi import APIRouter, Depends, status

import models
from services.booking import BookingService
from utils.dependencies import get_booking_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])


@router.post("/bookings", response_model=models.Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: models.BookingCreate, bookings: BookingService = Depends(get_booking_service)
):
    contact = models.BookingContact(
        **booking.model_dump(include={"name", "email", "phone", "date", "special_requests"})
    )
    return await bookings.create(booking.tour_id, contact, booking.travelers)


@router.post("/contact")
async def contact(message: models.ContactMessage):
    # Messages are only logged, nothing is stored or sent
    logger.info("Contact form submission from %s <%s>: %s", message.name, message.email, message.subject)
    return {"message": "Thank you for contacting us! We will get back to you soon."}
