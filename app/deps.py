# app/deps.py

from fastapi import Request

from app.services import BookingService


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service
