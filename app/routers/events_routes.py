# app/routers/events_routes.py

from fastapi import APIRouter, Depends, Query

from app.deps import get_booking_service
from app.schemas import (
    BookingBody,
    CalendarEventPublic,
    CreatedEventPublic,
    EventCreatedResponse,
    EventDeleteBody,
    EventListResponse,
    EventRemovedResponse,
    FailedEventPublic,
)
from app.services import BookingService

router = APIRouter(
    tags=["events"],
)


@router.post("/adicionar-evento", response_model=EventCreatedResponse, response_model_exclude_none=True)
async def create_event(
    booking: BookingBody,
    service: BookingService = Depends(get_booking_service),
):
    result = await service.create_booking(booking.root)
    primary = result.primary

    # Normalization + compat: always return "id" and "iddamarcacao"
    return {
        "success": True,
        "id": primary.id,
        "iddamarcacao": primary.id,
        "correlationId": result.correlation_tag,
        "eventLink": primary.link,
        "iCalUID": primary.ical_uid,
        "createdEvents": [CreatedEventPublic(id=e.id, link=e.link) for e in result.created],
        "partial": result.partial,
        "failedEvents": [FailedEventPublic(title=f.title, error=f.error) for f in result.failed],
        "notificationSent": result.notification_sent,
    }


@router.post("/remover-evento", response_model=EventRemovedResponse)
async def remove_event(
    body: EventDeleteBody,
    service: BookingService = Depends(get_booking_service),
):
    # Deleting something already gone is still a success
    outcome = await service.delete_booking(body)
    return {
        "success": True,
        "removedCount": outcome.removed,
        "failedCount": outcome.failed,
        "status": outcome.state.value,
    }


@router.get("/eventos", response_model=EventListResponse, response_model_exclude_none=True)
async def list_events(
    booking_tag: str = Query(..., alias="bookingTag"),
    service: BookingService = Depends(get_booking_service),
):
    events = await service.find_bookings(booking_tag)
    return {
        "success": True,
        "events": [
            CalendarEventPublic(
                id=e.id,
                title=e.title,
                note=e.note,
                start=e.start,
                end=e.end,
                link=e.link,
                correlationId=e.correlation_tag,
                member=e.member,
            )
            for e in events
        ],
    }
