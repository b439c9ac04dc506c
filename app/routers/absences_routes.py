# app/routers/absences_routes.py

from fastapi import APIRouter, Depends

from app.deps import get_booking_service
from app.schemas import AbsenceCreate, AbsenceCreatedResponse, AbsenceDeleteBody, EventRemovedResponse
from app.services import BookingService

router = APIRouter(
    tags=["absences"],
)


@router.post("/adicionar-ausencia", response_model=AbsenceCreatedResponse, response_model_exclude_none=True)
async def create_absence(
    absence: AbsenceCreate,
    service: BookingService = Depends(get_booking_service),
):
    created = await service.create_absence(absence)
    return {
        "success": True,
        "id": created.id,
        "idAusencia": created.id,
        "eventLink": created.link,
    }


@router.post("/remover-ausencia", response_model=EventRemovedResponse)
async def remove_absence(
    body: AbsenceDeleteBody,
    service: BookingService = Depends(get_booking_service),
):
    outcome = await service.delete_absence(body)
    return {
        "success": True,
        "removedCount": outcome.removed,
        "failedCount": outcome.failed,
        "status": outcome.state.value,
    }
