# app/services.py

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from pydantic import BaseModel

from app.calendar_service import CalendarEvent, CalendarService, InsertedEvent
from app.correlation import CorrelationStore, derive_tag
from app.events import EventDraft, build_absence_draft, build_booking_drafts, parse_staff_reference
from app.exceptions import MissingDeleteKey, NoEventsFound, UpstreamCallFailed, UpstreamNoIdentifier
from app.notifier import Notifier, NullNotifier, booking_confirmation
from app.reconcile import DeleteOutcome, ReconcilingDelete
from app.schemas import (
    ABSENCE_ID_FIELDS,
    BOOKING_ID_FIELDS,
    AbsenceCreate,
    BookingCreate,
    EventPayloadCreate,
    parse_absence_request,
    parse_booking_request,
    parse_delete_request,
)

logger = logging.getLogger(__name__)


def _as_dict(payload) -> dict:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_none=True)
    return payload


@dataclass
class FailedDraft:
    title: str
    error: str


@dataclass
class BookingResult:
    created: list[InsertedEvent]
    correlation_tag: Optional[str] = None
    failed: list[FailedDraft] = field(default_factory=list)
    notification_sent: bool = False

    @property
    def primary(self) -> InsertedEvent:
        return self.created[0]

    @property
    def partial(self) -> bool:
        return bool(self.failed)


class BookingService:
    """Sequences builders, the calendar and the notifier for one request."""

    def __init__(
        self,
        calendar: CalendarService,
        notifier: Optional[Notifier] = None,
        *,
        timezone: str,
        default_minutes: int = 60,
        absence_minutes: int = 30,
    ):
        self.calendar = calendar
        self.notifier = notifier or NullNotifier()
        self.timezone = timezone
        self.default_minutes = default_minutes
        self.absence_minutes = absence_minutes
        self.store = CorrelationStore(calendar)
        self.reconciler = ReconcilingDelete(calendar, self.store)

    async def create_booking(self, payload: Union[dict, BookingCreate, EventPayloadCreate]) -> BookingResult:
        # 1) Normalize + build drafts (all validation happens before any remote call)
        request = payload if isinstance(payload, BaseModel) else parse_booking_request(payload)
        request.booking_tag = derive_tag(request.booking_tag)
        drafts = build_booking_drafts(
            request, timezone=self.timezone, default_minutes=self.default_minutes
        )

        # 2) Insert sequentially; the first event must succeed
        result = BookingResult(created=[await self._insert(drafts[0])], correlation_tag=request.booking_tag)

        # 3) Family second event: no rollback of the first, report partial success
        for draft in drafts[1:]:
            try:
                result.created.append(await self._insert(draft))
            except (UpstreamCallFailed, UpstreamNoIdentifier) as e:
                logger.error(f"⚠️ Second family event failed, first kept ({result.primary.id}): {e.message}")
                result.failed.append(FailedDraft(title=draft.title, error=e.message))

        # 4) Optional confirmation email
        if request.notify_email:
            result.notification_sent = await self._notify(request.notify_email, drafts[0])
        return result

    async def delete_booking(self, payload: Union[dict, BaseModel]) -> DeleteOutcome:
        request = parse_delete_request(_as_dict(payload), BOOKING_ID_FIELDS)
        outcome = await self.reconciler.run(request)
        logger.info(f"Delete booking: {outcome.state.value} removed={outcome.removed} via={outcome.strategy}")
        return outcome

    async def create_absence(self, payload: Union[dict, AbsenceCreate]) -> InsertedEvent:
        request = payload if isinstance(payload, AbsenceCreate) else parse_absence_request(payload)
        draft = build_absence_draft(
            request.staff_name,
            request.start_date,
            request.end_date,
            request.time,
            request.duration_minutes,
            timezone=self.timezone,
            default_minutes=self.absence_minutes,
        )
        return await self._insert(draft)

    async def delete_absence(self, payload: Union[dict, BaseModel]) -> DeleteOutcome:
        request = parse_delete_request(_as_dict(payload), ABSENCE_ID_FIELDS)
        outcome = await self.reconciler.run(request)
        logger.info(f"Delete absence: {outcome.state.value} removed={outcome.removed}")
        return outcome

    async def find_bookings(self, tag: str) -> list[CalendarEvent]:
        tag = derive_tag(tag)
        if not tag:
            raise MissingDeleteKey("Falta o bookingTag")
        events = await self.store.find_by_tag(tag)
        if not events:
            raise NoEventsFound()
        return events

    async def _insert(self, draft: EventDraft) -> InsertedEvent:
        inserted = await self.calendar.insert(draft)
        if not inserted.id:
            logger.error(f"Event '{draft.title}' created but no id in payload: {inserted}")
            raise UpstreamNoIdentifier()
        logger.info(f"✅ Event created: id={inserted.id} ical={inserted.ical_uid} link={inserted.link}")
        if draft.correlation_tag and not inserted.correlation_tag:
            inserted.correlation_tag = draft.correlation_tag
        return inserted

    async def _notify(self, to: str, draft: EventDraft) -> bool:
        message = booking_confirmation(to, draft.title, draft.start, parse_staff_reference(draft.note))
        try:
            return await self.notifier.send(message)
        except Exception as e:
            logger.error(f"❌ Notifier failed for {to}: {e}")
            return False
