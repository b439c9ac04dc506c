# app/events.py

import re
from dataclasses import dataclass
from typing import Optional

from app.core import TimeInterval, resolve_interval
from app.data import ABSENCE_COLOR_ID, MEMBER_PROPERTY, STAFF_COLORS, STAFF_NOTE_PREFIX, TAG_PROPERTY
from app.schemas import BookingRequest, BookingType, EventPayloadCreate

STAFF_NOTE_PATTERN = re.compile(r"Staff:\s*(.+)", re.IGNORECASE)


@dataclass
class EventDraft:
    title: str
    note: str
    start: dict
    end: dict
    color_id: Optional[str] = None
    correlation_tag: Optional[str] = None
    member: Optional[str] = None

    def to_google(self) -> dict:
        body = {
            "summary": self.title,
            "description": self.note,
            "start": self.start,
            "end": self.end,
        }
        if self.color_id:
            body["colorId"] = self.color_id
        if self.correlation_tag:
            private = {TAG_PROPERTY: self.correlation_tag}
            if self.member:
                private[MEMBER_PROPERTY] = self.member
            body["extendedProperties"] = {"private": private}
        return body


def staff_note(staff: str) -> str:
    return f"{STAFF_NOTE_PREFIX}{staff}"


def parse_staff_reference(note: Optional[str]) -> Optional[str]:
    """Recover the staff member from an event note ("Staff: <name>")."""
    if not note:
        return None
    match = STAFF_NOTE_PATTERN.search(note)
    if not match:
        return None
    return match.group(1).strip() or None


def staff_color(staff: Optional[str]) -> Optional[str]:
    if not staff:
        return None
    return STAFF_COLORS.get(staff)


def booking_title(name: str, service: str, phone: Optional[str] = None) -> str:
    if phone:
        return f"{name} - {phone} - {service}"
    return f"{name} - {service}"


def _timed_or_date(value, timezone: str) -> dict:
    if isinstance(value, dict):
        return value
    return {"dateTime": value, "timeZone": timezone}


def build_booking_drafts(
    request: BookingRequest,
    *,
    timezone: str,
    default_minutes: int = 60,
) -> list[EventDraft]:
    if isinstance(request, EventPayloadCreate):
        return [build_payload_draft(request, timezone=timezone)]

    interval = resolve_interval(
        request.date,
        request.time,
        request.duration_minutes,
        timezone=timezone,
        default_minutes=default_minutes,
    )
    is_family = (
        request.booking_type == BookingType.family
        and request.second_person_info is not None
        and bool(request.second_person_staff)
    )

    drafts = [
        _person_draft(
            request.name,
            request.phone,
            request.service,
            request.staff,
            interval,
            tag=request.booking_tag,
            member="primary" if is_family else None,
        )
    ]

    # Family: same service, same interval, second person's own staff member
    if is_family:
        second = request.second_person_info
        drafts.append(
            _person_draft(
                second.name,
                second.phone,
                request.service,
                request.second_person_staff,
                interval,
                tag=request.booking_tag,
                member="second",
            )
        )
    return drafts


def _person_draft(name, phone, service, staff, interval: TimeInterval, tag=None, member=None) -> EventDraft:
    start, end = interval.as_google()
    return EventDraft(
        title=booking_title(name, service, phone),
        note=staff_note(staff),
        start=start,
        end=end,
        color_id=staff_color(staff),
        correlation_tag=tag,
        member=member,
    )


def build_payload_draft(payload: EventPayloadCreate, *, timezone: str) -> EventDraft:
    # Title and times are taken as given; only the colour is derived
    return EventDraft(
        title=payload.title,
        note=payload.note,
        start=_timed_or_date(payload.start, timezone),
        end=_timed_or_date(payload.end, timezone),
        color_id=staff_color(parse_staff_reference(payload.note)),
        correlation_tag=payload.booking_tag,
    )


def build_absence_draft(
    staff_name: str,
    start_date,
    end_date=None,
    start_time=None,
    duration_minutes=None,
    *,
    timezone: str,
    default_minutes: int,
) -> EventDraft:
    interval = resolve_interval(
        start_date,
        start_time,
        duration_minutes,
        end_date,
        timezone=timezone,
        default_minutes=default_minutes,
    )
    start, end = interval.as_google()
    return EventDraft(
        title=f"Absence - {staff_name}",
        note=f"Absence for staff member {staff_name}",
        start=start,
        end=end,
        color_id=ABSENCE_COLOR_ID,
    )
