# app/schemas.py

from enum import Enum
from typing import Annotated, Any, ClassVar, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    RootModel,
    Tag,
    ValidationError,
    field_validator,
    model_validator,
)

from app.exceptions import MissingBookingFields, MissingDeleteKey

# Canonical field -> names older frontends still send
BOOKING_ALIASES = {
    "name": ["nome"],
    "phone": ["numero", "telefone"],
    "service": ["servico"],
    "staff": ["barbeiro", "barber"],
    "date": ["data"],
    "time": ["hora"],
    "title": ["summary"],
    "note": ["description"],
    "secondPersonStaff": ["secondPersonBarber"],
    "bookingTag": ["bookingId", "correlationId"],
    "notifyEmail": ["email"],
}

SECOND_PERSON_ALIASES = {
    "name": ["nome"],
    "phone": ["numero", "telefone"],
}

ABSENCE_ALIASES = {
    "staffName": ["barbeiro", "staff"],
    "startDate": ["dataInicio", "data", "date"],
    "endDate": ["dataFim"],
    "time": ["hora"],
}

BOOKING_ID_FIELDS = ["id", "eventId", "iddamarcacao"]
ABSENCE_ID_FIELDS = ["id", "eventId", "idAusencia"]
TAG_FIELDS = ["bookingTag", "bookingId", "correlationId"]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_fields(payload: dict, aliases: dict) -> dict:
    """Rename legacy keys to their canonical name and drop blank values.

    The canonical key wins when both it and an alias are present.
    """
    normalized = {k: v for k, v in payload.items() if not _is_blank(v)}
    for canonical, legacy_names in aliases.items():
        if canonical in normalized:
            for legacy in legacy_names:
                normalized.pop(legacy, None)
            continue
        for legacy in legacy_names:
            if legacy in normalized:
                normalized[canonical] = normalized.pop(legacy)
                break
    return normalized


class BookingType(str, Enum):
    individual = "individual"
    family = "family"


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    legacy_aliases: ClassVar[dict] = {}

    @model_validator(mode="before")
    @classmethod
    def _canonical_names(cls, data):
        if isinstance(data, dict):
            return normalize_fields(data, cls.legacy_aliases)
        return data


class SecondPersonInfo(_Request):
    legacy_aliases: ClassVar[dict] = SECOND_PERSON_ALIASES

    name: str
    phone: Optional[str] = None

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_as_text(cls, value):
        return None if _is_blank(value) else str(value)


class BookingCreate(_Request):
    legacy_aliases: ClassVar[dict] = BOOKING_ALIASES

    name: str
    phone: Optional[str] = None
    service: str
    staff: str
    date: str
    time: str
    duration_minutes: Optional[Union[int, str]] = Field(default=None, alias="durationMinutes")
    booking_type: BookingType = Field(default=BookingType.individual, alias="bookingType")
    second_person_info: Optional[SecondPersonInfo] = Field(default=None, alias="secondPersonInfo")
    second_person_staff: Optional[str] = Field(default=None, alias="secondPersonStaff")
    booking_tag: Optional[str] = Field(default=None, alias="bookingTag")
    notify_email: Optional[str] = Field(default=None, alias="notifyEmail")

    @field_validator("phone", "booking_tag", mode="before")
    @classmethod
    def _as_text(cls, value):
        return None if _is_blank(value) else str(value)

    @field_validator("second_person_info", mode="before")
    @classmethod
    def _second_person(cls, value):
        # Incomplete second-person data degrades to an individual booking
        if not isinstance(value, dict):
            return None
        value = normalize_fields(value, SECOND_PERSON_ALIASES)
        return value if "name" in value else None

    @field_validator("booking_type", mode="before")
    @classmethod
    def _legacy_booking_type(cls, value):
        if _is_blank(value):
            return BookingType.individual
        if str(value).strip().lower() == "familiar":
            return BookingType.family
        return str(value).strip().lower()


class EventPayloadCreate(_Request):
    """An event the frontend already assembled (title, note and times)."""

    legacy_aliases: ClassVar[dict] = BOOKING_ALIASES

    title: str
    note: str
    start: Union[dict, str]
    end: Union[dict, str]
    booking_tag: Optional[str] = Field(default=None, alias="bookingTag")
    notify_email: Optional[str] = Field(default=None, alias="notifyEmail")

    @field_validator("booking_tag", mode="before")
    @classmethod
    def _as_text(cls, value):
        return None if _is_blank(value) else str(value)


SIMPLE_FIELDS = ("name", "service", "staff", "date", "time")
PAYLOAD_FIELDS = ("title", "note", "start", "end")


def booking_kind(value) -> Optional[str]:
    if isinstance(value, BaseModel):
        return "payload" if isinstance(value, EventPayloadCreate) else "simple"
    if not isinstance(value, dict):
        return None
    data = normalize_fields(value, BOOKING_ALIASES)

    # A complete payload takes precedence, same as the frontend expects
    if all(field in data for field in PAYLOAD_FIELDS):
        return "payload"
    if all(field in data for field in SIMPLE_FIELDS):
        return "simple"
    return None


BookingRequest = Annotated[
    Union[
        Annotated[EventPayloadCreate, Tag("payload")],
        Annotated[BookingCreate, Tag("simple")],
    ],
    Discriminator(
        booking_kind,
        custom_error_type="missing_booking_fields",
        custom_error_message=MissingBookingFields.default_message,
    ),
]


class BookingBody(RootModel[BookingRequest]):
    """Request body of /adicionar-evento: simple fields or a complete event payload."""


def parse_booking_request(payload: dict) -> Union[BookingCreate, EventPayloadCreate]:
    kind = booking_kind(payload or {})
    if kind is None:
        raise MissingBookingFields()

    model = EventPayloadCreate if kind == "payload" else BookingCreate
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MissingBookingFields(f"Dados inválidos para criar o evento: {first_error(exc.errors())}")


class AbsenceCreate(_Request):
    legacy_aliases: ClassVar[dict] = ABSENCE_ALIASES

    staff_name: str = Field(alias="staffName")
    start_date: str = Field(alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    time: Optional[str] = None
    duration_minutes: Optional[Union[int, str]] = Field(default=None, alias="durationMinutes")


def parse_absence_request(payload: dict) -> AbsenceCreate:
    data = normalize_fields(payload or {}, ABSENCE_ALIASES)
    if "staffName" not in data or "startDate" not in data:
        raise MissingBookingFields("Dados em falta para criar a ausência.")
    try:
        return AbsenceCreate.model_validate(data)
    except ValidationError as exc:
        raise MissingBookingFields(f"Dados inválidos para criar a ausência: {first_error(exc.errors())}")


IdValue = Union[str, int]


class _DeleteBody(_Request):
    ids: Optional[Union[List[IdValue], IdValue]] = None
    id: Optional[IdValue] = None
    eventId: Optional[IdValue] = None
    bookingTag: Optional[str] = None
    bookingId: Optional[str] = None
    correlationId: Optional[str] = None


class EventDeleteBody(_DeleteBody):
    iddamarcacao: Optional[IdValue] = None


class AbsenceDeleteBody(_DeleteBody):
    idAusencia: Optional[IdValue] = None


class DeleteRequest(BaseModel):
    ids: List[str] = []
    booking_tag: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.ids and not self.booking_tag


def parse_delete_request(payload: dict, id_fields: list[str] = BOOKING_ID_FIELDS) -> DeleteRequest:
    payload = payload or {}
    candidates = []

    # Every id-shaped field, then the bulk "ids" array
    for field in id_fields:
        candidates.append(payload.get(field))
    raw_ids = payload.get("ids")
    if isinstance(raw_ids, (list, tuple)):
        candidates.extend(raw_ids)
    elif raw_ids is not None:
        candidates.append(raw_ids)

    ids = []
    for value in candidates:
        if _is_blank(value) or isinstance(value, (dict, list, bool)):
            continue
        value = str(value).strip()
        if value not in ids:
            ids.append(value)

    tag = None
    for field in TAG_FIELDS:
        if not _is_blank(payload.get(field)):
            tag = str(payload[field]).strip()
            break

    request = DeleteRequest(ids=ids, booking_tag=tag)
    if request.is_empty:
        raise MissingDeleteKey()
    return request


def first_error(errors: list) -> str:
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg')}" if location else error.get("msg", "")


# ---- Responses ----

class CreatedEventPublic(BaseModel):
    id: str
    link: Optional[str] = None


class FailedEventPublic(BaseModel):
    title: str
    error: str


class EventCreatedResponse(BaseModel):
    success: bool = True
    id: str
    iddamarcacao: str
    correlationId: Optional[str] = None
    eventLink: Optional[str] = None
    iCalUID: Optional[str] = None
    createdEvents: List[CreatedEventPublic]
    partial: bool = False
    failedEvents: List[FailedEventPublic] = []
    notificationSent: bool = False


class EventRemovedResponse(BaseModel):
    success: bool = True
    removedCount: int
    failedCount: int = 0
    status: str


class AbsenceCreatedResponse(BaseModel):
    success: bool = True
    id: str
    idAusencia: str
    eventLink: Optional[str] = None


class CalendarEventPublic(BaseModel):
    id: str
    title: Optional[str] = None
    note: Optional[str] = None
    start: Optional[dict] = None
    end: Optional[dict] = None
    link: Optional[str] = None
    correlationId: Optional[str] = None
    member: Optional[str] = None


class EventListResponse(BaseModel):
    success: bool = True
    events: List[CalendarEventPublic]
