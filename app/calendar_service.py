# app/calendar_service.py

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.data import MEMBER_PROPERTY, TAG_PROPERTY
from app.events import EventDraft
from app.exceptions import EventNotFound, UpstreamCallFailed

logger = logging.getLogger(__name__)

CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"
INSERT_FIELDS = "id,htmlLink,iCalUID,extendedProperties"
LIST_FIELDS = "nextPageToken,items(id,summary,description,start,end,htmlLink,created,extendedProperties)"


@dataclass
class InsertedEvent:
    id: Optional[str]
    link: Optional[str] = None
    ical_uid: Optional[str] = None
    correlation_tag: Optional[str] = None


@dataclass
class CalendarEvent:
    id: str
    title: Optional[str] = None
    note: Optional[str] = None
    start: Optional[dict] = None
    end: Optional[dict] = None
    link: Optional[str] = None
    created: Optional[str] = None
    correlation_tag: Optional[str] = None
    member: Optional[str] = None


class CalendarService(Protocol):
    async def insert(self, draft: EventDraft) -> InsertedEvent: ...

    async def delete(self, event_id: str) -> None: ...

    async def list_by_tag(self, tag: str) -> list[CalendarEvent]: ...


def http_status(exc: HttpError) -> Optional[int]:
    status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status)
    except (TypeError, ValueError):
        return None


def _private_properties(payload: dict) -> dict:
    return (payload.get("extendedProperties") or {}).get("private") or {}


def map_calendar_event(payload: dict) -> CalendarEvent:
    private = _private_properties(payload)
    return CalendarEvent(
        id=str(payload.get("id") or ""),
        title=payload.get("summary"),
        note=payload.get("description"),
        start=payload.get("start"),
        end=payload.get("end"),
        link=payload.get("htmlLink"),
        created=payload.get("created"),
        correlation_tag=private.get(TAG_PROPERTY),
        member=private.get(MEMBER_PROPERTY),
    )


class GoogleCalendarService:
    """Google Calendar v3 adapter; blocking client calls run in a worker thread."""

    def __init__(
        self,
        *,
        calendar_id: str,
        credentials_info: dict,
        service: Any = None,
        credentials: Any = None,
    ):
        self._calendar_id = calendar_id
        if credentials is None and service is None:
            credentials = service_account.Credentials.from_service_account_info(
                credentials_info, scopes=[CALENDAR_SCOPE]
            )
        if service is None:
            service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        self._credentials = credentials
        self._service = service
        self._lock = threading.Lock()

    def _execute(self, request) -> Any:
        # httplib2 transports are not thread-safe: one per call, or one call at a time
        if self._credentials is None:
            with self._lock:
                return request.execute()
        http = google_auth_httplib2.AuthorizedHttp(self._credentials, http=httplib2.Http())
        return request.execute(http=http)

    async def insert(self, draft: EventDraft) -> InsertedEvent:
        try:
            data = await asyncio.to_thread(self._insert_sync, draft.to_google())
        except HttpError as exc:
            logger.error(f"❌ Google insert failed for '{draft.title}' (status {http_status(exc)}): {exc}")
            raise UpstreamCallFailed("insert", "Erro ao criar evento no Google Calendar") from exc
        except Exception as exc:
            logger.exception(f"❌ Unexpected error inserting '{draft.title}'")
            raise UpstreamCallFailed("insert", "Erro ao criar evento no Google Calendar") from exc

        data = data or {}
        return InsertedEvent(
            id=data.get("id"),
            link=data.get("htmlLink"),
            ical_uid=data.get("iCalUID"),
            correlation_tag=_private_properties(data).get(TAG_PROPERTY),
        )

    async def delete(self, event_id: str) -> None:
        try:
            await asyncio.to_thread(self._delete_sync, event_id)
        except HttpError as exc:
            status = http_status(exc)
            # 410 means the event was already deleted
            if status in (404, 410):
                raise EventNotFound(event_id) from exc
            logger.error(f"❌ Google delete failed for {event_id} (status {status}): {exc}")
            raise UpstreamCallFailed("delete", "Erro ao remover evento do Google Calendar") from exc
        except Exception as exc:
            logger.exception(f"❌ Unexpected error deleting {event_id}")
            raise UpstreamCallFailed("delete", "Erro ao remover evento do Google Calendar") from exc

    async def list_by_tag(self, tag: str) -> list[CalendarEvent]:
        try:
            items = await asyncio.to_thread(self._list_sync, f"{TAG_PROPERTY}={tag}")
        except HttpError as exc:
            logger.error(f"❌ Google list failed for tag {tag} (status {http_status(exc)}): {exc}")
            raise UpstreamCallFailed("list", "Erro ao procurar eventos no Google Calendar") from exc
        except Exception as exc:
            logger.exception(f"❌ Unexpected error listing tag {tag}")
            raise UpstreamCallFailed("list", "Erro ao procurar eventos no Google Calendar") from exc
        return [map_calendar_event(item) for item in items]

    def _insert_sync(self, body: dict) -> dict:
        request = self._service.events().insert(
            calendarId=self._calendar_id,
            body=body,
            fields=INSERT_FIELDS,
        )
        return self._execute(request)

    def _delete_sync(self, event_id: str) -> None:
        self._execute(self._service.events().delete(calendarId=self._calendar_id, eventId=event_id))

    def _list_sync(self, private_filter: str) -> list[dict]:
        items = []
        page_token = None
        while True:
            request = self._service.events().list(
                calendarId=self._calendar_id,
                privateExtendedProperty=private_filter,
                showDeleted=False,
                maxResults=250,
                pageToken=page_token,
                fields=LIST_FIELDS,
            )
            response = self._execute(request)
            items.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return items
