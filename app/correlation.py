# app/correlation.py

from typing import Optional

from app.calendar_service import CalendarEvent, CalendarService


def derive_tag(explicit_key: Optional[str]) -> Optional[str]:
    """Tagging is opt-in: the caller's key verbatim, otherwise no tag."""
    if explicit_key is None:
        return None
    return explicit_key if explicit_key.strip() else None


class CorrelationStore:
    def __init__(self, calendar: CalendarService):
        self._calendar = calendar

    async def find_by_tag(self, tag: str) -> list[CalendarEvent]:
        events = await self._calendar.list_by_tag(tag)
        matches = [event for event in events if event.correlation_tag == tag]
        # Oldest first; the sort is stable for events without a timestamp
        return sorted(matches, key=lambda event: event.created or "")
