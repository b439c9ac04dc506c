# app/reconcile.py

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from app.calendar_service import CalendarService
from app.correlation import CorrelationStore
from app.exceptions import EventNotFound, MissingDeleteKey, UpstreamCallFailed
from app.schemas import DeleteRequest

logger = logging.getLogger(__name__)


class DeleteState(str, Enum):
    deleted = "DELETED"
    not_found = "NOT_FOUND"


class DeleteStrategy(str, Enum):
    direct = "direct"
    tag = "tag"


@dataclass
class DeleteOutcome:
    state: DeleteState
    removed: int = 0
    failed: int = 0
    strategy: Optional[DeleteStrategy] = None
    removed_ids: list[str] = field(default_factory=list)


@dataclass
class _Attempts:
    removed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    errors: list[UpstreamCallFailed] = field(default_factory=list)


class ReconcilingDelete:
    """Turn a delete request into provider deletions.

    Known ids are tried first. The tag lookup only runs when there were no
    ids or none of them could be deleted, so a stale id held by a client
    still resolves to the event carrying its tag.
    """

    def __init__(self, calendar: CalendarService, store: Optional[CorrelationStore] = None):
        self._calendar = calendar
        self._store = store or CorrelationStore(calendar)

    async def run(self, request: DeleteRequest) -> DeleteOutcome:
        if request.is_empty:
            raise MissingDeleteKey()

        direct = _Attempts()
        if request.ids:
            direct = await self._delete_all(request.ids)
            if direct.removed:
                logger.info(f"🗑️ Deleted {len(direct.removed)} event(s) by id")
                return DeleteOutcome(
                    state=DeleteState.deleted,
                    removed=len(direct.removed),
                    failed=len(direct.errors),
                    strategy=DeleteStrategy.direct,
                    removed_ids=direct.removed,
                )
            logger.info(f"No event deleted by id {request.ids}, trying tag lookup")

        if request.booking_tag:
            matches = await self._store.find_by_tag(request.booking_tag)
            by_tag = await self._delete_all([event.id for event in matches])
            if by_tag.removed:
                logger.info(f"🗑️ Deleted {len(by_tag.removed)} event(s) with tag {request.booking_tag}")
                return DeleteOutcome(
                    state=DeleteState.deleted,
                    removed=len(by_tag.removed),
                    failed=len(by_tag.errors),
                    strategy=DeleteStrategy.tag,
                    removed_ids=by_tag.removed,
                )
            if by_tag.errors:
                raise by_tag.errors[0]
        # Everything failed and at least one failure was not a "not found"
        if direct.errors:
            raise direct.errors[0]

        logger.info(f"Nothing to delete for ids={request.ids} tag={request.booking_tag}")
        return DeleteOutcome(state=DeleteState.not_found)

    async def _delete_all(self, event_ids: list[str]) -> _Attempts:
        attempts = _Attempts()
        results = await asyncio.gather(
            *(self._calendar.delete(event_id) for event_id in event_ids),
            return_exceptions=True,
        )
        for event_id, result in zip(event_ids, results):
            if isinstance(result, EventNotFound):
                attempts.missing.append(event_id)
            elif isinstance(result, UpstreamCallFailed):
                attempts.errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                attempts.removed.append(event_id)
        return attempts
