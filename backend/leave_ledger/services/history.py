from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.models.enums import LeaveStatus
from leave_ledger.models.history import LeaveRequestEvent
from leave_ledger.schemas.request import LeaveRequestEventResponse, LeaveRequestHistoryResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.models.request import LeaveRequest

# Actor recorded for transitions made by scheduled jobs.
SYSTEM_ACTOR = uuid.UUID(int=0)


def record_transition(
    session: AsyncSession,
    request: LeaveRequest,
    *,
    from_status: LeaveStatus | None,
    to_status: LeaveStatus,
    actor_id: uuid.UUID,
    note: str | None = None,
) -> LeaveRequestEvent:
    """Append a transition event within the caller's transaction."""
    event = LeaveRequestEvent(
        leave_request_id=request.id,
        from_status=from_status.value if from_status is not None else None,
        to_status=to_status.value,
        actor_id=actor_id,
        note=note,
    )
    session.add(event)
    return event


def _build_event_response(event: LeaveRequestEvent) -> LeaveRequestEventResponse:
    return LeaveRequestEventResponse(
        id=event.id,
        leave_request_id=event.leave_request_id,
        from_status=LeaveStatus(event.from_status) if event.from_status is not None else None,
        to_status=LeaveStatus(event.to_status),
        actor_id=event.actor_id,
        note=event.note,
        created_at=event.created_at,
    )


async def list_transitions(session: AsyncSession, leave_request_id: uuid.UUID) -> LeaveRequestHistoryResponse:
    """Return the transitions of a request in the order they happened."""
    result = await session.execute(
        select(LeaveRequestEvent)
        .where(col(LeaveRequestEvent.leave_request_id) == leave_request_id)
        .order_by(col(LeaveRequestEvent.created_at), col(LeaveRequestEvent.id))
    )
    events = list(result.scalars().all())
    return LeaveRequestHistoryResponse(
        items=[_build_event_response(e) for e in events],
        total=len(events),
    )
