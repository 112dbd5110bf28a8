from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from calshare.api.deps import get_current_user
from calshare.db import SessionDep
from calshare.models import User
from calshare.schemas import (
    ConfirmationUpdate,
    EventCreate,
    EventParticipantRead,
    EventRead,
    EventUpdate,
)
from calshare.services import events as event_service
from calshare.services import participation

router = APIRouter()


@router.post(
    "/",
    response_model=EventRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
def create_event(
    payload: EventCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> EventRead:
    return event_service.create_event(session, current_user, payload)


@router.get("/{event_id}", response_model=EventRead, summary="Get event")
def get_event(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> EventRead:
    return event_service.get_event(session, current_user, event_id)


@router.put("/{event_id}", response_model=EventRead, summary="Update event")
def update_event(
    event_id: UUID,
    payload: EventUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> EventRead:
    return event_service.update_event(session, current_user, event_id, payload)


@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete event",
)
def delete_event(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    event_service.delete_event(session, current_user, event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{event_id}/participants",
    response_model=List[EventParticipantRead],
    summary="List event participants",
)
def list_participants(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventParticipantRead]:
    return participation.list_event_participants(session, current_user, event_id)


@router.put(
    "/{event_id}/confirmation",
    response_model=List[EventParticipantRead],
    summary="Confirm or decline own participation",
)
def confirm_participation(
    event_id: UUID,
    payload: ConfirmationUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventParticipantRead]:
    participation.confirm_event_participation(
        session, current_user, event_id, payload.has_confirmed
    )
    return participation.list_event_participants(session, current_user, event_id)


@router.put(
    "/{event_id}/participants/{user_id}/confirmation",
    response_model=List[EventParticipantRead],
    summary="Set a participant's confirmation",
)
def set_participant_confirmation(
    event_id: UUID,
    user_id: UUID,
    payload: ConfirmationUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventParticipantRead]:
    participation.set_participant_confirmation(
        session, current_user, event_id, user_id, payload.has_confirmed
    )
    return participation.list_event_participants(session, current_user, event_id)


@router.delete(
    "/{event_id}/participants/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove event participant",
)
def remove_participant(
    event_id: UUID,
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    participation.remove_event_participant(session, current_user, event_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
