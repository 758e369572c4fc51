"""Event planning and RSVP endpoints."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from wellbeing.api.deps import get_audit_trail, get_current_user, get_event_service
from wellbeing.api.responses import success
from wellbeing.api.schemas import (
    AuthorSummary,
    Envelope,
    EventCreate,
    EventResponse,
    EventSummaryResponse,
    EventUpdate,
    ParticipantResponse,
    ParticipationResponse,
    RespondRequest,
)
from wellbeing.models.audit import AuditAction
from wellbeing.models.domain import User
from wellbeing.services.audit import AuditTrail
from wellbeing.services.events import EventService

router = APIRouter(tags=["Events"])


@router.post("/groups/{group_id}/events", response_model=Envelope[EventResponse], status_code=status.HTTP_201_CREATED)
def create_event(
    group_id: UUID,
    data: EventCreate,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Any active member of the group may create an event."""
    event = event_service.create_event(str(group_id), current_user.id, data.model_dump())
    audit.record(AuditAction.EVENT_CREATE, "Event", event.id, user_id=current_user.id, status_code=201)
    return success(event)


@router.get("/groups/{group_id}/events", response_model=Envelope[List[EventSummaryResponse]])
def list_group_events(
    group_id: UUID,
    upcoming: bool = True,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return success([
        {
            **EventResponse.model_validate(item["event"]).model_dump(),
            "going_count": item["going_count"],
            "user_status": item["user_status"],
        }
        for item in event_service.list_group_events(str(group_id), current_user.id, upcoming)
    ])


@router.get("/events/{event_id}", response_model=Envelope[EventResponse])
def get_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return success(event_service.get_event(str(event_id), current_user.id))


@router.put("/events/{event_id}", response_model=Envelope[EventResponse])
def update_event(
    event_id: UUID,
    data: EventUpdate,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Facilitators only."""
    event = event_service.update_event(str(event_id), current_user.id, data.model_dump(exclude_unset=True))
    audit.record(AuditAction.EVENT_UPDATE, "Event", event.id, user_id=current_user.id)
    return success(event)


@router.post("/events/{event_id}/cancel", response_model=Envelope[EventResponse])
def cancel_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Facilitators only."""
    event = event_service.cancel_event(str(event_id), current_user.id)
    audit.record(AuditAction.EVENT_CANCEL, "Event", event.id, user_id=current_user.id)
    return success(event)


@router.post("/events/{event_id}/respond", response_model=Envelope[ParticipationResponse])
def respond_to_event(
    event_id: UUID,
    data: RespondRequest,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """
    Answer GOING, MAYBE or NOT_GOING.

    WILL REFUSE a GOING answer when the event already has max_participants
    GOING responses.
    """
    participant = event_service.respond_to_event(str(event_id), current_user.id, data.status)
    audit.record(AuditAction.EVENT_RESPOND, "EventParticipant", participant.id, user_id=current_user.id)
    return success(participant)


@router.get("/events/{event_id}/participants", response_model=Envelope[List[ParticipantResponse]])
def list_participants(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return success([
        {
            **AuthorSummary.model_validate(p.user).model_dump(),
            "status": p.status,
            "responded_at": p.responded_at,
        }
        for p in event_service.list_participants(str(event_id), current_user.id)
    ])
