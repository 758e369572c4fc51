"""
Event management and RSVP participation.

Who may do what:
- create: any ACTIVE member of the group
- update / cancel: ACTIVE facilitator or admin
- respond / read: ACTIVE member

Entering GOING is capacity-gated; leaving GOING never is.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wellbeing.models.domain import Event, EventParticipant
from wellbeing.models.enums import ParticipationStatus
from wellbeing.repositories import (
    EventRepository,
    GroupRepository,
    MembershipRepository,
    ParticipantRepository,
)
from wellbeing.services import policy
from wellbeing.services.errors import (
    CapacityError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EVENT_FIELDS = (
    "title",
    "description",
    "location",
    "location_details",
    "start_time",
    "end_time",
    "max_participants",
    "is_online",
    "meeting_link",
)


class EventService:
    def __init__(self, db: Session):
        self.db = db
        self.groups = GroupRepository(db)
        self.events = EventRepository(db)
        self.memberships = MembershipRepository(db)
        self.participants = ParticipantRepository(db)

    def create_event(self, group_id: str, user_id: str, data: dict) -> Event:
        if not self.groups.get(group_id):
            raise NotFoundError("Group not found")
        policy.require_member(self.memberships.get_for(user_id, group_id))

        data = {k: v for k, v in data.items() if k in EVENT_FIELDS}
        if not data.get("title"):
            raise ValidationError("Event title is required")
        if not data.get("start_time"):
            raise ValidationError("Valid start time is required")
        _validate_schedule(data["start_time"], data.get("end_time"))
        _validate_capacity(data.get("max_participants"))

        event = Event(group_id=group_id, **data)
        self.events.add(event)
        self.db.commit()
        self.db.refresh(event)
        logger.info("Event %s created in group %s by %s", event.id, group_id, user_id)
        return event

    def list_group_events(self, group_id: str, user_id: str, upcoming: bool = True) -> List[dict]:
        if not self.groups.get(group_id):
            raise NotFoundError("Group not found")
        policy.require_member(self.memberships.get_for(user_id, group_id))

        result = []
        for event in self.events.list_for_group(group_id, upcoming, datetime.utcnow()):
            own = self.participants.get_for(event.id, user_id)
            result.append({
                "event": event,
                "going_count": self.participants.count_going(event.id),
                "user_status": own.status if own else None,
            })
        return result

    def get_event(self, event_id: str, user_id: str) -> Event:
        event = self._get_event(event_id)
        policy.require_member(self.memberships.get_for(user_id, event.group_id))
        return event

    def update_event(self, event_id: str, user_id: str, changes: dict) -> Event:
        event = self._get_event(event_id)
        policy.require_facilitator(self.memberships.get_for(user_id, event.group_id))

        changes = {k: v for k, v in changes.items() if k in EVENT_FIELDS}
        if "title" in changes and not changes["title"]:
            raise ValidationError("Title cannot be empty")
        if "start_time" in changes and changes["start_time"] is None:
            raise ValidationError("Valid start time is required")
        _validate_schedule(changes.get("start_time", event.start_time), changes.get("end_time", event.end_time))
        if "max_participants" in changes:
            _validate_capacity(changes["max_participants"])

        for field, value in changes.items():
            setattr(event, field, value)
        self.db.commit()
        self.db.refresh(event)
        return event

    def cancel_event(self, event_id: str, user_id: str) -> Event:
        event = self._get_event(event_id)
        policy.require_facilitator(self.memberships.get_for(user_id, event.group_id))

        event.is_cancelled = True
        self.db.commit()
        self.db.refresh(event)
        logger.info("Event %s cancelled by %s", event_id, user_id)
        return event

    def respond_to_event(self, event_id: str, user_id: str, status: ParticipationStatus) -> EventParticipant:
        """
        Record the user's RSVP, replacing any earlier answer.

        The GOING count is read with the event row locked and the upsert is
        committed in the same transaction.
        """
        event = self._get_event(event_id, for_update=True)
        policy.require_member(self.memberships.get_for(user_id, event.group_id))

        if event.is_cancelled:
            raise ValidationError("Event is cancelled")

        participant = self.participants.get_for(event_id, user_id)
        already_going = participant is not None and participant.status == ParticipationStatus.GOING

        if (
            status == ParticipationStatus.GOING
            and not already_going
            and event.max_participants
            and self.participants.count_going(event_id) >= event.max_participants
        ):
            raise CapacityError("Event is at maximum capacity")

        now = datetime.utcnow()
        if participant:
            participant.status = status
            participant.responded_at = now
        else:
            participant = EventParticipant(event_id=event_id, user_id=user_id, status=status, responded_at=now)
            self.participants.add(participant)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Response already recorded, please retry")
        self.db.refresh(participant)
        return participant

    def list_participants(self, event_id: str, user_id: str) -> List[EventParticipant]:
        event = self._get_event(event_id)
        policy.require_member(self.memberships.get_for(user_id, event.group_id))
        return self.participants.list_for_event(event_id)

    def _get_event(self, event_id: str, for_update: bool = False) -> Event:
        event = self.events.get(event_id, for_update=for_update)
        if not event or not self.groups.get(event.group_id):
            raise NotFoundError("Event not found")
        return event


def _validate_schedule(start_time: datetime, end_time: Optional[datetime]) -> None:
    if end_time is not None and end_time <= start_time:
        raise ValidationError("End time must be after start time")


def _validate_capacity(max_participants: Optional[int]) -> None:
    if max_participants is not None and max_participants < 1:
        raise ValidationError("Max participants must be at least 1")
