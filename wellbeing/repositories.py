"""
Repository layer over the SQLAlchemy session.

Soft-deleted rows (deleted posts/comments, deactivated groups) are filtered out
by the base query of each repository. Seeing them requires an explicit
include_deleted=True.
"""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from wellbeing.models.domain import (
    Comment,
    Event,
    EventParticipant,
    Group,
    Membership,
    Post,
    RefreshToken,
    User,
)
from wellbeing.models.enums import MANAGING_ROLES, MembershipStatus, ParticipationStatus


class Repository:
    """Base repository: one model, one session, soft-delete aware queries."""
    model = None

    def __init__(self, db: Session):
        self.db = db

    def visible_criterion(self):
        """Criterion hiding soft-deleted rows, or None when the model has no soft delete."""
        return None

    def query(self, include_deleted: bool = False) -> Query:
        q = self.db.query(self.model)
        criterion = self.visible_criterion()
        if criterion is not None and not include_deleted:
            q = q.filter(criterion)
        return q

    def get(self, entity_id: str, include_deleted: bool = False, for_update: bool = False):
        q = self.query(include_deleted).filter(self.model.id == entity_id)
        if for_update:
            # Row lock on PostgreSQL; SQLite renders no clause and relies on its write lock.
            q = q.with_for_update()
        return q.first()

    def add(self, entity):
        self.db.add(entity)
        return entity


class UserRepository(Repository):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        return self.query().filter(User.email == email.strip().lower()).first()


class GroupRepository(Repository):
    model = Group

    def visible_criterion(self):
        return Group.is_active.is_(True)


class MembershipRepository(Repository):
    model = Membership

    def get_for(self, user_id: str, group_id: str) -> Optional[Membership]:
        return self.query().filter(
            Membership.user_id == user_id,
            Membership.group_id == group_id
        ).first()

    def count_active(self, group_id: str) -> int:
        return self.db.query(func.count(Membership.id)).filter(
            Membership.group_id == group_id,
            Membership.status == MembershipStatus.ACTIVE
        ).scalar()

    def count_active_managers(self, group_id: str) -> int:
        return self.db.query(func.count(Membership.id)).filter(
            Membership.group_id == group_id,
            Membership.status == MembershipStatus.ACTIVE,
            Membership.role.in_(MANAGING_ROLES)
        ).scalar()

    def list_active(self, group_id: str) -> List[Membership]:
        return self.query().filter(
            Membership.group_id == group_id,
            Membership.status == MembershipStatus.ACTIVE
        ).order_by(Membership.joined_at.asc()).all()

    def list_active_for_user(self, user_id: str) -> List[Membership]:
        return self.query().join(Group).filter(
            Membership.user_id == user_id,
            Membership.status == MembershipStatus.ACTIVE,
            Group.is_active.is_(True)
        ).order_by(Membership.joined_at.desc()).all()


class PostRepository(Repository):
    model = Post

    def visible_criterion(self):
        return Post.is_deleted.is_(False)

    def list_for_group(self, group_id: str, limit: int, offset: int) -> List[Post]:
        return self.query().filter(Post.group_id == group_id).order_by(
            Post.created_at.desc()
        ).limit(limit).offset(offset).all()


class CommentRepository(Repository):
    model = Comment

    def visible_criterion(self):
        return Comment.is_deleted.is_(False)

    def list_for_post(self, post_id: str) -> List[Comment]:
        return self.query().filter(Comment.post_id == post_id).order_by(Comment.created_at.asc()).all()

    def count_for_post(self, post_id: str) -> int:
        return self.query().filter(Comment.post_id == post_id).count()


class EventRepository(Repository):
    model = Event

    def list_for_group(self, group_id: str, upcoming: bool, now) -> List[Event]:
        q = self.query().filter(Event.group_id == group_id, Event.is_cancelled.is_(False))
        if upcoming:
            return q.filter(Event.start_time >= now).order_by(Event.start_time.asc()).all()
        return q.filter(Event.start_time < now).order_by(Event.start_time.desc()).all()


class ParticipantRepository(Repository):
    model = EventParticipant

    def get_for(self, event_id: str, user_id: str) -> Optional[EventParticipant]:
        return self.query().filter(
            EventParticipant.event_id == event_id,
            EventParticipant.user_id == user_id
        ).first()

    def count_going(self, event_id: str) -> int:
        return self.db.query(func.count(EventParticipant.id)).filter(
            EventParticipant.event_id == event_id,
            EventParticipant.status == ParticipationStatus.GOING
        ).scalar()

    def list_for_event(self, event_id: str) -> List[EventParticipant]:
        return self.query().filter(EventParticipant.event_id == event_id).order_by(
            EventParticipant.responded_at.asc()
        ).all()


class RefreshTokenRepository(Repository):
    model = RefreshToken

    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        return self.query().filter(RefreshToken.token == token).first()
