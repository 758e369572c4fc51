"""Domain models - users, groups, memberships, content, events and sessions."""
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from wellbeing.database import Base
from wellbeing.models.enums import (
    MemberRole,
    MembershipStatus,
    NotificationLevel,
    ParticipationStatus,
)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    A registered person.

    Invariants:
    - email is unique
    - consent_given and data_processing_consent are both True at creation
    - never hard-deleted here; a deletion request only flags and deactivates
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String, nullable=True)
    notification_preference = Column(
        SQLEnum(NotificationLevel), nullable=False, default=NotificationLevel.MINIMAL
    )

    # GDPR consent
    consent_given = Column(Boolean, nullable=False, default=False)
    consent_date = Column(DateTime, nullable=True)
    data_processing_consent = Column(Boolean, nullable=False, default=False)
    marketing_consent = Column(Boolean, nullable=False, default=False)

    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    deletion_requested = Column(Boolean, nullable=False, default=False)
    deletion_requested_at = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("Membership", back_populates="user", foreign_keys="Membership.user_id")
    posts = relationship("Post", back_populates="author")
    comments = relationship("Comment", back_populates="author")
    event_responses = relationship("EventParticipant", back_populates="user")
    refresh_tokens = relationship("RefreshToken", back_populates="user")


class Group(Base):
    """
    A small closed group.

    Invariants:
    - 4 <= max_members <= 12 (checked in the membership service)
    - soft-deleted through is_active=False
    """
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    purpose = Column(Text, nullable=True)
    avatar = Column(String, nullable=True)
    max_members = Column(Integer, nullable=False, default=8)
    is_private = Column(Boolean, nullable=False, default=True)
    require_approval = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("Membership", back_populates="group")
    posts = relationship("Post", back_populates="group")
    events = relationship("Event", back_populates="group")


class Membership(Base):
    """
    Relation between one user and one group.

    Invariants:
    - at most one row per (user_id, group_id)
    - rows are never deleted, only moved through MembershipStatus
    """
    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "group_id", name="uq_membership_user_group"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole), nullable=False, default=MemberRole.MEMBER)
    status = Column(SQLEnum(MembershipStatus), nullable=False, default=MembershipStatus.PENDING)
    invited_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    joined_at = Column(DateTime, nullable=True)
    left_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="memberships", foreign_keys=[user_id])
    group = relationship("Group", back_populates="memberships")


class Post(Base):
    """A message posted in a group. Edited by its author, soft-deleted by author or facilitator."""
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    attachments = Column(JSON, nullable=False, default=list)

    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    group = relationship("Group", back_populates="posts")
    author = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", order_by="Comment.created_at")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_id)
    post_id = Column(String(36), ForeignKey("posts.id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments")


class Event(Base):
    """
    A scheduled group meeting.

    Invariants:
    - GOING responses never exceed max_participants when one is accepted
    - cancelled events are kept, flagged with is_cancelled
    """
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    location_details = Column(String, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)
    max_participants = Column(Integer, nullable=True)
    is_online = Column(Boolean, nullable=False, default=False)
    meeting_link = Column(String, nullable=True)
    is_cancelled = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    group = relationship("Group", back_populates="events")
    participants = relationship("EventParticipant", back_populates="event")


class EventParticipant(Base):
    """One user's RSVP to one event, replaced on every new answer."""
    __tablename__ = "event_participants"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_participant_event_user"),)

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SQLEnum(ParticipationStatus), nullable=False)
    responded_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    event = relationship("Event", back_populates="participants")
    user = relationship("User", back_populates="event_responses")


class RefreshToken(Base):
    """
    Server-side record of an issued refresh token.

    Invariants:
    - revocation is permanent
    - expired or revoked tokens are never accepted
    """
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=new_id)
    token = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    is_revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="refresh_tokens")
