"""Pydantic schemas for request/response validation."""
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from wellbeing.models.enums import (
    MemberRole,
    MembershipStatus,
    NotificationLevel,
    ParticipationStatus,
)

T = TypeVar("T")


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; convert aware input accordingly."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Envelope
class Envelope(BaseModel, Generic[T]):
    status: str = "success"
    data: T


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str


# Auth schemas
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    consent_given: bool
    data_processing_consent: bool


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    display_name: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# User schemas
class ProfileResponse(UserResponse):
    bio: Optional[str]
    avatar: Optional[str]
    notification_preference: NotificationLevel
    consent_given: bool
    data_processing_consent: bool
    marketing_consent: bool
    consent_date: Optional[datetime]
    is_verified: bool
    updated_at: datetime


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    display_name: Optional[str] = Field(None, min_length=1)
    bio: Optional[str] = None
    avatar: Optional[str] = None
    notification_preference: Optional[NotificationLevel] = None


class ConsentUpdate(BaseModel):
    data_processing_consent: Optional[bool] = None
    marketing_consent: Optional[bool] = None


class ConsentResponse(BaseModel):
    id: str
    consent_given: bool
    data_processing_consent: bool
    marketing_consent: bool
    consent_date: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class DeletionResponse(BaseModel):
    message: str
    deletion_date: datetime


# Group schemas
class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    purpose: Optional[str] = None
    max_members: int = Field(8, ge=4, le=12)
    is_private: bool = True
    require_approval: bool = True


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    purpose: Optional[str] = None
    avatar: Optional[str] = None
    max_members: Optional[int] = Field(None, ge=4, le=12)
    is_private: Optional[bool] = None
    require_approval: Optional[bool] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    purpose: Optional[str]
    avatar: Optional[str]
    max_members: int
    is_private: bool
    require_approval: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupDetailResponse(GroupResponse):
    member_count: int
    user_role: MemberRole


class UserGroupResponse(GroupResponse):
    role: MemberRole
    joined_at: Optional[datetime]
    member_count: int


class InviteRequest(BaseModel):
    email: EmailStr


class MembershipResponse(BaseModel):
    id: str
    user_id: str
    group_id: str
    role: MemberRole
    status: MembershipStatus
    invited_by: Optional[str]
    joined_at: Optional[datetime]
    left_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class AuthorSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    display_name: Optional[str]
    avatar: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class MemberResponse(AuthorSummary):
    role: MemberRole
    joined_at: Optional[datetime]


# Post schemas
class PostCreate(BaseModel):
    content: str = Field(..., min_length=1)
    attachments: List[str] = Field(default_factory=list)


class PostUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: str
    post_id: str
    author: AuthorSummary
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostResponse(BaseModel):
    id: str
    group_id: str
    author: AuthorSummary
    content: str
    attachments: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostSummaryResponse(PostResponse):
    comment_count: int


class PostDetailResponse(PostResponse):
    comments: List[CommentResponse]


# Event schemas
class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    location_details: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    max_participants: Optional[int] = Field(None, ge=1)
    is_online: bool = False
    meeting_link: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_naive_utc(cls, value):
        return _naive_utc(value)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    location_details: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_participants: Optional[int] = Field(None, ge=1)
    is_online: Optional[bool] = None
    meeting_link: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_naive_utc(cls, value):
        return _naive_utc(value)


class EventResponse(BaseModel):
    id: str
    group_id: str
    title: str
    description: Optional[str]
    location: Optional[str]
    location_details: Optional[str]
    start_time: datetime
    end_time: Optional[datetime]
    max_participants: Optional[int]
    is_online: bool
    meeting_link: Optional[str]
    is_cancelled: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventSummaryResponse(EventResponse):
    going_count: int
    user_status: Optional[ParticipationStatus]


class RespondRequest(BaseModel):
    status: ParticipationStatus


class ParticipationResponse(BaseModel):
    event_id: str
    user_id: str
    status: ParticipationStatus
    responded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ParticipantResponse(AuthorSummary):
    status: ParticipationStatus
    responded_at: datetime
