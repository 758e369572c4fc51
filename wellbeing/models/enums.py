"""Enums for roles, lifecycle states and preferences."""
from enum import Enum


class MemberRole(str, Enum):
    """Role of a user inside one group. FACILITATOR and ADMIN carry the same rights."""
    MEMBER = "MEMBER"
    FACILITATOR = "FACILITATOR"
    ADMIN = "ADMIN"


class MembershipStatus(str, Enum):
    """
    Lifecycle of a membership row.

    PENDING -> ACTIVE -> LEFT | INACTIVE. Nothing leads back to ACTIVE.
    """
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    LEFT = "LEFT"
    INACTIVE = "INACTIVE"


class ParticipationStatus(str, Enum):
    """RSVP answer for an event. Only entering GOING is capacity-gated."""
    GOING = "GOING"
    MAYBE = "MAYBE"
    NOT_GOING = "NOT_GOING"


class NotificationLevel(str, Enum):
    NONE = "NONE"
    MINIMAL = "MINIMAL"
    NORMAL = "NORMAL"
    ALL = "ALL"


MANAGING_ROLES = (MemberRole.FACILITATOR, MemberRole.ADMIN)
