"""
Authorization policy for group-scoped actions.

Pure decisions over the acting user's membership row and the resource author.
No database access here - callers load the membership and pass it in.
"""
from typing import Optional

from wellbeing.models.domain import Membership
from wellbeing.models.enums import MANAGING_ROLES, MembershipStatus
from wellbeing.services.errors import AuthorizationError

NOT_A_MEMBER = "Access denied: Not a member of this group"
FACILITATOR_REQUIRED = "Access denied: Facilitator role required"


def is_group_member(membership: Optional[Membership]) -> bool:
    return membership is not None and membership.status == MembershipStatus.ACTIVE


def is_group_facilitator(membership: Optional[Membership]) -> bool:
    return is_group_member(membership) and membership.role in MANAGING_ROLES


def can_edit_content(user_id: str, author_id: str) -> bool:
    """Editing a post has no facilitator override."""
    return user_id == author_id


def can_delete_content(user_id: str, author_id: str, membership: Optional[Membership]) -> bool:
    return user_id == author_id or is_group_facilitator(membership)


def require_member(membership: Optional[Membership]) -> Membership:
    if not is_group_member(membership):
        raise AuthorizationError(NOT_A_MEMBER)
    return membership


def require_facilitator(membership: Optional[Membership]) -> Membership:
    if not is_group_facilitator(membership):
        raise AuthorizationError(FACILITATOR_REQUIRED)
    return membership


def require_can_edit(user_id: str, author_id: str, noun: str = "posts") -> None:
    if not can_edit_content(user_id, author_id):
        raise AuthorizationError(f"Access denied: You can only edit your own {noun}")


def require_can_delete(user_id: str, author_id: str, membership: Optional[Membership]) -> None:
    if not can_delete_content(user_id, author_id, membership):
        raise AuthorizationError("Access denied")
