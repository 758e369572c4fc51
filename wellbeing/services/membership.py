"""
Membership state machine for groups.

All membership transitions MUST go through here:

    (create group)  -> ACTIVE FACILITATOR
    invite          -> PENDING
    accept          PENDING -> ACTIVE
    leave           ACTIVE -> LEFT      (refused for the last facilitator)
    remove          *      -> INACTIVE  (no last-facilitator check)

Nothing leads from LEFT or INACTIVE back to ACTIVE, and a second invite for a
user who already has a row in the group is refused.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wellbeing.models.domain import Group, Membership
from wellbeing.models.enums import MANAGING_ROLES, MemberRole, MembershipStatus
from wellbeing.repositories import GroupRepository, MembershipRepository, UserRepository
from wellbeing.services import policy
from wellbeing.services.errors import (
    CapacityError,
    ConflictError,
    InvariantError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_MEMBERS = 4
MAX_MEMBERS = 12

GROUP_FIELDS = ("name", "description", "purpose", "avatar", "max_members", "is_private", "require_approval")


def validate_max_members(max_members: int) -> None:
    if max_members is None or not MIN_MEMBERS <= max_members <= MAX_MEMBERS:
        raise ValidationError(f"Max members must be between {MIN_MEMBERS} and {MAX_MEMBERS}")


class MembershipStateMachine:
    """Enforces group membership transitions, capacity and the last-facilitator rule."""

    def __init__(self, db: Session):
        self.db = db
        self.groups = GroupRepository(db)
        self.memberships = MembershipRepository(db)
        self.users = UserRepository(db)

    # Group lifecycle

    def create_group(self, owner_id: str, name: str, max_members: int = 8, **fields) -> Group:
        """Create a group with its owner as the first ACTIVE facilitator, in one commit."""
        validate_max_members(max_members)

        group = Group(name=name, max_members=max_members, **_pick(fields, GROUP_FIELDS))
        self.groups.add(group)
        self.db.flush()

        now = datetime.utcnow()
        self.memberships.add(Membership(
            user_id=owner_id,
            group_id=group.id,
            role=MemberRole.FACILITATOR,
            status=MembershipStatus.ACTIVE,
            joined_at=now
        ))
        self.db.commit()
        self.db.refresh(group)
        logger.info("Group %s created by %s", group.id, owner_id)
        return group

    def get_group(self, group_id: str, user_id: str) -> dict:
        group = self._get_group(group_id)
        membership = policy.require_member(self.memberships.get_for(user_id, group_id))
        return {
            "group": group,
            "member_count": self.memberships.count_active(group_id),
            "user_role": membership.role,
        }

    def update_group(self, group_id: str, user_id: str, changes: dict) -> Group:
        group = self._get_group(group_id)
        policy.require_facilitator(self.memberships.get_for(user_id, group_id))

        changes = _pick(changes, GROUP_FIELDS)
        if "max_members" in changes:
            validate_max_members(changes["max_members"])
        if "name" in changes and not changes["name"]:
            raise ValidationError("Group name cannot be empty")

        for field, value in changes.items():
            setattr(group, field, value)
        self.db.commit()
        self.db.refresh(group)
        return group

    def deactivate_group(self, group_id: str, user_id: str) -> None:
        """Soft-delete a group. It disappears from every default query afterwards."""
        group = self._get_group(group_id)
        policy.require_facilitator(self.memberships.get_for(user_id, group_id))

        group.is_active = False
        self.db.commit()
        logger.info("Group %s deactivated by %s", group_id, user_id)

    def list_members(self, group_id: str, user_id: str) -> List[Membership]:
        self._get_group(group_id)
        policy.require_member(self.memberships.get_for(user_id, group_id))
        return self.memberships.list_active(group_id)

    # Membership transitions

    def invite(self, group_id: str, inviter_id: str, invitee_email: str) -> Membership:
        """
        Invite a registered user into the group.

        Refusals, in order:
        - inviter is not an ACTIVE facilitator/admin
        - ACTIVE member count has reached max_members
        - no user with that email
        - the user already has a membership row of any status
        """
        group = self._get_group(group_id, for_update=True)
        policy.require_facilitator(self.memberships.get_for(inviter_id, group_id))

        if self.memberships.count_active(group_id) >= group.max_members:
            raise CapacityError("Group is at maximum capacity")

        invitee = self.users.get_by_email(invitee_email)
        if not invitee:
            raise NotFoundError("User not found")

        if self.memberships.get_for(invitee.id, group_id):
            raise ConflictError("User is already a member or has pending invitation")

        membership = Membership(
            user_id=invitee.id,
            group_id=group_id,
            role=MemberRole.MEMBER,
            status=MembershipStatus.PENDING,
            invited_by=inviter_id
        )
        self.memberships.add(membership)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User is already a member or has pending invitation")
        self.db.refresh(membership)
        logger.info("User %s invited to group %s by %s", invitee.id, group_id, inviter_id)
        return membership

    def accept_invitation(self, group_id: str, user_id: str) -> Membership:
        self._get_group(group_id)
        membership = self.memberships.get_for(user_id, group_id)
        if not membership:
            raise NotFoundError("Invitation not found")
        if membership.status != MembershipStatus.PENDING:
            raise ValidationError("Invalid invitation status")

        membership.status = MembershipStatus.ACTIVE
        membership.joined_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(membership)
        logger.info("User %s joined group %s", user_id, group_id)
        return membership

    def leave_group(self, group_id: str, user_id: str) -> Membership:
        """
        Leave a group.

        Invariant: a facilitator/admin cannot leave while they are the last
        ACTIVE one. The refusal leaves the membership untouched.
        """
        self._get_group(group_id, for_update=True)
        membership = self.memberships.get_for(user_id, group_id)
        if not membership:
            raise NotFoundError("Membership not found")

        if membership.role in MANAGING_ROLES:
            if self.memberships.count_active_managers(group_id) <= 1:
                raise InvariantError(
                    "Cannot leave group: You are the last facilitator. "
                    "Please assign another facilitator first."
                )

        membership.status = MembershipStatus.LEFT
        membership.left_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(membership)
        logger.info("User %s left group %s", user_id, group_id)
        return membership

    def remove_member(self, group_id: str, acting_id: str, target_id: str) -> Membership:
        """
        Remove another member. Unlike leave_group this does not protect the
        last facilitator.
        """
        self._get_group(group_id)
        policy.require_facilitator(self.memberships.get_for(acting_id, group_id))

        if acting_id == target_id:
            raise ValidationError("Cannot remove yourself. Use leave group instead.")

        membership = self.memberships.get_for(target_id, group_id)
        if not membership:
            raise NotFoundError("Membership not found")

        membership.status = MembershipStatus.INACTIVE
        membership.left_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(membership)
        logger.info("User %s removed from group %s by %s", target_id, group_id, acting_id)
        return membership

    def _get_group(self, group_id: str, for_update: bool = False) -> Group:
        group = self.groups.get(group_id, for_update=for_update)
        if not group:
            raise NotFoundError("Group not found")
        return group


def _pick(data: Optional[dict], allowed) -> dict:
    return {k: v for k, v in (data or {}).items() if k in allowed}
