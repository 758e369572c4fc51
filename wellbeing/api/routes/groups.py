"""Group and membership endpoints."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from wellbeing.api.deps import get_audit_trail, get_current_user, get_membership_service
from wellbeing.api.responses import success
from wellbeing.api.schemas import (
    AuthorSummary,
    Envelope,
    GroupCreate,
    GroupDetailResponse,
    GroupResponse,
    GroupUpdate,
    InviteRequest,
    MemberResponse,
    MembershipResponse,
    MessageResponse,
)
from wellbeing.models.audit import AuditAction
from wellbeing.models.domain import User
from wellbeing.services.audit import AuditTrail
from wellbeing.services.membership import MembershipStateMachine

router = APIRouter(prefix="/groups", tags=["Groups"])


@router.post("", response_model=Envelope[GroupResponse], status_code=status.HTTP_201_CREATED)
def create_group(
    data: GroupCreate,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Create a group. The creator becomes its first facilitator."""
    fields = data.model_dump()
    group = sm.create_group(current_user.id, fields.pop("name"), fields.pop("max_members"), **fields)
    audit.record(AuditAction.GROUP_CREATE, "Group", group.id, user_id=current_user.id, status_code=201)
    return success(group)


@router.get("/{group_id}", response_model=Envelope[GroupDetailResponse])
def get_group(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service)
):
    result = sm.get_group(str(group_id), current_user.id)
    return success({
        **GroupResponse.model_validate(result["group"]).model_dump(),
        "member_count": result["member_count"],
        "user_role": result["user_role"],
    })


@router.put("/{group_id}", response_model=Envelope[GroupResponse])
def update_group(
    group_id: UUID,
    data: GroupUpdate,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    group = sm.update_group(str(group_id), current_user.id, data.model_dump(exclude_unset=True))
    audit.record(AuditAction.GROUP_UPDATE, "Group", group.id, user_id=current_user.id)
    return success(group)


@router.delete("/{group_id}", response_model=Envelope[MessageResponse])
def delete_group(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    sm.deactivate_group(str(group_id), current_user.id)
    audit.record(AuditAction.GROUP_DELETE, "Group", str(group_id), user_id=current_user.id)
    return success({"message": "Group deleted successfully"})


@router.get("/{group_id}/members", response_model=Envelope[List[MemberResponse]])
def list_members(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service)
):
    return success([
        {
            **AuthorSummary.model_validate(m.user).model_dump(),
            "role": m.role,
            "joined_at": m.joined_at,
        }
        for m in sm.list_members(str(group_id), current_user.id)
    ])


@router.post("/{group_id}/invite", response_model=Envelope[MembershipResponse], status_code=status.HTTP_201_CREATED)
def invite_member(
    group_id: UUID,
    data: InviteRequest,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """
    Invite a registered user by email.

    WILL REFUSE if the caller is not a facilitator, the group is full, the
    email is unknown, or the user already has a membership in this group.
    """
    membership = sm.invite(str(group_id), current_user.id, data.email)
    audit.record(AuditAction.GROUP_INVITE_MEMBER, "Membership", membership.id, user_id=current_user.id, status_code=201)
    return success(membership)


@router.post("/{group_id}/accept", response_model=Envelope[MembershipResponse])
def accept_invitation(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    membership = sm.accept_invitation(str(group_id), current_user.id)
    audit.record(AuditAction.GROUP_ACCEPT_INVITATION, "Membership", membership.id, user_id=current_user.id)
    return success(membership)


@router.post("/{group_id}/leave", response_model=Envelope[MessageResponse])
def leave_group(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Leave a group. The last facilitator is refused."""
    membership = sm.leave_group(str(group_id), current_user.id)
    audit.record(AuditAction.GROUP_LEAVE, "Membership", membership.id, user_id=current_user.id)
    return success({"message": "Successfully left the group"})


@router.delete("/{group_id}/members/{member_id}", response_model=Envelope[MessageResponse])
def remove_member(
    group_id: UUID,
    member_id: UUID,
    current_user: User = Depends(get_current_user),
    sm: MembershipStateMachine = Depends(get_membership_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    membership = sm.remove_member(str(group_id), current_user.id, str(member_id))
    audit.record(AuditAction.GROUP_REMOVE_MEMBER, "Membership", membership.id, user_id=current_user.id)
    return success({"message": "Member removed successfully"})
