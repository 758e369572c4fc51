"""Profile and GDPR endpoints for the current user."""
from typing import List

from fastapi import APIRouter, Depends

from wellbeing.api.deps import get_audit_trail, get_current_user, get_user_service
from wellbeing.api.responses import success
from wellbeing.api.schemas import (
    ConsentResponse,
    ConsentUpdate,
    DeletionResponse,
    Envelope,
    GroupResponse,
    ProfileResponse,
    ProfileUpdate,
    UserGroupResponse,
)
from wellbeing.models.audit import AuditAction
from wellbeing.models.domain import User
from wellbeing.services.audit import AuditTrail
from wellbeing.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=Envelope[ProfileResponse])
def get_profile(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    return success(user_service.get_profile(current_user.id))


@router.put("/profile", response_model=Envelope[ProfileResponse])
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    user = user_service.update_profile(current_user.id, data.model_dump(exclude_unset=True))
    audit.record(AuditAction.USER_UPDATE_PROFILE, "User", user.id, user_id=current_user.id)
    return success(user)


@router.put("/consent", response_model=Envelope[ConsentResponse])
def update_consent(
    data: ConsentUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    user = user_service.update_consent(
        current_user.id,
        data_processing_consent=data.data_processing_consent,
        marketing_consent=data.marketing_consent
    )
    audit.record(AuditAction.USER_UPDATE_CONSENT, "User", user.id, user_id=current_user.id)
    return success(user)


@router.post("/data-deletion", response_model=Envelope[DeletionResponse])
def request_data_deletion(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Flag the account for deletion. The account is deactivated immediately."""
    result = user_service.request_deletion(current_user.id)
    audit.record(AuditAction.USER_REQUEST_DELETION, "User", current_user.id, user_id=current_user.id)
    return success(result)


@router.get("/export-data", response_model=Envelope[dict])
def export_data(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    data = user_service.export_data(current_user.id)
    audit.record(AuditAction.USER_EXPORT_DATA, "User", current_user.id, user_id=current_user.id)
    return success(data)


@router.get("/groups", response_model=Envelope[List[UserGroupResponse]])
def list_my_groups(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    return success([
        {
            **GroupResponse.model_validate(item["group"]).model_dump(),
            "role": item["role"],
            "joined_at": item["joined_at"],
            "member_count": item["member_count"],
        }
        for item in user_service.list_user_groups(current_user.id)
    ])
