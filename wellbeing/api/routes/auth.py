"""Registration, login and session endpoints."""
from fastapi import APIRouter, Depends, status

from wellbeing.api.deps import get_audit_trail, get_auth_service
from wellbeing.api.responses import success
from wellbeing.api.schemas import (
    AccessTokenResponse,
    AuthResponse,
    Envelope,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
)
from wellbeing.models.audit import AuditAction
from wellbeing.services.audit import AuditTrail
from wellbeing.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=Envelope[AuthResponse], status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Register a new user. Both consent flags must be true."""
    result = auth_service.register(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        display_name=data.display_name,
        consent_given=data.consent_given,
        data_processing_consent=data.data_processing_consent
    )
    user_id = result["user"].id
    audit.record(AuditAction.USER_REGISTER, "User", user_id, user_id=user_id, status_code=201)
    return success(result)


@router.post("/login", response_model=Envelope[AuthResponse])
def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    result = auth_service.login(data.email, data.password)
    user_id = result["user"].id
    audit.record(AuditAction.USER_LOGIN, "User", user_id, user_id=user_id)
    return success(result)


@router.post("/refresh", response_model=Envelope[AccessTokenResponse])
def refresh(data: RefreshRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new access token."""
    return success(auth_service.refresh(data.refresh_token))


@router.post("/logout", response_model=Envelope[MessageResponse])
def logout(data: RefreshRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.logout(data.refresh_token)
    return success({"message": "Logged out successfully"})
