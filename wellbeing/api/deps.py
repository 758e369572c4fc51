"""
Request dependencies: current user, services and the audit trail.

Services are constructed per request around the request's session.
"""
from typing import Optional

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from wellbeing.database import get_db, get_session_factory
from wellbeing.models.domain import User
from wellbeing.services.audit import AuditTrail
from wellbeing.services.auth import AuthService
from wellbeing.services.errors import AuthError
from wellbeing.services.events import EventService
from wellbeing.services.membership import MembershipStateMachine
from wellbeing.services.posts import PostService
from wellbeing.services.users import UserService

# auto_error=False so a missing header is our 401, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_membership_service(db: Session = Depends(get_db)) -> MembershipStateMachine:
    return MembershipStateMachine(db)


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    return EventService(db)


def get_post_service(db: Session = Depends(get_db)) -> PostService:
    return PostService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """Resolve the bearer access token to an active user."""
    if not credentials:
        raise AuthError("Authentication required")
    return auth_service.authenticate(credentials.credentials)


def get_audit_trail(
    request: Request,
    background_tasks: BackgroundTasks,
    session_factory=Depends(get_session_factory)
) -> AuditTrail:
    return AuditTrail(
        background_tasks,
        session_factory,
        method=request.method,
        path=request.url.path,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )
