"""
Identity & session: registration, login, refresh, logout.

Login failures share one message so the response never tells whether an
account exists.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wellbeing.config import settings
from wellbeing.models.domain import RefreshToken, User
from wellbeing.models.enums import NotificationLevel
from wellbeing.repositories import RefreshTokenRepository, UserRepository
from wellbeing.services import security
from wellbeing.services.errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


class AuthService:
    """Issues and validates access/refresh credentials."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.tokens = RefreshTokenRepository(db)

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        consent_given: bool,
        data_processing_consent: bool,
        display_name: Optional[str] = None
    ) -> dict:
        """
        Create an account and open a session.

        Both consent flags are required; registration without them is refused
        before anything is written.
        """
        if not consent_given or not data_processing_consent:
            raise ValidationError("User consent required for registration")

        email = email.strip().lower()
        if self.users.get_by_email(email):
            raise ConflictError("User already exists with this email")

        now = datetime.utcnow()
        user = User(
            email=email,
            password_hash=security.get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            display_name=display_name or f"{first_name} {last_name}",
            consent_given=consent_given,
            consent_date=now,
            data_processing_consent=data_processing_consent,
            notification_preference=NotificationLevel.MINIMAL
        )
        self.users.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User already exists with this email")

        refresh_token = self._issue_refresh_token(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)

        return {
            "user": user,
            "access_token": security.create_access_token(user.id, user.email),
            "refresh_token": refresh_token,
        }

    def login(self, email: str, password: str) -> dict:
        user = self.users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthError(INVALID_CREDENTIALS)
        if not security.verify_password(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)

        user.last_login_at = datetime.utcnow()
        refresh_token = self._issue_refresh_token(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s logged in", user.id)

        return {
            "user": user,
            "access_token": security.create_access_token(user.id, user.email),
            "refresh_token": refresh_token,
        }

    def refresh(self, refresh_token: str) -> dict:
        """Exchange a live refresh token for a new access token."""
        payload = security.decode_refresh_token(refresh_token)
        if payload is None:
            raise AuthError(INVALID_REFRESH_TOKEN)

        stored = self.tokens.get_by_token(refresh_token)
        if not stored or stored.is_revoked:
            raise AuthError(INVALID_REFRESH_TOKEN)
        if stored.expires_at < datetime.utcnow():
            raise AuthError("Refresh token expired")
        if stored.user_id != payload["sub"] or not stored.user.is_active:
            raise AuthError(INVALID_REFRESH_TOKEN)

        return {"access_token": security.create_access_token(stored.user.id, stored.user.email)}

    def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Revoking an unknown or already revoked token is a no-op."""
        stored = self.tokens.get_by_token(refresh_token)
        if stored and not stored.is_revoked:
            stored.is_revoked = True
            self.db.commit()
            logger.info("Revoked refresh token for user %s", stored.user_id)

    def authenticate(self, access_token: str) -> User:
        """Resolve the user behind an access token."""
        payload = security.decode_access_token(access_token)
        if payload is None:
            raise AuthError("Invalid token")

        user = self.users.get(payload["sub"])
        if not user or not user.is_active:
            raise AuthError("Invalid or inactive user")
        return user

    def _issue_refresh_token(self, user: User) -> str:
        expires_at = datetime.utcnow() + timedelta(days=settings.refresh_token_expire_days)
        token = security.create_refresh_token(user.id, expires_at)
        self.tokens.add(RefreshToken(user_id=user.id, token=token, expires_at=expires_at))
        return token
