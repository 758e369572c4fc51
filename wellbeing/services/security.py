"""
Password hashing (bcrypt) and JWT signing (python-jose).

Access and refresh tokens are signed with two independent secrets and carry a
`type` claim, so a token of one kind is never accepted as the other.
"""
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
from jose import JWTError, jwt

from wellbeing.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8")
    )


def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived, self-contained access token."""
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {
        "sub": user_id,
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(user_id: str, expires_at: datetime) -> str:
    """Create a refresh token. The random jti keeps every issued token unique."""
    to_encode = {
        "sub": user_id,
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "exp": expires_at,
    }
    return jwt.encode(to_encode, settings.jwt_refresh_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate an access token. Returns None when it is not usable."""
    return _decode(token, settings.jwt_secret, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[Dict]:
    """Decode and validate a refresh token's signature and expiry."""
    return _decode(token, settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE)


def _decode(token: str, secret: str, expected_type: str) -> Optional[Dict]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != expected_type or not payload.get("sub"):
        return None
    return payload
