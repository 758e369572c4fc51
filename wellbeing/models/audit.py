"""
Internal audit logging model - NOT a user-facing domain object.

Rows are written only after a state-changing request succeeded.
Nothing in the API reads or edits them.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String

from wellbeing.database import Base


class AuditLog(Base):
    """
    Immutable audit record.

    Invariants:
    - Once written, never edited or deleted
    - Append-only
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(36), nullable=True, index=True)  # Null for anonymous requests
    action = Column(String, nullable=False, index=True)  # e.g., "GROUP_INVITE_MEMBER"
    entity = Column(String, nullable=False)  # e.g., "Membership"
    entity_id = Column(String, nullable=True, index=True)
    metadata_json = Column("metadata", JSON, nullable=True)  # method, path, status code
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


class AuditAction:
    """Audit action names."""
    # Identity
    USER_REGISTER = "USER_REGISTER"
    USER_LOGIN = "USER_LOGIN"

    # Account / GDPR
    USER_UPDATE_PROFILE = "USER_UPDATE_PROFILE"
    USER_UPDATE_CONSENT = "USER_UPDATE_CONSENT"
    USER_REQUEST_DELETION = "USER_REQUEST_DELETION"
    USER_EXPORT_DATA = "USER_EXPORT_DATA"

    # Groups and membership
    GROUP_CREATE = "GROUP_CREATE"
    GROUP_UPDATE = "GROUP_UPDATE"
    GROUP_DELETE = "GROUP_DELETE"
    GROUP_INVITE_MEMBER = "GROUP_INVITE_MEMBER"
    GROUP_ACCEPT_INVITATION = "GROUP_ACCEPT_INVITATION"
    GROUP_LEAVE = "GROUP_LEAVE"
    GROUP_REMOVE_MEMBER = "GROUP_REMOVE_MEMBER"

    # Content
    POST_CREATE = "POST_CREATE"
    POST_UPDATE = "POST_UPDATE"
    POST_DELETE = "POST_DELETE"
    COMMENT_CREATE = "COMMENT_CREATE"
    COMMENT_DELETE = "COMMENT_DELETE"

    # Events
    EVENT_CREATE = "EVENT_CREATE"
    EVENT_UPDATE = "EVENT_UPDATE"
    EVENT_CANCEL = "EVENT_CANCEL"
    EVENT_RESPOND = "EVENT_RESPOND"
