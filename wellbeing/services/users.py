"""
Account and GDPR operations: profile, consent, deletion request, export.

Deletion is only requested here. Purging or anonymising the account after the
waiting period belongs to a separate batch job.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from wellbeing.config import settings
from wellbeing.models.domain import Comment, EventParticipant, Membership, Post, User
from wellbeing.repositories import (
    CommentRepository,
    MembershipRepository,
    PostRepository,
    UserRepository,
)
from wellbeing.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "display_name", "bio", "avatar", "notification_preference")


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.memberships = MembershipRepository(db)
        self.posts = PostRepository(db)
        self.comments = CommentRepository(db)

    def get_profile(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: str, changes: dict) -> User:
        user = self.get_profile(user_id)
        for field, value in changes.items():
            if field not in PROFILE_FIELDS:
                continue
            if field in ("first_name", "last_name", "display_name") and not value:
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} cannot be empty")
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_consent(
        self,
        user_id: str,
        data_processing_consent: Optional[bool] = None,
        marketing_consent: Optional[bool] = None
    ) -> User:
        user = self.get_profile(user_id)
        if data_processing_consent is not None:
            user.data_processing_consent = data_processing_consent
        if marketing_consent is not None:
            user.marketing_consent = marketing_consent
        user.consent_date = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        logger.info("Consent updated for user %s", user_id)
        return user

    def request_deletion(self, user_id: str) -> dict:
        """Flag the account for deletion and deactivate it immediately (right to be forgotten)."""
        user = self.get_profile(user_id)
        now = datetime.utcnow()
        user.deletion_requested = True
        user.deletion_requested_at = now
        user.is_active = False
        self.db.commit()
        logger.info("Deletion requested for user %s", user_id)

        return {
            "message": "Data deletion requested. Your account will be deleted after the required waiting period.",
            "deletion_date": now + timedelta(days=settings.anonymization_delay_days),
        }

    def export_data(self, user_id: str) -> dict:
        """
        Everything held about the user (right to data portability).

        Soft-deleted posts and comments are included, flagged as deleted.
        The password hash is never part of the export.
        """
        user = self.get_profile(user_id)

        posts = self.posts.query(include_deleted=True).filter(Post.author_id == user_id).order_by(Post.created_at).all()
        comments = self.comments.query(include_deleted=True).filter(
            Comment.author_id == user_id
        ).order_by(Comment.created_at).all()
        memberships = self.memberships.query().filter(Membership.user_id == user_id).all()
        responses = self.db.query(EventParticipant).filter(EventParticipant.user_id == user_id).all()

        return {
            "profile": _profile_dict(user),
            "memberships": [
                {
                    "group": {
                        "id": m.group.id,
                        "name": m.group.name,
                        "description": m.group.description,
                    },
                    "role": m.role.value,
                    "status": m.status.value,
                    "joined_at": m.joined_at,
                    "left_at": m.left_at,
                }
                for m in memberships
            ],
            "posts": [
                {
                    "id": p.id,
                    "group_id": p.group_id,
                    "content": p.content,
                    "created_at": p.created_at,
                    "is_deleted": p.is_deleted,
                }
                for p in posts
            ],
            "comments": [
                {
                    "id": c.id,
                    "post_id": c.post_id,
                    "content": c.content,
                    "created_at": c.created_at,
                    "is_deleted": c.is_deleted,
                }
                for c in comments
            ],
            "event_responses": [
                {
                    "event": {
                        "id": r.event.id,
                        "title": r.event.title,
                        "start_time": r.event.start_time,
                    },
                    "status": r.status.value,
                    "responded_at": r.responded_at,
                }
                for r in responses
            ],
        }

    def list_user_groups(self, user_id: str) -> List[dict]:
        return [
            {
                "group": m.group,
                "role": m.role,
                "joined_at": m.joined_at,
                "member_count": self.memberships.count_active(m.group_id),
            }
            for m in self.memberships.list_active_for_user(user_id)
        ]


def _profile_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "display_name": user.display_name,
        "bio": user.bio,
        "avatar": user.avatar,
        "notification_preference": user.notification_preference.value,
        "consent_given": user.consent_given,
        "consent_date": user.consent_date,
        "data_processing_consent": user.data_processing_consent,
        "marketing_consent": user.marketing_consent,
        "is_verified": user.is_verified,
        "deletion_requested": user.deletion_requested,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }
