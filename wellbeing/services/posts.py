"""Posts and comments inside a group."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from wellbeing.models.domain import Comment, Post
from wellbeing.repositories import (
    CommentRepository,
    GroupRepository,
    MembershipRepository,
    PostRepository,
)
from wellbeing.services import policy
from wellbeing.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, db: Session):
        self.db = db
        self.groups = GroupRepository(db)
        self.posts = PostRepository(db)
        self.comments = CommentRepository(db)
        self.memberships = MembershipRepository(db)

    def create_post(self, group_id: str, user_id: str, content: str, attachments: Optional[List[str]] = None) -> Post:
        if not self.groups.get(group_id):
            raise NotFoundError("Group not found")
        policy.require_member(self.memberships.get_for(user_id, group_id))
        _require_content(content)

        post = Post(group_id=group_id, author_id=user_id, content=content, attachments=attachments or [])
        self.posts.add(post)
        self.db.commit()
        self.db.refresh(post)
        return post

    def list_group_posts(self, group_id: str, user_id: str, limit: int = 20, offset: int = 0) -> List[dict]:
        if not self.groups.get(group_id):
            raise NotFoundError("Group not found")
        policy.require_member(self.memberships.get_for(user_id, group_id))

        return [
            {"post": post, "comment_count": self.comments.count_for_post(post.id)}
            for post in self.posts.list_for_group(group_id, limit, offset)
        ]

    def get_post(self, post_id: str, user_id: str) -> dict:
        post = self._get_post(post_id)
        policy.require_member(self.memberships.get_for(user_id, post.group_id))
        return {"post": post, "comments": self.comments.list_for_post(post.id)}

    def update_post(self, post_id: str, user_id: str, content: str) -> Post:
        """Only the author may edit; facilitators have no override here."""
        post = self._get_post(post_id)
        policy.require_can_edit(user_id, post.author_id)
        _require_content(content)

        post.content = content
        self.db.commit()
        self.db.refresh(post)
        return post

    def delete_post(self, post_id: str, user_id: str) -> None:
        post = self._get_post(post_id)
        if post.author_id != user_id:
            policy.require_can_delete(user_id, post.author_id, self.memberships.get_for(user_id, post.group_id))

        post.is_deleted = True
        post.deleted_at = datetime.utcnow()
        self.db.commit()
        logger.info("Post %s deleted by %s", post_id, user_id)

    def create_comment(self, post_id: str, user_id: str, content: str) -> Comment:
        post = self._get_post(post_id)
        policy.require_member(self.memberships.get_for(user_id, post.group_id))
        _require_content(content)

        comment = Comment(post_id=post.id, author_id=user_id, content=content)
        self.comments.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def delete_comment(self, comment_id: str, user_id: str) -> None:
        comment = self.comments.get(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        post = self._get_post(comment.post_id)
        if comment.author_id != user_id:
            membership = self.memberships.get_for(user_id, post.group_id)
            policy.require_can_delete(user_id, comment.author_id, membership)

        comment.is_deleted = True
        comment.deleted_at = datetime.utcnow()
        self.db.commit()
        logger.info("Comment %s deleted by %s", comment_id, user_id)

    def _get_post(self, post_id: str) -> Post:
        post = self.posts.get(post_id)
        if not post or not self.groups.get(post.group_id):
            raise NotFoundError("Post not found")
        return post


def _require_content(content: str) -> None:
    if not content or not content.strip():
        raise ValidationError("Content is required")
