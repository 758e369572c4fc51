"""Post and comment endpoints."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from wellbeing.api.deps import get_audit_trail, get_current_user, get_post_service
from wellbeing.api.responses import success
from wellbeing.api.schemas import (
    CommentCreate,
    CommentResponse,
    Envelope,
    MessageResponse,
    PostCreate,
    PostDetailResponse,
    PostResponse,
    PostSummaryResponse,
    PostUpdate,
)
from wellbeing.models.audit import AuditAction
from wellbeing.models.domain import User
from wellbeing.services.audit import AuditTrail
from wellbeing.services.posts import PostService

router = APIRouter(tags=["Posts"])


@router.post("/groups/{group_id}/posts", response_model=Envelope[PostResponse], status_code=status.HTTP_201_CREATED)
def create_post(
    group_id: UUID,
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    post = post_service.create_post(str(group_id), current_user.id, data.content, data.attachments)
    audit.record(AuditAction.POST_CREATE, "Post", post.id, user_id=current_user.id, status_code=201)
    return success(post)


@router.get("/groups/{group_id}/posts", response_model=Envelope[List[PostSummaryResponse]])
def list_group_posts(
    group_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    """Newest first, deleted posts excluded."""
    return success([
        {**PostResponse.model_validate(item["post"]).model_dump(), "comment_count": item["comment_count"]}
        for item in post_service.list_group_posts(str(group_id), current_user.id, limit, offset)
    ])


@router.get("/posts/{post_id}", response_model=Envelope[PostDetailResponse])
def get_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    result = post_service.get_post(str(post_id), current_user.id)
    return success({
        **PostResponse.model_validate(result["post"]).model_dump(),
        "comments": [CommentResponse.model_validate(c).model_dump() for c in result["comments"]],
    })


@router.put("/posts/{post_id}", response_model=Envelope[PostResponse])
def update_post(
    post_id: UUID,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Only the author can edit a post."""
    post = post_service.update_post(str(post_id), current_user.id, data.content)
    audit.record(AuditAction.POST_UPDATE, "Post", post.id, user_id=current_user.id)
    return success(post)


@router.delete("/posts/{post_id}", response_model=Envelope[MessageResponse])
def delete_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """The author or a facilitator of the group can delete a post."""
    post_service.delete_post(str(post_id), current_user.id)
    audit.record(AuditAction.POST_DELETE, "Post", str(post_id), user_id=current_user.id)
    return success({"message": "Post deleted successfully"})


@router.post("/posts/{post_id}/comments", response_model=Envelope[CommentResponse], status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    comment = post_service.create_comment(str(post_id), current_user.id, data.content)
    audit.record(AuditAction.COMMENT_CREATE, "Comment", comment.id, user_id=current_user.id, status_code=201)
    return success(comment)


@router.delete("/posts/comments/{comment_id}", response_model=Envelope[MessageResponse])
def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
    audit: AuditTrail = Depends(get_audit_trail)
):
    post_service.delete_comment(str(comment_id), current_user.id)
    audit.record(AuditAction.COMMENT_DELETE, "Comment", str(comment_id), user_id=current_user.id)
    return success({"message": "Comment deleted successfully"})
