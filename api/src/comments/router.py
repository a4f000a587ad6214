"""Comment moderation API endpoints.

Provides routes for:
- Comment listing and lookup
- Comment creation (spam-gated) and updates
- Moderation transitions (approve, pend, spam) and deletion
- Opening and closing comments on content items
"""

import structlog
from fastapi import APIRouter, HTTPException, Query, status

from .dependencies import CommentServiceDep, handle_comment_error
from .models import CommentStatus
from .schemas import (
    CommentListResponse,
    CommentResponse,
    CommentsClosedResponse,
    ContentDisplayResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)
from .service import CommentError, CommentsClosedError


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/v1/comments", tags=["comments"])


# ==============================================================================
# Commented content
# ==============================================================================


@router.get(
    "/content/{content_id}",
    response_model=CommentListResponse,
    summary="List comments on a content item",
)
async def list_content_comments(
    content_id: int,
    comment_service: CommentServiceDep,
    status_filter: CommentStatus | None = Query(None, alias="status"),
) -> CommentListResponse:
    comments = await comment_service.get_comments_for_commented_content(
        content_id, status_filter
    )
    return CommentListResponse.from_comments(comments)


@router.get(
    "/content/{content_id}/display",
    response_model=ContentDisplayResponse,
    summary="Get display metadata of commented content",
)
async def get_content_display(
    content_id: int,
    comment_service: CommentServiceDep,
) -> ContentDisplayResponse:
    """Resolve how the commented content item is displayed.

    Returns 404 when the content item no longer exists.
    """
    metadata = await comment_service.get_display_for_commented_content(content_id)
    if metadata is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content item not found",
        )
    return ContentDisplayResponse.model_validate(metadata)


@router.get(
    "/content/{content_id}/closed",
    response_model=CommentsClosedResponse,
    summary="Check whether comments are closed",
)
async def get_comments_closed(
    content_id: int,
    comment_service: CommentServiceDep,
) -> CommentsClosedResponse:
    closed = await comment_service.comments_closed_for_commented_content(content_id)
    return CommentsClosedResponse(content_id=content_id, closed=closed)


@router.post(
    "/content/{content_id}/close",
    response_model=CommentsClosedResponse,
    summary="Close comments on a content item",
)
async def close_comments(
    content_id: int,
    comment_service: CommentServiceDep,
) -> CommentsClosedResponse:
    await comment_service.close_comments_for_commented_content(content_id)
    return CommentsClosedResponse(content_id=content_id, closed=True)


@router.post(
    "/content/{content_id}/enable",
    response_model=CommentsClosedResponse,
    summary="Enable comments on a content item",
)
async def enable_comments(
    content_id: int,
    comment_service: CommentServiceDep,
) -> CommentsClosedResponse:
    await comment_service.enable_comments_for_commented_content(content_id)
    return CommentsClosedResponse(content_id=content_id, closed=False)


# ==============================================================================
# Comments
# ==============================================================================


@router.get(
    "",
    response_model=CommentListResponse,
    summary="List comments",
)
async def list_comments(
    comment_service: CommentServiceDep,
    status_filter: CommentStatus | None = Query(None, alias="status"),
) -> CommentListResponse:
    """List every comment, optionally filtered by moderation status."""
    comments = await comment_service.get_comments(status_filter)
    return CommentListResponse.from_comments(comments)


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    """Create a comment on a content item.

    The comment is stored as pending, or as spam when validation rejects it.
    Returns 403 when comments are closed on the content item.
    """
    try:
        if await comment_service.comments_closed_for_commented_content(
            data.commented_on
        ):
            raise CommentsClosedError

        comment = await comment_service.create_comment(data.to_comment())
        return CommentResponse.from_comment(comment)

    except CommentError as e:
        logger.info("comment_rejected", code=e.code, commented_on=data.commented_on)
        raise handle_comment_error(e) from e


@router.get(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Get comment",
)
async def get_comment(
    comment_id: int,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    comment = await comment_service.get_comment(comment_id)
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found",
        )
    return CommentResponse.from_comment(comment)


@router.put(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Update comment",
)
async def update_comment(
    comment_id: int,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    try:
        comment = await comment_service.update_comment(
            comment_id,
            name=data.name,
            email=data.email,
            site_name=data.site_name,
            comment_text=data.comment_text,
            status=data.status,
        )
        return CommentResponse.from_comment(comment)

    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/{comment_id}/approve",
    response_model=CommentResponse,
    summary="Approve comment",
)
async def approve_comment(
    comment_id: int,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    try:
        comment = await comment_service.approve_comment(comment_id)
        return CommentResponse.from_comment(comment)

    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/{comment_id}/pend",
    response_model=CommentResponse,
    summary="Move comment back to pending",
)
async def pend_comment(
    comment_id: int,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    try:
        comment = await comment_service.pend_comment(comment_id)
        return CommentResponse.from_comment(comment)

    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/{comment_id}/spam",
    response_model=CommentResponse,
    summary="Mark comment as spam",
)
async def mark_comment_as_spam(
    comment_id: int,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    try:
        comment = await comment_service.mark_comment_as_spam(comment_id)
        return CommentResponse.from_comment(comment)

    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: int,
    comment_service: CommentServiceDep,
) -> None:
    try:
        await comment_service.delete_comment(comment_id)

    except CommentError as e:
        raise handle_comment_error(e) from e
