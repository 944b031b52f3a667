"""Comment system API endpoints.

Provides routes for:
- Comment CRUD, including image/video uploads
- Replies management
- Like/Dislike reactions on comments and replies
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, File, Form, Query, UploadFile, status

from adboard.storage.service import MediaFile

from .dependencies import CommentServiceDep, handle_comment_error
from .exceptions import CommentError, MediaRequiredError
from .models import CommentType
from .schemas import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    AddReactionRequest,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    CreateReplyRequest,
    ReactionCountsResponse,
    ReactionResponse,
    ReplyListResponse,
    ReplyResponse,
    UpdateCommentRequest,
    UserReactionsRequest,
    UserReactionsResponse,
)


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/api/v1/comments", tags=["comments"])

PageQuery = Annotated[int, Query(ge=1, description="Page number (1-based)")]
LimitQuery = Annotated[int, Query(ge=1, description="Items per page")]


async def _read_upload(media: UploadFile | None) -> MediaFile:
    """Read a multipart upload into memory."""
    if media is None or not media.filename:
        raise MediaRequiredError
    content = await media.read()
    logger.debug(
        "media_upload_received",
        filename=media.filename,
        content_type=media.content_type,
        size=len(content),
    )
    return MediaFile(
        content=content,
        filename=media.filename,
        content_type=media.content_type,
    )


# ==============================================================================
# Comments
# ==============================================================================


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
    """Create a comment on an advertisement."""
    try:
        comment = await comment_service.create_comment(
            advertisement_id=data.advertisement_id,
            author_id=data.author_id,
            content=data.content,
            comment_type=data.comment_type,
            media_url=data.media_url,
        )
        return CommentResponse.from_comment(comment)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/with-media",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment with image or video",
)
async def create_comment_with_media(
    comment_service: CommentServiceDep,
    advertisement_id: Annotated[str, Form(min_length=1)],
    author_id: Annotated[str, Form(min_length=1)],
    comment_type: Annotated[CommentType, Form()],
    content: Annotated[str, Form()] = "",
    media: Annotated[UploadFile | None, File()] = None,
) -> CommentResponse:
    """Create an Image or Video comment from a multipart upload.

    The ``media`` part is required and its MIME type must match the
    comment type.
    """
    try:
        upload = await _read_upload(media)
        comment = await comment_service.create_comment_with_media(
            advertisement_id=advertisement_id,
            author_id=author_id,
            content=content,
            comment_type=comment_type,
            media=upload,
        )
        return CommentResponse.from_comment(comment)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/advertisement/{advertisement_id}",
    response_model=CommentListResponse,
    summary="List advertisement comments",
)
async def list_advertisement_comments(
    advertisement_id: str,
    comment_service: CommentServiceDep,
    page: PageQuery = DEFAULT_PAGE,
    limit: LimitQuery = DEFAULT_LIMIT,
) -> CommentListResponse:
    """Get a page of comments for an advertisement, newest first."""
    try:
        result = await comment_service.get_comments_by_advertisement(
            advertisement_id, page=page, limit=limit
        )
        return CommentListResponse.from_page(result)
    except CommentError as e:
        raise handle_comment_error(e) from e


# ==============================================================================
# Replies
# ==============================================================================


@router.post(
    "/reply",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create reply",
)
async def create_reply(
    data: CreateReplyRequest,
    comment_service: CommentServiceDep,
) -> ReplyResponse:
    """Reply to a comment. The comment's reply_count is recomputed."""
    try:
        reply = await comment_service.create_reply(
            comment_id=data.comment_id,
            author_id=data.author_id,
            content=data.content,
            comment_type=data.comment_type,
            media_url=data.media_url,
        )
        return ReplyResponse.from_reply(reply)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/reply/with-media",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create reply with image or video",
)
async def create_reply_with_media(
    comment_service: CommentServiceDep,
    comment_id: Annotated[str, Form(min_length=1)],
    author_id: Annotated[str, Form(min_length=1)],
    comment_type: Annotated[CommentType, Form()],
    content: Annotated[str, Form()] = "",
    media: Annotated[UploadFile | None, File()] = None,
) -> ReplyResponse:
    try:
        upload = await _read_upload(media)
        reply = await comment_service.create_reply_with_media(
            comment_id=comment_id,
            author_id=author_id,
            content=content,
            comment_type=comment_type,
            media=upload,
        )
        return ReplyResponse.from_reply(reply)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/reply/comment/{comment_id}",
    response_model=ReplyListResponse,
    summary="List comment replies",
)
async def list_comment_replies(
    comment_id: str,
    comment_service: CommentServiceDep,
    page: PageQuery = DEFAULT_PAGE,
    limit: LimitQuery = DEFAULT_LIMIT,
) -> ReplyListResponse:
    """Get a page of replies to a comment, oldest first."""
    try:
        result = await comment_service.get_replies_by_comment(
            comment_id, page=page, limit=limit
        )
        return ReplyListResponse.from_page(result)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get("/reply/{reply_id}", response_model=ReplyResponse, summary="Get reply")
async def get_reply(reply_id: str, comment_service: CommentServiceDep) -> ReplyResponse:
    try:
        return ReplyResponse.from_reply(await comment_service.get_reply_by_id(reply_id))
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.put("/reply/{reply_id}", response_model=ReplyResponse, summary="Update reply")
async def update_reply(
    reply_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
) -> ReplyResponse:
    try:
        reply = await comment_service.update_reply(
            reply_id,
            content=data.content,
            comment_type=data.comment_type,
            media_url=data.media_url,
        )
        return ReplyResponse.from_reply(reply)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/reply/{reply_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete reply",
)
async def delete_reply(reply_id: str, comment_service: CommentServiceDep) -> None:
    """Delete a reply and its reactions."""
    try:
        await comment_service.delete_reply(reply_id)
    except CommentError as e:
        raise handle_comment_error(e) from e


# ==============================================================================
# Reactions
# ==============================================================================


@router.post(
    "/reaction",
    response_model=ReactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add or switch reaction",
)
async def add_reaction(
    data: AddReactionRequest,
    comment_service: CommentServiceDep,
) -> ReactionResponse:
    """React to a comment or reply.

    Sending the same reaction again is a no-op. Sending the other type
    switches the existing reaction and moves the count between counters.
    """
    try:
        reaction = await comment_service.add_reaction(
            target_id=data.target_id,
            target_type=data.target_type,
            author_id=data.author_id,
            reaction_type=data.reaction_type,
        )
        return ReactionResponse.from_reaction(reaction)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/reaction/user",
    response_model=ReactionResponse | None,
    summary="Get a user's reaction on a target",
)
async def get_user_reaction(
    comment_service: CommentServiceDep,
    target_id: Annotated[str, Query(min_length=1)],
    target_type: Annotated[str, Query(description="'Comment' or 'Reply'")],
    author_id: Annotated[str, Query(min_length=1)],
) -> ReactionResponse | None:
    """Return the author's reaction on the target, or null if there is none."""
    try:
        reaction = await comment_service.get_user_reaction(
            target_id, target_type, author_id
        )
    except CommentError as e:
        raise handle_comment_error(e) from e
    return ReactionResponse.from_reaction(reaction) if reaction else None


@router.post(
    "/reaction/user/batch",
    response_model=UserReactionsResponse,
    summary="Get a user's reactions on many targets",
)
async def get_user_reactions(
    data: UserReactionsRequest,
    comment_service: CommentServiceDep,
) -> UserReactionsResponse:
    """Map the given comment and reply ids to the author's reaction types.

    Ids without a reaction are omitted.
    """
    try:
        reactions = await comment_service.get_user_reactions(
            author_id=data.author_id,
            comment_ids=data.comment_ids,
            reply_ids=data.reply_ids,
        )
        return UserReactionsResponse.from_user_reactions(reactions)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/reaction/recompute",
    response_model=ReactionCountsResponse,
    summary="Rebuild like/dislike counters",
)
async def recompute_reaction_counts(
    comment_service: CommentServiceDep,
    target_id: Annotated[str, Query(min_length=1)],
    target_type: Annotated[str, Query(description="'Comment' or 'Reply'")],
) -> ReactionCountsResponse:
    """Recount a target's reactions and overwrite its counters."""
    try:
        counts = await comment_service.recompute_reaction_counts(target_id, target_type)
        return ReactionCountsResponse(**counts)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/reaction/{reaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove reaction",
)
async def remove_reaction(
    reaction_id: str,
    comment_service: CommentServiceDep,
) -> None:
    try:
        await comment_service.remove_reaction(reaction_id)
    except CommentError as e:
        raise handle_comment_error(e) from e


# ==============================================================================
# Single comment
# ==============================================================================


@router.get("/{comment_id}", response_model=CommentResponse, summary="Get comment")
async def get_comment(
    comment_id: str,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    try:
        comment = await comment_service.get_comment_by_id(comment_id)
        return CommentResponse.from_comment(comment)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.put("/{comment_id}", response_model=CommentResponse, summary="Update comment")
async def update_comment(
    comment_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    """Overwrite a comment's content, type and media URL."""
    try:
        comment = await comment_service.update_comment(
            comment_id,
            content=data.content,
            comment_type=data.comment_type,
            media_url=data.media_url,
        )
        return CommentResponse.from_comment(comment)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete comment",
)
async def delete_comment(comment_id: str, comment_service: CommentServiceDep) -> None:
    """Delete a comment together with its replies and its reactions."""
    try:
        await comment_service.delete_comment(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
