"""Pydantic schemas for the comment system.

Request/Response models for:
- Comment and reply CRUD
- Reactions and per-user reaction lookups
- Page-based pagination
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    Comment,
    CommentPage,
    CommentType,
    Reaction,
    ReactionType,
    Reply,
    ReplyPage,
    TargetType,
    UserReactions,
)


# ==============================================================================
# Constants
# ==============================================================================
MAX_CONTENT_LENGTH = 10000
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a comment on an advertisement."""

    advertisement_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1, description="World ID of the author")
    content: str = Field(..., max_length=MAX_CONTENT_LENGTH)
    comment_type: CommentType
    media_url: str | None = None


class UpdateCommentRequest(BaseModel):
    """Request to update a comment or reply."""

    content: str = Field(..., max_length=MAX_CONTENT_LENGTH)
    comment_type: CommentType
    media_url: str | None = None


class CreateReplyRequest(BaseModel):
    """Request to reply to a comment."""

    comment_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1, description="World ID of the author")
    content: str = Field(..., max_length=MAX_CONTENT_LENGTH)
    comment_type: CommentType
    media_url: str | None = None


class AddReactionRequest(BaseModel):
    """Request to react to a comment or reply.

    ``target_type`` is validated by the service so that an unknown tag is
    reported as a bad request rather than a schema error.
    """

    target_id: str = Field(..., min_length=1)
    target_type: str = Field(..., description="'Comment' or 'Reply'")
    author_id: str = Field(..., min_length=1)
    reaction_type: ReactionType


class UserReactionsRequest(BaseModel):
    """Request for one author's reactions on a set of comments and replies."""

    author_id: str = Field(..., min_length=1)
    comment_ids: list[str] = Field(default_factory=list, max_length=500)
    reply_ids: list[str] = Field(default_factory=list, max_length=500)


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Response for a single comment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    advertisement_id: str
    author_id: str
    content: str
    comment_type: CommentType
    media_url: str | None = None
    like_count: int = 0
    dislike_count: int = 0
    reply_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls.model_validate(comment)


class ReplyResponse(BaseModel):
    """Response for a single reply."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    comment_id: str
    author_id: str
    content: str
    comment_type: CommentType
    media_url: str | None = None
    like_count: int = 0
    dislike_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_reply(cls, reply: Reply) -> "ReplyResponse":
        return cls.model_validate(reply)


class ReactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    target_id: str
    target_type: TargetType
    author_id: str
    reaction_type: ReactionType
    created_at: datetime

    @classmethod
    def from_reaction(cls, reaction: Reaction) -> "ReactionResponse":
        return cls.model_validate(reaction)


class CommentListResponse(BaseModel):
    """Paginated list of comments."""

    comments: list[CommentResponse]
    total: int
    page: int
    limit: int

    @classmethod
    def from_page(cls, page: CommentPage) -> "CommentListResponse":
        return cls(
            comments=[CommentResponse.from_comment(c) for c in page.comments],
            total=page.total,
            page=page.page,
            limit=page.limit,
        )


class ReplyListResponse(BaseModel):
    """Paginated list of replies."""

    replies: list[ReplyResponse]
    total: int
    page: int
    limit: int

    @classmethod
    def from_page(cls, page: ReplyPage) -> "ReplyListResponse":
        return cls(
            replies=[ReplyResponse.from_reply(r) for r in page.replies],
            total=page.total,
            page=page.page,
            limit=page.limit,
        )


class UserReactionsResponse(BaseModel):
    """Reaction type per comment id and per reply id for one author."""

    comment_reactions: dict[str, ReactionType] = Field(default_factory=dict)
    reply_reactions: dict[str, ReactionType] = Field(default_factory=dict)

    @classmethod
    def from_user_reactions(cls, reactions: UserReactions) -> "UserReactionsResponse":
        return cls(
            comment_reactions=reactions.comment_reactions,
            reply_reactions=reactions.reply_reactions,
        )


class ReactionCountsResponse(BaseModel):
    like_count: int
    dislike_count: int
