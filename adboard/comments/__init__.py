"""Advertisement comment system.

Provides:
- Comments on advertisements (text, emoticon, image, video)
- One level of replies per comment
- Like/Dislike reactions with denormalized counters

Note: Router is not exported here to avoid circular imports.
Import directly from adboard.comments.router when needed.
"""

from .exceptions import (
    CommentError,
    CommentNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    ReactionNotFoundError,
    ReplyNotFoundError,
    StorageFailureError,
)
from .models import (
    COMMENTS_INDEXES,
    Comment,
    CommentType,
    Reaction,
    ReactionType,
    Reply,
    TargetType,
)
from .repository import CommentRepository, ReactionRepository
from .service import CommentService


__all__ = [
    "COMMENTS_INDEXES",
    "Comment",
    "CommentError",
    "CommentNotFoundError",
    "CommentRepository",
    "CommentService",
    "CommentType",
    "InvalidArgumentError",
    "NotFoundError",
    "Reaction",
    "ReactionNotFoundError",
    "ReactionRepository",
    "ReactionType",
    "Reply",
    "ReplyNotFoundError",
    "StorageFailureError",
    "TargetType",
]
