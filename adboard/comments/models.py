"""Document models for the advertisement comment system.

MongoDB collections:
- comments: Top-level comments on an advertisement with denormalized
  like/dislike/reply counters
- replies: One level of replies to a comment with like/dislike counters
- reactions: One Like/Dislike per (author, target) where the target is a
  comment or a reply

Counters on comments and replies are maintained by the service after each
reaction or reply write. There are no cross-collection transactions.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING


class CommentType(str, Enum):
    """Kind of content carried by a comment or reply."""

    TEXT = "Text"
    EMOTICON = "Emoticon"
    IMAGE = "Image"
    VIDEO = "Video"


class ReactionType(str, Enum):
    LIKE = "Like"
    DISLIKE = "Dislike"


class TargetType(str, Enum):
    """Entity a reaction points at."""

    COMMENT = "Comment"
    REPLY = "Reply"


# ==============================================================================
# Collections and Indexes
# ==============================================================================

COMMENTS_COLLECTION = "comments"
REPLIES_COLLECTION = "replies"
REACTIONS_COLLECTION = "reactions"

# Counter field on a comment/reply for each reaction type
REACTION_COUNTER_FIELDS: dict[ReactionType, str] = {
    ReactionType.LIKE: "like_count",
    ReactionType.DISLIKE: "dislike_count",
}

# (collection, index keys) pairs created at startup
COMMENTS_INDEXES: list[tuple[str, list[tuple[str, int]]]] = [
    # Comments of an advertisement, newest first
    (COMMENTS_COLLECTION, [("advertisement_id", ASCENDING), ("created_at", DESCENDING)]),
    # Replies of a comment, oldest first; also used by cascade delete
    (REPLIES_COLLECTION, [("comment_id", ASCENDING), ("created_at", ASCENDING)]),
    # One reaction per author and target. Not unique: enforced by the service
    (
        REACTIONS_COLLECTION,
        [("author_id", ASCENDING), ("target_id", ASCENDING), ("target_type", ASCENDING)],
    ),
    # Counter recompute and cascade delete by target
    (
        REACTIONS_COLLECTION,
        [("target_id", ASCENDING), ("target_type", ASCENDING), ("reaction_type", ASCENDING)],
    ),
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment on an advertisement."""

    id: str
    advertisement_id: str
    author_id: str
    content: str
    comment_type: CommentType
    media_url: str | None
    like_count: int
    dislike_count: int
    reply_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Comment":
        """Create Comment from a MongoDB document."""
        return cls(
            id=str(doc["_id"]),
            advertisement_id=doc["advertisement_id"],
            author_id=doc["author_id"],
            content=doc.get("content", ""),
            comment_type=CommentType(doc.get("comment_type", CommentType.TEXT)),
            media_url=doc.get("media_url"),
            like_count=doc.get("like_count") or 0,
            dislike_count=doc.get("dislike_count") or 0,
            reply_count=doc.get("reply_count") or 0,
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at") or doc["created_at"],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "advertisement_id": self.advertisement_id,
            "author_id": self.author_id,
            "content": self.content,
            "comment_type": self.comment_type.value,
            "media_url": self.media_url,
            "like_count": self.like_count,
            "dislike_count": self.dislike_count,
            "reply_count": self.reply_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Reply:
    """Reply to a comment. Replies cannot be nested."""

    id: str
    comment_id: str
    author_id: str
    content: str
    comment_type: CommentType
    media_url: str | None
    like_count: int
    dislike_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Reply":
        """Create Reply from a MongoDB document."""
        return cls(
            id=str(doc["_id"]),
            comment_id=doc["comment_id"],
            author_id=doc["author_id"],
            content=doc.get("content", ""),
            comment_type=CommentType(doc.get("comment_type", CommentType.TEXT)),
            media_url=doc.get("media_url"),
            like_count=doc.get("like_count") or 0,
            dislike_count=doc.get("dislike_count") or 0,
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at") or doc["created_at"],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "comment_id": self.comment_id,
            "author_id": self.author_id,
            "content": self.content,
            "comment_type": self.comment_type.value,
            "media_url": self.media_url,
            "like_count": self.like_count,
            "dislike_count": self.dislike_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Reaction:
    """A user's Like/Dislike on a comment or reply."""

    id: str
    target_id: str
    target_type: TargetType
    author_id: str
    reaction_type: ReactionType
    created_at: datetime

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Reaction":
        return cls(
            id=str(doc["_id"]),
            target_id=doc["target_id"],
            target_type=TargetType(doc["target_type"]),
            author_id=doc["author_id"],
            reaction_type=ReactionType(doc["reaction_type"]),
            created_at=doc["created_at"],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "_id": ObjectId(self.id),
            "target_id": self.target_id,
            "target_type": self.target_type.value,
            "author_id": self.author_id,
            "reaction_type": self.reaction_type.value,
            "created_at": self.created_at,
        }


@dataclass
class CommentPage:
    """One page of an advertisement's comments."""

    comments: list[Comment]
    total: int
    page: int
    limit: int


@dataclass
class ReplyPage:
    replies: list[Reply]
    total: int
    page: int
    limit: int


@dataclass
class UserReactions:
    """An author's reaction types keyed by comment id and by reply id."""

    comment_reactions: dict[str, ReactionType] = field(default_factory=dict)
    reply_reactions: dict[str, ReactionType] = field(default_factory=dict)


# ==============================================================================
# Factories
# ==============================================================================


def create_comment(
    advertisement_id: str,
    author_id: str,
    content: str,
    comment_type: CommentType,
    media_url: str | None = None,
) -> Comment:
    """Create a new comment with zeroed counters."""
    now = datetime.now(UTC)
    return Comment(
        id=str(ObjectId()),
        advertisement_id=advertisement_id,
        author_id=author_id,
        content=content,
        comment_type=comment_type,
        media_url=media_url,
        like_count=0,
        dislike_count=0,
        reply_count=0,
        created_at=now,
        updated_at=now,
    )


def create_reply(
    comment_id: str,
    author_id: str,
    content: str,
    comment_type: CommentType,
    media_url: str | None = None,
) -> Reply:
    """Create a new reply with zeroed counters."""
    now = datetime.now(UTC)
    return Reply(
        id=str(ObjectId()),
        comment_id=comment_id,
        author_id=author_id,
        content=content,
        comment_type=comment_type,
        media_url=media_url,
        like_count=0,
        dislike_count=0,
        created_at=now,
        updated_at=now,
    )


def create_reaction(
    target_id: str,
    target_type: TargetType,
    author_id: str,
    reaction_type: ReactionType,
) -> Reaction:
    return Reaction(
        id=str(ObjectId()),
        target_id=target_id,
        target_type=target_type,
        author_id=author_id,
        reaction_type=reaction_type,
        created_at=datetime.now(UTC),
    )
