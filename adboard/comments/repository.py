"""MongoDB repositories for comments, replies and reactions.

``ReactionRepository`` owns the reactions collection (the ledger).
``CommentRepository`` owns comments and replies with their denormalized
counters, and delegates reaction cleanup and counting to the ledger.

Identifiers are validated before any store call: a malformed id raises
``InvalidIdentifierError`` instead of reaching MongoDB.
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from .exceptions import (
    CommentNotFoundError,
    InvalidIdentifierError,
    ReactionNotFoundError,
    ReplyNotFoundError,
)
from .models import (
    COMMENTS_COLLECTION,
    REACTION_COUNTER_FIELDS,
    REACTIONS_COLLECTION,
    REPLIES_COLLECTION,
    Comment,
    Reaction,
    ReactionType,
    Reply,
    TargetType,
)


logger = structlog.get_logger(__name__)


def parse_object_id(value: Any, entity: str = "id") -> ObjectId:
    """Convert a 24-character hex string to an ObjectId.

    Raises:
        InvalidIdentifierError: If value is not a valid ObjectId string.
    """
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdentifierError(value, entity)
    return ObjectId(value)


# ==============================================================================
# Reaction Ledger
# ==============================================================================


class ReactionRepository:
    """Persistence for reactions.

    At most one reaction exists per (author_id, target_id, target_type).
    The service enforces this by looking up before inserting and by
    switching the type in place.
    """

    def __init__(self, database: AsyncDatabase):
        self.collection = database[REACTIONS_COLLECTION]

    async def find_by_id(self, reaction_id: str) -> Reaction | None:
        oid = parse_object_id(reaction_id, "reaction id")
        doc = await self.collection.find_one({"_id": oid})
        return Reaction.from_document(doc) if doc else None

    async def find_by_user_and_target(
        self, author_id: str, target_id: str, target_type: TargetType
    ) -> Reaction | None:
        doc = await self.collection.find_one(
            {
                "author_id": author_id,
                "target_id": target_id,
                "target_type": target_type.value,
            }
        )
        return Reaction.from_document(doc) if doc else None

    async def find_by_user_and_targets(
        self, author_id: str, target_type: TargetType, target_ids: list[str]
    ) -> list[Reaction]:
        """Get an author's reactions on several targets of one type."""
        if not target_ids:
            return []
        cursor = self.collection.find(
            {
                "author_id": author_id,
                "target_type": target_type.value,
                "target_id": {"$in": target_ids},
            }
        )
        return [Reaction.from_document(doc) for doc in await cursor.to_list(None)]

    async def create(self, reaction: Reaction) -> Reaction:
        await self.collection.insert_one(reaction.to_document())
        return reaction

    async def update_type(
        self, reaction_id: str, reaction_type: ReactionType
    ) -> Reaction:
        """Switch a reaction's type in place, keeping its id and created_at.

        Raises:
            ReactionNotFoundError: If the reaction no longer exists.
        """
        oid = parse_object_id(reaction_id, "reaction id")
        await self.collection.update_one(
            {"_id": oid}, {"$set": {"reaction_type": reaction_type.value}}
        )
        updated = await self.find_by_id(reaction_id)
        if updated is None:
            raise ReactionNotFoundError(reaction_id)
        return updated

    async def delete(self, reaction_id: str) -> None:
        oid = parse_object_id(reaction_id, "reaction id")
        result = await self.collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise ReactionNotFoundError(reaction_id)

    async def delete_by_target(self, target_id: str, target_type: TargetType) -> int:
        """Delete every reaction on a target. Returns the number removed."""
        result = await self.collection.delete_many(
            {"target_id": target_id, "target_type": target_type.value}
        )
        return result.deleted_count

    async def count_by_target_and_type(
        self, target_id: str, target_type: TargetType, reaction_type: ReactionType
    ) -> int:
        return await self.collection.count_documents(
            {
                "target_id": target_id,
                "target_type": target_type.value,
                "reaction_type": reaction_type.value,
            }
        )


# ==============================================================================
# Comment / Reply Aggregate Store
# ==============================================================================


class CommentRepository:
    """Persistence for comments and replies and their counters."""

    def __init__(self, database: AsyncDatabase, reactions: ReactionRepository):
        self.comments = database[COMMENTS_COLLECTION]
        self.replies = database[REPLIES_COLLECTION]
        self.reactions = reactions

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def create_comment(self, comment: Comment) -> Comment:
        await self.comments.insert_one(comment.to_document())
        logger.debug("comment_inserted", comment_id=comment.id)
        return comment

    async def find_comment_by_id(self, comment_id: str) -> Comment | None:
        oid = parse_object_id(comment_id, "comment id")
        doc = await self.comments.find_one({"_id": oid})
        return Comment.from_document(doc) if doc else None

    async def find_comments_by_advertisement(
        self, advertisement_id: str, skip: int, take: int
    ) -> list[Comment]:
        """Get one page of an advertisement's comments, newest first.

        The full result set is fetched and sliced in memory, so the cost of
        a page grows with the total number of comments on the advertisement.
        """
        cursor = self.comments.find({"advertisement_id": advertisement_id}).sort(
            "created_at", DESCENDING
        )
        docs = await cursor.to_list(None)
        return [Comment.from_document(doc) for doc in docs[skip : skip + take]]

    async def count_comments_by_advertisement(self, advertisement_id: str) -> int:
        return await self.comments.count_documents(
            {"advertisement_id": advertisement_id}
        )

    async def update_comment(self, comment_id: str, fields: dict[str, Any]) -> Comment:
        """Merge fields into a comment and stamp updated_at.

        Raises:
            CommentNotFoundError: If the comment does not exist after the update.
        """
        oid = parse_object_id(comment_id, "comment id")
        await self.comments.update_one(
            {"_id": oid}, {"$set": {**fields, "updated_at": datetime.now(UTC)}}
        )
        updated = await self.find_comment_by_id(comment_id)
        if updated is None:
            raise CommentNotFoundError(comment_id)
        return updated

    async def delete_comment(self, comment_id: str) -> None:
        """Delete a comment with its replies and its own reactions.

        Replies are removed with a single bulk delete. Reactions that target
        those replies are not removed.

        Raises:
            CommentNotFoundError: If nothing was deleted.
        """
        oid = parse_object_id(comment_id, "comment id")
        result = await self.comments.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise CommentNotFoundError(comment_id)

        replies_result = await self.replies.delete_many({"comment_id": comment_id})
        reactions_deleted = await self.reactions.delete_by_target(
            comment_id, TargetType.COMMENT
        )
        logger.info(
            "comment_cascade_deleted",
            comment_id=comment_id,
            replies_deleted=replies_result.deleted_count,
            reactions_deleted=reactions_deleted,
        )

    # ==========================================================================
    # Replies
    # ==========================================================================

    async def create_reply(self, reply: Reply) -> Reply:
        await self.replies.insert_one(reply.to_document())
        logger.debug("reply_inserted", reply_id=reply.id, comment_id=reply.comment_id)
        return reply

    async def find_reply_by_id(self, reply_id: str) -> Reply | None:
        oid = parse_object_id(reply_id, "reply id")
        doc = await self.replies.find_one({"_id": oid})
        return Reply.from_document(doc) if doc else None

    async def find_replies_by_comment(
        self, comment_id: str, skip: int, take: int
    ) -> list[Reply]:
        """Get one page of a comment's replies, oldest first (sliced in memory)."""
        cursor = self.replies.find({"comment_id": comment_id}).sort(
            "created_at", ASCENDING
        )
        docs = await cursor.to_list(None)
        return [Reply.from_document(doc) for doc in docs[skip : skip + take]]

    async def count_replies_by_comment(self, comment_id: str) -> int:
        return await self.replies.count_documents({"comment_id": comment_id})

    async def update_reply(self, reply_id: str, fields: dict[str, Any]) -> Reply:
        oid = parse_object_id(reply_id, "reply id")
        await self.replies.update_one(
            {"_id": oid}, {"$set": {**fields, "updated_at": datetime.now(UTC)}}
        )
        updated = await self.find_reply_by_id(reply_id)
        if updated is None:
            raise ReplyNotFoundError(reply_id)
        return updated

    async def delete_reply(self, reply_id: str) -> None:
        """Delete a reply and every reaction targeting it.

        Raises:
            ReplyNotFoundError: If nothing was deleted.
        """
        oid = parse_object_id(reply_id, "reply id")
        result = await self.replies.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise ReplyNotFoundError(reply_id)

        reactions_deleted = await self.reactions.delete_by_target(
            reply_id, TargetType.REPLY
        )
        logger.info(
            "reply_deleted", reply_id=reply_id, reactions_deleted=reactions_deleted
        )

    # ==========================================================================
    # Targets and Counters
    # ==========================================================================

    def _target_collection(self, target_type: TargetType):
        """Single dispatch from a target type to its collection and entity class."""
        if target_type is TargetType.COMMENT:
            return self.comments, Comment
        if target_type is TargetType.REPLY:
            return self.replies, Reply
        raise ValueError(f"Unsupported target type: {target_type!r}")

    async def find_target(
        self, target_id: str, target_type: TargetType
    ) -> Comment | Reply | None:
        collection, entity = self._target_collection(target_type)
        oid = parse_object_id(target_id, f"{target_type.value.lower()} id")
        doc = await collection.find_one({"_id": oid})
        return entity.from_document(doc) if doc else None

    async def set_counters(
        self, target_id: str, target_type: TargetType, counters: dict[str, int]
    ) -> bool:
        """Write counter values on a target, clamped at 0, and stamp updated_at.

        Returns:
            True if the target exists.
        """
        collection, _ = self._target_collection(target_type)
        oid = parse_object_id(target_id, f"{target_type.value.lower()} id")
        values: dict[str, Any] = {
            field: max(0, value) for field, value in counters.items()
        }
        result = await collection.update_one(
            {"_id": oid}, {"$set": {**values, "updated_at": datetime.now(UTC)}}
        )
        return result.matched_count > 0

    async def recompute_reply_count(self, comment_id: str) -> int | None:
        """Count a comment's replies and store the result as reply_count.

        A missing comment is logged and ignored.

        Returns:
            The new reply count, or None if the comment does not exist.
        """
        oid = parse_object_id(comment_id, "comment id")
        count = await self.count_replies_by_comment(comment_id)
        result = await self.comments.update_one(
            {"_id": oid},
            {"$set": {"reply_count": count, "updated_at": datetime.now(UTC)}},
        )
        if result.matched_count == 0:
            logger.warning("reply_count_recompute_skipped", comment_id=comment_id)
            return None
        return count

    async def recompute_reaction_counts(
        self, target_id: str, target_type: TargetType
    ) -> dict[str, int]:
        """Count a target's reactions by type and store both counters."""
        counts = {
            field: await self.reactions.count_by_target_and_type(
                target_id, target_type, reaction_type
            )
            for reaction_type, field in REACTION_COUNTER_FIELDS.items()
        }
        if not await self.set_counters(target_id, target_type, counts):
            logger.warning(
                "reaction_count_recompute_skipped",
                target_id=target_id,
                target_type=target_type.value,
            )
        return counts
