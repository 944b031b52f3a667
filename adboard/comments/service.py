"""Comment system service layer.

Business logic for:
- Comment and reply CRUD with existence checks
- Image/video uploads validated against the comment type
- Like/Dislike reactions with denormalized counters on the target

Writes are independent MongoDB calls without a transaction. After a primary
write the service reconciles counters on a best-effort basis: reconciliation
problems are logged and never fail the caller.
"""

from dataclasses import replace
from typing import Any

import structlog
from pymongo.errors import PyMongoError

from adboard.storage.service import (
    LocalMediaStorage,
    MediaFile,
    StorageError,
    StorageValidationError,
)

from .exceptions import (
    CommentNotFoundError,
    InvalidArgumentError,
    InvalidMediaTypeError,
    InvalidPaginationError,
    InvalidTargetTypeError,
    MediaRequiredError,
    ReactionNotFoundError,
    ReplyNotFoundError,
    StorageFailureError,
)
from .models import (
    REACTION_COUNTER_FIELDS,
    Comment,
    CommentPage,
    CommentType,
    Reaction,
    ReactionType,
    Reply,
    ReplyPage,
    TargetType,
    UserReactions,
    create_comment,
    create_reaction,
    create_reply,
)
from .repository import CommentRepository, ReactionRepository, parse_object_id


logger = structlog.get_logger(__name__)


# ==============================================================================
# Media Validation
# ==============================================================================

IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/jpg", "image/gif"})
VIDEO_MIME_TYPES = frozenset(
    {"video/mp4", "video/mpeg", "video/quicktime", "video/x-msvideo"}
)

ALLOWED_MEDIA_TYPES: dict[CommentType, frozenset[str]] = {
    CommentType.IMAGE: IMAGE_MIME_TYPES,
    CommentType.VIDEO: VIDEO_MIME_TYPES,
}


def validate_media(comment_type: CommentType, media: MediaFile | None) -> MediaFile:
    """Check that an upload is present and matches the comment type.

    Raises:
        MediaRequiredError: If no file was uploaded.
        InvalidMediaTypeError: If the comment type does not take media or the
            MIME type is not allowed for it.
    """
    if media is None:
        raise MediaRequiredError

    allowed = ALLOWED_MEDIA_TYPES.get(comment_type)
    if allowed is None:
        raise InvalidMediaTypeError(
            "Comment type must be Image or Video when uploading media"
        )

    if media.content_type not in allowed:
        raise InvalidMediaTypeError(
            f"Invalid file type {media.content_type!r} for {comment_type.value}. "
            f"Allowed: {', '.join(sorted(allowed))}"
        )
    return media


def parse_target_type(value: Any) -> TargetType:
    """Parse a reaction target tag ("Comment" or "Reply")."""
    try:
        return TargetType(value)
    except ValueError as e:
        raise InvalidTargetTypeError(value) from e


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for comments, replies and reactions on advertisements."""

    COMMENT_MEDIA_SUBDIR = "comments"
    REPLY_MEDIA_SUBDIR = "replies"

    def __init__(
        self,
        comments: CommentRepository,
        reactions: ReactionRepository,
        storage: LocalMediaStorage,
    ):
        self.comments = comments
        self.reactions = reactions
        self.storage = storage

    # ==========================================================================
    # Media helpers
    # ==========================================================================

    async def _store_media(self, media: MediaFile, subdir: str) -> str:
        try:
            return await self.storage.save(media, subdir=subdir)
        except StorageValidationError as e:
            raise InvalidArgumentError(e.message, e.code) from e
        except StorageError as e:
            raise StorageFailureError(e.message) from e

    async def _discard_media(self, relative_path: str) -> None:
        """Remove a file whose document could not be persisted."""
        try:
            await self.storage.delete(relative_path)
        except StorageError as e:
            logger.warning(
                "orphaned_media_cleanup_failed",
                relative_path=relative_path,
                error=e.message,
            )

    def _with_public_url(self, entity: Comment | Reply) -> Comment | Reply:
        """Copy of the entity with media_url rendered as a public URL."""
        media_url = self.storage.normalize_url(entity.media_url)
        if media_url == entity.media_url:
            return entity
        return replace(entity, media_url=media_url)

    @staticmethod
    def _check_pagination(page: int, limit: int) -> int:
        """Validate page/limit and return the number of items to skip."""
        if page < 1 or limit < 1:
            raise InvalidPaginationError(page, limit)
        return (page - 1) * limit

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def create_comment(
        self,
        advertisement_id: str,
        author_id: str,
        content: str,
        comment_type: CommentType,
        media_url: str | None = None,
    ) -> Comment:
        """Create a comment on an advertisement.

        The advertisement is treated as an opaque reference and is not
        checked for existence.
        """
        comment = create_comment(
            advertisement_id=advertisement_id,
            author_id=author_id,
            content=content,
            comment_type=comment_type,
            media_url=media_url,
        )
        await self.comments.create_comment(comment)
        logger.info(
            "comment_created",
            comment_id=comment.id,
            advertisement_id=advertisement_id,
            comment_type=comment_type.value,
        )
        return self._with_public_url(comment)

    async def create_comment_with_media(
        self,
        advertisement_id: str,
        author_id: str,
        content: str,
        comment_type: CommentType,
        media: MediaFile | None,
    ) -> Comment:
        """Create an Image or Video comment with an uploaded file.

        The file is validated before anything is written. The document stores
        the storage-relative path; the returned comment carries the public URL.
        """
        media = validate_media(comment_type, media)
        relative_path = await self._store_media(media, self.COMMENT_MEDIA_SUBDIR)

        comment = create_comment(
            advertisement_id=advertisement_id,
            author_id=author_id,
            content=content,
            comment_type=comment_type,
            media_url=relative_path,
        )
        try:
            await self.comments.create_comment(comment)
        except PyMongoError:
            await self._discard_media(relative_path)
            raise

        logger.info(
            "comment_with_media_created",
            comment_id=comment.id,
            advertisement_id=advertisement_id,
            media_path=relative_path,
        )
        return self._with_public_url(comment)

    async def get_comment_by_id(self, comment_id: str) -> Comment:
        comment = await self.comments.find_comment_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return self._with_public_url(comment)

    async def get_comments_by_advertisement(
        self, advertisement_id: str, page: int = 1, limit: int = 10
    ) -> CommentPage:
        """Get a page of comments for an advertisement, newest first.

        ``total`` counts every comment on the advertisement regardless of
        the requested page.
        """
        skip = self._check_pagination(page, limit)
        comments = await self.comments.find_comments_by_advertisement(
            advertisement_id, skip, limit
        )
        total = await self.comments.count_comments_by_advertisement(advertisement_id)
        return CommentPage(
            comments=[self._with_public_url(c) for c in comments],
            total=total,
            page=page,
            limit=limit,
        )

    async def update_comment(
        self,
        comment_id: str,
        content: str,
        comment_type: CommentType,
        media_url: str | None = None,
    ) -> Comment:
        """Overwrite a comment's content, type and media URL.

        The media URL is not re-validated against the type.
        """
        await self.get_comment_by_id(comment_id)
        updated = await self.comments.update_comment(
            comment_id,
            {
                "content": content,
                "comment_type": comment_type.value,
                "media_url": media_url,
            },
        )
        logger.info("comment_updated", comment_id=comment_id)
        return self._with_public_url(updated)

    async def delete_comment(self, comment_id: str) -> None:
        """Delete a comment, its replies and the reactions on the comment.

        Reactions on the deleted replies are left in place.
        """
        await self.get_comment_by_id(comment_id)
        await self.comments.delete_comment(comment_id)
        logger.info("comment_deleted", comment_id=comment_id)

    # ==========================================================================
    # Replies
    # ==========================================================================

    async def _reconcile_reply_count(self, comment_id: str) -> None:
        """Recompute a comment's reply_count without failing the caller."""
        try:
            await self.comments.recompute_reply_count(comment_id)
        except PyMongoError as e:
            logger.exception(
                "reply_count_recompute_failed", comment_id=comment_id, error=str(e)
            )

    async def create_reply(
        self,
        comment_id: str,
        author_id: str,
        content: str,
        comment_type: CommentType,
        media_url: str | None = None,
    ) -> Reply:
        await self.get_comment_by_id(comment_id)

        reply = create_reply(
            comment_id=comment_id,
            author_id=author_id,
            content=content,
            comment_type=comment_type,
            media_url=media_url,
        )
        await self.comments.create_reply(reply)
        await self._reconcile_reply_count(comment_id)

        logger.info("reply_created", reply_id=reply.id, comment_id=comment_id)
        return self._with_public_url(reply)

    async def create_reply_with_media(
        self,
        comment_id: str,
        author_id: str,
        content: str,
        comment_type: CommentType,
        media: MediaFile | None,
    ) -> Reply:
        """Create an Image or Video reply with an uploaded file."""
        media = validate_media(comment_type, media)
        await self.get_comment_by_id(comment_id)
        relative_path = await self._store_media(media, self.REPLY_MEDIA_SUBDIR)

        reply = create_reply(
            comment_id=comment_id,
            author_id=author_id,
            content=content,
            comment_type=comment_type,
            media_url=relative_path,
        )
        try:
            await self.comments.create_reply(reply)
        except PyMongoError:
            await self._discard_media(relative_path)
            raise
        await self._reconcile_reply_count(comment_id)

        logger.info(
            "reply_with_media_created",
            reply_id=reply.id,
            comment_id=comment_id,
            media_path=relative_path,
        )
        return self._with_public_url(reply)

    async def get_reply_by_id(self, reply_id: str) -> Reply:
        reply = await self.comments.find_reply_by_id(reply_id)
        if reply is None:
            raise ReplyNotFoundError(reply_id)
        return self._with_public_url(reply)

    async def get_replies_by_comment(
        self, comment_id: str, page: int = 1, limit: int = 10
    ) -> ReplyPage:
        """Get a page of a comment's replies, oldest first."""
        skip = self._check_pagination(page, limit)
        await self.get_comment_by_id(comment_id)

        replies = await self.comments.find_replies_by_comment(comment_id, skip, limit)
        total = await self.comments.count_replies_by_comment(comment_id)
        return ReplyPage(
            replies=[self._with_public_url(r) for r in replies],
            total=total,
            page=page,
            limit=limit,
        )

    async def update_reply(
        self,
        reply_id: str,
        content: str,
        comment_type: CommentType,
        media_url: str | None = None,
    ) -> Reply:
        await self.get_reply_by_id(reply_id)
        updated = await self.comments.update_reply(
            reply_id,
            {
                "content": content,
                "comment_type": comment_type.value,
                "media_url": media_url,
            },
        )
        logger.info("reply_updated", reply_id=reply_id)
        return self._with_public_url(updated)

    async def delete_reply(self, reply_id: str) -> None:
        """Delete a reply and its reactions, then recompute the parent's reply_count."""
        reply = await self.get_reply_by_id(reply_id)
        await self.comments.delete_reply(reply_id)
        await self._reconcile_reply_count(reply.comment_id)
        logger.info("reply_deleted", reply_id=reply_id, comment_id=reply.comment_id)

    # ==========================================================================
    # Reactions
    # ==========================================================================

    async def _resolve_target(
        self, target_id: str, target_type: TargetType
    ) -> Comment | Reply:
        target = await self.comments.find_target(target_id, target_type)
        if target is None:
            if target_type is TargetType.COMMENT:
                raise CommentNotFoundError(target_id)
            raise ReplyNotFoundError(target_id)
        return target

    async def add_reaction(
        self,
        target_id: str,
        target_type: str | TargetType,
        author_id: str,
        reaction_type: ReactionType,
    ) -> Reaction:
        """Add or switch an author's reaction on a comment or reply.

        - No reaction yet: create it and increment the matching counter.
        - Same type again: return the existing reaction unchanged.
        - Different type: decrement the old counter, switch the reaction in
          place, increment the new counter.

        Counters are read-modify-written from the target read at the start of
        the call. Concurrent calls on the same target can leave a stale
        counter until ``recompute_reaction_counts`` runs.
        """
        kind = parse_target_type(target_type)
        target = await self._resolve_target(target_id, kind)

        existing = await self.reactions.find_by_user_and_target(
            author_id, target_id, kind
        )

        if existing is not None and existing.reaction_type == reaction_type:
            return existing

        new_field = REACTION_COUNTER_FIELDS[reaction_type]

        if existing is not None:
            old_field = REACTION_COUNTER_FIELDS[existing.reaction_type]
            await self.comments.set_counters(
                target_id, kind, {old_field: getattr(target, old_field) - 1}
            )
            reaction = await self.reactions.update_type(existing.id, reaction_type)
            await self.comments.set_counters(
                target_id, kind, {new_field: getattr(target, new_field) + 1}
            )
            logger.info(
                "reaction_switched",
                reaction_id=reaction.id,
                target_id=target_id,
                target_type=kind.value,
                from_type=existing.reaction_type.value,
                to_type=reaction_type.value,
            )
            return reaction

        reaction = create_reaction(
            target_id=target_id,
            target_type=kind,
            author_id=author_id,
            reaction_type=reaction_type,
        )
        await self.reactions.create(reaction)
        await self.comments.set_counters(
            target_id, kind, {new_field: getattr(target, new_field) + 1}
        )
        logger.info(
            "reaction_added",
            reaction_id=reaction.id,
            target_id=target_id,
            target_type=kind.value,
            reaction_type=reaction_type.value,
        )
        return reaction

    async def remove_reaction(self, reaction_id: str) -> None:
        """Remove a reaction and decrement its counter on the target."""
        reaction = await self.reactions.find_by_id(reaction_id)
        if reaction is None:
            raise ReactionNotFoundError(reaction_id)

        target = await self._resolve_target(reaction.target_id, reaction.target_type)
        field = REACTION_COUNTER_FIELDS[reaction.reaction_type]
        await self.comments.set_counters(
            reaction.target_id,
            reaction.target_type,
            {field: getattr(target, field) - 1},
        )
        await self.reactions.delete(reaction_id)
        logger.info(
            "reaction_removed",
            reaction_id=reaction_id,
            target_id=reaction.target_id,
            target_type=reaction.target_type.value,
        )

    async def get_user_reaction(
        self, target_id: str, target_type: str | TargetType, author_id: str
    ) -> Reaction | None:
        kind = parse_target_type(target_type)
        parse_object_id(target_id, "target id")
        return await self.reactions.find_by_user_and_target(author_id, target_id, kind)

    async def get_user_reactions(
        self,
        author_id: str,
        comment_ids: list[str],
        reply_ids: list[str],
    ) -> UserReactions:
        """Map comment and reply ids to the author's reaction type on each."""
        for target_id in [*comment_ids, *reply_ids]:
            parse_object_id(target_id, "target id")

        result = UserReactions()
        for kind, ids, mapping in (
            (TargetType.COMMENT, comment_ids, result.comment_reactions),
            (TargetType.REPLY, reply_ids, result.reply_reactions),
        ):
            found = await self.reactions.find_by_user_and_targets(author_id, kind, ids)
            mapping.update({r.target_id: r.reaction_type for r in found})
        return result

    async def recompute_reaction_counts(
        self, target_id: str, target_type: str | TargetType
    ) -> dict[str, int]:
        """Rebuild a target's like/dislike counters from the reactions."""
        kind = parse_target_type(target_type)
        await self._resolve_target(target_id, kind)
        counts = await self.comments.recompute_reaction_counts(target_id, kind)
        logger.info(
            "reaction_counts_recomputed",
            target_id=target_id,
            target_type=kind.value,
            **counts,
        )
        return counts
