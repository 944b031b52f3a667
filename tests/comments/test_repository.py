"""Tests for the comment and reaction repositories.

Covers:
- Identifier parsing before any store call
- Page slicing and ordering
- Cascade deletes
- Counter writes and recomputation
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
from bson import ObjectId

from adboard.comments.exceptions import (
    CommentNotFoundError,
    InvalidIdentifierError,
    ReactionNotFoundError,
    ReplyNotFoundError,
)
from adboard.comments.models import (
    COMMENTS_COLLECTION,
    REACTIONS_COLLECTION,
    REPLIES_COLLECTION,
    CommentType,
    ReactionType,
    TargetType,
    create_comment,
    create_reaction,
    create_reply,
)
from adboard.comments.repository import (
    CommentRepository,
    ReactionRepository,
    parse_object_id,
)


async def _seed_comments(repo: CommentRepository, advertisement_id: str, count: int):
    """Insert comments one minute apart, oldest first."""
    base = datetime(2024, 1, 1, tzinfo=UTC)
    comments = []
    for i in range(count):
        created_at = base + timedelta(minutes=i)
        comment = replace(
            create_comment(advertisement_id, "author", f"comment {i}", CommentType.TEXT),
            created_at=created_at,
            updated_at=created_at,
        )
        comments.append(await repo.create_comment(comment))
    return comments


class TestParseObjectId:
    def test_valid_id(self):
        """Should return an ObjectId for a 24-char hex string."""
        raw = str(ObjectId())
        assert parse_object_id(raw) == ObjectId(raw)

    @pytest.mark.parametrize("value", ["abc", "", "z" * 24, None, 12345])
    def test_invalid_id(self, value):
        """Should raise InvalidIdentifierError for anything else."""
        with pytest.raises(InvalidIdentifierError) as exc_info:
            parse_object_id(value, "comment id")

        assert exc_info.value.code == "invalid_identifier"
        assert "comment id" in exc_info.value.message


class TestCommentQueries:
    @pytest.mark.asyncio
    async def test_find_comment_by_id_returns_none_when_missing(
        self, comment_repository: CommentRepository
    ):
        """Should return None for a well-formed id that matches nothing."""
        assert await comment_repository.find_comment_by_id(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_find_comment_rejects_malformed_id_without_store_call(
        self, comment_repository: CommentRepository, fake_db
    ):
        """Should raise before the collection is queried."""
        with pytest.raises(InvalidIdentifierError):
            await comment_repository.find_comment_by_id("not-an-id")

        assert fake_db.store_calls() == []

    @pytest.mark.asyncio
    async def test_comments_are_newest_first_and_sliced(
        self, comment_repository: CommentRepository
    ):
        """Should order by created_at descending and apply skip/take."""
        # Arrange
        seeded = await _seed_comments(comment_repository, "ad-1", 12)
        await _seed_comments(comment_repository, "ad-2", 3)

        # Act
        page = await comment_repository.find_comments_by_advertisement("ad-1", 5, 5)
        total = await comment_repository.count_comments_by_advertisement("ad-1")

        # Assert
        assert [c.content for c in page] == [f"comment {i}" for i in range(6, 1, -1)]
        assert page[0].id == seeded[6].id
        assert total == 12

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(
        self, comment_repository: CommentRepository
    ):
        await _seed_comments(comment_repository, "ad-1", 3)

        page = await comment_repository.find_comments_by_advertisement("ad-1", 10, 10)

        assert page == []

    @pytest.mark.asyncio
    async def test_update_comment_sets_fields_and_updated_at(
        self, comment_repository: CommentRepository
    ):
        """Should merge fields and advance updated_at."""
        (comment,) = await _seed_comments(comment_repository, "ad-1", 1)

        updated = await comment_repository.update_comment(
            comment.id, {"content": "edited", "comment_type": CommentType.EMOTICON.value}
        )

        assert updated.content == "edited"
        assert updated.comment_type == CommentType.EMOTICON
        assert updated.updated_at > comment.updated_at
        assert updated.created_at == comment.created_at

    @pytest.mark.asyncio
    async def test_update_missing_comment_raises(
        self, comment_repository: CommentRepository
    ):
        with pytest.raises(CommentNotFoundError):
            await comment_repository.update_comment(str(ObjectId()), {"content": "x"})


class TestCommentCascadeDelete:
    @pytest.mark.asyncio
    async def test_delete_comment_removes_replies_and_comment_reactions(
        self,
        comment_repository: CommentRepository,
        reaction_repository: ReactionRepository,
        fake_db,
    ):
        """Should delete the comment, its replies and reactions on the comment."""
        # Arrange
        (comment,) = await _seed_comments(comment_repository, "ad-1", 1)
        reply = await comment_repository.create_reply(
            create_reply(comment.id, "author", "reply", CommentType.TEXT)
        )
        await reaction_repository.create(
            create_reaction(comment.id, TargetType.COMMENT, "u1", ReactionType.LIKE)
        )
        await reaction_repository.create(
            create_reaction(reply.id, TargetType.REPLY, "u2", ReactionType.DISLIKE)
        )

        # Act
        await comment_repository.delete_comment(comment.id)

        # Assert
        assert fake_db[COMMENTS_COLLECTION].docs == []
        assert fake_db[REPLIES_COLLECTION].docs == []
        remaining = fake_db[REACTIONS_COLLECTION].docs
        # Reactions on the bulk-deleted replies stay behind
        assert [(r["target_id"], r["target_type"]) for r in remaining] == [
            (reply.id, TargetType.REPLY.value)
        ]

    @pytest.mark.asyncio
    async def test_delete_missing_comment_raises(
        self, comment_repository: CommentRepository, fake_db
    ):
        with pytest.raises(CommentNotFoundError):
            await comment_repository.delete_comment(str(ObjectId()))

        assert "delete_many" not in fake_db.store_calls()


class TestReplies:
    @pytest.mark.asyncio
    async def test_replies_are_oldest_first(
        self, comment_repository: CommentRepository
    ):
        base = datetime(2024, 1, 1, tzinfo=UTC)
        for i in (2, 0, 1):
            await comment_repository.create_reply(
                replace(
                    create_reply("c1", "a", f"reply {i}", CommentType.TEXT),
                    created_at=base + timedelta(minutes=i),
                )
            )

        replies = await comment_repository.find_replies_by_comment("c1", 0, 10)

        assert [r.content for r in replies] == ["reply 0", "reply 1", "reply 2"]

    @pytest.mark.asyncio
    async def test_delete_reply_removes_its_reactions(
        self,
        comment_repository: CommentRepository,
        reaction_repository: ReactionRepository,
        fake_db,
    ):
        reply = await comment_repository.create_reply(
            create_reply("c1", "a", "reply", CommentType.TEXT)
        )
        await reaction_repository.create(
            create_reaction(reply.id, TargetType.REPLY, "u1", ReactionType.LIKE)
        )

        await comment_repository.delete_reply(reply.id)

        assert fake_db[REPLIES_COLLECTION].docs == []
        assert fake_db[REACTIONS_COLLECTION].docs == []

    @pytest.mark.asyncio
    async def test_delete_missing_reply_raises(
        self, comment_repository: CommentRepository
    ):
        with pytest.raises(ReplyNotFoundError):
            await comment_repository.delete_reply(str(ObjectId()))


class TestCounters:
    @pytest.mark.asyncio
    async def test_set_counters_clamps_at_zero(
        self, comment_repository: CommentRepository
    ):
        """Should never store a negative counter."""
        (comment,) = await _seed_comments(comment_repository, "ad-1", 1)

        matched = await comment_repository.set_counters(
            comment.id, TargetType.COMMENT, {"like_count": -1, "dislike_count": 3}
        )

        stored = await comment_repository.find_comment_by_id(comment.id)
        assert matched is True
        assert stored.like_count == 0
        assert stored.dislike_count == 3

    @pytest.mark.asyncio
    async def test_set_counters_reports_missing_target(
        self, comment_repository: CommentRepository
    ):
        matched = await comment_repository.set_counters(
            str(ObjectId()), TargetType.REPLY, {"like_count": 1}
        )

        assert matched is False

    @pytest.mark.asyncio
    async def test_recompute_reply_count(self, comment_repository: CommentRepository):
        """Should store the number of replies found."""
        (comment,) = await _seed_comments(comment_repository, "ad-1", 1)
        for _ in range(3):
            await comment_repository.create_reply(
                create_reply(comment.id, "a", "r", CommentType.TEXT)
            )

        count = await comment_repository.recompute_reply_count(comment.id)

        stored = await comment_repository.find_comment_by_id(comment.id)
        assert count == 3
        assert stored.reply_count == 3

    @pytest.mark.asyncio
    async def test_recompute_reply_count_for_missing_comment_is_ignored(
        self, comment_repository: CommentRepository
    ):
        assert await comment_repository.recompute_reply_count(str(ObjectId())) is None

    @pytest.mark.asyncio
    async def test_recompute_reaction_counts(
        self,
        comment_repository: CommentRepository,
        reaction_repository: ReactionRepository,
    ):
        """Should rebuild both counters from the reactions."""
        (comment,) = await _seed_comments(comment_repository, "ad-1", 1)
        for author, kind in (
            ("u1", ReactionType.LIKE),
            ("u2", ReactionType.LIKE),
            ("u3", ReactionType.DISLIKE),
        ):
            await reaction_repository.create(
                create_reaction(comment.id, TargetType.COMMENT, author, kind)
            )

        counts = await comment_repository.recompute_reaction_counts(
            comment.id, TargetType.COMMENT
        )

        stored = await comment_repository.find_comment_by_id(comment.id)
        assert counts == {"like_count": 2, "dislike_count": 1}
        assert (stored.like_count, stored.dislike_count) == (2, 1)


class TestReactionRepository:
    @pytest.mark.asyncio
    async def test_find_by_user_and_target(
        self, reaction_repository: ReactionRepository
    ):
        reaction = await reaction_repository.create(
            create_reaction("t1", TargetType.COMMENT, "u1", ReactionType.LIKE)
        )

        found = await reaction_repository.find_by_user_and_target(
            "u1", "t1", TargetType.COMMENT
        )
        other_kind = await reaction_repository.find_by_user_and_target(
            "u1", "t1", TargetType.REPLY
        )

        assert found == reaction
        assert other_kind is None

    @pytest.mark.asyncio
    async def test_find_by_user_and_targets_skips_store_for_empty_list(
        self, reaction_repository: ReactionRepository, fake_db
    ):
        result = await reaction_repository.find_by_user_and_targets(
            "u1", TargetType.COMMENT, []
        )

        assert result == []
        assert fake_db.store_calls() == []

    @pytest.mark.asyncio
    async def test_update_type_keeps_id_and_created_at(
        self, reaction_repository: ReactionRepository
    ):
        reaction = await reaction_repository.create(
            create_reaction("t1", TargetType.COMMENT, "u1", ReactionType.LIKE)
        )

        updated = await reaction_repository.update_type(
            reaction.id, ReactionType.DISLIKE
        )

        assert updated.id == reaction.id
        assert updated.created_at == reaction.created_at
        assert updated.reaction_type == ReactionType.DISLIKE

    @pytest.mark.asyncio
    async def test_delete_missing_reaction_raises(
        self, reaction_repository: ReactionRepository
    ):
        with pytest.raises(ReactionNotFoundError):
            await reaction_repository.delete(str(ObjectId()))
