"""Tests for the MongoDB connection lifecycle.

The pymongo client is replaced by a mock; no server is needed.
"""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from pymongo.errors import OperationFailure

from adboard.config.settings import get_settings
from adboard.core.database.mongo import AsyncMongoConnection
from adboard.main import app_state, lifespan


@pytest.fixture
def mongo_client() -> Iterator[MagicMock]:
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.close = AsyncMock()
    with patch("adboard.core.database.mongo.AsyncMongoClient", return_value=client):
        yield client
    AsyncMongoConnection._client = None
    AsyncMongoConnection._database = None


class TestAsyncMongoConnection:
    @pytest.mark.asyncio
    async def test_connected_log_has_no_uri(self, mongo_client: MagicMock):
        """Should log the database name only."""
        with patch("adboard.core.database.mongo.logger") as logger:
            await AsyncMongoConnection.connect()

        logger.info.assert_called_once_with(
            "mongodb_connected", database=get_settings().mongodb_database
        )
        assert AsyncMongoConnection.is_connected()

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self, mongo_client: MagicMock):
        await AsyncMongoConnection.connect()

        await AsyncMongoConnection.disconnect()

        mongo_client.close.assert_awaited_once()
        assert not AsyncMongoConnection.is_connected()


class TestLifespan:
    @pytest.mark.asyncio
    async def test_index_failure_closes_client(self, mongo_client: MagicMock):
        """Should not stay connected when startup fails after connecting."""
        app = FastAPI()
        failing_indexes = AsyncMock(side_effect=OperationFailure("index build failed"))

        with patch(
            "adboard.core.database.mongo.init_comments_indexes", failing_indexes
        ):
            async with lifespan(app):
                assert not AsyncMongoConnection.is_connected()
                assert app_state.database is None
                assert getattr(app.state, "comment_service", None) is None

        failing_indexes.assert_awaited_once()
        mongo_client.close.assert_awaited()
