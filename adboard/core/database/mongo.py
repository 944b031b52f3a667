"""Async MongoDB connection using the pymongo asyncio client.

Provides:
- Client lifecycle management (connect / disconnect)
- Database handle for repositories
- Index initialization for the comment collections
"""

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from adboard.comments.models import COMMENTS_INDEXES
from adboard.config.settings import get_settings


logger = structlog.get_logger(__name__)


class AsyncMongoConnection:
    """Async MongoDB connection manager.

    Holds a single ``AsyncMongoClient`` per process. The client keeps its
    own connection pool, so repositories share the database handle.
    """

    _client: AsyncMongoClient | None = None
    _database: AsyncDatabase | None = None

    @classmethod
    async def connect(cls) -> AsyncDatabase:
        """Connect to MongoDB and verify the server is reachable.

        Returns:
            Database handle for ``settings.mongodb_database``

        Raises:
            ConnectionError: If the server cannot be reached
        """
        if cls._database is not None:
            return cls._database

        settings = get_settings()
        client: AsyncMongoClient = AsyncMongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            tz_aware=True,
        )

        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            await client.close()
            logger.error("mongodb_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to MongoDB: {e}") from e

        cls._client = client
        cls._database = client[settings.mongodb_database]
        logger.info("mongodb_connected", database=settings.mongodb_database)
        return cls._database

    @classmethod
    def get_database(cls) -> AsyncDatabase:
        """Get the active database handle."""
        if cls._database is None:
            msg = "MongoDB is not connected"
            raise RuntimeError(msg)
        return cls._database

    @classmethod
    async def disconnect(cls) -> None:
        """Close the MongoDB client."""
        if cls._client is not None:
            await cls._client.close()
            logger.info("mongodb_client_closed")
        cls._client = None
        cls._database = None

    @classmethod
    def is_connected(cls) -> bool:
        return cls._database is not None


async def init_comments_indexes(database: AsyncDatabase) -> None:
    """Create indexes used by the comment, reply and reaction queries."""
    for collection_name, keys in COMMENTS_INDEXES:
        await database[collection_name].create_index(keys)
    logger.info("mongodb_comments_indexes_created", count=len(COMMENTS_INDEXES))


async def init_mongo() -> AsyncDatabase:
    """Connect to MongoDB and prepare collections.

    Returns:
        Database handle used to build repositories
    """
    settings = get_settings()
    database = await AsyncMongoConnection.connect()

    if settings.mongodb_create_indexes:
        await init_comments_indexes(database)

    logger.info("mongodb_initialized", database=settings.mongodb_database)
    return database


async def shutdown_mongo() -> None:
    await AsyncMongoConnection.disconnect()
