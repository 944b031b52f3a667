"""Database connection module for adboard."""

from adboard.core.database.mongo import (
    AsyncMongoConnection,
    init_mongo,
    shutdown_mongo,
)


__all__ = [
    "AsyncMongoConnection",
    "init_mongo",
    "shutdown_mongo",
]
