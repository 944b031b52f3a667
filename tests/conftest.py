"""Shared fixtures.

MongoDB is replaced by an in-memory fake that implements the subset of the
async collection API the repositories use. Every coroutine yields once to
the event loop before touching data so concurrent calls interleave the way
they would against a real server.
"""

import asyncio
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError


# Keep log files and uploads of the module-level app out of the working tree
_RUNTIME_DIR = Path(tempfile.mkdtemp(prefix="adboard-tests-"))
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", str(_RUNTIME_DIR / "logs"))
os.environ.setdefault("UPLOAD_DIR", str(_RUNTIME_DIR / "uploads"))

from adboard.comments.repository import (  # noqa: E402
    CommentRepository,
    ReactionRepository,
)
from adboard.comments.service import CommentService  # noqa: E402
from adboard.config.settings import Settings  # noqa: E402
from adboard.storage.service import LocalMediaStorage  # noqa: E402


# ==============================================================================
# In-memory MongoDB
# ==============================================================================


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, expected in query.items():
        value = doc.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if value not in expected["$in"]:
                return False
        elif value != expected:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]):
        self._docs = docs

    def sort(self, key: str, direction: int = ASCENDING) -> "FakeCursor":
        self._docs = sorted(
            self._docs, key=lambda d: d[key], reverse=direction == DESCENDING
        )
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        await asyncio.sleep(0)
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """Async collection backed by a list of documents.

    ``calls`` records every method invoked. Method names added to
    ``fail_on`` raise ``PyMongoError``.
    """

    def __init__(self, name: str):
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.indexes: list[Any] = []
        self.fail_on: set[str] = set()

    async def _enter(self, method: str) -> None:
        self.calls.append(method)
        await asyncio.sleep(0)
        if method in self.fail_on:
            raise PyMongoError(f"{self.name}.{method} failed")

    def _select(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        return [doc for doc in self.docs if _matches(doc, query)]

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        await self._enter("find_one")
        found = self._select(query)
        return dict(found[0]) if found else None

    def find(self, query: dict[str, Any]) -> FakeCursor:
        self.calls.append("find")
        return FakeCursor([dict(doc) for doc in self._select(query)])

    async def insert_one(self, doc: dict[str, Any]) -> SimpleNamespace:
        await self._enter("insert_one")
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(
        self, query: dict[str, Any], update: dict[str, Any]
    ) -> SimpleNamespace:
        await self._enter("update_one")
        found = self._select(query)[:1]
        for doc in found:
            doc.update(update.get("$set", {}))
        return SimpleNamespace(matched_count=len(found), modified_count=len(found))

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        await self._enter("delete_one")
        found = self._select(query)[:1]
        for doc in found:
            self.docs.remove(doc)
        return SimpleNamespace(deleted_count=len(found))

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        await self._enter("delete_many")
        found = self._select(query)
        self.docs = [doc for doc in self.docs if doc not in found]
        return SimpleNamespace(deleted_count=len(found))

    async def count_documents(self, query: dict[str, Any]) -> int:
        await self._enter("count_documents")
        return len(self._select(query))

    async def create_index(self, keys: Any) -> str:
        await self._enter("create_index")
        self.indexes.append(keys)
        return "_".join(f"{k}_{d}" for k, d in keys)


class FakeDatabase:
    """Database handle that creates collections on first access."""

    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def store_calls(self) -> list[str]:
        return [call for col in self.collections.values() for call in col.calls]


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing uploads at a temporary directory."""
    return Settings(
        _env_file=None,
        environment="testing",
        upload_dir=str(tmp_path / "uploads"),
        upload_max_file_size_mb=1,
    )


@pytest.fixture
def storage(settings: Settings) -> LocalMediaStorage:
    return LocalMediaStorage(settings)


@pytest.fixture
def reaction_repository(fake_db: FakeDatabase) -> ReactionRepository:
    return ReactionRepository(fake_db)


@pytest.fixture
def comment_repository(
    fake_db: FakeDatabase, reaction_repository: ReactionRepository
) -> CommentRepository:
    return CommentRepository(fake_db, reaction_repository)


@pytest.fixture
def comment_service(
    comment_repository: CommentRepository,
    reaction_repository: ReactionRepository,
    storage: LocalMediaStorage,
) -> CommentService:
    return CommentService(
        comments=comment_repository,
        reactions=reaction_repository,
        storage=storage,
    )


@pytest.fixture
def app(comment_service: CommentService) -> FastAPI:
    """App wired to the in-memory store. The lifespan is not run."""
    from adboard.main import create_app

    application = create_app()
    application.state.comment_service = comment_service
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    yield TestClient(app)


@pytest.fixture
def advertisement_id() -> str:
    return f"ad-{ObjectId()}"


@pytest.fixture
def author_id() -> str:
    """World ID of the acting user."""
    return "0x" + "ab" * 20
