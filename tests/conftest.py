"""Shared pytest fixtures: an in-memory stand-in for the MongoDB database and a controllable clock."""

import copy
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import pytest
from pymongo.errors import DuplicateKeyError

from sessionauth.config import Config
from sessionauth.core.modules.session.service import SessionService
from sessionauth.core.modules.user.models import User
from sessionauth.core.modules.user.service import UserService

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class FakeResult:
    def __init__(self, deleted_count: int = 0, matched_count: int = 0, modified_count: int = 0) -> None:
        self.deleted_count = deleted_count
        self.matched_count = matched_count
        self.modified_count = modified_count


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """Implements the subset of AsyncCollection used by the services and counts writes."""

    def __init__(self, database: "FakeDatabase", name: str) -> None:
        self.database = database
        self.name = name
        self.docs: dict[Any, dict[str, Any]] = {}
        self.indexes: list[tuple[list[tuple[str, int]], dict[str, Any]]] = []
        self.writes = 0

    @staticmethod
    def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
        return all(doc.get(key) == value for key, value in query.items())

    async def create_index(self, keys: list[tuple[str, int]], **kwargs: Any) -> str:
        self.indexes.append((keys, kwargs))
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    async def insert_one(self, doc: dict[str, Any]) -> FakeResult:
        self.writes += 1
        if doc["_id"] in self.docs:
            raise DuplicateKeyError("E11000 duplicate key error", code=11000)
        if self.name == "users" and any(d["username"] == doc["username"] for d in self.docs.values()):
            raise DuplicateKeyError("E11000 duplicate key error", code=11000)
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return FakeResult()

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self.docs.values():
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> FakeResult:
        self.writes += 1
        for doc in self.docs.values():
            if self._matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                return FakeResult(matched_count=1, modified_count=1)
        return FakeResult()

    async def delete_one(self, query: dict[str, Any]) -> FakeResult:
        self.writes += 1
        for key, doc in list(self.docs.items()):
            if self._matches(doc, query):
                del self.docs[key]
                return FakeResult(deleted_count=1)
        return FakeResult()

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> FakeCursor:
        rows = [copy.deepcopy(doc) for doc in self.docs.values()]
        for stage in pipeline:
            if "$match" in stage:
                rows = [row for row in rows if self._matches(row, stage["$match"])]
            elif "$lookup" in stage:
                lookup = stage["$lookup"]
                foreign = self.database.get_collection(lookup["from"]).docs.values()
                for row in rows:
                    row[lookup["as"]] = [
                        copy.deepcopy(doc) for doc in foreign if doc.get(lookup["foreignField"]) == row.get(lookup["localField"])
                    ]
            elif "$unwind" in stage:
                field = stage["$unwind"].removeprefix("$")
                rows = [{**row, field: item} for row in rows for item in row.get(field, [])]
            elif "$project" in stage:
                keep = {"_id", *stage["$project"]}
                rows = [{key: value for key, value in row.items() if key in keep} for row in rows]
            elif "$limit" in stage:
                rows = rows[: stage["$limit"]]
        return FakeCursor(rows)


class FakeDatabase:
    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(self, name)
        return self._collections[name]


class FakeClock:
    """Callable clock that tests move forward explicitly."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def sessions(database):
    """The raw sessions collection, for inspecting stored documents and write counts."""
    return database.get_collection("sessions")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return Config(database_url="mongodb://localhost:27017/sessionauth_test", _env_file=None)


@pytest.fixture
def session_service(database, clock):
    return SessionService(database, clock=clock)


@pytest.fixture
def user_service(database):
    return UserService(database)


@pytest.fixture
async def user(user_service) -> User:
    return await user_service.create_user("alice")


@pytest.fixture
def missing_user_id() -> UUID:
    return UUID("87654321-4321-8765-4321-876543218765")


@pytest.fixture
def t0() -> datetime:
    """Moment the fake clock starts at."""
    return T0
