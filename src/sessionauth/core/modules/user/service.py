from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from sessionauth.core.core import Service
from sessionauth.core.modules.user.models import User
from sessionauth.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Minimal user store that sessions are joined against."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def get_user(self, user_id: UUID) -> User:
        doc = await self._collection.find_one({"_id": user_id})
        if doc is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return User.model_validate(doc)

    async def has_user(self, user_id: UUID) -> bool:
        return await self._collection.find_one({"_id": user_id}) is not None

    async def create_user(self, username: str) -> User:
        """Create a user with a unique username."""
        if not username:
            raise ValidationError("Username is required")
        if await self._collection.find_one({"username": username}) is not None:
            raise ValidationError(f"User '{username}' already exists")

        user = User(username=username)
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            # Lost a race with a concurrent create of the same username
            raise ValidationError(f"User '{username}' already exists") from e
        logger.debug("user_created", user_id=str(user.id))
        return user

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user; their sessions stop validating through the join."""
        result = await self._collection.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"User '{user_id}' not found")
        logger.debug("user_deleted", user_id=str(user_id))

    async def on_start(self) -> None:
        await self._collection.create_index([("username", 1)], unique=True)
