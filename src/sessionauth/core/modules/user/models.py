from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sessionauth.core.db import MongoModel


class User(MongoModel):
    """User record the sessions are joined against."""

    username: str


class UserRef(BaseModel):
    """Identity of the user owning a session."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(..., description="User ID")
