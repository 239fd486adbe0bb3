"""Session management models."""

from datetime import datetime
from typing import Annotated, Literal, NewType
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sessionauth.core.db import MongoModel
from sessionauth.core.modules.user.models import UserRef
from sessionauth.utils import as_utc

SessionToken = NewType("SessionToken", str)
SessionId = NewType("SessionId", str)


class Session(MongoModel):
    """Stored authentication session.

    Keyed by the SHA-256 digest of the client's token; the token itself is
    never part of the document.
    """

    id: SessionId = Field(alias="_id", serialization_alias="id")  # type: ignore[assignment]
    user_id: UUID
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def expires_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class SessionFound(BaseModel):
    """Token resolved to a live session owned by an existing user."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["found"] = "found"
    session: Session
    user: UserRef


class SessionAbsent(BaseModel):
    """Token is unknown, expired, or its user no longer exists."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["absent"] = "absent"


SessionValidationResult = Annotated[SessionFound | SessionAbsent, Field(discriminator="kind")]
