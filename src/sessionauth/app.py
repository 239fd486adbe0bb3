from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from sessionauth.config import Config
from sessionauth.core.core import Core
from sessionauth.core.modules.session.models import Session, SessionId, SessionToken, SessionValidationResult
from sessionauth.core.modules.session.tokens import generate_session_token


class App:
    """Facade for the session lifecycle, used by the transport layer.

    User identifiers are UUIDs. A ``user_id`` passed as a string must be a
    valid UUID, otherwise building the session raises pydantic's
    ``ValidationError``.
    """

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, database)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def generate_session_token(self) -> SessionToken:
        return generate_session_token()

    async def create_session(self, token: SessionToken, user_id: UUID) -> Session:
        """Persist a new session for the user, keyed by the token's digest."""
        return await self._core.services.session.create_session(token, user_id)

    async def validate_session_token(self, token: SessionToken) -> SessionValidationResult:
        return await self._core.services.session.validate_session_token(token)

    async def invalidate_session(self, session_id: SessionId) -> None:
        """Revoke a session by its identifier."""
        await self._core.services.session.invalidate_session(session_id)
