from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from sessionauth.core.core import Service
from sessionauth.core.modules.session.models import (
    Session,
    SessionAbsent,
    SessionFound,
    SessionId,
    SessionToken,
    SessionValidationResult,
)
from sessionauth.core.modules.session.tokens import derive_session_id
from sessionauth.core.modules.user.models import UserRef
from sessionauth.errors import AuthenticationError, SessionCollisionError
from sessionauth.utils import now, to_millis

logger = structlog.get_logger(__name__)

DEFAULT_LIFETIME = timedelta(days=30)
DEFAULT_RENEWAL = timedelta(days=15)


def _log_id(session_id: SessionId) -> str:
    return session_id[:8]


class SessionService(Service):
    """Creates, validates, renews and revokes sessions.

    Every operation is a single round-trip per step against the ``sessions``
    collection. There is no in-process cache or lock: concurrent writes to
    one session are serialized by MongoDB, and two renewals racing each
    other simply both land (last writer wins).
    """

    def __init__(
        self,
        database: AsyncDatabase[dict[str, Any]],
        *,
        clock: Callable[[], datetime] = now,
        lifetime: timedelta = DEFAULT_LIFETIME,
        renewal: timedelta = DEFAULT_RENEWAL,
        ttl_index: bool = True,
    ) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")
        self._clock = clock
        self._lifetime = lifetime
        self._renewal = renewal
        self._ttl_index = ttl_index

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("user_id", 1)])
        if self._ttl_index:
            # Reclaims expired sessions that are never presented again
            await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def create_session(self, token: SessionToken, user_id: UUID) -> Session:
        session = Session(
            id=derive_session_id(token),
            user_id=user_id,
            expires_at=to_millis(self._clock() + self._lifetime),
        )
        try:
            await self._collection.insert_one(session.to_mongo())
        except DuplicateKeyError as e:
            logger.error("session_id_collision", session_id=_log_id(session.id))
            raise SessionCollisionError(f"Session '{_log_id(session.id)}...' already exists") from e
        logger.debug("session_created", session_id=_log_id(session.id), user_id=str(user_id))
        return session

    async def validate_session_token(self, token: SessionToken) -> SessionValidationResult:
        """Resolve a token to its session and user, expiring or renewing it as needed.

        A session past its expiry is deleted and reported absent. A session
        read within the renewal window before expiry is extended to a full
        lifetime from now.
        """
        session_id = derive_session_id(token)
        cursor = await self._collection.aggregate(
            [
                {"$match": {"_id": session_id}},
                {"$lookup": {"from": "users", "localField": "user_id", "foreignField": "_id", "as": "user"}},
                {"$unwind": "$user"},
                {"$project": {"user_id": 1, "expires_at": 1}},
                {"$limit": 1},
            ]
        )
        rows = await cursor.to_list(1)
        if not rows:
            return SessionAbsent()

        session = Session.model_validate(rows[0])
        current = self._clock()

        if current >= session.expires_at:
            await self._collection.delete_one({"_id": session.id})
            logger.debug("session_expired", session_id=_log_id(session.id))
            return SessionAbsent()

        if current >= session.expires_at - self._renewal:
            session = session.model_copy(update={"expires_at": to_millis(current + self._lifetime)})
            await self._collection.update_one({"_id": session.id}, {"$set": {"expires_at": session.expires_at}})
            logger.debug("session_renewed", session_id=_log_id(session.id))

        return SessionFound(session=session, user=UserRef(id=session.user_id))

    async def get_authenticated_user(self, token: SessionToken) -> UserRef:
        result = await self.validate_session_token(token)
        if isinstance(result, SessionAbsent):
            raise AuthenticationError
        return result.user

    async def is_session_token_valid(self, token: SessionToken) -> bool:
        return isinstance(await self.validate_session_token(token), SessionFound)

    async def invalidate_session(self, session_id: SessionId) -> None:
        """Delete a session regardless of its expiry; unknown ids are ignored."""
        result = await self._collection.delete_one({"_id": session_id})
        if result.deleted_count:
            logger.debug("session_invalidated", session_id=_log_id(session_id))
