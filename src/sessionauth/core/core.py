from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from sessionauth.config import Config

if TYPE_CHECKING:
    from sessionauth.core.modules.session.service import SessionService
    from sessionauth.core.modules.user.service import UserService


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry, built from a database handle and the session policy in config."""

    user: UserService
    session: SessionService

    def __init__(self, database: AsyncDatabase[dict[str, Any]], config: Config) -> None:
        from sessionauth.core.modules.session.service import SessionService  # noqa: PLC0415
        from sessionauth.core.modules.user.service import UserService  # noqa: PLC0415

        # Order matters for startup - users before sessions
        self.user = UserService(database)
        self.session = SessionService(
            database,
            lifetime=config.session_lifetime,
            renewal=config.session_renewal,
            ttl_index=config.session_ttl_index,
        )
        self._services: list[Service] = [self.user, self.session]

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        """Initialize core with config and services.

        When no database handle is given, a MongoDB client is opened from
        ``config.database_url`` and owned (and closed) by this core.
        """
        self.config = config
        if database is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        else:
            self.mongo_client = None
            self.database = database
        self.services = Services(self.database, config)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the MongoDB connection if this core opened it."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
