"""Entry point for embedding the session layer in a host application."""

from typing import Any

from pymongo.asynchronous.database import AsyncDatabase

from sessionauth.app import App
from sessionauth.config import Config
from sessionauth.logging import setup_logging


def create_app(config: Config | None = None, database: AsyncDatabase[dict[str, Any]] | None = None) -> App:
    """Load config from the environment unless given, configure logging, and build the App."""
    if config is None:
        config = Config()
    setup_logging(config.debug)
    return App(config, database)
