from datetime import timedelta

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # e.g. mongodb://localhost:27017/sessionauth, path is the database name
    debug: bool = False
    session_lifetime_days: int = 30
    session_renewal_days: int = 15  # Sessions read within this many days of expiry get extended
    session_ttl_index: bool = True  # Let MongoDB reclaim expired sessions nobody validates again

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SESSIONAUTH_",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_session_windows(self) -> "Config":
        if self.session_lifetime_days <= 0:
            raise ValueError("session_lifetime_days must be positive")
        if not 0 <= self.session_renewal_days < self.session_lifetime_days:
            raise ValueError("session_renewal_days must be non-negative and less than session_lifetime_days")
        return self

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(days=self.session_lifetime_days)

    @property
    def session_renewal(self) -> timedelta:
        return timedelta(days=self.session_renewal_days)
