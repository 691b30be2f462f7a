"""Storage backend settings."""

from pydantic import Field
from pydantic_settings import BaseSettings


class StoreSettings(BaseSettings):
    model_config = {"env_prefix": "STORE_"}

    # Hosted store project URL and API key; both are needed to use it.
    cloud_url: str = ""
    cloud_key: str = ""

    table: str = "games"

    # SQLite database file used when no hosted store is configured
    database_path: str = "backend/storage.db"

    # How often a live subscription polls the hosted store for changes
    poll_interval_seconds: float = Field(default=2.0, gt=0)

    request_timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def cloud_configured(self) -> bool:
        return bool(self.cloud_url.strip() and self.cloud_key.strip())
