"""Application settings with environment variable support."""

from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Per-installation state lives outside the source tree
_DATA_DIR = Path.home() / ".reader-sync"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RS_",  # RS_BASE_URL, RS_DATABASE_URL, etc.
    )

    # Remote service
    base_url: str = "https://theoldreader.com"
    client_name: str = "YATORClientV1"
    sign_up_url: str = "https://theoldreader.com/users/sign_up"
    forgot_password_url: str = "https://theoldreader.com/users/password/new"

    # Requests
    request_timeout_seconds: int = 30
    request_max_attempts: int = 1  # GET retries on transport failure only

    # Sync
    article_id_limit: int = 100
    fetch_batch_size: int = 5
    only_unread: bool = True

    # Local state
    data_dir: Path = _DATA_DIR
    database_url: str = ""

    @model_validator(mode="after")
    def _default_database_url(self) -> "Settings":
        if not self.database_url:
            self.database_url = f"sqlite:///{self.data_dir / 'reader_sync.db'}"
        return self


settings = Settings()
