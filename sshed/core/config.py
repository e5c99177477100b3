from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional
from pathlib import Path


def default_ssh_config_path() -> str:
    return str(Path.home() / ".ssh" / "config")


class Settings(BaseSettings):
    APP_NAME: str = "sshed"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite:///./sshed.db"
    # Seconds a single store call may wait on a locked database before failing
    STORE_TIMEOUT_SECONDS: float = 10.0

    # Optional TOML file with a [general] table; re-read when it changes
    CONFIG_FILE: Optional[Path] = None
    SSH_CONFIG_PATH: str = default_ssh_config_path()

    # File watching
    WATCH_ENABLED: bool = True
    WATCH_DEBOUNCE_SECONDS: float = 0.5

    # Periodic pass as a safety net for missed events (0 disables it)
    SYNC_INTERVAL_MINUTES: int = 0
    SYNC_ON_STARTUP: bool = True

    SEARCH_LIMIT: Optional[int] = None

    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SSHED_", extra="ignore")


@lru_cache()
def get_settings():
    return Settings()
