"""Service configuration loaded from environment variables."""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug logging and API documentation.
        json_logs: Render logs as JSON lines; false selects the console renderer.
        key: API key for authenticating requests; empty disables auth.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        config_path: YAML file describing record types and indexes.
        reindex_on_startup: Run the initial full rebuild when the app starts.
        start_in_bulk_mode: Start with write synchronization suspended.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCHSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    json_logs: bool = True
    key: str = ""
    shutdown_timeout: float = 30.0

    config_path: Path = Path("searchsync.yml")
    reindex_on_startup: bool = True
    start_in_bulk_mode: bool = False
