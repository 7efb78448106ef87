from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Persistence (services file lives under data_dir)
    data_dir: str = "data"
    services_file: str = "services.yaml"

    # Registry
    max_services: int = 20

    # Scheduler
    tick_interval: float = 5.0  # seconds between due-check passes
    probe_timeout: float = 5.0  # per-attempt timeout for every probe
    ping_count: int = 3

    # Logging
    log_level: str = "INFO"

    @property
    def services_path(self) -> Path:
        return Path(self.data_dir) / self.services_file


settings = Settings()
