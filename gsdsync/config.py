from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    base_url: str = "http://localhost:8080/api"
    push_url: str = "ws://localhost:8080/ws"
    request_timeout: float = 10.0
    http_retries: int = 0
    reconnect_delay: float = 3.0
    reconnect_backoff: float = 1.0
    reconnect_max_delay: float = 60.0
    reconnect_max_attempts: int | None = None
    position_epsilon: float = 1e-9
    log_level: str = "INFO"
    log_file: Path | None = None

    model_config = {"env_prefix": "GSD_", "env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
