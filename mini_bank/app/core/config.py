from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Mini Bank API"
    log_level: str = "INFO"
    max_payload_bytes: int = 1024 * 1024

    socket_enabled: bool = False
    socket_host: str = "127.0.0.1"
    socket_port: int = 1337

    broker_enabled: bool = False
    broker_request_queue: str = "bank.BANK"
    broker_update_topic: str = "bank.BANK.LISTENER"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BANK_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
