"""Configuration for The Room studio client."""

from __future__ import annotations

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    supabase_url: str = "https://placeholder.supabase.co"
    supabase_anon_key: SecretStr = SecretStr("")
    local_timezone: str = "UTC"
    session_check_timeout_seconds: float = 5.0
    request_timeout_seconds: float = 30.0
    booking_mode: Literal["rpc", "sequential"] = "rpc"
    book_class_function: str = "book_class"
    log_level: str = "INFO"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="THEROOM_", env_file=".env")

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    def anon_key(self) -> str:
        return self.supabase_anon_key.get_secret_value().strip()
