"""Configuration for the OpenAPI function bridge."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth import AuthConfig, AuthType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OPENAPI_FUNCTIONS_", case_sensitive=False)

    api_base_url: str = Field(default="http://localhost:8000")
    api_timeout_seconds: float = Field(default=30)
    api_verify_ssl: bool = Field(default=True)

    auth_type: str = Field(default=AuthType.NONE.value)
    auth_username: str = Field(default="")
    auth_password: str = Field(default="")
    auth_api_key_name: str = Field(default="")
    auth_api_key_value: str = Field(default="")
    auth_token: str = Field(default="")
    auth_cookies: Optional[str] = Field(default=None)

    spec_cache_seconds: int = Field(default=3600)

    log_level: str = Field(default="INFO")

    def cookies(self) -> Tuple[Tuple[str, str], ...]:
        if not self.auth_cookies:
            return ()
        pairs = []
        for item in self.auth_cookies.split(","):
            name, sep, value = item.strip().partition("=")
            if sep and name.strip():
                pairs.append((name.strip(), value.strip()))
        return tuple(pairs)

    def auth_config(self) -> AuthConfig:
        return AuthConfig(
            type=self.auth_type.strip().lower(),
            username=self.auth_username,
            password=self.auth_password,
            api_key_name=self.auth_api_key_name,
            api_key_value=self.auth_api_key_value,
            token=self.auth_token,
            cookies=self.cookies(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
