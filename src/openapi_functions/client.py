"""HTTP client for the API described by an OpenAPI document."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from .auth import AuthConfig, CredentialAuth, build_cookie_jar

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)


class APIClient:
    def __init__(
        self,
        base_url: str,
        auth_config: Optional[AuthConfig] = None,
        *,
        timeout_seconds: float = 30,
        verify_ssl: bool = True,
        **client_options: Any,
    ) -> None:
        self.base_url = str(httpx.URL(base_url))
        self.auth_config = auth_config
        self.http = httpx.AsyncClient(
            auth=CredentialAuth(auth_config),
            cookies=build_cookie_jar(auth_config),
            timeout=timeout_seconds,
            verify=verify_ssl,
            **client_options,
        )

    @classmethod
    def from_settings(cls, settings: "Settings", **client_options: Any) -> "APIClient":
        return cls(
            settings.api_base_url,
            settings.auth_config(),
            timeout_seconds=settings.api_timeout_seconds,
            verify_ssl=settings.api_verify_ssl,
            **client_options,
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
