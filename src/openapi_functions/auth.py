"""Credential injection for outgoing API requests."""

from __future__ import annotations

import asyncio
import base64
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, AsyncGenerator, Dict, Generator, Optional, Protocol, Tuple, Union

import httpx


logger = logging.getLogger(__name__)

# Tokens this close to expiry are refreshed ahead of use.
EXPIRY_LEEWAY_SECONDS = 10


class AuthError(Exception):
    pass


class UnsupportedAuthTypeError(AuthError):
    pass


class TokenRefreshError(AuthError):
    pass


class AuthType(str, Enum):
    NONE = "none"
    BASIC = "basic"
    API_KEY_HEADER = "apikey-header"
    API_KEY_COOKIE = "apikey-cookie"
    BEARER = "bearer"
    OAUTH2 = "oauth2"
    COOKIE = "cookie"


COOKIE_AUTH_TYPES = frozenset({AuthType.API_KEY_COOKIE, AuthType.COOKIE})


@dataclass(frozen=True)
class OAuth2Token:
    access_token: str
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None

    def valid(self) -> bool:
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        return time.time() < self.expires_at - EXPIRY_LEEWAY_SECONDS

    def authorization(self) -> str:
        token_type = self.token_type
        if not token_type or token_type.lower() == "bearer":
            token_type = "Bearer"
        elif token_type.lower() == "mac":
            token_type = "MAC"
        elif token_type.lower() == "basic":
            token_type = "Basic"
        return f"{token_type} {self.access_token}"


class TokenSource(Protocol):
    def token(self) -> OAuth2Token: ...


class StaticTokenSource:
    def __init__(self, token: OAuth2Token) -> None:
        self._token = token

    def token(self) -> OAuth2Token:
        return self._token


class RefreshTokenSource:
    """Hands out an access token, using the refresh-token grant when it expires."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: Optional[str] = None,
        token: Optional[OAuth2Token] = None,
        refresh_token: Optional[str] = None,
        timeout_seconds: float = 20,
        **client_options: Any,
    ) -> None:
        if token is None and not refresh_token:
            raise ValueError("RefreshTokenSource needs a token or a refresh_token")
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout_seconds = timeout_seconds
        self.client_options = client_options
        self._token = token or OAuth2Token(access_token="", refresh_token=refresh_token)
        self._lock = threading.Lock()

    def token(self) -> OAuth2Token:
        with self._lock:
            if not self._token.valid():
                self._token = self._refresh(self._token)
            return self._token

    def _refresh(self, current: OAuth2Token) -> OAuth2Token:
        if not current.refresh_token:
            raise TokenRefreshError("OAuth2 token expired and no refresh token is available")

        data = {"grant_type": "refresh_token", "refresh_token": current.refresh_token}
        auth: Optional[Tuple[str, str]] = None
        if self.client_secret:
            auth = (self.client_id, self.client_secret)
        else:
            data["client_id"] = self.client_id

        logger.info("Refreshing OAuth2 token: %s", self.token_url)
        with httpx.Client(timeout=self.timeout_seconds, **self.client_options) as client:
            response = client.post(self.token_url, data=data, auth=auth)
        if response.status_code != 200:
            raise TokenRefreshError(
                f"token endpoint returned {response.status_code}: {response.text}"
            )

        try:
            payload: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise TokenRefreshError(f"token endpoint returned invalid JSON: {exc}") from exc
        access_token = payload.get("access_token")
        if not access_token:
            raise TokenRefreshError("token endpoint response has no access_token")

        expires_at = None
        if payload.get("expires_in"):
            expires_at = time.time() + float(payload["expires_in"])
        return OAuth2Token(
            access_token=access_token,
            token_type=payload.get("token_type") or "Bearer",
            refresh_token=payload.get("refresh_token") or current.refresh_token,
            expires_at=expires_at,
        )


@dataclass(frozen=True)
class AuthConfig:
    type: Union[AuthType, str] = AuthType.NONE

    username: str = ""
    password: str = ""

    # Header or cookie name for API key auth
    api_key_name: str = ""
    api_key_value: str = ""

    # Bearer, or static OAuth2 fallback
    token: str = ""
    token_source: Optional[TokenSource] = None

    cookies: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


def _auth_type(config: Optional[AuthConfig]) -> AuthType:
    if config is None or not config.type:
        return AuthType.NONE
    try:
        return AuthType(config.type)
    except ValueError:
        raise UnsupportedAuthTypeError(f"unsupported auth type: {config.type}") from None


def build_cookie_jar(config: Optional[AuthConfig]) -> CookieJar:
    """Cookie-based auth keeps server-set cookies; every other type drops them."""
    try:
        if _auth_type(config) in COOKIE_AUTH_TYPES:
            return CookieJar()
    except UnsupportedAuthTypeError:
        pass
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class CredentialAuth(httpx.Auth):
    """Decorates a copy of every outgoing request with the configured credentials."""

    def __init__(self, config: Optional[AuthConfig]) -> None:
        self.config = config or AuthConfig()

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        auth_type = _auth_type(self.config)
        token = self._oauth2_token() if auth_type == AuthType.OAUTH2 else None
        yield self._decorate(request, auth_type, token)

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        auth_type = _auth_type(self.config)
        token = None
        if auth_type == AuthType.OAUTH2:
            # Token sources may block on a refresh round trip.
            token = await asyncio.to_thread(self._oauth2_token)
        yield self._decorate(request, auth_type, token)

    def _oauth2_token(self) -> OAuth2Token:
        config = self.config
        if config.token_source is not None:
            try:
                return config.token_source.token()
            except Exception as exc:
                raise AuthError(f"failed to get OAuth2 token: {exc}") from exc
        if config.token:
            return OAuth2Token(access_token=config.token)
        raise AuthError("OAuth2 requires either token or token_source")

    def _decorate(
        self, request: httpx.Request, auth_type: AuthType, token: Optional[OAuth2Token]
    ) -> httpx.Request:
        if auth_type == AuthType.NONE:
            return request

        config = self.config
        request = _clone(request)

        if auth_type == AuthType.BASIC:
            credentials = f"{config.username}:{config.password}".encode("utf-8")
            encoded = base64.b64encode(credentials).decode("ascii")
            request.headers["Authorization"] = f"Basic {encoded}"
        elif auth_type == AuthType.API_KEY_HEADER:
            if config.api_key_name and config.api_key_value:
                request.headers[config.api_key_name] = config.api_key_value
        elif auth_type == AuthType.API_KEY_COOKIE:
            if config.api_key_name and config.api_key_value:
                _add_cookie(request, config.api_key_name, config.api_key_value)
        elif auth_type == AuthType.BEARER:
            if config.token:
                request.headers["Authorization"] = f"Bearer {config.token}"
        elif auth_type == AuthType.OAUTH2 and token is not None:
            request.headers["Authorization"] = token.authorization()
        elif auth_type == AuthType.COOKIE:
            for name, value in config.cookies:
                _add_cookie(request, name, value)

        return request


def _clone(request: httpx.Request) -> httpx.Request:
    return httpx.Request(
        request.method,
        request.url,
        headers=request.headers.copy(),
        stream=request.stream,
        extensions=dict(request.extensions),
    )


def _add_cookie(request: httpx.Request, name: str, value: str) -> None:
    pair = f"{name}={value}"
    existing = request.headers.get("Cookie")
    request.headers["Cookie"] = f"{existing}; {pair}" if existing else pair
