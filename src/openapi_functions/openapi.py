"""OpenAPI document loading (JSON or YAML)."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import httpx
import yaml
from pydantic import ValidationError

from .models import OpenAPISpec


logger = logging.getLogger(__name__)

RawDocument = Union[bytes, str]


class SpecLoadError(ValueError):
    pass


def load_from_json(data: RawDocument) -> OpenAPISpec:
    try:
        raw = json.loads(data)
    except ValueError as exc:
        raise SpecLoadError(f"invalid JSON document: {exc}") from exc
    return _build_spec(raw, "JSON")


def load_from_yaml(data: RawDocument) -> OpenAPISpec:
    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise SpecLoadError(f"invalid YAML document: {exc}") from exc
    if raw is None:
        return OpenAPISpec()
    return _build_spec(raw, "YAML")


def load_spec(data: RawDocument) -> OpenAPISpec:
    """Decode a document, trying JSON first and falling back to YAML.

    When both decoders fail the YAML error is raised; call
    :func:`load_from_json` directly to see why JSON decoding failed.
    """
    try:
        return load_from_json(data)
    except SpecLoadError:
        logger.debug("Document is not JSON, retrying as YAML")
    return load_from_yaml(data)


def load_spec_file(path: Union[str, Path]) -> OpenAPISpec:
    return load_spec(Path(path).read_bytes())


def _build_spec(raw: Any, fmt: str) -> OpenAPISpec:
    if not isinstance(raw, dict):
        raise SpecLoadError(f"{fmt} document must be a mapping, got {type(raw).__name__}")
    try:
        return OpenAPISpec.model_validate(raw)
    except ValidationError as exc:
        raise SpecLoadError(f"malformed {fmt} document: {exc}") from exc


class OpenAPILoader:
    def __init__(
        self, cache_seconds: int = 3600, timeout_seconds: float = 30, **client_options: Any
    ) -> None:
        self.cache_seconds = cache_seconds
        self.timeout_seconds = timeout_seconds
        self.client_options = client_options
        self._cache: Dict[str, Tuple[float, OpenAPISpec]] = {}

    async def load(self, url: str) -> Optional[OpenAPISpec]:
        cached = self._cache.get(url)
        if cached and time.time() - cached[0] < self.cache_seconds:
            return cached[1]

        async with httpx.AsyncClient(timeout=self.timeout_seconds, **self.client_options) as client:
            response = await client.get(url)
            if response.status_code != 200:
                logger.warning("Failed to fetch OpenAPI spec: %s (%s)", url, response.status_code)
                return None
            spec = load_spec(response.content)

        self._cache[url] = (time.time(), spec)
        return spec
