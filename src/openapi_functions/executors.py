"""Execution of function calls as HTTP requests."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from .client import APIClient
from .converter import REQUEST_BODY_PROPERTY
from .logging import redact_payload
from .models import FunctionDefinition

logger = logging.getLogger(__name__)

# Characters a path segment may carry unescaped besides letters, digits and "-._~".
_PATH_SEGMENT_SAFE = "$&+=:@"
# Path templates keep their separators and any escapes they already carry.
_TEMPLATE_SAFE = "/%!$&'()*+,;=:@"


class ExecutionError(Exception):
    pass


class ResponseDecodeError(ExecutionError):
    pass


def build_request_url(
    base_url: str, function: FunctionDefinition, arguments: Mapping[str, Any]
) -> str:
    path = function.path
    for name in function.path_params:
        value = quote(_stringify(arguments.get(name)), safe=_PATH_SEGMENT_SAFE)
        path = path.replace(f"{{{name}}}", value)

    # Join on the raw base path so escapes already in the base URL survive.
    base = httpx.URL(base_url)
    base_path, sep, query = base.raw_path.decode("ascii").partition("?")
    joined = base_path.rstrip("/") + "/" + quote(path.lstrip("/"), safe=_TEMPLATE_SAFE)
    url = base.copy_with(raw_path=(joined + sep + query).encode("ascii"))
    for name in function.query_params:
        url = url.copy_set_param(name, _stringify(arguments.get(name)))
    return str(url)


async def execute_function(
    client: APIClient,
    function: FunctionDefinition,
    arguments: Mapping[str, Any],
    *,
    timeout: Optional[float] = None,
) -> Any:
    logger.info("Executing function=%s args=%s", function.name, redact_payload(dict(arguments)))

    url = build_request_url(client.base_url, function, arguments)

    headers: Dict[str, str] = {}
    content: Optional[bytes] = None
    body = arguments.get(REQUEST_BODY_PROPERTY)
    if body is not None:
        content = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"

    request_options: Dict[str, Any] = {}
    if timeout is not None:
        request_options["timeout"] = timeout
    request = client.http.build_request(
        function.method, url, headers=headers, content=content, **request_options
    )

    response = await client.http.send(request)
    logger.debug("function=%s status=%s", function.name, response.status_code)

    try:
        return response.json()
    except ValueError as exc:
        raise ResponseDecodeError(
            f"failed to decode response of {function.name}: {exc}"
        ) from exc


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)
