"""Registry of functions generated from an OpenAPI document."""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from .client import APIClient
from .converter import convert_openapi_to_functions
from .executors import ExecutionError, execute_function
from .models import FunctionDefinition, OpenAPISpec
from .openapi import RawDocument, load_spec


logger = logging.getLogger(__name__)

Arguments = Union[Mapping[str, Any], str, bytes]


class UnknownFunctionError(ExecutionError):
    pass


class FunctionRegistry:
    """Owns the function definitions converted from one document.

    The registry is built once and only read afterwards, so a single
    instance can be shared between concurrent callers.
    """

    def __init__(self, functions: Mapping[str, FunctionDefinition]) -> None:
        self._functions: Dict[str, FunctionDefinition] = dict(functions)
        self.functions: Mapping[str, FunctionDefinition] = MappingProxyType(self._functions)

    @classmethod
    def from_spec(cls, spec: OpenAPISpec) -> "FunctionRegistry":
        registry = cls(convert_openapi_to_functions(spec))
        logger.info("Registered %s functions from %r", len(registry), spec.info.title)
        return registry

    @classmethod
    def from_document(cls, data: RawDocument) -> "FunctionRegistry":
        return cls.from_spec(load_spec(data))

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def names(self) -> List[str]:
        return list(self._functions)

    def get(self, name: str) -> Optional[FunctionDefinition]:
        return self._functions.get(name)

    def tools(self) -> List[Dict[str, Any]]:
        return [function.to_tool() for function in self._functions.values()]

    async def call(
        self,
        client: APIClient,
        name: str,
        arguments: Arguments,
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        function = self._functions.get(name)
        if function is None:
            raise UnknownFunctionError(f"unknown function: {name}")
        return await execute_function(
            client, function, _decode_arguments(arguments), timeout=timeout
        )


def _decode_arguments(arguments: Arguments) -> Mapping[str, Any]:
    if not isinstance(arguments, (str, bytes)):
        return arguments
    if not arguments.strip():
        return {}
    try:
        decoded = json.loads(arguments)
    except ValueError as exc:
        raise ExecutionError(f"invalid function arguments: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ExecutionError("function arguments must be a JSON object")
    return decoded
