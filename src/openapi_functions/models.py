"""OpenAPI document models and generated function definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


HTTP_METHODS: Tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH")


class _DocumentModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Empty YAML keys decode to None; they fall back to the field default.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Schema(_DocumentModel):
    type: str = ""
    description: Optional[str] = None
    properties: Optional[Dict[str, Optional[Schema]]] = None
    required: Optional[List[str]] = None
    format: Optional[str] = None
    enum: Optional[List[Any]] = None
    items: Optional[Schema] = None

    def to_json_schema(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Parameter(_DocumentModel):
    name: str = ""
    location: str = Field(default="", alias="in")
    description: str = ""
    required: bool = False
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    ref: str = Field(default="", alias="$ref")


class MediaType(_DocumentModel):
    schema_: Optional[Schema] = Field(default=None, alias="schema")


class RequestBody(_DocumentModel):
    content: Dict[str, Optional[MediaType]] = Field(default_factory=dict)


class Operation(_DocumentModel):
    summary: str = ""
    description: str = ""
    parameters: List[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = Field(default=None, alias="requestBody")

    def description_text(self) -> str:
        """Summary followed by the long description on its own line."""
        if self.description:
            return f"{self.summary}\n{self.description}"
        return self.summary


class PathItem(_DocumentModel):
    get: Optional[Operation] = None
    post: Optional[Operation] = None
    put: Optional[Operation] = None
    delete: Optional[Operation] = None
    patch: Optional[Operation] = None
    parameters: List[Parameter] = Field(default_factory=list)

    def operations(self) -> Iterator[Tuple[str, Operation]]:
        for method in HTTP_METHODS:
            operation = getattr(self, method.lower())
            if operation is not None:
                yield method, operation


class Info(_DocumentModel):
    title: str = ""
    description: str = ""
    version: str = ""


class Components(_DocumentModel):
    parameters: Optional[Dict[str, Parameter]] = None


class OpenAPISpec(_DocumentModel):
    openapi: str = ""
    info: Info = Field(default_factory=Info)
    paths: Dict[str, Optional[PathItem]] = Field(default_factory=dict)
    components: Optional[Components] = None


@dataclass(frozen=True)
class FunctionDefinition:
    name: str
    description: str
    parameters: Schema
    method: str
    path: str
    path_params: Tuple[str, ...] = field(default_factory=tuple)
    query_params: Tuple[str, ...] = field(default_factory=tuple)

    def to_tool(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters.to_json_schema(),
        }
