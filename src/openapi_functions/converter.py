"""Conversion of OpenAPI operations into model-callable function definitions."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .models import FunctionDefinition, OpenAPISpec, Operation, Parameter, PathItem, Schema
from .refs import resolve_parameter_ref


logger = logging.getLogger(__name__)

REQUEST_BODY_PROPERTY = "requestBody"
_CALLABLE_LOCATIONS = ("path", "query")
_PREFERRED_MEDIA_TYPE = "application/json"


def generate_function_name(method: str, path: str) -> str:
    name = path.replace("/", "_").replace("{", "").replace("}", "")
    return (method + name).lower()


def convert_schema_to_property(schema: Optional[Schema]) -> Schema:
    if schema is None:
        return Schema(type="string")

    properties = None
    required = None
    if schema.properties is not None:
        properties = {
            name: convert_schema_to_property(sub_schema)
            for name, sub_schema in schema.properties.items()
        }
        if schema.required:
            required = list(schema.required)

    items = convert_schema_to_property(schema.items) if schema.items is not None else None

    return Schema(
        type=schema.type,
        description=schema.description,
        properties=properties,
        required=required,
        enum=list(schema.enum) if schema.enum is not None else None,
        items=items,
    )


def convert_openapi_to_functions(spec: OpenAPISpec) -> Dict[str, FunctionDefinition]:
    functions: Dict[str, FunctionDefinition] = {}

    for path, path_item in spec.paths.items():
        if path_item is None:
            continue
        for method, operation in path_item.operations():
            function = _convert_operation(spec, path, method, path_item, operation)
            existing = functions.get(function.name)
            if existing is not None:
                logger.warning(
                    "Function name collision: %s (%s %s replaces %s %s)",
                    function.name,
                    method,
                    path,
                    existing.method,
                    existing.path,
                )
            functions[function.name] = function

    logger.debug("Converted %s operations into functions", len(functions))
    return functions


def _convert_operation(
    spec: OpenAPISpec, path: str, method: str, path_item: PathItem, operation: Operation
) -> FunctionDefinition:
    properties: Dict[str, Schema] = {}
    required: List[str] = []
    path_params: List[str] = []
    query_params: List[str] = []

    for parameter in _merge_parameters(spec, path_item, operation):
        if parameter.location not in _CALLABLE_LOCATIONS:
            continue

        prop = convert_schema_to_property(parameter.schema_)
        if parameter.description:
            prop = prop.model_copy(update={"description": parameter.description})
        properties[parameter.name] = prop

        if parameter.required:
            required.append(parameter.name)
        if parameter.location == "path":
            path_params.append(parameter.name)
        else:
            query_params.append(parameter.name)

    body_schema = _request_body_schema(operation)
    if body_schema is not None:
        properties[REQUEST_BODY_PROPERTY] = convert_schema_to_property(body_schema)

    return FunctionDefinition(
        name=generate_function_name(method, path),
        description=operation.description_text(),
        parameters=Schema(type="object", properties=properties, required=required),
        method=method,
        path=path,
        path_params=tuple(path_params),
        query_params=tuple(query_params),
    )


def _merge_parameters(
    spec: OpenAPISpec, path_item: PathItem, operation: Operation
) -> List[Parameter]:
    # Operation-level parameters override path-level ones with the same name and location.
    merged: Dict[Tuple[str, str], Parameter] = {}
    for parameter in [*path_item.parameters, *operation.parameters]:
        resolved = resolve_parameter_ref(parameter, spec)
        merged[(resolved.name, resolved.location)] = resolved
    return list(merged.values())


def _request_body_schema(operation: Operation) -> Optional[Schema]:
    if operation.request_body is None:
        return None
    content = operation.request_body.content
    preferred = content.get(_PREFERRED_MEDIA_TYPE)
    if preferred is not None and preferred.schema_ is not None:
        return preferred.schema_
    for media_type in content.values():
        if media_type is not None and media_type.schema_ is not None:
            return media_type.schema_
    return None
