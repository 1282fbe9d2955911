"""Same-document parameter reference resolution."""

from __future__ import annotations

import logging

from .models import OpenAPISpec, Parameter


logger = logging.getLogger(__name__)

_PARAMETER_REF_PREFIX = ("#", "components", "parameters")


def resolve_parameter_ref(parameter: Parameter, spec: OpenAPISpec) -> Parameter:
    """Return the component parameter a ``$ref`` points at.

    Only ``#/components/parameters/<name>`` is understood. Anything that
    cannot be resolved comes back unchanged, so callers see an inert stub
    with no name or location.
    """
    if not parameter.ref:
        return parameter

    table = spec.components.parameters if spec.components else None
    if table:
        parts = parameter.ref.split("/")
        if len(parts) == 4 and tuple(parts[:3]) == _PARAMETER_REF_PREFIX:
            referenced = table.get(parts[3])
            if referenced is not None:
                return referenced

    logger.warning("Unresolved parameter reference: %s", parameter.ref)
    return parameter
