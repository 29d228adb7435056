"""Convert a dereferenced contract document into the intermediate schema tree.

The tree mirrors the shape of the TypeScript declarations generated from it::

    {
      "/widgets/{id}": {                 # route
        "get": {                         # HTTP method
          "requestBody": ...,            # operation fields, each optional
          "headers": ...,
          "queryParams": ...,
          "pathParams": ...,
          "cookies": ...,
          "responses": {"200": ..., "404": ...}
        }
      }
    }

Every level is built by :func:`_object_to_schema`, which omits children that
transform to ``None`` from both ``properties`` and ``required``.  Absent data
therefore never shows up as an always-present empty shape, and each
transformation function accepts ``None`` and returns ``None``.

Descriptions are propagated so that every generated field documents itself:
bodies take the schema's own description, else the body's, else a generated
``"<status> response for GET /widgets/{id}"`` style fallback.

Everything here is pure: no I/O, and the input document is never mutated
(schema fragments are shared with it, and only their description is
rewritten on serialisation).
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Sequence, TypeVar

from apitypes.models import (
    Body,
    ContractDocument,
    HTTPMethod,
    ObjectNode,
    OpaqueNode,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    SchemaNode,
)

T = TypeVar("T")

_PARAMETER_GROUPS: tuple[tuple[str, ParameterLocation, str, bool], ...] = (
    # (field, location, description prefix, additionalProperties)
    ("headers", ParameterLocation.HEADER, "Headers for", True),
    ("queryParams", ParameterLocation.QUERY, "Query params for", False),
    ("pathParams", ParameterLocation.PATH, "Path params for", False),
    ("cookies", ParameterLocation.COOKIE, "Cookies for", False),
)


def transform_to_schema(document: Optional[ContractDocument]) -> Optional[ObjectNode]:
    """Convert *document* into the schema tree defining the interface to generate.

    The root object is keyed by route, in document order.  Routes whose path
    item declares no HTTP method are omitted.

    Args:
        document: The contract document to convert (already filtered and
            dereferenced).

    Returns:
        The root :class:`~apitypes.models.ObjectNode`, or ``None`` if
        *document* is ``None``.

    Example::

        root = transform_to_schema(doc)
        root.properties["/widgets/{id}"].properties["get"].required
        # ['pathParams', 'responses']
    """
    if document is None:
        return None
    return _object_to_schema(document.paths, _path_item_to_schema)


def _path_item_to_schema(
    path_item: Optional[PathItem], route: str
) -> Optional[ObjectNode]:
    if path_item is None or not path_item.operations:
        return None
    return _object_to_schema(
        path_item.operations,
        lambda operation, method: _operation_to_schema(operation, method, route),
        key=lambda method: method.value,
    )


def _operation_to_schema(
    operation: Optional[Operation], method: HTTPMethod, route: str
) -> Optional[ObjectNode]:
    """Build the node for one route + method, with up to six optional fields."""
    if operation is None:
        return None

    summary = f"{method.value.upper()} {route}"
    fields: dict[str, Optional[SchemaNode]] = {
        "requestBody": _body_to_schema(
            operation.request_body, f"Request body for {summary}"
        ),
    }
    for field, location, prefix, additional in _PARAMETER_GROUPS:
        fields[field] = _params_to_schema(
            [param for param in operation.parameters if param.location == location],
            description=f"{prefix} {summary}",
            additional_properties=additional,
        )
    fields["responses"] = _object_to_schema(
        operation.responses,
        lambda body, status: _body_to_schema(body, f"{status} response for {summary}"),
        description=f"Response(s) for {summary}",
    )

    return _object_to_schema(
        fields, lambda child, _: child, description=operation.description or summary
    )


def _body_to_schema(body: Optional[Body], description: str) -> Optional[OpaqueNode]:
    """Return the ``application/json`` schema of *body*, with a resolved description.

    The most specific description wins: the schema's own, then the body's,
    then *description*.
    """
    if body is None:
        return None
    schema = body.json_schema()
    if schema is None:
        return None

    resolved = schema.get("description")
    if resolved is None:
        resolved = body.description
    if resolved is None:
        resolved = description
    return OpaqueNode(fragment=schema, description=resolved)


def _params_to_schema(
    params: Sequence[Parameter],
    description: str,
    additional_properties: bool = False,
) -> Optional[ObjectNode]:
    """Build an object keyed by parameter name, or ``None`` when *params* is empty.

    A parameter without any schema contributes no property, but still adds
    its name to ``required`` when it is marked required.
    """
    if not params:
        return None

    properties: dict[str, SchemaNode] = {}
    required: list[str] = []
    for param in params:
        if param.required:
            required.append(param.name)
        schema = param.resolved_schema()
        if schema is not None:
            properties[param.name] = OpaqueNode(
                fragment=schema, description=schema.get("description")
            )

    return ObjectNode(
        description=description,
        properties=properties,
        required=required,
        additional_properties=additional_properties,
    )


def _object_to_schema(
    items: Optional[Mapping[T, object]],
    transform: Callable[..., Optional[SchemaNode]],
    description: Optional[str] = None,
    key: Callable[[T], str] = str,
) -> Optional[ObjectNode]:
    """Build a closed object from *items*, keeping only children that transform to a node.

    ``required`` lists exactly the keys that ended up in ``properties``.
    """
    if items is None:
        return None

    properties: dict[str, SchemaNode] = {}
    required: list[str] = []
    for item_key, value in items.items():
        child = transform(value, item_key)
        if child is not None:
            name = key(item_key)
            required.append(name)
            properties[name] = child

    return ObjectNode(
        description=description,
        properties=properties,
        required=required,
        additional_properties=False,
    )


def untyped_required_parameters(
    document: ContractDocument,
) -> list[tuple[str, HTTPMethod, ParameterLocation, str]]:
    """List required parameters that carry no schema.

    Such a parameter is named in its group's ``required`` list without a
    matching property.  Returns ``(route, method, location, name)`` tuples in
    document order.
    """
    found: list[tuple[str, HTTPMethod, ParameterLocation, str]] = []
    for route, path_item in document.paths.items():
        if path_item is None:
            continue
        for method, operation in path_item.operations.items():
            if operation is None:
                continue
            for param in operation.parameters:
                if param.required and param.resolved_schema() is None:
                    found.append((route, method, param.location, param.name))
    return found
