"""Canonical Pydantic models shared across all apitypes modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Contract models** -- the subset of an OpenAPI 3.x document that the
transformer reads, validated from the dereferenced raw dict:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`MediaType`,
    :class:`Body`, :class:`Parameter`, :class:`Operation`, :class:`PathItem`,
    :class:`Info`, and :class:`ContractDocument`.

**Schema nodes** -- the intermediate JSON Schema tree produced by the
transformer: :class:`ObjectNode` and :class:`OpaqueNode` (see
:data:`SchemaNode`).

**Path filters** -- :class:`LiteralRule`, :class:`PatternRule`,
:class:`MatchRules`, and :class:`Predicate` (see :data:`PathFilter`).

**Configuration models** -- :class:`CompilerOptions` and
:class:`GenerateConfig`.

Contract models and schema nodes are frozen so that a filtered document can
share path items with its source, and unknown OpenAPI keys are preserved in
``model_extra`` (``extra="allow"``).
"""

from __future__ import annotations

import enum
import re
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


JSON_MEDIA_TYPE = "application/json"
"""The only media type consulted for bodies and content-keyed parameters."""


# --- Contract models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class MediaType(BaseModel):
    """An OpenAPI *Media Type Object*; only its ``schema`` is read."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")


class Body(BaseModel):
    """Shared shape of request bodies and responses.

    Only the ``application/json`` entry of ``content`` is ever consulted;
    other media types are kept but ignored.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    description: Optional[str] = None
    content: Optional[dict[str, Optional[MediaType]]] = None

    def json_schema(self) -> Optional[dict[str, Any]]:
        """Return the ``application/json`` schema, or ``None`` when absent."""
        return _json_content_schema(self.content)


class Parameter(BaseModel):
    """An OpenAPI *Parameter Object*.

    The schema is either inline (``schema``) or content-keyed (``content``),
    in which case only the JSON media type is consulted.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: str
    location: ParameterLocation = Field(alias="in")
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    content: Optional[dict[str, Optional[MediaType]]] = None

    def resolved_schema(self) -> Optional[dict[str, Any]]:
        """Return the inline schema, falling back to the JSON content schema."""
        if self.schema_ is not None:
            return self.schema_
        return _json_content_schema(self.content)


class Operation(BaseModel):
    """A single OpenAPI *Operation Object* (one HTTP method on one route)."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    description: Optional[str] = None
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[Body] = Field(default=None, alias="requestBody")
    responses: Optional[dict[str, Optional[Body]]] = None

    @field_validator("responses", mode="before")
    @classmethod
    def _stringify_status_codes(cls, value: Any) -> Any:
        # YAML documents often carry unquoted status codes (``200:``).
        if isinstance(value, dict):
            return {str(key): body for key, body in value.items()}
        return value


class PathItem(BaseModel):
    """The *Methods Record* for one route.

    Keys of the source path-item object that name an HTTP method are
    collected, in document order, into :attr:`operations`.  Everything else
    (``summary``, path-level ``parameters``, ``servers``, ``x-*``) is kept in
    ``model_extra`` and never treated as an operation.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    operations: dict[HTTPMethod, Optional[Operation]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_operations(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "operations" in data:
            return data
        operations = {key: value for key, value in data.items() if key in _HTTP_METHODS}
        rest = {key: value for key, value in data.items() if key not in _HTTP_METHODS}
        return {**rest, "operations": operations}


class Info(BaseModel):
    """API metadata from the document's *Info Object*."""

    model_config = ConfigDict(frozen=True, extra="allow")

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None


class ContractDocument(BaseModel):
    """A dereferenced OpenAPI 3.x contract document.

    Produced by :func:`~apitypes.generator.create_generator` after the raw
    dict has passed the version gate and ``$ref`` resolution.  ``paths``
    preserves document order.

    See Also:
        :func:`~apitypes.transform.filters.filter_paths`: Narrow ``paths``.
        :func:`~apitypes.transform.schema.transform_to_schema`: Convert to a
        schema tree.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    openapi: str
    info: Info = Field(default_factory=Info)
    paths: dict[str, Optional[PathItem]] = Field(default_factory=dict)
    components: Optional[dict[str, Any]] = None


def _json_content_schema(
    content: Optional[dict[str, Optional[MediaType]]],
) -> Optional[dict[str, Any]]:
    if not content:
        return None
    media = content.get(JSON_MEDIA_TYPE)
    if media is None:
        return None
    return media.schema_


# --- Schema nodes ---


class ObjectNode(BaseModel):
    """A synthesised object schema (routes, methods, operations, field groups).

    ``required`` lists field names in insertion order.  For generic objects it
    mirrors exactly the populated :attr:`properties`; parameter groups may
    also list required parameters that carry no schema.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["object"] = "object"
    description: Optional[str] = None
    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: bool = False

    def to_json_schema(self) -> dict[str, Any]:
        """Serialise to a plain JSON Schema dict, omitting an absent description."""
        schema: dict[str, Any] = {"type": "object"}
        if self.description is not None:
            schema["description"] = self.description
        schema["properties"] = {
            key: child.to_json_schema() for key, child in self.properties.items()
        }
        schema["required"] = list(self.required)
        schema["additionalProperties"] = self.additional_properties
        return schema


class OpaqueNode(BaseModel):
    """A schema fragment copied verbatim from the contract document.

    Only the description is rewritten on serialisation; the fragment itself
    is shared with the source document and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["opaque"] = "opaque"
    fragment: dict[str, Any]
    description: Optional[str] = None

    def to_json_schema(self) -> dict[str, Any]:
        """Return a shallow copy of the fragment with the resolved description."""
        schema = dict(self.fragment)
        if self.description is not None:
            schema["description"] = self.description
        else:
            schema.pop("description", None)
        return schema


SchemaNode = Annotated[Union[ObjectNode, OpaqueNode], Field(discriminator="kind")]
"""A node of the intermediate schema tree."""

ObjectNode.model_rebuild()


# --- Path filters ---


class LiteralRule(BaseModel):
    """Keep a route whose key equals :attr:`route` exactly (no template normalisation)."""

    model_config = ConfigDict(frozen=True)

    route: str

    def matches(self, route: str) -> bool:
        return route == self.route


class PatternRule(BaseModel):
    """Keep routes in which the regular expression :attr:`pattern` finds a match."""

    model_config = ConfigDict(frozen=True)

    pattern: re.Pattern[str]

    def matches(self, route: str) -> bool:
        return self.pattern.search(route) is not None


MatchRule = Union[LiteralRule, PatternRule]


class MatchRules(BaseModel):
    """An ordered list of match rules; a route is kept if any rule matches.

    Example::

        MatchRules.of("/widgets/{id}", re.compile(r"^/admin/"))
    """

    model_config = ConfigDict(frozen=True)

    rules: tuple[MatchRule, ...] = ()

    @classmethod
    def of(cls, *rules: str | re.Pattern[str]) -> MatchRules:
        """Build from plain route strings (literal) and compiled patterns."""
        built: list[MatchRule] = []
        for rule in rules:
            if isinstance(rule, re.Pattern):
                built.append(PatternRule(pattern=rule))
            else:
                built.append(LiteralRule(route=rule))
        return cls(rules=tuple(built))

    def is_empty(self) -> bool:
        return not self.rules

    def keeps(self, route: str, path_item: Optional[PathItem]) -> bool:
        return any(rule.matches(route) for rule in self.rules)


class Predicate(BaseModel):
    """Keep routes for which ``fn(route, path_item)`` returns ``True``."""

    model_config = ConfigDict(frozen=True)

    fn: Callable[[str, Optional[PathItem]], bool]

    def is_empty(self) -> bool:
        return False

    def keeps(self, route: str, path_item: Optional[PathItem]) -> bool:
        return bool(self.fn(route, path_item))


PathFilter = Union[MatchRules, Predicate]
"""Route filter accepted by :func:`~apitypes.transform.filters.filter_paths`."""


# --- Configuration models ---


class CompilerOptions(BaseModel):
    """Options for the external ``json2ts`` compiler.

    ``ignore_min_and_max_items`` makes the compiler emit unbounded array types
    rather than fixed-length tuples when ``minItems``/``maxItems`` are set,
    which keeps the generated output small.
    """

    command: list[str] = Field(
        default_factory=lambda: ["json2ts"],
        description="Executable and leading arguments of the compiler",
    )
    ignore_min_and_max_items: bool = Field(
        default=True, description="Generate unbounded arrays instead of tuples"
    )
    banner_comment: Optional[str] = Field(
        default=None, description="Banner comment override (compiler default if unset)"
    )
    timeout: float = Field(default=120.0, description="Compiler timeout in seconds")


class GenerateConfig(BaseModel):
    """Effective options for one generator run.

    Built by :func:`~apitypes.config.resolve_config` from CLI flags,
    environment variables, and the project-local ``apitypes.json``.
    """

    contracts_file: Optional[str] = Field(
        default=None, description="Path of the contract document ('-' for stdin)"
    )
    contracts_url: Optional[str] = Field(
        default=None, description="URL of the contract document"
    )
    output: Optional[str] = Field(
        default=None, description="Declarations file to write (stdout when unset)"
    )
    paths_file: Optional[str] = Field(
        default=None, description="JSON file holding an array of routes to keep"
    )
    paths: list[str] = Field(default_factory=list, description="Routes to keep")
    path_patterns: list[str] = Field(
        default_factory=list, description="Regular expressions of routes to keep"
    )
    schema_output: Optional[str] = Field(
        default=None, description="Also write the intermediate JSON schema here"
    )
    schema_indent: int = Field(default=2, description="Indent of the JSON schema dump")
    compiler: CompilerOptions = Field(default_factory=CompilerOptions)
