"""Type generator facade -- the library entry point of apitypes.

Ties the pipeline together::

    raw dict --validate_openapi_version--> --dereference--> ContractDocument
        --include_paths--> --compile--> CompiledTypeGenerator --write_to-->

Generators are immutable: :meth:`TypeGenerator.include_paths` returns a new
generator and :meth:`TypeGenerator.compile` returns a
:class:`CompiledTypeGenerator`, so one loaded contract can feed several
differently-filtered outputs.

Example::

    document = await load_contract("openapi.yaml")
    generator = await create_generator(document, base_uri="openapi.yaml")
    compiled = await generator.include_paths(MatchRules.of("/widgets/{id}")).compile()
    await compiled.write_to("src/api-types.ts")
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError

from apitypes.compiler import compile_to_declarations
from apitypes.exceptions import CompilerError, ContractParseError
from apitypes.models import CompilerOptions, ContractDocument, PathFilter
from apitypes.output import OutputTarget, debug, warning, write_text_to
from apitypes.parser import dereference, validate_openapi_version
from apitypes.transform import filter_paths, transform_to_schema, untyped_required_parameters

ROOT_NAME = "Paths"
"""Name of the root interface, referenced by the helper types."""

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``apitypes/templates/``)."""

HELPERS_TEMPLATE = "contract-helpers.ts.j2"


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the TypeScript templates.

    Autoescape is disabled for ``.ts.j2`` files, which produce TypeScript,
    not HTML.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("ts.j2",)),
        keep_trailing_newline=True,
    )


def render_helpers(root_name: str = ROOT_NAME) -> str:
    """Render the lookup helper types (``Get<"/route", "200">`` and friends).

    The helpers index into the interface named *root_name*.
    """
    template = _create_jinja_env().get_template(HELPERS_TEMPLATE)
    return template.render(root_name=root_name)


def append_helpers(text: Optional[str], root_name: str = ROOT_NAME) -> Optional[str]:
    """Append the helper type declarations to compiled *text*.

    Returns ``None`` when *text* is ``None`` or empty, so that a missing
    compiler result is never dressed up as a helpers-only file.
    """
    if not text:
        return None
    return text + "\n\n" + render_helpers(root_name)


async def create_generator(
    document: dict[str, Any],
    base_uri: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> TypeGenerator:
    """Build a :class:`TypeGenerator` from a raw contract dict.

    Args:
        document: The parsed contract document.
        base_uri: Location of *document*, used to resolve relative external
            ``$ref`` values. Relative refs resolve against the working
            directory when ``None``.
        client: Optional HTTP client for remote ``$ref`` targets.

    Raises:
        VersionMismatchError: If the document is not OpenAPI ``3.x.x``.
        ContractLoadError: If an external ``$ref`` target cannot be loaded.
        ContractParseError: If a ``$ref`` does not resolve or the
            dereferenced document has an invalid shape.
    """
    version = validate_openapi_version(document)
    flat = await dereference(document, base_uri=base_uri, client=client)
    try:
        contracts = ContractDocument.model_validate(flat)
    except ValidationError as exc:
        raise ContractParseError(f"Invalid contract document: {exc}") from exc

    debug(
        f"Loaded {contracts.info.title} {contracts.info.version} "
        f"(OpenAPI {version}, {len(contracts.paths)} paths)"
    )
    return TypeGenerator(contracts)


class TypeGenerator:
    """An immutable handle on a dereferenced contract document."""

    def __init__(self, contracts: ContractDocument) -> None:
        self._contracts = contracts

    @property
    def contracts(self) -> ContractDocument:
        return self._contracts

    def include_paths(self, keep: Optional[PathFilter]) -> TypeGenerator:
        """Return a generator restricted to the routes *keep* selects.

        ``None`` or an empty :class:`~apitypes.models.MatchRules` returns
        ``self`` unchanged.
        """
        if keep is None or keep.is_empty():
            return self
        return TypeGenerator(filter_paths(self._contracts, keep))

    async def compile(
        self, options: Optional[CompilerOptions] = None
    ) -> CompiledTypeGenerator:
        """Compile the contract into TypeScript declarations plus helper types.

        Raises:
            CompilerError: If the compiler fails or produces no output.
        """
        for route, method, location, name in untyped_required_parameters(self._contracts):
            warning(
                f"Required {location.value} parameter {name!r} of "
                f"{method.value.upper()} {route} has no schema; it is typed as optional"
            )

        root = transform_to_schema(self._contracts)
        json_schema = root.to_json_schema()
        declarations = await compile_to_declarations(json_schema, ROOT_NAME, options)

        compiled = append_helpers(declarations)
        if compiled is None:
            raise CompilerError("Compiler produced no output")
        return CompiledTypeGenerator(self._contracts, json_schema, compiled)


class CompiledTypeGenerator(TypeGenerator):
    """A generator holding its intermediate schema and compiled declarations."""

    def __init__(
        self,
        contracts: ContractDocument,
        json_schema: dict[str, Any],
        compiled: str,
    ) -> None:
        super().__init__(contracts)
        self._json_schema = json_schema
        self._compiled = compiled

    @property
    def json_schema(self) -> dict[str, Any]:
        return self._json_schema

    @property
    def compiled(self) -> str:
        return self._compiled

    async def compile(
        self, options: Optional[CompilerOptions] = None
    ) -> CompiledTypeGenerator:
        # already compiled
        return self

    async def write_to(self, output: OutputTarget) -> None:
        """Write the compiled declarations to a path or stream."""
        await write_text_to(self._compiled, output)

    async def write_json_schema_to(
        self, output: OutputTarget, indent: Optional[int] = 2
    ) -> None:
        """Write the intermediate JSON schema, pretty-printed with *indent*."""
        await write_text_to(
            json.dumps(self._json_schema, indent=indent, ensure_ascii=False), output
        )
