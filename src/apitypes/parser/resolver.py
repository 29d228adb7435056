"""Resolve ``$ref`` JSON Reference pointers in OpenAPI contract documents.

Contract documents commonly use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition, and larger
APIs split their schemas across files (``{"$ref": "schemas/pet.yaml"}``) or
hosts.  This module performs a recursive copying traversal of the document,
replacing every ``$ref`` with the object it points to so that the transformer
can walk plain dicts.

Supported reference forms:

* internal -- ``#/components/schemas/Pet``
* relative or absolute file paths -- ``common.yaml#/Error``, ``/abs/pet.json``
* ``file://`` and ``http(s)://`` URLs, each with an optional fragment

Relative references are resolved against the URI of the document that
contains them; the root document's URI is the ``base_uri`` passed to
:func:`dereference` (the current directory when ``None``).  External
documents are loaded once per :func:`dereference` call.

Keys that sit next to a ``$ref`` (``description`` in OpenAPI 3.1) are
resolved too and override the same keys of the referenced object.

Circular references are detected per resolution branch and left unresolved
to prevent infinite recursion: a schema that references itself keeps its
``$ref`` dict at the cycle point.

The single public function is :func:`dereference`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urljoin

import httpx

from apitypes.exceptions import ContractParseError
from apitypes.output import debug
from apitypes.parser.loader import (
    fetch_text,
    file_url_to_path,
    format_hint,
    parse_content,
    read_contract_file,
)


async def dereference(
    document: dict[str, Any],
    base_uri: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """Resolve all ``$ref`` pointers in *document*.

    Builds a **new** dictionary; the input is never mutated.  Referenced
    objects are copied at every point of use, so the result is a plain tree
    (apart from unresolved circular ``$ref`` dicts).

    Args:
        document: The raw contract dictionary, as returned by
            :func:`~apitypes.parser.loader.load_contract`.
        base_uri: File path or URL the document was loaded from.  Relative
            external references are resolved against it.
        client: Optional HTTP client used to fetch remote documents.  A
            client is created (and closed) on demand when ``None``.

    Returns:
        The dereferenced document.

    Raises:
        ContractParseError: If a pointer does not exist in its target document.
        ContractLoadError: If an external document cannot be retrieved.

    Example::

        raw = await load_contract("openapi.yaml")
        flat = await dereference(raw, base_uri="openapi.yaml")
    """
    resolver = _Resolver(client)
    try:
        return await resolver.resolve(document, document, base_uri, frozenset())
    finally:
        await resolver.aclose()


class _Resolver:
    """Per-call resolution state: the HTTP client and the external document cache."""

    def __init__(self, client: Optional[httpx.AsyncClient]) -> None:
        self._client = client
        self._owns_client = False
        self._documents: dict[str, dict[str, Any]] = {}

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()

    async def resolve(
        self,
        obj: Any,
        root: dict[str, Any],
        base_uri: Optional[str],
        seen: frozenset[str],
    ) -> Any:
        """Recursively resolve every ``$ref`` within *obj*.

        Args:
            obj: The current node (dict, list, or scalar).
            root: The document *obj* belongs to; internal pointers resolve
                against it.
            base_uri: URI of *root*, used for relative external references.
            seen: ``"<uri>#<pointer>"`` keys being resolved on this branch.
        """
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str):
                return await self._resolve_ref(obj, ref, root, base_uri, seen)
            return {
                key: await self.resolve(value, root, base_uri, seen)
                for key, value in obj.items()
            }

        if isinstance(obj, list):
            return [await self.resolve(item, root, base_uri, seen) for item in obj]

        return obj

    async def _resolve_ref(
        self,
        obj: dict[str, Any],
        ref: str,
        root: dict[str, Any],
        base_uri: Optional[str],
        seen: frozenset[str],
    ) -> Any:
        location, _, pointer = ref.partition("#")
        if location:
            target_uri = join_uri(base_uri, location)
            target = await self._load(target_uri)
        else:
            target_uri = base_uri
            target = root

        key = f"{target_uri or ''}#{pointer}"
        if key in seen:
            # Circular reference: keep the $ref dict at the cycle point.
            return obj

        value = resolve_pointer(target, pointer, ref)
        resolved = await self.resolve(value, target, target_uri, seen | {key})

        siblings = {name: item for name, item in obj.items() if name != "$ref"}
        if siblings and isinstance(resolved, dict):
            extra = await self.resolve(siblings, root, base_uri, seen)
            return {**resolved, **extra}
        return resolved

    async def _load(self, uri: str) -> dict[str, Any]:
        if uri in self._documents:
            return self._documents[uri]

        debug(f"Loading referenced document: {uri}")
        if uri.startswith(("http://", "https://")):
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=30.0, follow_redirects=True)
                self._owns_client = True
            content, content_type = await fetch_text(uri, self._client)
            hint = "yaml" if "yaml" in content_type else ""
            document = parse_content(content, hint=hint or format_hint(Path(uri).suffix))
        else:
            document = read_contract_file(uri)

        self._documents[uri] = document
        return document


def join_uri(base_uri: Optional[str], location: str) -> str:
    """Resolve a reference *location* against the URI of its containing document.

    Examples::

        >>> join_uri("https://x.test/api/openapi.json", "schemas/pet.json")
        'https://x.test/api/schemas/pet.json'
        >>> join_uri("specs/openapi.yaml", "common.yaml")
        'specs/common.yaml'
    """
    if location.startswith(("http://", "https://")):
        return location
    if location.lower().startswith("file:"):
        return file_url_to_path(location)
    if base_uri is not None and base_uri.startswith(("http://", "https://")):
        return urljoin(base_uri, location)
    if Path(location).is_absolute():
        return location
    if base_uri is None:
        return str(Path(location))
    if base_uri.lower().startswith("file:"):
        base_uri = file_url_to_path(base_uri)
    return str(Path(base_uri).parent / location)


def resolve_pointer(document: Any, pointer: str, ref: str) -> Any:
    """Navigate *document* along a JSON Pointer fragment.

    Handles percent-encoding and RFC 6901 escaping (``~0`` for ``~``, ``~1``
    for ``/``).  An empty pointer selects the whole document.

    Args:
        document: The document to navigate.
        pointer: The fragment after ``#`` (e.g. ``"/components/schemas/Pet"``).
        ref: The full ``$ref`` string, used in error messages.

    Raises:
        ContractParseError: If any segment does not exist.
    """
    pointer = unquote(pointer)
    if not pointer:
        return document
    if not pointer.startswith("/"):
        raise ContractParseError(
            f"Cannot resolve $ref '{ref}': fragment must be a JSON Pointer"
        )

    current: Any = document
    for segment in pointer[1:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ContractParseError(
                    f"Cannot resolve $ref '{ref}': "
                    f"key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ContractParseError(
                    f"Cannot resolve $ref '{ref}': "
                    f"invalid array index '{segment}'"
                ) from exc
        else:
            raise ContractParseError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current
