"""Load OpenAPI contract documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw contract documents and
converting them into Python dictionaries.  It supports both JSON and YAML
formats with automatic format detection, and gates the document on its
declared OpenAPI version (``3.<minor>.<patch>``).

The public functions are:

* :func:`load_contract` -- Load and parse a document from any supported
  source (awaitable; remote documents are fetched with
  :class:`httpx.AsyncClient`).
* :func:`load_contract_from` -- Resolve the mutually exclusive
  ``--contracts-file`` / ``--contracts-url`` pair to a single source.
* :func:`validate_openapi_version` -- Check and return the ``openapi``
  version string, rejecting Swagger 2.x and every non-3.x version.

After loading, the raw dict is handed to
:func:`~apitypes.generator.create_generator`, which dereferences it.
"""

from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
import yaml

from apitypes.exceptions import (
    ContractLoadError,
    ContractParseError,
    InvalidUsageError,
    VersionMismatchError,
)

_VERSION_PATTERN = re.compile(r"^3\.\d+\.\d+$")

_FETCH_TIMEOUT = 30.0


async def load_contract(
    source: str, client: Optional[httpx.AsyncClient] = None
) -> dict[str, Any]:
    """Load a contract document from URL, ``file://`` URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: An ``http(s)://`` or ``file://`` URL, a file path, or ``'-'``
            for stdin.
        client: Optional HTTP client to fetch remote documents with.  A
            short-lived client is created when ``None``.

    Returns:
        The parsed document as a dictionary.

    Raises:
        ContractLoadError: If the source cannot be read or fetched.
        ContractParseError: If the content cannot be parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return await _load_from_url(source, client)
    if source.lower().startswith("file:"):
        return read_contract_file(file_url_to_path(source))
    return read_contract_file(source)


async def load_contract_from(
    contracts_file: Optional[str],
    contracts_url: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """Load the contract document named by exactly one of two CLI sources.

    Args:
        contracts_file: Path of the document (``'-'`` for stdin).
        contracts_url: URL of the document.
        client: Optional HTTP client for remote documents.

    Returns:
        The parsed document dictionary.

    Raises:
        InvalidUsageError: If both or neither source is given.
    """
    if contracts_file and contracts_url:
        raise InvalidUsageError(
            "--contracts-file and --contracts-url are mutually exclusive"
        )
    if contracts_url:
        return await load_contract(contracts_url, client)
    if contracts_file:
        return await load_contract(contracts_file, client)
    raise InvalidUsageError(
        "Either --contracts-file or --contracts-url is required "
        "(use '--contracts-file -' to read from stdin)"
    )


def file_url_to_path(url: str) -> str:
    """Convert a ``file://`` URL into a local filesystem path."""
    parsed = urlparse(url)
    return url2pathname(parsed.path)


def _load_from_stdin() -> dict[str, Any]:
    """Read a contract document from stdin.

    Raises:
        ContractLoadError: If stdin cannot be read or is empty.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise ContractLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise ContractLoadError("No input received from stdin")

    return parse_content(content, hint="stdin")


async def _load_from_url(
    url: str, client: Optional[httpx.AsyncClient] = None
) -> dict[str, Any]:
    """Fetch a contract document from URL. Supports JSON and YAML responses.

    Raises:
        ContractLoadError: If the URL cannot be fetched or answers non-2xx.
    """
    content, content_type = await fetch_text(url, client)
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return parse_content(content, hint=hint)


async def fetch_text(
    url: str, client: Optional[httpx.AsyncClient] = None
) -> tuple[str, str]:
    """GET *url* and return ``(body_text, content_type)``.

    Raises:
        ContractLoadError: On HTTP error statuses and transport failures.
    """
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=_FETCH_TIMEOUT, follow_redirects=True
            ) as owned:
                response = await owned.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ContractLoadError(
            f"Error downloading contracts: {exc.response.status_code} "
            f"({exc.response.reason_phrase}) from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ContractLoadError(f"Failed to fetch {url}: {exc}") from exc

    return response.text, response.headers.get("content-type", "")


def read_contract_file(path: str) -> dict[str, Any]:
    """Load a contract document from a local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        ContractLoadError: If the file is missing, unreadable, or empty.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ContractLoadError(f"Contract file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContractLoadError(f"Failed to read contract file {path}: {exc}") from exc

    if not content.strip():
        raise ContractLoadError(f"Contract file is empty: {path}")

    return parse_content(content, hint=format_hint(file_path.suffix))


def format_hint(suffix: str) -> str:
    """Map a file extension to a parse hint (``'json'``, ``'yaml'``, or ``''``)."""
    suffix = suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary.

    Raises:
        ContractParseError: If the content cannot be parsed as either format,
            or does not hold an object at its root.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise ContractParseError(
                    "Contract must be a JSON/YAML object (got "
                    f"{type(result).__name__})"
                )
            return result
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ContractParseError(f"Invalid JSON: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise ContractParseError(
                "Contract must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse contract as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise ContractParseError(msg)


def validate_openapi_version(document: Any) -> str:
    """Validate and return the OpenAPI version string.

    The ``openapi`` field must match ``3.<digits>.<digits>``.

    Args:
        document: The parsed contract dictionary.

    Returns:
        The OpenAPI version string (e.g., ``'3.0.3'``, ``'3.1.0'``).

    Raises:
        VersionMismatchError: If the version is missing, malformed, or the
            document is Swagger 2.x.
    """
    if not isinstance(document, dict):
        raise VersionMismatchError(None)

    if "swagger" in document:
        swagger_ver = str(document["swagger"])
        raise VersionMismatchError(
            swagger_ver,
            f"Swagger {swagger_ver} is not supported. "
            "Only OpenAPI 3.x.x documents are supported. "
            "Consider converting with https://converter.swagger.io",
        )

    version = document.get("openapi")
    if not isinstance(version, str) or not _VERSION_PATTERN.fullmatch(version):
        raise VersionMismatchError(None if version is None else str(version))

    return version
