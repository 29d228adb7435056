"""Contract parser -- load documents, gate their version, and resolve ``$ref`` pointers.

This sub-package is responsible for the first half of the apitypes pipeline:
turning a raw OpenAPI 3.x document (JSON or YAML, local file, remote URL, or
stdin) into a plain, dereferenced dict that can be validated into a
:class:`~apitypes.models.ContractDocument`.

Typical usage::

    from apitypes.parser import dereference, load_contract, validate_openapi_version

    raw = await load_contract("https://petstore3.swagger.io/api/v3/openapi.json")
    validate_openapi_version(raw)
    flat = await dereference(raw)

Sub-modules:

* :mod:`~apitypes.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection and the OpenAPI version gate.
* :mod:`~apitypes.parser.resolver` -- Asynchronous ``$ref`` resolution across
  documents with circular-reference detection.
"""

from apitypes.parser.loader import (
    load_contract,
    load_contract_from,
    validate_openapi_version,
)
from apitypes.parser.resolver import dereference

__all__ = [
    "dereference",
    "load_contract",
    "load_contract_from",
    "validate_openapi_version",
]
