"""apitypes -- Generate TypeScript declarations from OpenAPI 3.x contracts.

This package converts an OpenAPI 3.x contract document into a normalized JSON
Schema describing every route's inputs and outputs (headers, query params,
path params, cookies, request body and responses), then hands that schema to
the ``json2ts`` compiler to produce TypeScript declarations.  A fixed block
of lookup helpers (``Get<"/route", "200">`` and friends) is appended to the
compiled output.

Typical workflow::

    apitypes --contracts-file openapi.json -o src/api/contracts.ts
    apitypes --contracts-url https://example.com/openapi.json -p /widgets/{id}

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for contract documents and schema nodes.
    config: Run-option resolution (flags, environment, project config).
    generator: The generator facade (dereference, filter, compile, write).
    compiler: Bridge to the external schema-to-TypeScript compiler.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr discipline and the text output sink.
"""

__version__ = "0.3.0"
