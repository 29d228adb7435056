"""Bridge to the external JSON-Schema-to-TypeScript compiler.

The intermediate schema is compiled by ``json2ts``, the command-line front end
of `json-schema-to-typescript <https://github.com/bcherny/json-schema-to-typescript>`_.
The compiler runs as a subprocess: the schema is written to its stdin as
JSON and the declarations are read back from its stdout.

The root interface name is passed as the schema ``title``.  The
``--ignoreMinAndMaxItems`` flag (on by default, see
:class:`~apitypes.models.CompilerOptions`) makes the compiler emit unbounded
array types instead of fixed-length tuples for ``minItems``/``maxItems``,
which keeps the output small.

Install the compiler with::

    npm install --global json-schema-to-typescript
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from apitypes.exceptions import CompilerError
from apitypes.models import CompilerOptions
from apitypes.output import debug


def build_command(options: CompilerOptions) -> list[str]:
    """Return the compiler argv for *options*."""
    args = list(options.command)
    if options.ignore_min_and_max_items:
        args.append("--ignoreMinAndMaxItems")
    if options.banner_comment is not None:
        args.extend(["--bannerComment", options.banner_comment])
    return args


async def compile_to_declarations(
    schema: dict[str, Any],
    root_name: str,
    options: Optional[CompilerOptions] = None,
) -> str:
    """Compile *schema* into TypeScript declarations rooted at *root_name*.

    Args:
        schema: The intermediate JSON Schema (root object node).
        root_name: Name of the root interface (e.g. ``"Paths"``).
        options: Compiler settings; defaults to :class:`CompilerOptions()`.

    Returns:
        The compiler's stdout.

    Raises:
        CompilerError: If the compiler is not installed, exceeds
            ``options.timeout``, or exits non-zero.
    """
    if options is None:
        options = CompilerOptions()
    if not options.command:
        raise CompilerError("No compiler command configured")

    args = build_command(options)
    payload = json.dumps({**schema, "title": root_name}, ensure_ascii=False)
    debug(f"Running compiler: {' '.join(args)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise CompilerError(
            f"Compiler not found: {args[0]}. "
            "Install it: npm install --global json-schema-to-typescript"
        ) from exc
    except PermissionError as exc:
        raise CompilerError(f"Compiler is not executable: {args[0]}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(payload.encode("utf-8")), timeout=options.timeout
        )
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise CompilerError(
            f"Compiler timed out after {options.timeout:g} seconds"
        ) from exc

    if process.returncode != 0:
        lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
        detail = "\n".join(f"  {line}" for line in lines[-20:])
        message = f"Compiler exited with status {process.returncode}"
        raise CompilerError(f"{message}:\n{detail}" if detail else message)

    return stdout.decode("utf-8")
