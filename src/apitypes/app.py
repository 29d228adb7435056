"""Typer application and CLI entry point for apitypes.

The ``apitypes`` command loads a contract document, narrows it to the
selected routes, compiles it into TypeScript declarations and writes them to
stdout or ``--output``::

    apitypes --contracts-file openapi.yaml -o src/api-types.ts
    apitypes --contracts-url https://example.com/openapi.json \\
        -p /widgets/{id} -r '^/admin/' --schema-output schema.json
    curl -s https://example.com/openapi.json | apitypes --contracts-file -

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`apitypes.config`: Option resolution (flags, environment, project).
    :mod:`apitypes.generator`: The pipeline driven by :func:`generate`.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, List, Optional

import httpx
import typer

from apitypes import __version__
from apitypes.config import build_path_filter, resolve_config
from apitypes.exceptions import ApitypesError
from apitypes.exit_codes import EXIT_GENERIC_FAILURE
from apitypes.generator import create_generator
from apitypes.models import GenerateConfig
from apitypes.output import OutputManager, debug, error, set_output, success
from apitypes.parser import load_contract_from


app = typer.Typer(
    name="apitypes",
    help="Generate TypeScript declarations from OpenAPI 3.x contracts.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apitypes {__version__}")
        raise typer.Exit()


@app.command()
def generate(
    output: Optional[str] = typer.Option(
        None, "-o", "--output", help="Declarations file to write (default: stdout)."
    ),
    contracts_file: Optional[str] = typer.Option(
        None, "--contracts-file", help="Contract document file ('-' for stdin)."
    ),
    contracts_url: Optional[str] = typer.Option(
        None, "--contracts-url", help="Contract document URL (file:// accepted)."
    ),
    paths_file: Optional[str] = typer.Option(
        None, "--paths-file", help="JSON file with an array of routes to keep."
    ),
    paths: Optional[List[str]] = typer.Option(
        None, "--path", "-p", help="Route to keep, verbatim (repeatable)."
    ),
    path_patterns: Optional[List[str]] = typer.Option(
        None, "--path-pattern", "-r", help="Regular expression of routes to keep (repeatable)."
    ),
    schema_output: Optional[str] = typer.Option(
        None, "--schema-output", help="Also write the intermediate JSON schema here."
    ),
    compiler: Optional[str] = typer.Option(
        None, "--compiler", help="Compiler command (default: json2ts)."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Generate TypeScript declarations for the routes of a contract document.

    Every route is kept unless ``--paths-file``, ``--path`` or
    ``--path-pattern`` select a subset; a route is kept when any of them
    matches it.
    """
    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))

    try:
        config = resolve_config(
            contracts_file=contracts_file,
            contracts_url=contracts_url,
            output=output,
            paths_file=paths_file,
            paths=paths,
            path_patterns=path_patterns,
            schema_output=schema_output,
            compiler=compiler,
        )
        asyncio.run(run(config))
    except ApitypesError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


async def run(config: GenerateConfig) -> None:
    """Execute one generator run described by *config*.

    Raises:
        ApitypesError: Any load, parse, compile or write failure.
    """
    path_filter = build_path_filter(config)

    async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
        document = await load_contract_from(
            config.contracts_file, config.contracts_url, client
        )
        source = config.contracts_url or config.contracts_file
        generator = await create_generator(
            document,
            base_uri=None if source == "-" else source,
            client=client,
        )

    generator = generator.include_paths(path_filter)
    debug(f"Compiling {len(generator.contracts.paths)} paths")
    compiled = await generator.compile(config.compiler)

    if config.schema_output:
        await compiled.write_json_schema_to(
            config.schema_output, indent=config.schema_indent
        )
        success(f"Wrote JSON schema to {config.schema_output}")

    if config.output:
        await compiled.write_to(config.output)
        success(f"Wrote declarations to {config.output}")
    else:
        await compiled.write_to(sys.stdout)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from apitypes.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``apitypes`` console script.

    :class:`~apitypes.exceptions.ApitypesError` instances that escape the
    command cause a clean exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except ApitypesError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
