"""Exception hierarchy for apitypes.

All exceptions inherit from :class:`ApitypesError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apitypes.exit_codes`.
The top-level error handler in :func:`apitypes.app.main` catches
``ApitypesError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ApitypesError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- ContractLoadError       (exit 6)
    +-- ContractParseError      (exit 7)
    |   +-- VersionMismatchError  (exit 7)
    +-- CompilerError           (exit 8)
    +-- OutputError             (exit 9)
"""

from apitypes.exit_codes import (
    EXIT_COMPILER_ERROR,
    EXIT_CONTRACT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_LOAD_ERROR,
    EXIT_OUTPUT_ERROR,
)


class ApitypesError(Exception):
    """Base exception for all apitypes errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apitypes.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ApitypesError):
    """Raised for conflicting or missing CLI arguments (e.g. two contract sources)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ApitypesError):
    """Raised for configuration problems (malformed paths file, invalid project config)."""

    exit_code = EXIT_GENERIC_FAILURE


class ContractLoadError(ApitypesError):
    """Raised when a contract document cannot be read from disk, stdin, or the network."""

    exit_code = EXIT_LOAD_ERROR


class ContractParseError(ApitypesError):
    """Raised when a contract document cannot be parsed or its ``$ref`` pointers resolved."""

    exit_code = EXIT_CONTRACT_ERROR


class VersionMismatchError(ContractParseError):
    """Raised when the document does not declare an OpenAPI ``3.<minor>.<patch>`` version.

    Args:
        version: The offending version string (``None`` when the field is
            missing altogether).
        message: Optional override for the generated message.
    """

    def __init__(self, version: str | None, message: str | None = None):
        self.version = version
        if message is None:
            message = (
                f"Supports OpenAPI 3.x.x documents but found {version}"
            )
        super().__init__(message)


class CompilerError(ApitypesError):
    """Raised when the external schema-to-types compiler fails."""

    exit_code = EXIT_COMPILER_ERROR


class OutputError(ApitypesError):
    """Raised when generated text cannot be written to its destination."""

    exit_code = EXIT_OUTPUT_ERROR
