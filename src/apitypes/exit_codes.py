"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apitypes.exceptions.ApitypesError` subclass.
Build scripts can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ apitypes --contracts-file swagger.json
    $ echo $?
    7   # EXIT_CONTRACT_ERROR -- not an OpenAPI 3.x document
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid or conflicting arguments."""

EXIT_LOAD_ERROR = 6
"""The contract document (or a referenced document) could not be retrieved."""

EXIT_CONTRACT_ERROR = 7
"""The contract document could not be parsed, dereferenced, or failed the version gate."""

EXIT_COMPILER_ERROR = 8
"""The external type compiler is missing, timed out, or rejected the schema."""

EXIT_OUTPUT_ERROR = 9
"""The generated output could not be written."""
