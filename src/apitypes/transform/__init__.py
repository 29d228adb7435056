"""Contract-to-schema transformation -- route filtering and schema synthesis.

This sub-package holds the pure, synchronous core of the pipeline:

* :mod:`~apitypes.transform.filters` -- narrows a
  :class:`~apitypes.models.ContractDocument` to selected routes.
* :mod:`~apitypes.transform.schema` -- walks the document and produces the
  intermediate :class:`~apitypes.models.ObjectNode` tree handed to the
  type compiler.

Typical usage::

    from apitypes.models import MatchRules
    from apitypes.transform import filter_paths, transform_to_schema

    root = transform_to_schema(filter_paths(doc, MatchRules.of("/widgets/{id}")))
    json_schema = root.to_json_schema()
"""

from apitypes.transform.filters import filter_from_cli, filter_paths
from apitypes.transform.schema import transform_to_schema, untyped_required_parameters

__all__ = [
    "filter_from_cli",
    "filter_paths",
    "transform_to_schema",
    "untyped_required_parameters",
]
