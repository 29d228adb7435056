"""Route filtering for contract documents.

:func:`filter_paths` narrows a :class:`~apitypes.models.ContractDocument` to
the routes selected by a :data:`~apitypes.models.PathFilter`:

* ``None`` or an empty :class:`~apitypes.models.MatchRules` -- identity; the
  original document is returned as-is.
* :class:`~apitypes.models.MatchRules` -- keep a route when **any** rule
  matches.  :class:`~apitypes.models.LiteralRule` compares the raw route key
  for equality (``/widgets/{id}`` must be given verbatim);
  :class:`~apitypes.models.PatternRule` searches the key with a regular
  expression.
* :class:`~apitypes.models.Predicate` -- keep a route when
  ``fn(route, path_item)`` is true.

Filtering is route-granular and never fails: when nothing matches, the
result simply has an empty ``paths`` map.  The result is a shallow copy that
shares its path items with the source document; both are frozen models.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from apitypes.exceptions import InvalidUsageError
from apitypes.models import (
    ContractDocument,
    LiteralRule,
    MatchRule,
    MatchRules,
    PathFilter,
    PatternRule,
)


def filter_paths(
    document: ContractDocument, path_filter: Optional[PathFilter]
) -> ContractDocument:
    """Return a document whose ``paths`` holds only the routes *path_filter* keeps.

    Args:
        document: The (dereferenced) contract document to narrow.
        path_filter: Rules or predicate selecting routes; ``None`` or an
            empty rule list keeps everything.

    Returns:
        *document* itself for an empty filter, otherwise a new document with
        every other field copied unchanged.

    Example::

        narrowed = filter_paths(doc, MatchRules.of("/widgets/{id}"))
        list(narrowed.paths)  # ['/widgets/{id}']
    """
    if path_filter is None or path_filter.is_empty():
        return document

    kept = {
        route: path_item
        for route, path_item in document.paths.items()
        if path_filter.keeps(route, path_item)
    }
    return document.model_copy(update={"paths": kept})


def filter_from_cli(
    paths: Iterable[str] = (), patterns: Iterable[str] = ()
) -> MatchRules:
    """Build :class:`~apitypes.models.MatchRules` from CLI route and regex strings.

    Literal routes come first, in the order given, followed by the patterns.

    Raises:
        InvalidUsageError: If a pattern is not a valid regular expression.
    """
    rules: list[MatchRule] = [LiteralRule(route=route) for route in paths]
    for pattern in patterns:
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            raise InvalidUsageError(
                f"Invalid path pattern {pattern!r}: {exc}"
            ) from exc
        rules.append(PatternRule(pattern=compiled))
    return MatchRules(rules=tuple(rules))
