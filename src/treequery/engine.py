"""
The recursive part of find_nodes: matching nested QuerySpecs against a
set of anchor tokens.

Intermediate results are lists of row dicts with the columns doc_id,
.MATCH_ID (token_id of the anchor the row belongs to) and one column
per save name. Sibling specs are combined by an inner join on
(doc_id, .MATCH_ID), so each anchor gets one row per combination of
sibling matches.
"""

from collections import ChainMap, defaultdict
import logging
import re
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from ordered_set import OrderedSet

from depcore.tokenindex import DOC_ID, TOKEN_ID, TokenIndex

from .family import token_family
from .filter import filter_tokens
from .pattern import MATCH_ID, QuerySpec


_logger = logging.getLogger(__name__)


Row = Dict[str, Any]

_SUFFIX = re.compile(r'(\.[xy])+$')


def put_column(row: Row, name: str, value) -> None:
    """
    Add a column to row. If the name is taken, the old value moves to
    name.x and the new one goes to name.y, so both stay visible until
    strip_suffixes() is applied.
    """
    if name not in row:
        row[name] = value
        return
    put_column(row, name + '.x', row.pop(name))
    put_column(row, name + '.y', value)


def strip_suffixes(row: Row) -> Row:
    """Undo the renaming done by put_column; the last assigned value wins."""
    out = {}
    for name, value in row.items():
        out[_SUFFIX.sub('', name)] = value
    return out


def _combine(left: Row, right: Row) -> Row:
    row = dict(left)
    for name, value in right.items():
        if name not in (DOC_ID, MATCH_ID):
            put_column(row, name, value)
    return row


def _join(left: List[Row], right: List[Row]) -> List[Row]:
    """Inner join on (doc_id, .MATCH_ID), one output row per matching pair."""
    by_match = defaultdict(list)
    for row in right:
        by_match[(row[DOC_ID], row[MATCH_ID])].append(row)
    out = []
    for row in left:
        for other in by_match.get((row[DOC_ID], row[MATCH_ID]), ()):
            out.append(_combine(row, other))
    return out


def select_tokens(tokens: TokenIndex, anchors: Iterable[Tuple[Hashable, Hashable]], spec: QuerySpec,
                  block=None, env: Optional[Mapping[str, Any]] = None
                  ) -> List[Tuple[Hashable, Hashable, Hashable]]:
    """
    Relatives of the anchors that satisfy spec's own conditions, as
    (doc_id, match_id, token_id) triples.
    The spec's id list and predicate are applied after the search, so a
    search passes through tokens that do not satisfy them.
    """
    family = token_family(tokens, anchors, direction=spec.direction, depth=spec.depth,
                          rel=spec.rel, not_rel=spec.not_rel, block=block)
    unique = {}
    for relative in family:
        unique[(relative.row[DOC_ID], relative.row[TOKEN_ID])] = relative.row
    scope = ChainMap(spec.env, env) if env else spec.env
    passed = filter_tokens(tokens, unique.values(), ids=spec.ids, select=spec.select, env=scope)
    passed = {(row[DOC_ID], row[TOKEN_ID]) for row in passed}
    return [(relative.row[DOC_ID], relative.match_id, relative.row[TOKEN_ID])
            for relative in family
            if (relative.row[DOC_ID], relative.row[TOKEN_ID]) in passed]


def rec_find(tokens: TokenIndex, anchors: Iterable[Tuple[Hashable, Hashable]], specs: Sequence[QuerySpec],
             block=None, env: Optional[Mapping[str, Any]] = None) -> List[Row]:
    """
    Match the sibling specs against the anchors.
    Returns rows satisfying every spec (AND); an empty list as soon as
    one spec matches nothing.
    A negated spec contributes one row per anchor that has NO match for
    it (nested specs included), without any saved columns.
    """
    anchors = OrderedSet(anchors)
    out = None
    for spec in specs:
        selection = select_tokens(tokens, anchors, spec, block=block, env=env)

        if spec.nested:
            rows = []
            if selection:
                relatives = OrderedSet((doc_id, token_id) for doc_id, _, token_id in selection)
                nested = rec_find(tokens, relatives, spec.nested, block=block, env=env)
                # Nested rows are keyed by the relative they were found from.
                by_match = defaultdict(list)
                for row in nested:
                    by_match[(row[DOC_ID], row[MATCH_ID])].append(row)
                for doc_id, match_id, token_id in selection:
                    for sub in by_match.get((doc_id, token_id), ()):
                        row = {DOC_ID: doc_id, MATCH_ID: match_id}
                        if spec.save is not None:
                            row[spec.save] = token_id
                        rows.append(_combine(row, sub))
        else:
            rows = []
            for doc_id, match_id, token_id in selection:
                row = {DOC_ID: doc_id, MATCH_ID: match_id}
                if spec.save is not None:
                    row[spec.save] = token_id
                rows.append(row)

        if spec.negate:
            found = {(row[DOC_ID], row[MATCH_ID]) for row in rows}
            rows = [{DOC_ID: doc_id, MATCH_ID: token_id}
                    for doc_id, token_id in anchors
                    if (doc_id, token_id) not in found]

        _logger.debug("%r: %d rows for %d anchors", spec, len(rows), len(anchors))
        if not rows:
            return []
        out = rows if out is None else _join(out, rows)
        if not out:
            return []
    return out or []
