import logging
from collections import Counter
from typing import Any, Mapping, Optional

from ordered_set import OrderedSet

from depcore.dbfutil import GenericException
from depcore.tokenindex import DOC_ID, TOKEN_ID, as_tokenindex

from .blocks import block_ids
from .engine import put_column, rec_find, strip_suffixes
from .filter import filter_tokens
from .pattern import KEY, MATCH_ID, QuerySpec, TQuery
from .result import ResultBatch


_logger = logging.getLogger(__name__)


DUPLICATE_WARNING = ("DUPLICATE NODES: Some tokens occur multiple times as nodes (either in different "
                     "patterns or the same pattern). This should be preventable by making patterns more "
                     "specific. You can turn off this duplicate check by setting check to False. "
                     "Tokens: %s")


def find_nodes(tokens, *nested: QuerySpec, save: Optional[str] = None, rel=None, not_rel=None,
               select=None, ids=None, chain: Optional[ResultBatch] = None, block=None,
               check: bool = True, env: Optional[Mapping[str, Any]] = None) -> ResultBatch:
    """
    Find tokens matching select (the roots), and for each root look up
    the relatives described by the nested children()/parents() specs.

    tokens:  a TokenIndex, or anything as_tokenindex accepts
    nested:  QuerySpecs; a root is only returned if all of them match
    save:    column name for the root token (None: only the .KEY column)
    rel, not_rel: allowed/excluded relations of the root
    select:  predicate on the root (expression string, Predicate or callable)
    ids:     allowed roots, as (doc_id, token_id) pairs
    chain:   result of an earlier find_nodes; its tokens are blocked and
             its rows come first in the returned batch
    block:   tokens (anything block_ids accepts) never to match or search
             through
    check:   log a warning if a token occurs in more than one row or role
    env:     names available to select, and to nested predicates after
             their own env

    Returns a ResultBatch with doc_id, .KEY (the root token_id) and one
    column per save name. A root with several matches for a nested spec
    gets one row per match (per combination, across sibling specs).
    """
    query = TQuery(nested, save=save, rel=rel, not_rel=not_rel, select=select, ids=ids, env=env)
    return run_query(tokens, query, chain=chain, block=block, check=check)


def run_query(tokens, query: TQuery, chain: Optional[ResultBatch] = None, block=None,
              check: bool = True) -> ResultBatch:
    """find_nodes for a prepared TQuery."""
    tokens = as_tokenindex(tokens)
    if chain is not None and not isinstance(chain, ResultBatch):
        raise GenericException(msg="chain must be a ResultBatch, not %r" % (chain,))
    block = block_ids(block, chain)
    _logger.debug("Blocking %d tokens", len(block))

    roots = filter_tokens(tokens, rel=query.rel, not_rel=query.not_rel, ids=query.ids, block=block,
                          select=query.select, env=query.env)
    anchors = [(row[DOC_ID], row[TOKEN_ID]) for row in roots]
    if not anchors:
        return _chained(chain, None)

    if query.nested:
        nodes = rec_find(tokens, anchors, query.nested, block=block, env=query.env)
    else:
        nodes = [{DOC_ID: doc_id, MATCH_ID: token_id} for doc_id, token_id in anchors]
    if not nodes:
        return _chained(chain, None)

    rows = []
    stripped = []
    seen = set()
    for node in nodes:
        row = {DOC_ID: node[DOC_ID], KEY: node[MATCH_ID]}
        if query.save is not None:
            row[query.save] = node[MATCH_ID]
        for name, value in node.items():
            if name not in (DOC_ID, MATCH_ID):
                put_column(row, name, value)
        rows.append(row)
        # Deduplicate on the final, stripped rows.
        plain = strip_suffixes(row)
        signature = frozenset(plain.items())
        if signature not in seen:
            seen.add(signature)
            stripped.append(plain)

    if check:
        check_duplicates(rows)

    columns = OrderedSet([DOC_ID, KEY])
    if query.save is not None:
        columns.add(query.save)
    result = ResultBatch(stripped, columns=columns)
    return _chained(chain, result)


def check_duplicates(rows) -> bool:
    """
    Log a warning if some token is used in more than one row or under more
    than one role. Returns True if there were duplicates.
    """
    uses = set()
    for row in rows:
        for name, value in row.items():
            if name in (DOC_ID, KEY) or value is None:
                continue
            uses.add((row[DOC_ID], row[KEY], name, value))
    counts = Counter((doc_id, token_id) for doc_id, _, _, token_id in uses)
    duplicates = [key for key, count in counts.items() if count > 1]
    if duplicates:
        _logger.warning(DUPLICATE_WARNING, ', '.join('%s/%s' % key for key in duplicates))
        return True
    return False


def _chained(chain: Optional[ResultBatch], result: Optional[ResultBatch]) -> ResultBatch:
    if chain is None:
        return result if result is not None else ResultBatch()
    return chain.union(result)
