"""
Running sets of queries, and writing their results back onto a token
table.

apply_queries runs several TQuery objects in order. Each row it returns
is tagged with the name of the query that produced it (column .QUERY).
By default the queries form a chain: tokens matched by one query are
blocked for all later ones, so earlier queries take precedence.

annotate turns a result into per-token columns, e.g. to mark the
source, verb and quote of each quote found.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple

from depcore.dbfutil import GenericException
from depcore.tokenindex import DOC_ID, TOKEN_ID, TokenIndex, as_tokenindex

from .blocks import block_ids
from .family import token_family
from .find import run_query
from .pattern import CHILDREN, KEY, QUERY, TQuery
from .result import ResultBatch


_logger = logging.getLogger(__name__)


def _named_queries(queries) -> List[Tuple[str, TQuery]]:
    out = []
    for query in queries:
        if isinstance(query, TQuery):
            out.append((query.label or '', query))
        elif isinstance(query, Mapping):
            for name, q in query.items():
                if not isinstance(q, TQuery):
                    raise GenericException(msg="Query '%s' is not a TQuery (use tquery()): %r" % (name, q))
                out.append((str(name), q))
        elif isinstance(query, (list, tuple)):
            out.extend(_named_queries(query))
        else:
            raise GenericException(msg="Expected a TQuery, a list of them or a dict of them; got %r" % (query,))
    return out


def apply_queries(tokens, *queries, as_chain: bool = True, block=None, check: bool = True) -> ResultBatch:
    """
    Run the queries in order and return all their rows in one batch.
    queries: TQuery objects, lists of them, or dicts of name -> TQuery.
    Each row gets a .QUERY column holding the query's name (its dict key
    or label, or '' for an unnamed query).
    as_chain: block the tokens matched by each query for all later queries
    block:    tokens blocked for all queries
    check:    as for find_nodes
    """
    tokens = as_tokenindex(tokens)
    block = block_ids(block)
    out = []
    for name, query in _named_queries(queries):
        result = run_query(tokens, query, block=block, check=check)
        _logger.debug("Query '%s': %d rows", name, len(result))
        if not len(result):
            continue
        if as_chain:
            block = block_ids(block, result)
        out.append(result.with_column(QUERY, name))
    return ResultBatch().union(*out)


def annotate(tokens, nodes: ResultBatch, column: str, use: Optional[Iterable[str]] = None,
             fill: bool = True) -> TokenIndex:
    """
    Return a new TokenIndex with the results in nodes written onto the
    tokens, as three columns:

    column:         role (save name) of the token
    column + '_id': id of the match, '<doc_id>.<.KEY>'
    column + '_fill': 0 for a matched token, otherwise the distance to the
                    matched token it inherited its role from

    use restricts the roles written (default: all).
    If a token occurs in several rows, the first row wins.
    With fill, tokens below a matched token that are not matched
    themselves get that token's role. Matched tokens are not filled
    through, so each subtree keeps the role of its closest matched
    ancestor.
    The given token table is not modified.
    """
    tokens = as_tokenindex(tokens)
    if column in tokens.columns:
        _logger.warning("Column '%s' already exists and will be overwritten", column)
    roles = nodes.roles() if use is None else list(use)

    role: Dict[Tuple[Any, Any], str] = {}
    match: Dict[Tuple[Any, Any], str] = {}
    distance: Dict[Tuple[Any, Any], int] = {}
    for row in nodes:
        match_id = '%s.%s' % (row[DOC_ID], row[KEY])
        for name in roles:
            token_id = row.get(name)
            key = (row[DOC_ID], token_id)
            if token_id is None or key in role:
                continue
            role[key] = name
            match[key] = match_id
            distance[key] = 0

    if fill and role:
        matched = block_ids(role.keys())
        family = token_family(tokens, list(role.keys()), direction=CHILDREN, depth=None, block=matched)
        for relative in family:
            anchor = (relative.row[DOC_ID], relative.match_id)
            key = (relative.row[DOC_ID], relative.row[TOKEN_ID])
            if key in role:
                continue
            role[key] = role[anchor]
            match[key] = match[anchor]
            distance[key] = relative.hop
        _logger.debug("Filled %d tokens below %d matched tokens", len(role) - len(matched), len(matched))

    return tokens.with_columns({column: role, column + '_id': match, column + '_fill': distance})
