from typing import Any, Iterable, List, Mapping, Optional

from frozendict import frozendict

from depcore.tokenindex import DOC_ID, TOKEN_ID, RELATION, TokenIndex

from .predicate import Predicate


def filter_tokens(tokens: TokenIndex, candidates: Optional[Iterable[frozendict]] = None,
                  rel=None, not_rel=None, ids=None, block=None,
                  select: Optional[Predicate] = None, env: Optional[Mapping[str, Any]] = None
                  ) -> List[frozendict]:
    """
    Return the candidate rows that satisfy all of the given conditions.
    candidates defaults to the whole table, in which case rel and ids are
    resolved through the table's indices rather than by a scan.
    rel/not_rel: allowed/excluded relations (sets)
    ids:         allowed (doc_id, token_id) pairs
    block:       excluded (doc_id, token_id) pairs; applied before ids
    select:      Predicate evaluated with env
    Conditions that are None impose no restriction.
    """
    if candidates is None:
        if ids is not None:
            keys = [key for key in ids if key in tokens]
            rows = [tokens.get(*key) for key in sorted(keys, key=tokens.position)]
            ids = None
        elif rel is not None:
            keys = [key for r in rel for key in tokens.keys_with_relation(r)]
            rows = [tokens.get(*key) for key in sorted(keys, key=tokens.position)]
            rel = None
        else:
            rows = list(tokens)
    else:
        rows = list(candidates)

    if rel is not None:
        rows = [row for row in rows if row[RELATION] in rel]
    if not_rel is not None:
        rows = [row for row in rows if row[RELATION] not in not_rel]
    if block:
        rows = [row for row in rows if (row[DOC_ID], row[TOKEN_ID]) not in block]
    if ids is not None:
        rows = [row for row in rows if (row[DOC_ID], row[TOKEN_ID]) in ids]
    if select is not None:
        rows = [row for row in rows if select.matches(row, env)]
    return rows
