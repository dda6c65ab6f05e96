import logging
from collections import namedtuple
from typing import Hashable, Iterable, List, Optional, Tuple

from depcore.tokenindex import TOKEN_ID, TokenIndex

from .filter import filter_tokens
from .pattern import CHILDREN, PARENTS


_logger = logging.getLogger(__name__)


# A token found by token_family.
# match_id: token_id of the anchor the search started from
# row:      the token's row
# hop:      distance from that anchor (1 for a direct child or parent)
Relative = namedtuple('Relative', ['match_id', 'row', 'hop'])


def token_family(tokens: TokenIndex, anchors: Iterable[Tuple[Hashable, Hashable]],
                 direction: str = CHILDREN, depth: Optional[int] = 1,
                 rel=None, not_rel=None, block=None) -> List[Relative]:
    """
    Find the children (descendants) or parent (ancestors) of each anchor,
    up to depth hops away (None for no limit).

    rel and not_rel only apply to the first hop. They always constrain the
    relation of the edge itself, which for parents is the relation of
    the anchor, not of the parent.
    Blocked tokens are neither returned nor searched through.
    A token is never returned twice for the same anchor, and an anchor
    is never its own relative, so cyclic parent links terminate.
    Relatives are returned hop by hop, and within a hop in anchor order.
    """
    if direction not in (CHILDREN, PARENTS):
        raise ValueError("direction must be '%s' or '%s', not %r" % (CHILDREN, PARENTS, direction))
    # Visits are tracked per anchor; anchors can share relatives.
    frontier = []
    visited = set()
    for doc_id, token_id in anchors:
        frontier.append((doc_id, token_id, token_id))
        visited.add((doc_id, token_id, token_id))

    out = []
    hop = 0
    while frontier and (depth is None or hop < depth):
        hop += 1
        next_frontier = []
        for doc_id, match_id, token_id in frontier:
            if direction == CHILDREN:
                candidates = tokens.children_of(doc_id, token_id)
                if hop == 1:
                    candidates = filter_tokens(tokens, candidates, rel=rel, not_rel=not_rel)
            else:
                if hop == 1 and (rel is not None or not_rel is not None):
                    node = tokens.get(doc_id, token_id)
                    if node is None or not filter_tokens(tokens, [node], rel=rel, not_rel=not_rel):
                        continue
                parent = tokens.parent_of(doc_id, token_id)
                candidates = [] if parent is None else [parent]
            if block:
                candidates = filter_tokens(tokens, candidates, block=block)
            for row in candidates:
                visit = (doc_id, match_id, row[TOKEN_ID])
                if visit in visited:
                    continue
                visited.add(visit)
                out.append(Relative(match_id, row, hop))
                next_frontier.append(visit)
        _logger.debug("%s hop %d: %d tokens", direction, hop, len(next_frontier))
        frontier = next_frontier
    return out
