"""
Block sets: the (doc_id, token_id) pairs find_nodes must not match or
search through.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from depcore.dbfutil import GenericException
from depcore.tokenindex import DOC_ID, TOKEN_ID, TokenIndex

from .result import ResultBatch


class InputShapeError(GenericException):
    """Input that cannot be read as a set of (doc_id, token_id) pairs."""
    pass


class BlockSet(frozenset):
    """Immutable set of (doc_id, token_id) pairs."""

    def __repr__(self):
        return "BlockSet(%s)" % sorted(self, key=repr)


def _pairs(data: Any) -> Iterable[tuple]:
    if isinstance(data, BlockSet):
        return data
    if isinstance(data, ResultBatch):
        # Every token used under any role; the root key only counts
        # when the root was saved under a role too.
        pairs = []
        for role in data.roles():
            for doc_id, token_id in zip(data.column(DOC_ID), data.column(role)):
                if token_id is not None:
                    pairs.append((doc_id, token_id))
        return pairs
    if isinstance(data, TokenIndex):
        return list(data.keys())
    if isinstance(data, Mapping):
        # Column oriented, e.g. {'doc_id': [1, 1], 'token_id': [2, 4]}.
        if DOC_ID in data and TOKEN_ID in data:
            doc_ids, token_ids = list(data[DOC_ID]), list(data[TOKEN_ID])
            if len(doc_ids) != len(token_ids):
                raise InputShapeError(msg="Columns %s and %s differ in length" % (DOC_ID, TOKEN_ID))
            return list(zip(doc_ids, token_ids))
        raise InputShapeError(msg="Mapping without %s and %s columns is not a valid block" % (DOC_ID, TOKEN_ID))
    if isinstance(data, (str, bytes)) or not isinstance(data, Iterable):
        raise InputShapeError(msg="Not a valid input for block_ids: %r" % (data,))
    pairs = []
    for item in data:
        if isinstance(item, (BlockSet, ResultBatch, TokenIndex)):
            pairs.extend(_pairs(item))
        elif isinstance(item, Mapping):
            try:
                pairs.append((item[DOC_ID], item[TOKEN_ID]))
            except KeyError:
                raise InputShapeError(msg="Row without %s and %s: %r" % (DOC_ID, TOKEN_ID, item)) from None
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            pairs.append(tuple(item))
        else:
            raise InputShapeError(msg="Not a (doc_id, token_id) pair: %r" % (item,))
    return pairs


def block_ids(*inputs: Any) -> BlockSet:
    """
    Merge the inputs into one BlockSet.
    Each input can be None, a BlockSet, a ResultBatch (all tokens used
    under any role), a TokenIndex (all its tokens), a mapping with doc_id
    and token_id columns, or an iterable of (doc_id, token_id) pairs or
    of rows with doc_id and token_id.
    Anything else raises InputShapeError.
    """
    out = set()
    for data in inputs:
        if data is None:
            continue
        out.update(_pairs(data))
    return BlockSet(out)
