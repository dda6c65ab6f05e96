import csv
import logging
import re
from collections import defaultdict
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from frozendict import frozendict
from ordered_set import OrderedSet

from .dbfutil import GenericException


_logger = logging.getLogger(__name__)


DOC_ID = 'doc_id'
TOKEN_ID = 'token_id'
PARENT = 'parent'
RELATION = 'relation'

# Columns every token table must have. Any other column is an attribute,
# only ever looked at by predicates.
TOKENINDEX_COLUMNS = (DOC_ID, TOKEN_ID, PARENT, RELATION)

# (doc_id, token_id) global token address.
Key = Tuple[Hashable, Hashable]


class TokenIndex(object):
    """
    Read-only table of dependency-parsed tokens.
    Each token is a frozendict row with (at least) the columns doc_id,
    token_id, parent and relation; parent is None for a root token.
    Rows are indexed on (doc_id, token_id), (doc_id, parent) and
    relation, so that the query engine never has to scan the table
    to follow an edge or apply a relation filter.
    Every row carries every column of the table; a column a source row
    did not provide holds None.
    """

    def __init__(self, rows: Iterable[Mapping[str, Any]], columns: Optional[Iterable[str]] = None):
        rows = list(rows)
        if columns is None:
            provided = OrderedSet()
            for row in rows:
                provided |= row.keys()
            missing = [c for c in TOKENINDEX_COLUMNS if rows and c not in provided]
            columns = OrderedSet(TOKENINDEX_COLUMNS) | provided
        else:
            columns = OrderedSet(columns)
            missing = [c for c in TOKENINDEX_COLUMNS if c not in columns]
        self.columns = columns
        if missing:
            raise GenericException(msg="Token table is missing required columns: %s" % ', '.join(missing))

        self._rows: List[frozendict] = []
        self._by_id: Dict[Key, frozendict] = {}
        self._position: Dict[Key, int] = {}
        by_parent = defaultdict(list)
        by_relation = defaultdict(list)
        for row in rows:
            full = frozendict((c, row.get(c)) for c in self.columns)
            key = (full[DOC_ID], full[TOKEN_ID])
            if key in self._by_id:
                raise GenericException(msg="Duplicate token (doc_id=%r, token_id=%r)" % key)
            self._position[key] = len(self._rows)
            self._rows.append(full)
            self._by_id[key] = full
            if full[PARENT] is not None:
                by_parent[(full[DOC_ID], full[PARENT])].append(full)
            by_relation[full[RELATION]].append(key)
        # Plain dicts, so that lookups of absent keys never add entries.
        self._by_parent: Dict[Key, List[frozendict]] = dict(by_parent)
        self._by_relation: Dict[Any, List[Key]] = dict(by_relation)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[frozendict]:
        return iter(self._rows)

    def __contains__(self, key) -> bool:
        return key in self._by_id

    def __repr__(self):
        return "TokenIndex(%d tokens, columns=%s)" % (len(self), list(self.columns))

    def keys(self) -> Iterator[Key]:
        for row in self._rows:
            yield row[DOC_ID], row[TOKEN_ID]

    def get(self, doc_id, token_id) -> Optional[frozendict]:
        return self._by_id.get((doc_id, token_id))

    def children_of(self, doc_id, token_id) -> List[frozendict]:
        """Rows whose parent is the given token, in table order."""
        return list(self._by_parent.get((doc_id, token_id), ()))

    def parent_of(self, doc_id, token_id) -> Optional[frozendict]:
        """Row of the given token's parent, or None for a root (or a dangling parent reference)."""
        row = self._by_id.get((doc_id, token_id))
        if row is None or row[PARENT] is None:
            return None
        return self._by_id.get((doc_id, row[PARENT]))

    def position(self, key: Key) -> int:
        """Table position of the token, for putting results in table order."""
        return self._position[key]

    def keys_with_relation(self, relation) -> List[Key]:
        return list(self._by_relation.get(relation, ()))

    def doc_ids(self) -> List[Hashable]:
        return list(OrderedSet(row[DOC_ID] for row in self._rows))

    def with_columns(self, values: Mapping[str, Mapping[Key, Any]]) -> 'TokenIndex':
        """
        Return a new TokenIndex with the given columns added (or replaced).
        values maps column name to a mapping from (doc_id, token_id) to value;
        tokens not in that mapping get None.
        The present index is not modified.
        """
        for name in values:
            if name in TOKENINDEX_COLUMNS:
                raise GenericException(msg="Cannot replace required column '%s'" % name)
        columns = OrderedSet(self.columns) | OrderedSet(values.keys())
        rows = []
        for row in self._rows:
            key = (row[DOC_ID], row[TOKEN_ID])
            new = dict(row)
            for name, column in values.items():
                new[name] = column.get(key)
            rows.append(new)
        return TokenIndex(rows, columns=columns)


def as_tokenindex(data: Union[TokenIndex, Iterable[Mapping[str, Any]]],
                  doc_id=DOC_ID, token_id=TOKEN_ID, parent=PARENT, relation=RELATION) -> TokenIndex:
    """
    Return data as a TokenIndex.
    data can be a TokenIndex, which is returned as is unless columns are
    renamed, or any iterable of mappings (one per token).
    The keyword arguments name the source columns holding the required
    columns, which are renamed to the standard names.
    """
    rename = {src: dst for src, dst in ((doc_id, DOC_ID), (token_id, TOKEN_ID),
                                        (parent, PARENT), (relation, RELATION))
              if src != dst}
    if isinstance(data, TokenIndex) and not rename:
        return data
    if not rename:
        return TokenIndex(data)
    return TokenIndex({rename.get(k, k): v for k, v in row.items()} for row in data)


_INTEGER = re.compile(r'-?\d+$')


def _convert_id(value):
    if value is None:
        return None
    value = value.strip()
    if value == '' or value.upper() in ('NA', 'NONE'):
        return None
    if _INTEGER.match(value):
        return int(value)
    return value


def read_csv(path, doc_id=DOC_ID, token_id=TOKEN_ID, parent=PARENT, relation=RELATION, **kwargs) -> TokenIndex:
    """
    Load a token table from a CSV file with a header row.
    Integer-looking values in the id columns (doc_id, token_id, parent)
    are converted to int; an empty parent is a root.
    Other columns are kept as strings.
    Extra keyword arguments are passed to csv.DictReader.
    """
    rows = []
    with open(path, newline='') as fh:
        reader = csv.DictReader(fh, **kwargs)
        for row in reader:
            for column in (doc_id, token_id, parent):
                if column in row:
                    row[column] = _convert_id(row[column])
            rows.append(row)
    _logger.debug("Read %d tokens from %s", len(rows), path)
    return as_tokenindex(rows, doc_id=doc_id, token_id=token_id, parent=parent, relation=relation)


def tree_string(tokens: TokenIndex, doc_id, label='token') -> str:
    """
    Return a multiline string visualizing the dependency forest of one
    document, one token per line, indented by depth.
    Each line shows the label column (or the token_id if the table has
    no such column), the pos column if present, and the relation.
    """

    def visit(row, level, visited, strings):
        key = (row[DOC_ID], row[TOKEN_ID])
        if key in visited:
            raise GenericException(msg="Re-visiting %r; parent links form a cycle" % (key,))
        visited.add(key)
        text = row.get(label, row[TOKEN_ID]) if label in tokens.columns else row[TOKEN_ID]
        string = ("  " * level) + "- " + str(text)
        if 'pos' in tokens.columns:
            string += " " + str(row['pos'])
        string += " " + str(row[RELATION])
        strings.append(string)
        for child in tokens.children_of(row[DOC_ID], row[TOKEN_ID]):
            visit(child, level + 1, visited, strings)

    strings = []
    visited = set()
    roots = [row for row in tokens if row[DOC_ID] == doc_id and row[PARENT] is None]
    for root in roots:
        visit(root, 0, visited, strings)
    return "\n".join(strings)
