from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from frozendict import frozendict
from ordered_set import OrderedSet

from depcore.tokenindex import DOC_ID


class ResultBatch(object):
    """
    Rows returned by find_nodes and apply_queries.
    Each row holds doc_id, the root key column (.KEY), one token_id per
    role (save name), and, from apply_queries, the query name (.QUERY).
    Columns form an ordered set; a row that lacks a column (e.g. a role
    introduced by a later query in a chain, or the roles of a negated
    spec) reads as None.
    Batches are immutable; union() returns a new batch.
    """

    def __init__(self, rows: Iterable[Mapping[str, Any]] = (), columns: Optional[Iterable[str]] = None):
        self._rows = tuple(frozendict(row) for row in rows)
        columns = OrderedSet([DOC_ID] if columns is None else columns)
        for row in self._rows:
            columns |= row.keys()
        self.columns = columns

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        for row in self._rows:
            yield {c: row.get(c) for c in self.columns}

    def __getitem__(self, i) -> Dict[str, Any]:
        row = self._rows[i]
        return {c: row.get(c) for c in self.columns}

    def __eq__(self, other):
        if not isinstance(other, ResultBatch):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self):
        return "ResultBatch(%d rows, columns=%s)" % (len(self), list(self.columns))

    def column(self, name: str) -> List[Any]:
        return [row.get(name) for row in self._rows]

    def roles(self) -> List[str]:
        """Save name columns, i.e. all but doc_id and internal columns."""
        return [c for c in self.columns if c != DOC_ID and not c.startswith('.')]

    def select_roles(self, roles: Iterable[str]) -> 'ResultBatch':
        """Batch with only the given roles (plus doc_id and internal columns)."""
        keep = set(roles)
        columns = [c for c in self.columns if c == DOC_ID or c.startswith('.') or c in keep]
        return ResultBatch(({c: row[c] for c in columns if c in row} for row in self._rows),
                           columns=columns)

    def with_column(self, name: str, value: Any) -> 'ResultBatch':
        """Batch with the column set to value in every row."""
        columns = OrderedSet(self.columns)
        columns.add(name)
        return ResultBatch((row.set(name, value) for row in self._rows), columns=columns)

    def union(self, *others: 'ResultBatch') -> 'ResultBatch':
        """Rows of self followed by rows of others, with the union of their columns."""
        columns = OrderedSet(self.columns)
        rows = list(self._rows)
        for other in others:
            if other is None:
                continue
            columns |= other.columns
            rows.extend(other._rows)
        return ResultBatch(rows, columns=columns)

    def to_records(self) -> List[Dict[str, Any]]:
        return list(self)
