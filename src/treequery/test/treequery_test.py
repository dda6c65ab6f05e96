from typing import Any, List, Sequence, Tuple
import unittest

from depcore.tokenindex import DOC_ID, PARENT, RELATION, TOKEN_ID, TokenIndex
from treequery.result import ResultBatch


# (doc_id, token_id, parent, relation, token, lemma, pos)
SAID = [
    (1, 1, None, 'root', 'said', 'said', 'VERB'),
    (1, 2, 1, 'su', 'he', 'he', 'PRON'),
    (1, 3, 1, 'vc', 'that', 'that', 'SCONJ'),
    (1, 4, 3, 'body', 'rain', 'rain', 'NOUN'),
]

# Doc 1: John says that Mary thinks it rains
# Doc 2: Peter told reporters nothing
REPORTS = [
    (1, 1, 2, 'su', 'John', 'john', 'PROPN'),
    (1, 2, None, 'root', 'says', 'say', 'VERB'),
    (1, 3, 2, 'vc', 'that', 'that', 'SCONJ'),
    (1, 4, 5, 'su', 'Mary', 'mary', 'PROPN'),
    (1, 5, 3, 'body', 'thinks', 'think', 'VERB'),
    (1, 6, 7, 'su', 'it', 'it', 'PRON'),
    (1, 7, 5, 'vc', 'rains', 'rain', 'VERB'),
    (2, 1, 2, 'su', 'Peter', 'peter', 'PROPN'),
    (2, 2, None, 'root', 'told', 'tell', 'VERB'),
    (2, 3, 2, 'obj1', 'reporters', 'reporter', 'NOUN'),
    (2, 4, 2, 'vc', 'nothing', 'nothing', 'PRON'),
]

# Malformed: the parent links of doc 1 form a cycle 1 -> 2 -> 3 -> 1.
CYCLE = [
    (1, 1, 2, 'a', 'x', 'x', 'X'),
    (1, 2, 3, 'b', 'y', 'y', 'X'),
    (1, 3, 1, 'c', 'z', 'z', 'X'),
]

SAY_VERBS = ['say', 'said', 'tell', 'think']


class TreeQueryTest(unittest.TestCase):
    """Base class with helpers for building token tables and reading results."""

    ATTRIBUTES = ('token', 'lemma', 'pos')

    def table(self, tuples: Sequence[Tuple]) -> TokenIndex:
        columns = (DOC_ID, TOKEN_ID, PARENT, RELATION) + self.ATTRIBUTES
        return TokenIndex([dict(zip(columns, t)) for t in tuples], columns=columns)

    def said(self) -> TokenIndex:
        return self.table(SAID)

    def reports(self) -> TokenIndex:
        return self.table(REPORTS)

    def cycle(self) -> TokenIndex:
        return self.table(CYCLE)

    def values(self, result: ResultBatch, *columns: str) -> List[Tuple[Any, ...]]:
        """The given columns of each row, as tuples, in row order."""
        return [tuple(row[c] for c in columns) for row in result]
