"""
Modules:
apply     - runs sets of queries as a chain, writes results onto token tables
blocks    - normalizes token id inputs into block sets
engine    - matches nested query specs against anchor tokens
family    - finds children/descendants and parents/ancestors of tokens
filter    - selects token rows by relation, ids, block set and predicate
find      - find_nodes, the query entry point, and result assembly
pattern   - query spec builders (children, parents, ...) and TQuery
predicate - token predicates and the predicate expression parser
result    - the result batch returned by queries
"""

from .apply import annotate, apply_queries
from .blocks import BlockSet, InputShapeError, block_ids
from .find import find_nodes
from .pattern import (NameConflictError, TQuery, all_children, all_parents, children, parents,
                      safe_save_name, tquery)
from .predicate import EvaluationError, PredicateExpression, as_predicate
from .result import ResultBatch
