"""
Query specs: immutable pattern trees describing which relatives of a
token to look for.

A find_nodes query starts from a set of root tokens and nests QuerySpec
nodes, each of which looks up the children or parents of the tokens
matched one level up:

    find_nodes(tokens,
               children(save='source', rel='su'),
               children(rel='vc',
                        children(save='quote', rel='body')),
               select="lemma in SAY_VERBS", env={'SAY_VERBS': ['say', 'tell']},
               save='verb')

Specs are built once and can be reused in any number of queries.
"""

import math
import re
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from frozendict import frozendict

from depcore.dbfutil import GenericException
from depcore.tokenindex import DOC_ID, TOKEN_ID

from .blocks import block_ids
from .predicate import Predicate, as_predicate


CHILDREN = 'children'
PARENTS = 'parents'

# Internal columns. Save names may not look like these (see safe_save_name).
KEY = '.KEY'
MATCH_ID = '.MATCH_ID'
QUERY = '.QUERY'

RESERVED_NAMES = (DOC_ID, TOKEN_ID)


class NameConflictError(GenericException):
    """A save name clashes with a column the engine needs for itself."""
    pass


def safe_save_name(name: Optional[str]) -> None:
    """Raise NameConflictError unless name is None or usable as a save name."""
    if name is None:
        return
    if not isinstance(name, str) or name == '':
        raise NameConflictError(msg="save name must be a non-empty string, not %r" % (name,))
    if re.search(r'\.[A-Z]', name):
        raise NameConflictError(msg="save name (%s) cannot contain a dot followed by a capital letter; "
                                    "such names are reserved for internal columns like %s" % (name, KEY))
    if re.search(r'\.[xy]$', name):
        raise NameConflictError(msg="save name (%s) cannot end in .x or .y; these suffixes mark "
                                    "clashing save names while a result is assembled" % name)
    if name in RESERVED_NAMES:
        raise NameConflictError(msg="save name (%s) cannot be the same as the special token table column names (%s)"
                                    % (name, ', '.join(RESERVED_NAMES)))


def _relations(rel) -> Optional[frozenset]:
    if rel is None:
        return None
    if isinstance(rel, str):
        return frozenset((rel,))
    return frozenset(rel)


def _depth(depth) -> Optional[int]:
    """None means unbounded."""
    if depth is None or depth == math.inf:
        return None
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
        raise ValueError("depth must be a positive integer or None (unbounded), not %r" % (depth,))
    return depth


def _describe(save, rel, not_rel, select, ids, env):
    """Attribute summary used in dumps."""
    parts = [save if save is not None else '...']
    if rel is not None:
        parts.append("rel=%s" % ','.join(sorted(repr(r) for r in rel)))
    if not_rel is not None:
        parts.append("not_rel=%s" % ','.join(sorted(repr(r) for r in not_rel)))
    if select is not None:
        parts.append("select=%s" % select)
    if ids is not None:
        parts.append("ids=%d" % len(ids))
    if env:
        parts.append("env=%s" % ','.join(env.keys()))
    return ', '.join(parts)


class QuerySpec(object):
    """
    One node of a query pattern.
    direction: CHILDREN or PARENTS
    depth:     how many hops to search (None for unbounded)
    rel:       allowed relations of the first hop (None for any)
    not_rel:   excluded relations of the first hop
    select:    Predicate on the relatives found
    ids:       allowed relatives as a set of (doc_id, token_id) pairs
    save:      column name for the relatives found, or None to discard
    negate:    if True, the anchor must have NO relative matching this node
    nested:    QuerySpecs applied to each relative found
    env:       names available to the select predicate
    """

    __slots__ = ('direction', 'depth', 'rel', 'not_rel', 'select', 'ids', 'save', 'negate', 'nested', 'env')

    def __init__(self, direction: str, nested: Iterable['QuerySpec'] = (), save: Optional[str] = None,
                 rel=None, not_rel=None, select: Union[None, str, Predicate, Callable] = None,
                 ids=None, negate: bool = False, depth: Optional[int] = 1,
                 env: Optional[Mapping[str, Any]] = None):
        if direction not in (CHILDREN, PARENTS):
            raise GenericException(msg="direction must be '%s' or '%s', not %r" % (CHILDREN, PARENTS, direction))
        safe_save_name(save)
        nested = tuple(nested)
        for spec in nested:
            if not isinstance(spec, QuerySpec):
                raise GenericException(msg="Nested queries must be built with children(), parents(), "
                                           "all_children() or all_parents(); got %r" % (spec,))
        set_ = object.__setattr__
        set_(self, 'direction', direction)
        set_(self, 'depth', _depth(depth))
        set_(self, 'rel', _relations(rel))
        set_(self, 'not_rel', _relations(not_rel))
        set_(self, 'select', as_predicate(select))
        set_(self, 'ids', None if ids is None else block_ids(ids))
        set_(self, 'save', save)
        set_(self, 'negate', bool(negate))
        set_(self, 'nested', nested)
        set_(self, 'env', frozendict(env or {}))

    def __setattr__(self, name, value):
        raise AttributeError("QuerySpec is immutable")

    def __delattr__(self, name):
        raise AttributeError("QuerySpec is immutable")

    def __repr__(self):
        return "QuerySpec(%s, %s)" % (self.direction, self.describe())

    def describe(self) -> str:
        desc = _describe(self.save, self.rel, self.not_rel, self.select, self.ids, self.env)
        if self.depth != 1:
            desc += ", depth=%s" % ('inf' if self.depth is None else self.depth)
        if self.negate:
            desc += ", NOT"
        return desc

    def dump(self, indent=0):
        print("%s%s %s" % ((' ' * indent), 'c' if self.direction == CHILDREN else 'p', self.describe()))
        for spec in self.nested:
            spec.dump(indent + 3)


def children(*nested: QuerySpec, save=None, rel=None, not_rel=None, select=None, ids=None,
             env=None, negate=False, depth=1) -> QuerySpec:
    """
    Look for children of the tokens matched one level up, or for
    descendants up to the given depth. rel and not_rel only constrain
    the first hop. See QuerySpec.
    """
    return QuerySpec(CHILDREN, nested, save=save, rel=rel, not_rel=not_rel, select=select,
                     ids=ids, negate=negate, depth=depth, env=env)


def all_children(*nested: QuerySpec, save=None, rel=None, not_rel=None, select=None, ids=None,
                 env=None, negate=False) -> QuerySpec:
    """children() with unbounded depth."""
    return QuerySpec(CHILDREN, nested, save=save, rel=rel, not_rel=not_rel, select=select,
                     ids=ids, negate=negate, depth=None, env=env)


def parents(*nested: QuerySpec, save=None, rel=None, not_rel=None, select=None, ids=None,
            env=None, negate=False, depth=1) -> QuerySpec:
    """
    Look for the parent of the tokens matched one level up, or for
    ancestors up to the given depth. Note that rel and not_rel refer to
    the relation of the token matched one level up (the edge to its
    parent), not to the relation of the parent itself.
    """
    return QuerySpec(PARENTS, nested, save=save, rel=rel, not_rel=not_rel, select=select,
                     ids=ids, negate=negate, depth=depth, env=env)


def all_parents(*nested: QuerySpec, save=None, rel=None, not_rel=None, select=None, ids=None,
                env=None, negate=False) -> QuerySpec:
    """parents() with unbounded depth."""
    return QuerySpec(PARENTS, nested, save=save, rel=rel, not_rel=not_rel, select=select,
                     ids=ids, negate=negate, depth=None, env=env)


class TQuery(object):
    """
    A complete, reusable query: the root token filters plus nested
    QuerySpecs, i.e. the arguments of find_nodes without the token table.
    The label names the query in apply_queries output.
    """

    __slots__ = ('nested', 'save', 'rel', 'not_rel', 'select', 'ids', 'env', 'label')

    def __init__(self, nested: Iterable[QuerySpec] = (), save=None, rel=None, not_rel=None, select=None,
                 ids=None, env=None, label: Optional[str] = None):
        safe_save_name(save)
        nested = tuple(nested)
        for spec in nested:
            if not isinstance(spec, QuerySpec):
                raise GenericException(msg="Nested queries must be built with children(), parents(), "
                                           "all_children() or all_parents(); got %r" % (spec,))
        set_ = object.__setattr__
        set_(self, 'nested', nested)
        set_(self, 'save', save)
        set_(self, 'rel', _relations(rel))
        set_(self, 'not_rel', _relations(not_rel))
        set_(self, 'select', as_predicate(select))
        set_(self, 'ids', None if ids is None else block_ids(ids))
        set_(self, 'env', frozendict(env or {}))
        set_(self, 'label', label)

    def __setattr__(self, name, value):
        raise AttributeError("TQuery is immutable")

    def __delattr__(self, name):
        raise AttributeError("TQuery is immutable")

    def __repr__(self):
        return "TQuery(%s)" % _describe(self.save, self.rel, self.not_rel, self.select, self.ids, self.env)

    def with_label(self, label: str) -> 'TQuery':
        return TQuery(self.nested, save=self.save, rel=self.rel, not_rel=self.not_rel, select=self.select,
                      ids=self.ids, env=self.env, label=label)

    def dump(self, indent=0):
        name = self.label + ': ' if self.label else ''
        print("%s%s%s" % ((' ' * indent), name,
                          _describe(self.save, self.rel, self.not_rel, self.select, self.ids, self.env)))
        for spec in self.nested:
            spec.dump(indent + 3)


def tquery(*nested: QuerySpec, save=None, rel=None, not_rel=None, select=None, ids=None,
           env=None, label=None) -> TQuery:
    """Build a TQuery; arguments as for find_nodes."""
    return TQuery(nested, save=save, rel=rel, not_rel=not_rel, select=select, ids=ids, env=env, label=label)
