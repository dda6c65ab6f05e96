"""
Predicates select tokens by their attributes.

A predicate is evaluated against a token row (a mapping of column name
to value) and an environment, a mapping of names captured when the
query was built. Identifiers resolve against the token first, then the
environment; an identifier found in neither is an EvaluationError, as
is a comparison between values of incompatible types.

Predicates are normally written as small expressions, e.g.

    lemma in SAY_VERBS and pos == 'VERB'
    not (relation == 'punct' or token_id > 10)

which PredicateExpression parses into a tree of Predicate objects.
Plain callables taking the token row are accepted as well.
"""

from abc import ABC, abstractmethod
import ast
import numbers
import operator
import re
from typing import Any, Callable, List, Mapping, Optional, Union

from depcore.dbfutil import GenericException, SimpleClass


class EvaluationError(GenericException):
    """A predicate could not be evaluated (or parsed)."""
    pass


class Operand(ABC):

    @abstractmethod
    def evaluate(self, token: Mapping[str, Any], env: Mapping[str, Any]) -> Any:
        pass


class Identifier(Operand):

    def __init__(self, name: str):
        self.name = name

    def evaluate(self, token, env):
        if self.name in token:
            return token[self.name]
        if env is not None and self.name in env:
            return env[self.name]
        raise EvaluationError(msg="Name '%s' is neither a token attribute nor defined in the query environment"
                                  % self.name)

    def __str__(self):
        return self.name


class Literal(Operand):

    def __init__(self, value):
        self.value = value

    def evaluate(self, token, env):
        return self.value

    def __str__(self):
        return repr(self.value)


class ListLiteral(Operand):

    def __init__(self, items: List[Operand]):
        self.items = items

    def evaluate(self, token, env):
        return [item.evaluate(token, env) for item in self.items]

    def __str__(self):
        return '[' + ', '.join(str(item) for item in self.items) + ']'


class Predicate(SimpleClass, ABC):
    """Abstract base class for token predicates."""

    @abstractmethod
    def matches(self, token: Mapping[str, Any], env: Optional[Mapping[str, Any]] = None) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def dump(self, indent=0):
        pass

    def __call__(self, token, env=None):
        return self.matches(token, env)


class CallablePredicate(Predicate):
    """Wraps a function of the token row."""
    function: Callable[[Mapping[str, Any]], Any]

    def matches(self, token, env=None):
        try:
            return bool(self.function(token))
        except (KeyError, TypeError) as e:
            raise EvaluationError(msg="Predicate %s failed on token %s: %s"
                                      % (self.label(), dict(token), e)) from e

    def label(self):
        return getattr(self.function, '__name__', repr(self.function))

    def dump(self, indent=0):
        print("%sFN %s" % ((' ' * indent), self.label()))

    def __str__(self):
        return self.label()


def _comparable(left, right) -> bool:
    """None compares with anything; numbers with numbers; otherwise types must agree."""
    if left is None or right is None:
        return True
    if isinstance(left, numbers.Number) and isinstance(right, numbers.Number):
        return True
    return isinstance(left, type(right)) or isinstance(right, type(left))


class ComparisonPredicate(Predicate):
    left: Operand
    op: str
    right: Operand

    OPERATORS = {
        '==': operator.eq,
        '!=': operator.ne,
        '<': operator.lt,
        '<=': operator.le,
        '>': operator.gt,
        '>=': operator.ge,
        'in': lambda a, b: a in b,
        'not in': lambda a, b: a not in b,
    }

    def matches(self, token, env=None):
        left = self.left.evaluate(token, env)
        right = self.right.evaluate(token, env)
        if self.op in ('==', '!=') and not _comparable(left, right):
            raise EvaluationError(msg="Cannot evaluate %s: %r and %r have incompatible types"
                                      % (self, left, right))
        try:
            return bool(self.OPERATORS[self.op](left, right))
        except TypeError as e:
            raise EvaluationError(msg="Cannot evaluate %s: %r %s %r (%s)"
                                      % (self, left, self.op, right, e)) from e

    def dump(self, indent=0):
        print("%sCMP %s" % ((' ' * indent), self))

    def __str__(self):
        return "%s %s %s" % (self.left, self.op, self.right)


class TruthPredicate(Predicate):
    """True if a single operand is truthy, e.g. a boolean attribute."""
    arg: Operand

    def matches(self, token, env=None):
        return bool(self.arg.evaluate(token, env))

    def dump(self, indent=0):
        print("%sIS %s" % ((' ' * indent), self.arg))

    def __str__(self):
        return str(self.arg)


class AndPredicate(Predicate):
    subs: List[Predicate]  # at least 2

    def matches(self, token, env=None):
        for sub in self.subs:
            if not sub.matches(token, env):
                return False
        return True

    def dump(self, indent=0):
        print("%sAND" % (' ' * indent))
        for s in self.subs:
            s.dump(indent + 3)

    def __str__(self):
        return '(' + ' and '.join(str(s) for s in self.subs) + ')'


class OrPredicate(Predicate):
    subs: List[Predicate]  # at least 2

    def matches(self, token, env=None):
        for sub in self.subs:
            if sub.matches(token, env):
                return True
        return False

    def dump(self, indent=0):
        print("%sOR" % (' ' * indent))
        for s in self.subs:
            s.dump(indent + 3)

    def __str__(self):
        return '(' + ' or '.join(str(s) for s in self.subs) + ')'


class NotPredicate(Predicate):
    arg: Predicate

    def matches(self, token, env=None):
        return not self.arg.matches(token, env)

    def dump(self, indent=0):
        print("%sNOT" % (' ' * indent))
        self.arg.dump(indent + 3)

    def __str__(self):
        return 'not %s' % self.arg


class PredicateExpression(object):
    """
    Recursive descent parser for predicate expressions.
    Grammar:
      orexpr     -> andexpr ('or' andexpr)*
      andexpr    -> notexpr ('and' notexpr)*
      notexpr    -> 'not' notexpr | comparison
      comparison -> '(' orexpr ')' | operand [op operand]
      operand    -> IDENTIFIER | STRING | NUMBER | True | False | None
                    | '[' [operand (',' operand)*] ']'
      op         -> '==' | '!=' | '<' | '<=' | '>' | '>=' | 'in' | 'not' 'in'
    """

    token_expression = (r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|-?\d+(?:\.\d*)?"
                        r"|==|!=|<=|>=|<|>|\(|\)|\[|\]|,|\w+|\S")

    COMPARISONS = ('==', '!=', '<', '<=', '>', '>=', 'in')
    KEYWORDS = {'and', 'or', 'not', 'in'}
    CONSTANTS = {'True': True, 'False': False, 'None': None}

    def __init__(self, expr: str):
        self.expr = expr
        self.toks: List[str] = []

    def tokenize(self, expr):
        return re.findall(self.token_expression, expr)

    def parse(self) -> Predicate:
        self.toks = self.tokenize(self.expr)
        if len(self.toks) == 0:
            raise EvaluationError(msg="Empty predicate expression")
        pred = self.orexpr()
        if len(self.toks) > 0:
            raise EvaluationError(msg="Extra tokens starting with '%s' in predicate expression '%s'"
                                      % (self.toks[0], self.expr))
        return pred

    def _peek(self):
        return self.toks[0] if self.toks else None

    def _expect(self, tok):
        if self._peek() != tok:
            raise EvaluationError(msg="Expected '%s' at '%s' in predicate expression '%s'"
                                      % (tok, self._peek(), self.expr))
        self.toks.pop(0)

    def orexpr(self) -> Predicate:
        subs = [self.andexpr()]
        while self._peek() == 'or':
            self.toks.pop(0)
            subs.append(self.andexpr())
        if len(subs) > 1:
            return OrPredicate(subs=subs)
        return subs[0]

    def andexpr(self) -> Predicate:
        subs = [self.notexpr()]
        while self._peek() == 'and':
            self.toks.pop(0)
            subs.append(self.notexpr())
        if len(subs) > 1:
            return AndPredicate(subs=subs)
        return subs[0]

    def notexpr(self) -> Predicate:
        # 'not in' is an operator, and can't start an expression.
        if self._peek() == 'not':
            self.toks.pop(0)
            return NotPredicate(arg=self.notexpr())
        return self.comparison()

    def comparison(self) -> Predicate:
        if self._peek() == '(':
            self.toks.pop(0)
            pred = self.orexpr()
            self._expect(')')
            return pred
        left = self.operand()
        tok = self._peek()
        if tok in self.COMPARISONS:
            self.toks.pop(0)
            return ComparisonPredicate(left=left, op=tok, right=self.operand())
        if tok == 'not' and len(self.toks) > 1 and self.toks[1] == 'in':
            self.toks.pop(0)
            self.toks.pop(0)
            return ComparisonPredicate(left=left, op='not in', right=self.operand())
        return TruthPredicate(arg=left)

    def operand(self) -> Operand:
        if len(self.toks) == 0:
            raise EvaluationError(msg="Unexpected end of predicate expression '%s'" % self.expr)
        tok = self.toks.pop(0)
        if tok == '[':
            items = []
            if self._peek() == ']':
                self.toks.pop(0)
                return ListLiteral(items)
            items.append(self.operand())
            while self._peek() == ',':
                self.toks.pop(0)
                items.append(self.operand())
            self._expect(']')
            return ListLiteral(items)
        if tok in self.CONSTANTS:
            return Literal(self.CONSTANTS[tok])
        if tok[0] in '\'"' or re.match(r'-?\d', tok):
            try:
                return Literal(ast.literal_eval(tok))
            except (ValueError, SyntaxError) as e:
                raise EvaluationError(msg="Bad literal %s in predicate expression '%s'"
                                          % (tok, self.expr)) from e
        if re.match(r'[A-Za-z_]\w*$', tok) and tok not in self.KEYWORDS:
            return Identifier(tok)
        raise EvaluationError(msg="Unparsable operand '%s' in predicate expression '%s'" % (tok, self.expr))


def as_predicate(select: Union[None, str, Predicate, Callable]) -> Optional[Predicate]:
    """Normalize the select argument of queries to a Predicate (or None)."""
    if select is None:
        return None
    if isinstance(select, Predicate):
        return select
    if isinstance(select, str):
        return PredicateExpression(select).parse()
    if callable(select):
        return CallablePredicate(function=select)
    raise EvaluationError(msg="Not a valid predicate: %r" % (select,))
