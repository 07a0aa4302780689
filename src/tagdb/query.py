"""
Query expressions and the query compiler.

A `Query` is an immutable sequence of nodes: `Text` holds literal SQL,
`Param` holds a bound value. Values therefore never reach the SQL text;
the compiler walks the nodes and emits a `?` marker for each value:

    >>> q = sql('SELECT * FROM users WHERE id IN (', param([1, 2, 3]),
    ...         ') AND status = ', param('active'))
    >>> q.compile()
    CompiledQuery(sql='SELECT * FROM users WHERE id IN (?,?,?) AND status = ?', params=(1, 2, 3, 'active'))

The same query from literal fragments and values, one fewer value than
fragments:

    >>> Query.template(['SELECT * FROM users WHERE id IN (', ') AND status = ', ''],
    ...                [1, 2, 3], 'active').compile().params
    (1, 2, 3, 'active')
"""
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Self

from tagdb.exceptions import UsageError
from tagdb.sql import make_placeholders

__all__ = [
    'Text',
    'Param',
    'Query',
    'CompiledQuery',
    'sql',
    'param',
    'is_array',
]

logger = logging.getLogger(__name__)


def is_array(value: Any) -> bool:
    """True for values expanded into one placeholder per element.
    """
    return isinstance(value, list | tuple)


@dataclass(frozen=True, slots=True)
class Text:
    """Literal SQL fragment."""
    text: str


@dataclass(frozen=True, slots=True)
class Param:
    """Bound value; lists and tuples expand to one placeholder per element."""
    value: Any


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """SQL with `?` placeholders and the flat parameter list bound to them.
    """
    sql: str
    params: tuple

    def __iter__(self) -> Iterator:
        yield self.sql
        yield self.params


class Query:
    """Immutable query expression made of `Text` and `Param` nodes.
    """

    __slots__ = ('nodes',)

    def __init__(self, nodes: Sequence[Text | Param] = ()) -> None:
        for node in nodes:
            if not isinstance(node, Text | Param):
                raise UsageError(f'Query nodes must be Text or Param, not {type(node).__name__}')
        self.nodes = tuple(nodes)

    @classmethod
    def template(cls, fragments: Sequence[str], *values: Any) -> Self:
        """Build a query from literal fragments interleaved with values.

        Parameters
            fragments: Literal SQL pieces, exactly one more than `values`
            values: Values bound between consecutive fragments

        Raises
            UsageError: If fragments is a plain string, contains non-strings,
                or does not have exactly one more element than values
        """
        if isinstance(fragments, str) or not isinstance(fragments, Sequence):
            raise UsageError('fragments must be a sequence of strings, not a plain string')
        if len(fragments) != len(values) + 1:
            raise UsageError(
                f'Expected {len(fragments) - 1} value(s) for {len(fragments)} fragment(s), got {len(values)}')

        nodes: list[Text | Param] = []
        for i, fragment in enumerate(fragments):
            if not isinstance(fragment, str):
                raise UsageError(f'Fragment {i} must be a string, not {type(fragment).__name__}')
            if fragment:
                nodes.append(Text(fragment))
            if i < len(values):
                nodes.append(Param(values[i]))
        return cls(nodes)

    def __add__(self, other: 'Query | str') -> 'Query':
        if isinstance(other, str):
            return Query((*self.nodes, Text(other)))
        if isinstance(other, Query):
            return Query(self.nodes + other.nodes)
        return NotImplemented

    def __radd__(self, other: str) -> 'Query':
        if isinstance(other, str):
            return Query((Text(other), *self.nodes))
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self.nodes == other.nodes

    def __hash__(self) -> int:
        return hash(self.nodes)

    def __repr__(self) -> str:
        return f'Query({list(self.nodes)!r})'

    @property
    def params(self) -> list[Any]:
        """Bound values in order, before array expansion."""
        return [node.value for node in self.nodes if isinstance(node, Param)]

    def compile(self) -> CompiledQuery:
        """Produce the parameterized SQL and the flat parameter list.

        Raises
            UsageError: If a list/tuple value is empty, since it would
                compile to no placeholder at all
        """
        parts: list[str] = []
        params: list[Any] = []

        for node in self.nodes:
            if isinstance(node, Text):
                parts.append(node.text)
                continue

            value = node.value
            if is_array(value):
                if not value:
                    raise UsageError('Cannot bind an empty list; it would produce malformed SQL')
                parts.append(make_placeholders(len(value)))
                params.extend(value)
            else:
                parts.append('?')
                params.append(value)

        return CompiledQuery(''.join(parts), tuple(params))


def param(value: Any) -> Param:
    """Mark a value for binding in `sql()`.
    """
    return Param(value)


def sql(*parts: 'str | Param | Query') -> Query:
    """Build a query from SQL text, `param()` values and nested queries.

    Only `str` parts are treated as SQL; every value must be wrapped with
    `param()`.
    """
    nodes: list[Text | Param] = []
    for part in parts:
        if isinstance(part, str):
            if part:
                nodes.append(Text(part))
        elif isinstance(part, Param):
            nodes.append(part)
        elif isinstance(part, Query):
            nodes.extend(part.nodes)
        else:
            raise UsageError(f'Wrap values with param(); got bare {type(part).__name__}')
    return Query(nodes)


def build_query(template: tuple) -> Query:
    """Normalize the arguments of a templated-query call into a `Query`.

    Accepts `(query,)` or `(fragments, *values)`. A plain string as first
    argument is rejected so raw SQL can never be run unparameterized through
    the templated entry point.
    """
    if not template:
        raise UsageError('syntax is db(query), a query expression is required')

    first, *values = template
    if isinstance(first, str):
        raise UsageError('syntax is db.run(sql, params), not db(sql)')
    if isinstance(first, Query):
        if values:
            raise UsageError('Values cannot be passed alongside a Query; use param() inside it')
        return first
    return Query.template(first, *values)
