"""Polynomial constraint expressions over table columns.

Expressions are small immutable trees. `evaluate` walks the tree against a
ConstraintContext, so the same gate evaluates over whole columns (prover),
over table rows (mock prover) or at a single point (verifier).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Tuple, Union

from primitives.field import GOLDILOCKS_PRIME, to_field


class ColumnKind(Enum):
    """Kind of a table column."""
    ADVICE = "advice"
    FIXED = "fixed"
    INSTANCE = "instance"


@dataclass(frozen=True)
class Column:
    """A column of the table, identified by kind and index within that kind."""
    index: int
    kind: ColumnKind

    def __lt__(self, other: "Column") -> bool:
        return (self.kind.value, self.index) < (other.kind.value, other.index)

    def __repr__(self) -> str:
        return f"{self.kind.value}[{self.index}]"


@dataclass(frozen=True)
class Rotation:
    """Row offset relative to the row where a gate is evaluated."""
    value: int = 0

    @classmethod
    def cur(cls) -> "Rotation":
        return cls(0)

    @classmethod
    def next(cls) -> "Rotation":
        return cls(1)

    @classmethod
    def prev(cls) -> "Rotation":
        return cls(-1)


# (column, rotation) pair queried by an expression
Query = Tuple[Column, int]


class Expression(ABC):
    """Base class of constraint expressions."""

    @abstractmethod
    def degree(self) -> int:
        """Polynomial degree in the column variables."""

    @abstractmethod
    def evaluate(self, ctx):
        """Evaluate through a ConstraintContext."""

    @abstractmethod
    def queries(self) -> Iterator[Query]:
        """Yield every (column, rotation) the expression reads."""

    def __add__(self, other: "ExpressionLike") -> "Expression":
        return Sum(self, as_expression(other))

    def __radd__(self, other: "ExpressionLike") -> "Expression":
        return Sum(as_expression(other), self)

    def __sub__(self, other: "ExpressionLike") -> "Expression":
        return Sum(self, Negated(as_expression(other)))

    def __rsub__(self, other: "ExpressionLike") -> "Expression":
        return Sum(as_expression(other), Negated(self))

    def __mul__(self, other: "ExpressionLike") -> "Expression":
        if isinstance(other, int):
            return Scaled(self, other % GOLDILOCKS_PRIME)
        return Product(self, as_expression(other))

    def __rmul__(self, other: "ExpressionLike") -> "Expression":
        if isinstance(other, int):
            return Scaled(self, other % GOLDILOCKS_PRIME)
        return Product(as_expression(other), self)

    def __neg__(self) -> "Expression":
        return Negated(self)


ExpressionLike = Union[Expression, int]


def as_expression(value: ExpressionLike) -> Expression:
    if isinstance(value, Expression):
        return value
    if isinstance(value, int):
        return Constant(value % GOLDILOCKS_PRIME)
    raise TypeError(f"Cannot use {type(value).__name__} in an expression")


@dataclass(frozen=True, eq=False)
class Constant(Expression):
    value: int

    def degree(self) -> int:
        return 0

    def evaluate(self, ctx):
        return ctx.constant(self.value)

    def queries(self) -> Iterator[Query]:
        return iter(())

    def __repr__(self) -> str:
        return f"Constant({self.value})"


@dataclass(frozen=True, eq=False)
class ColumnQuery(Expression):
    column: Column
    rotation: int = 0

    def degree(self) -> int:
        return 1

    def evaluate(self, ctx):
        return ctx.query(self.column, self.rotation)

    def queries(self) -> Iterator[Query]:
        yield (self.column, self.rotation)

    def __repr__(self) -> str:
        return f"{self.column!r}@{self.rotation}"


@dataclass(frozen=True, eq=False)
class SelectorQuery(Expression):
    """Reads a selector's fixed column at the current row."""
    selector: "Selector"  # noqa: F821 - defined in constraint_system

    def degree(self) -> int:
        return 1

    def evaluate(self, ctx):
        return ctx.query(self.selector.column, 0)

    def queries(self) -> Iterator[Query]:
        yield (self.selector.column, 0)

    def __repr__(self) -> str:
        return f"selector[{self.selector.index}]"


@dataclass(frozen=True, eq=False)
class Negated(Expression):
    inner: Expression

    def degree(self) -> int:
        return self.inner.degree()

    def evaluate(self, ctx):
        return -self.inner.evaluate(ctx)

    def queries(self) -> Iterator[Query]:
        return self.inner.queries()

    def __repr__(self) -> str:
        return f"-({self.inner!r})"


@dataclass(frozen=True, eq=False)
class Sum(Expression):
    left: Expression
    right: Expression

    def degree(self) -> int:
        return max(self.left.degree(), self.right.degree())

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) + self.right.evaluate(ctx)

    def queries(self) -> Iterator[Query]:
        yield from self.left.queries()
        yield from self.right.queries()

    def __repr__(self) -> str:
        return f"({self.left!r} + {self.right!r})"


@dataclass(frozen=True, eq=False)
class Product(Expression):
    left: Expression
    right: Expression

    def degree(self) -> int:
        return self.left.degree() + self.right.degree()

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) * self.right.evaluate(ctx)

    def queries(self) -> Iterator[Query]:
        yield from self.left.queries()
        yield from self.right.queries()

    def __repr__(self) -> str:
        return f"({self.left!r} * {self.right!r})"


@dataclass(frozen=True, eq=False)
class Scaled(Expression):
    inner: Expression
    factor: int

    def degree(self) -> int:
        return self.inner.degree()

    def evaluate(self, ctx):
        return self.inner.evaluate(ctx) * to_field(self.factor)

    def queries(self) -> Iterator[Query]:
        return self.inner.queries()

    def __repr__(self) -> str:
        return f"({self.inner!r} * {self.factor})"
