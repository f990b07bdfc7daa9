"""Constraint system: columns, selectors, gates and equality-enabled columns.

A circuit declares its shape once through `configure(meta)`. The system is
then frozen; further declarations raise ConstraintSystemError.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Set, Tuple, Union

from protocol.errors import ConstraintSystemError
from protocol.expressions import (
    Column,
    ColumnKind,
    ColumnQuery,
    Expression,
    Query,
    Rotation,
    SelectorQuery,
)


@dataclass(frozen=True)
class Selector:
    """A 0/1 fixed column that switches gates on for chosen rows."""
    index: int
    column: Column

    def enable(self, region, offset: int) -> None:
        """Enable this selector at offset within region."""
        region.enable_selector("", self, offset)


@dataclass(frozen=True)
class Gate:
    """A named set of polynomial constraints that vanish on every row."""
    name: str
    polys: Tuple[Expression, ...]
    selectors: Tuple[Selector, ...]

    def degree(self) -> int:
        return max((p.degree() for p in self.polys), default=0)

    def queried_columns(self) -> Set[Column]:
        """Non-selector columns read by this gate."""
        selector_columns = {s.column for s in self.selectors}
        return {col for p in self.polys for col, _ in p.queries() if col not in selector_columns}


RotationLike = Union[Rotation, int]


def _rotation(rotation: RotationLike) -> int:
    return rotation.value if isinstance(rotation, Rotation) else int(rotation)


class VirtualCells:
    """Query builder handed to gate closures; records the selectors used."""

    def __init__(self, cs: "ConstraintSystem") -> None:
        self._cs = cs
        self.selectors: List[Selector] = []

    def query_advice(self, column: Column, rotation: RotationLike = 0) -> Expression:
        self._cs._require_kind(column, ColumnKind.ADVICE)
        return ColumnQuery(column, _rotation(rotation))

    def query_fixed(self, column: Column, rotation: RotationLike = 0) -> Expression:
        self._cs._require_kind(column, ColumnKind.FIXED)
        return ColumnQuery(column, _rotation(rotation))

    def query_instance(self, column: Column, rotation: RotationLike = 0) -> Expression:
        self._cs._require_kind(column, ColumnKind.INSTANCE)
        return ColumnQuery(column, _rotation(rotation))

    def query_selector(self, selector: Selector) -> Expression:
        if selector not in self._cs.selectors:
            raise ConstraintSystemError(f"Unknown selector {selector.index}")
        if selector not in self.selectors:
            self.selectors.append(selector)
        return SelectorQuery(selector)


class ConstraintSystem:
    """Shape of a circuit: columns, selectors, gates and permutation columns."""

    def __init__(self) -> None:
        self.advice_columns: List[Column] = []
        self.fixed_columns: List[Column] = []
        self.instance_columns: List[Column] = []
        self.selectors: List[Selector] = []
        self.gates: List[Gate] = []
        self.permutation_columns: List[Column] = []
        self._frozen = False

    # --- Declarations ---

    def advice_column(self) -> Column:
        return self._new_column(ColumnKind.ADVICE, self.advice_columns)

    def fixed_column(self) -> Column:
        return self._new_column(ColumnKind.FIXED, self.fixed_columns)

    def instance_column(self) -> Column:
        return self._new_column(ColumnKind.INSTANCE, self.instance_columns)

    def selector(self) -> Selector:
        """Allocate a selector backed by its own fixed column."""
        column = self.fixed_column()
        selector = Selector(len(self.selectors), column)
        self.selectors.append(selector)
        return selector

    def enable_equality(self, column: Column) -> None:
        """Allow copy constraints on column. Order of calls fixes sigma order."""
        self._check_mutable()
        self._require_declared(column)
        if self.selector_for_column(column) is not None:
            raise ConstraintSystemError(f"Cannot enable equality on selector column {column!r}")
        if column not in self.permutation_columns:
            self.permutation_columns.append(column)

    def create_gate(self, name: str, constraints: Callable[[VirtualCells], Sequence[Expression]]) -> Gate:
        """Declare a gate from a closure returning its constraint expressions."""
        self._check_mutable()
        cells = VirtualCells(self)
        polys = tuple(constraints(cells))
        if not polys:
            raise ConstraintSystemError(f"Gate '{name}' has no constraints")
        for poly in polys:
            for column, _ in poly.queries():
                self._require_declared(column)
        gate = Gate(name, polys, tuple(cells.selectors))
        self.gates.append(gate)
        return gate

    def freeze(self) -> "ConstraintSystem":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # --- Derived Shape ---

    @property
    def num_advice_columns(self) -> int:
        return len(self.advice_columns)

    @property
    def num_fixed_columns(self) -> int:
        return len(self.fixed_columns)

    @property
    def num_instance_columns(self) -> int:
        return len(self.instance_columns)

    def selector_for_column(self, column: Column):
        for selector in self.selectors:
            if selector.column == column:
                return selector
        return None

    def max_gate_degree(self) -> int:
        return max((gate.degree() for gate in self.gates), default=1)

    def degree(self) -> int:
        """Maximum constraint degree including the permutation argument."""
        permutation_degree = len(self.permutation_columns) + 1 if self.permutation_columns else 0
        return max(self.max_gate_degree(), permutation_degree, 2)

    def queries(self) -> List[Query]:
        """Sorted distinct (column, rotation) pairs read by the gates."""
        seen = {q for gate in self.gates for poly in gate.polys for q in poly.queries()}
        return sorted(seen, key=lambda q: (q[0].kind.value, q[0].index, q[1]))

    def conflicting_selectors(self) -> Dict[Selector, Set[Selector]]:
        """Selectors whose gates read a common column; they may not share a row."""
        columns: Dict[Selector, Set[Column]] = {s: set() for s in self.selectors}
        for gate in self.gates:
            for selector in gate.selectors:
                columns[selector] |= gate.queried_columns()
        conflicts: Dict[Selector, Set[Selector]] = {s: set() for s in self.selectors}
        for a in self.selectors:
            for b in self.selectors:
                if a != b and columns[a] & columns[b]:
                    conflicts[a].add(b)
        return conflicts

    def describe(self) -> str:
        """Canonical text description, bound into the verifying key digest."""
        lines = [
            f"advice={self.num_advice_columns}",
            f"fixed={self.num_fixed_columns}",
            f"instance={self.num_instance_columns}",
            "selectors=" + ",".join(repr(s.column) for s in self.selectors),
            "permutation=" + ",".join(repr(c) for c in self.permutation_columns),
        ]
        for gate in self.gates:
            lines.append(f"gate {gate.name}: " + "; ".join(repr(p) for p in gate.polys))
        return "\n".join(lines)

    # --- Internal ---

    def _new_column(self, kind: ColumnKind, columns: List[Column]) -> Column:
        self._check_mutable()
        column = Column(len(columns), kind)
        columns.append(column)
        return column

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConstraintSystemError("Constraint system is frozen")

    def _require_kind(self, column: Column, kind: ColumnKind) -> None:
        if column.kind != kind:
            raise ConstraintSystemError(f"Expected {kind.value} column, got {column!r}")
        self._require_declared(column)

    def _require_declared(self, column: Column) -> None:
        columns = {
            ColumnKind.ADVICE: self.advice_columns,
            ColumnKind.FIXED: self.fixed_columns,
            ColumnKind.INSTANCE: self.instance_columns,
        }[column.kind]
        if column not in columns:
            raise ConstraintSystemError(f"Column {column!r} is not part of this constraint system")
