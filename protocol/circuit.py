"""Circuit layer: values, cells, regions, layouters and the Circuit base class.

Synthesis runs against an assignment backend (see protocol.assembly). The
SimpleFloorPlanner measures every region first, then places it at the first
row after everything already used in the columns it touches.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from primitives.field import FF, to_field
from protocol.constraint_system import ConstraintSystem, Selector
from protocol.errors import ConstraintSystemError, WitnessError
from protocol.expressions import Column, ColumnKind


# --- Values ---

class Value:
    """A witness value that may be unknown (keygen) or known (proving)."""

    __slots__ = ("_inner",)

    def __init__(self, inner: Optional[FF] = None) -> None:
        self._inner = inner

    @classmethod
    def known(cls, value) -> "Value":
        return cls(to_field(value))

    @classmethod
    def unknown(cls) -> "Value":
        return cls(None)

    def is_known(self) -> bool:
        return self._inner is not None

    def assigned(self) -> FF:
        """The field value; raises WitnessError if unknown."""
        if self._inner is None:
            raise WitnessError("Value is unknown")
        return self._inner

    def map(self, f: Callable) -> "Value":
        return Value(to_field(f(self._inner))) if self._inner is not None else Value()

    def _combine(self, other: "Value", op: Callable) -> "Value":
        if not isinstance(other, Value):
            return NotImplemented
        if self._inner is None or other._inner is None:
            return Value()
        return Value(op(self._inner, other._inner))

    def __add__(self, other: "Value") -> "Value":
        return self._combine(other, lambda a, b: a + b)

    def __sub__(self, other: "Value") -> "Value":
        return self._combine(other, lambda a, b: a - b)

    def __mul__(self, other: "Value") -> "Value":
        return self._combine(other, lambda a, b: a * b)

    def __neg__(self) -> "Value":
        return Value(-self._inner) if self._inner is not None else Value()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self._inner is None or other._inner is None:
            return self._inner is None and other._inner is None
        return int(self._inner) == int(other._inner)

    def __hash__(self) -> int:
        return hash(None if self._inner is None else int(self._inner))

    def __repr__(self) -> str:
        return "Value(Unknown)" if self._inner is None else f"Value(Known({int(self._inner)}))"


# --- Cells ---

@dataclass(frozen=True)
class Cell:
    """A cell addressed relative to the start of its region."""
    region_index: int
    row_offset: int
    column: Column


class AssignedCell:
    """An assigned cell together with the value written into it."""

    def __init__(self, value: Value, cell: Cell) -> None:
        self._value = value
        self.cell = cell

    def value(self) -> Value:
        return self._value

    def copy_advice(self, annotation: str, region: "Region", column: Column, offset: int) -> "AssignedCell":
        """Assign this value into another cell and constrain the two equal."""
        assigned = region.assign_advice(annotation, column, offset, self._value)
        region.constrain_equal(assigned.cell, self.cell)
        return assigned

    def __repr__(self) -> str:
        return f"AssignedCell({self._value!r}, {self.cell})"


# --- Regions ---

class RegionLayouter(ABC):
    """Backend a Region delegates to."""

    @abstractmethod
    def enable_selector(self, annotation: str, selector: Selector, offset: int) -> None: ...

    @abstractmethod
    def assign_advice(self, annotation: str, column: Column, offset: int, value: Value) -> Cell: ...

    @abstractmethod
    def assign_fixed(self, annotation: str, column: Column, offset: int, value: Value) -> Cell: ...

    @abstractmethod
    def constrain_equal(self, left: Cell, right: Cell) -> None: ...


class Region:
    """A block of rows owned by one assignment closure."""

    def __init__(self, layouter: RegionLayouter) -> None:
        self._layouter = layouter

    def enable_selector(self, annotation: str, selector: Selector, offset: int) -> None:
        self._layouter.enable_selector(annotation, selector, offset)

    def assign_advice(self, annotation: str, column: Column, offset: int, value) -> AssignedCell:
        if column.kind != ColumnKind.ADVICE:
            raise ConstraintSystemError(f"assign_advice on {column!r}")
        value = value if isinstance(value, Value) else Value.known(value)
        cell = self._layouter.assign_advice(annotation, column, offset, value)
        return AssignedCell(value, cell)

    def assign_fixed(self, annotation: str, column: Column, offset: int, value) -> AssignedCell:
        if column.kind != ColumnKind.FIXED:
            raise ConstraintSystemError(f"assign_fixed on {column!r}")
        value = value if isinstance(value, Value) else Value.known(value)
        cell = self._layouter.assign_fixed(annotation, column, offset, value)
        return AssignedCell(value, cell)

    def constrain_equal(self, left: Cell, right: Cell) -> None:
        self._layouter.constrain_equal(left, right)


class RegionShape(RegionLayouter):
    """Measuring pass: records touched columns and row count, assigns nothing."""

    def __init__(self, region_index: int) -> None:
        self.region_index = region_index
        self.columns: Set[Column] = set()
        self.row_count = 0

    def _touch(self, column: Column, offset: int) -> Cell:
        if offset < 0:
            raise ConstraintSystemError(f"Negative row offset {offset}")
        self.columns.add(column)
        self.row_count = max(self.row_count, offset + 1)
        return Cell(self.region_index, offset, column)

    def enable_selector(self, annotation: str, selector: Selector, offset: int) -> None:
        self._touch(selector.column, offset)

    def assign_advice(self, annotation: str, column: Column, offset: int, value: Value) -> Cell:
        return self._touch(column, offset)

    def assign_fixed(self, annotation: str, column: Column, offset: int, value: Value) -> Cell:
        return self._touch(column, offset)

    def constrain_equal(self, left: Cell, right: Cell) -> None:
        pass


class SingleChipRegion(RegionLayouter):
    """Assignment pass: translates region offsets to absolute rows."""

    def __init__(self, layouter: "SingleChipLayouter", region_index: int) -> None:
        self._layouter = layouter
        self._region_index = region_index
        self._start = layouter.region_starts[region_index]

    def enable_selector(self, annotation: str, selector: Selector, offset: int) -> None:
        self._layouter.backend.enable_selector(annotation, selector, self._start + offset)

    def assign_advice(self, annotation: str, column: Column, offset: int, value: Value) -> Cell:
        self._layouter.backend.assign_advice(annotation, column, self._start + offset, value)
        return Cell(self._region_index, offset, column)

    def assign_fixed(self, annotation: str, column: Column, offset: int, value: Value) -> Cell:
        self._layouter.backend.assign_fixed(annotation, column, self._start + offset, value)
        return Cell(self._region_index, offset, column)

    def constrain_equal(self, left: Cell, right: Cell) -> None:
        self._layouter.backend.copy(
            left.column, self._layouter.absolute_row(left),
            right.column, self._layouter.absolute_row(right),
        )


# --- Layouters ---

class Layouter(ABC):
    """Places regions in the table and binds cells to public instances."""

    @abstractmethod
    def assign_region(self, name: str, assignment: Callable[[Region], object]):
        """Run assignment inside a fresh region and return its result."""

    @abstractmethod
    def constrain_instance(self, cell: Cell, column: Column, row: int) -> None:
        """Constrain cell to equal the instance value at (column, row)."""

    def namespace(self, name: str) -> "Layouter":
        return NamespacedLayouter(self, name)


class SingleChipLayouter(Layouter):
    """Layouter of the SimpleFloorPlanner."""

    def __init__(self, backend) -> None:
        self.backend = backend
        self.region_starts: List[int] = []
        self.columns_end: Dict[Column, int] = {}

    def assign_region(self, name: str, assignment: Callable[[Region], object]):
        region_index = len(self.region_starts)

        shape = RegionShape(region_index)
        assignment(Region(shape))

        start = max((self.columns_end.get(column, 0) for column in shape.columns), default=0)
        self.region_starts.append(start)
        for column in shape.columns:
            self.columns_end[column] = max(self.columns_end.get(column, 0), start + shape.row_count)

        self.backend.enter_region(name, region_index, start)
        result = assignment(Region(SingleChipRegion(self, region_index)))
        self.backend.exit_region()
        return result

    def constrain_instance(self, cell: Cell, column: Column, row: int) -> None:
        if column.kind != ColumnKind.INSTANCE:
            raise ConstraintSystemError(f"constrain_instance on {column!r}")
        self.backend.copy(cell.column, self.absolute_row(cell), column, row)

    def absolute_row(self, cell: Cell) -> int:
        return self.region_starts[cell.region_index] + cell.row_offset


class NamespacedLayouter(Layouter):
    """Prefixes region names with a namespace path for diagnostics."""

    def __init__(self, root: Layouter, name: str) -> None:
        self._root = root
        self._name = name

    def assign_region(self, name: str, assignment: Callable[[Region], object]):
        return self._root.assign_region(f"{self._name}/{name}", assignment)

    def constrain_instance(self, cell: Cell, column: Column, row: int) -> None:
        self._root.constrain_instance(cell, column, row)


class SimpleFloorPlanner:
    """Places each region after the last used row of its columns."""

    @staticmethod
    def synthesize(backend, circuit: "Circuit", config) -> SingleChipLayouter:
        layouter = SingleChipLayouter(backend)
        circuit.synthesize(config, layouter)
        return layouter


# --- Circuit ---

class Circuit(ABC):
    """A circuit: shape from configure(), witness from synthesize()."""

    floor_planner = SimpleFloorPlanner

    @abstractmethod
    def without_witnesses(self) -> "Circuit":
        """Same circuit with every witness value unknown."""

    @classmethod
    @abstractmethod
    def configure(cls, meta: ConstraintSystem):
        """Declare columns, selectors and gates; return the circuit config."""

    @abstractmethod
    def synthesize(self, config, layouter: Layouter) -> None:
        """Assign the witness and wire cells to instances."""
