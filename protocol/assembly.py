"""Assignment backend: fills the advice/fixed table during synthesis.

The same Assembly serves keygen (values unknown, only fixed columns and
copies matter) and proving (advice values required).
"""

import numbers
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from primitives.field import FF, to_field
from protocol.circuit import Circuit, Value
from protocol.constraint_system import ConstraintSystem, Selector
from protocol.errors import ConstraintSystemError, NotEnoughRowsError, WitnessError
from protocol.expressions import Column, ColumnKind
from protocol.permutation import PermutationAssembly

# (left column, left row, right column, right row)
Copy = Tuple[Column, int, Column, int]


@dataclass
class RegionInfo:
    """Placement of one region, kept for diagnostics."""
    name: str
    index: int
    start: int
    rows: List[int] = field(default_factory=list)


class Assembly:
    """Table being filled by a circuit's synthesize()."""

    def __init__(self, k: int, cs: ConstraintSystem) -> None:
        self.k = k
        self.n = 1 << k
        self.cs = cs
        self.advice: List[List[Optional[Value]]] = [[None] * self.n for _ in cs.advice_columns]
        self.fixed: List[List[int]] = [[0] * self.n for _ in cs.fixed_columns]
        self.enabled_selectors: Dict[int, List[Selector]] = {}
        self.permutation = PermutationAssembly(self.n, cs.permutation_columns)
        self.copies: List[Copy] = []
        self.regions: List[RegionInfo] = []
        self.instance_rows: Dict[Column, int] = {c: 0 for c in cs.instance_columns}
        self._owner: Dict[Tuple[Column, int], int] = {}
        self._current: Optional[RegionInfo] = None
        self._conflicts = cs.conflicting_selectors()

    # --- Region Tracking ---

    def enter_region(self, name: str, index: int, start: int) -> None:
        if self._current is not None:
            raise ConstraintSystemError(f"Region '{name}' opened inside '{self._current.name}'")
        self._current = RegionInfo(name, index, start)
        self.regions.append(self._current)

    def exit_region(self) -> None:
        self._current = None

    def region_at(self, row: int) -> Optional[str]:
        """Name of the region covering row, if any."""
        for region in self.regions:
            if row in region.rows:
                return region.name
        return None

    # --- Assignment ---

    def enable_selector(self, annotation: str, selector: Selector, row: int) -> None:
        self._check_row(row, f"selector {selector.index}")
        enabled = self.enabled_selectors.setdefault(row, [])
        for other in enabled:
            if other in self._conflicts[selector]:
                raise ConstraintSystemError(
                    f"Selectors {other.index} and {selector.index} share columns and are both enabled at row {row}"
                )
        if selector not in enabled:
            enabled.append(selector)
        self._claim(selector.column, row)
        self.fixed[selector.column.index][row] = 1

    def assign_advice(self, annotation: str, column: Column, row: int, value: Value) -> None:
        self._check_row(row, annotation or "advice cell")
        self._claim(column, row)
        self.advice[column.index][row] = value

    def assign_fixed(self, annotation: str, column: Column, row: int, value: Value) -> None:
        self._check_row(row, annotation or "fixed cell")
        if self.cs.selector_for_column(column) is not None:
            raise ConstraintSystemError(f"Column {column!r} belongs to a selector")
        self._claim(column, row)
        self.fixed[column.index][row] = int(value.assigned())

    def copy(self, left_column: Column, left_row: int, right_column: Column, right_row: int) -> None:
        for column, row in ((left_column, left_row), (right_column, right_row)):
            self._check_row(row, "copy constraint")
            if column.kind == ColumnKind.INSTANCE:
                self.instance_rows[column] = max(self.instance_rows[column], row + 1)
        self.permutation.copy(left_column, left_row, right_column, right_row)
        self.copies.append((left_column, left_row, right_column, right_row))

    # --- Table Export ---

    def advice_values(self) -> List[FF]:
        """Advice columns as FF arrays; unassigned cells are zero.

        Raises:
            WitnessError: If an assigned cell holds an unknown value
        """
        columns = []
        for index, column in enumerate(self.advice):
            values = []
            for row, value in enumerate(column):
                if value is None:
                    values.append(0)
                elif not value.is_known():
                    raise WitnessError(f"Unknown value in advice[{index}] at row {row}")
                else:
                    values.append(int(value.assigned()))
            columns.append(FF(values))
        return columns

    def fixed_values(self) -> List[FF]:
        return [FF(column) for column in self.fixed]

    # --- Internal ---

    def _check_row(self, row: int, what: str) -> None:
        if not 0 <= row < self.n:
            raise NotEnoughRowsError(row, self.n, what)

    def _claim(self, column: Column, row: int) -> None:
        if self._current is None:
            raise ConstraintSystemError("Assignment outside of a region")
        owner = self._owner.get((column, row))
        if owner is not None and owner != self._current.index:
            raise ConstraintSystemError(
                f"Cell {column!r} row {row} already assigned by region '{self.regions[owner].name}'"
            )
        self._owner[(column, row)] = self._current.index
        if row not in self._current.rows:
            self._current.rows.append(row)


def synthesize(k: int, cs: ConstraintSystem, circuit: Circuit, config) -> Assembly:
    """Run circuit.synthesize into a fresh Assembly."""
    assembly = Assembly(k, cs)
    circuit.floor_planner.synthesize(assembly, circuit, config)
    return assembly


def configure(circuit_cls) -> Tuple[ConstraintSystem, object]:
    """Build and freeze the constraint system of a circuit class."""
    cs = ConstraintSystem()
    config = circuit_cls.configure(cs)
    return cs.freeze(), config


def normalize_instances(cs: ConstraintSystem, instances: Sequence) -> List[List[int]]:
    """Coerce instances into one list of ints per instance column.

    A flat sequence of scalars is accepted when the circuit has a single
    instance column. Values are reduced modulo p.

    Raises:
        ValueError: On a wrong number of columns or a non-integer value
    """
    instances = list(instances)
    if cs.num_instance_columns == 1 and all(not isinstance(v, (list, tuple)) for v in instances):
        instances = [instances]
    if len(instances) != cs.num_instance_columns:
        raise ValueError(f"Expected {cs.num_instance_columns} instance columns, got {len(instances)}")
    if not all(isinstance(column, (list, tuple)) for column in instances):
        raise ValueError("Each instance column must be a list of values")
    return [[_instance_value(v) for v in column] for column in instances]


def _instance_value(value) -> int:
    if isinstance(value, numbers.Integral) or (isinstance(value, FF) and value.ndim == 0):
        return int(to_field(value))
    raise ValueError(f"Instance value must be an integer or field element, got {value!r}")
