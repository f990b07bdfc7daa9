"""Development tooling: check a witness against the circuit without proving.

MockProver evaluates every gate on every row of the concrete table and checks
every copy constraint directly. Failures come back as VerifyFailure records
naming the gate or cells involved.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from primitives.field import FF
from protocol.assembly import Assembly, configure, normalize_instances, synthesize
from protocol.circuit import Circuit
from protocol.constraint_system import ConstraintSystem
from protocol.constraints import TableConstraintContext
from protocol.errors import NotEnoughRowsError
from protocol.expressions import Column, ColumnKind


@dataclass(frozen=True)
class VerifyFailure:
    """One unsatisfied constraint."""
    kind: str  # "gate" or "permutation"
    description: str
    row: int
    region: Optional[str] = None

    def __str__(self) -> str:
        where = f" in region '{self.region}'" if self.region else ""
        return f"{self.description} at row {self.row}{where}"


class MockProver:
    """Evaluates constraints on the witness table directly."""

    def __init__(self, k: int, cs: ConstraintSystem, assembly: Assembly, instances: List[List[int]]) -> None:
        self.k = k
        self.n = 1 << k
        self.cs = cs
        self.assembly = assembly
        self.instances = instances
        for column, values in zip(cs.instance_columns, instances):
            if len(values) > self.n:
                raise NotEnoughRowsError(len(values) - 1, self.n, f"instance {column!r}")

    @classmethod
    def run(cls, k: int, circuit: Circuit, instances: Sequence) -> "MockProver":
        """Configure and synthesize circuit with its witness.

        Raises:
            WitnessError: If the table does not fit in 2^k rows
            ConstraintSystemError: If the circuit wiring is inconsistent
        """
        cs, config = configure(type(circuit))
        assembly = synthesize(k, cs, circuit, config)
        return cls(k, cs, assembly, normalize_instances(cs, instances))

    def table(self) -> Dict[Column, FF]:
        """Every column as an FF array over the 2^k rows."""
        columns: Dict[Column, FF] = {}
        for column, values in zip(self.cs.advice_columns, self.assembly.advice_values()):
            columns[column] = values
        for column, values in zip(self.cs.fixed_columns, self.assembly.fixed_values()):
            columns[column] = values
        for column, values in zip(self.cs.instance_columns, self.instances):
            padded = FF.Zeros(self.n)
            if values:
                padded[:len(values)] = FF(values)
            columns[column] = padded
        return columns

    def verify(self) -> List[VerifyFailure]:
        """Return every failing gate row and copy constraint.

        Raises:
            WitnessError: If an assigned advice cell is unknown
        """
        table = self.table()
        failures: List[VerifyFailure] = []

        ctx = TableConstraintContext(table)
        for gate in self.cs.gates:
            for poly_index, poly in enumerate(gate.polys):
                values = poly.evaluate(ctx)
                for row in range(self.n):
                    if int(values[row]) != 0:
                        failures.append(VerifyFailure(
                            kind="gate",
                            description=f"Constraint {poly_index} of gate '{gate.name}' is not satisfied",
                            row=row,
                            region=self.assembly.region_at(row),
                        ))

        for left_col, left_row, right_col, right_row in self.assembly.copies:
            left = int(table[left_col][left_row])
            right = int(table[right_col][right_row])
            if left != right:
                failures.append(VerifyFailure(
                    kind="permutation",
                    description=(
                        f"Equality {left_col!r}[{left_row}] = {left} != {right_col!r}[{right_row}] = {right}"
                    ),
                    row=left_row,
                    region=self._region_of(left_col, left_row, right_col, right_row),
                ))
        return failures

    def assert_satisfied(self) -> None:
        failures = self.verify()
        if failures:
            raise AssertionError("Circuit is not satisfied:\n" + "\n".join(f"  {f}" for f in failures))

    def _region_of(self, left_col: Column, left_row: int, right_col: Column, right_row: int) -> Optional[str]:
        if left_col.kind != ColumnKind.INSTANCE:
            return self.assembly.region_at(left_row)
        return self.assembly.region_at(right_row)
