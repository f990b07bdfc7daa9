"""Arithmetic chip: one selector and one gate per operation on three advice columns.

    | a   | b   | c       | q_add | q_sub | q_mul |
    |-----|-----|---------|-------|-------|-------|
    | lhs | rhs | lhs+rhs |   1   |   0   |   0   |

Each gate reads a, b and c on the current row:

    add: q_add * (a + b - c)
    sub: q_sub * (a - b - c)
    mul: q_mul * (a * b - c)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from protocol.circuit import AssignedCell, Layouter, Region, Value
from protocol.constraint_system import ConstraintSystem, Selector
from protocol.expressions import Column, Rotation


class ArithInstruction(ABC):
    """Operations a circuit may request from an arithmetic chip."""

    @abstractmethod
    def add(self, layouter: Layouter, lhs: AssignedCell, rhs: AssignedCell) -> AssignedCell:
        """Constrain and return lhs + rhs."""

    @abstractmethod
    def sub(self, layouter: Layouter, lhs: AssignedCell, rhs: AssignedCell) -> AssignedCell:
        """Constrain and return lhs - rhs."""

    @abstractmethod
    def mul(self, layouter: Layouter, lhs: AssignedCell, rhs: AssignedCell) -> AssignedCell:
        """Constrain and return lhs * rhs."""


@dataclass(frozen=True)
class ArithConfig:
    a: Column
    b: Column
    c: Column
    q_add: Selector
    q_sub: Selector
    q_mul: Selector


class ArithChip(ArithInstruction):
    """Chip implementing ArithInstruction with a custom gate per operation."""

    def __init__(self, config: ArithConfig) -> None:
        self.config = config

    @classmethod
    def construct(cls, config: ArithConfig) -> "ArithChip":
        return cls(config)

    @staticmethod
    def configure(meta: ConstraintSystem, a: Column, b: Column, c: Column) -> ArithConfig:
        """Declare the three selectors and gates over columns a, b, c."""
        q_add = meta.selector()
        q_sub = meta.selector()
        q_mul = meta.selector()

        def gate(selector: Selector, op: Callable):
            def constraints(cells):
                s = cells.query_selector(selector)
                lhs = cells.query_advice(a, Rotation.cur())
                rhs = cells.query_advice(b, Rotation.cur())
                out = cells.query_advice(c, Rotation.cur())
                return [s * (op(lhs, rhs) - out)]
            return constraints

        meta.create_gate("add", gate(q_add, lambda x, y: x + y))
        meta.create_gate("sub", gate(q_sub, lambda x, y: x - y))
        meta.create_gate("mul", gate(q_mul, lambda x, y: x * y))

        return ArithConfig(a=a, b=b, c=c, q_add=q_add, q_sub=q_sub, q_mul=q_mul)

    def add(self, layouter: Layouter, lhs: AssignedCell, rhs: AssignedCell) -> AssignedCell:
        return self._binary_op(layouter, "add", self.config.q_add, lhs, rhs, lambda x, y: x + y)

    def sub(self, layouter: Layouter, lhs: AssignedCell, rhs: AssignedCell) -> AssignedCell:
        return self._binary_op(layouter, "sub", self.config.q_sub, lhs, rhs, lambda x, y: x - y)

    def mul(self, layouter: Layouter, lhs: AssignedCell, rhs: AssignedCell) -> AssignedCell:
        return self._binary_op(layouter, "mul", self.config.q_mul, lhs, rhs, lambda x, y: x * y)

    def _binary_op(
        self,
        layouter: Layouter,
        name: str,
        selector: Selector,
        lhs: AssignedCell,
        rhs: AssignedCell,
        op: Callable[[Value, Value], Value],
    ) -> AssignedCell:
        config = self.config

        def assign(region: Region) -> AssignedCell:
            selector.enable(region, 0)
            lhs_cell = lhs.copy_advice("lhs", region, config.a, 0)
            rhs_cell = rhs.copy_advice("rhs", region, config.b, 0)
            value = op(lhs_cell.value(), rhs_cell.value())
            return region.assign_advice(f"lhs {name} rhs", config.c, 0, value)

        return layouter.assign_region(name, assign)
