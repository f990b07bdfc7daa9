"""The arithmetic circuit: proves knowledge of a, b with public [a + b, a * b, a - b]."""

from dataclasses import dataclass
from typing import List, Optional

from gadget import assign_free_advice
from gadget.arithmetic import ArithChip, ArithConfig
from primitives.field import to_field
from protocol.circuit import Circuit, Layouter, Value
from protocol.constraint_system import ConstraintSystem
from protocol.expressions import Column

# Instance rows of the three public outputs
SUM_ROW = 0
PRODUCT_ROW = 1
DIFFERENCE_ROW = 2


@dataclass(frozen=True)
class CircuitConfig:
    instance: Column
    advices: List[Column]
    arith_config: ArithConfig


class ArithCircuit(Circuit):
    """Two private inputs; sum, product and difference exposed as instances."""

    chip_cls = ArithChip

    def __init__(self, a: Optional[Value] = None, b: Optional[Value] = None) -> None:
        self.a = a if a is not None else Value.unknown()
        self.b = b if b is not None else Value.unknown()

    @classmethod
    def from_ints(cls, a: int, b: int) -> "ArithCircuit":
        return cls(Value.known(a), Value.known(b))

    def without_witnesses(self) -> "ArithCircuit":
        return type(self)()

    @classmethod
    def configure(cls, meta: ConstraintSystem) -> CircuitConfig:
        advices = [meta.advice_column() for _ in range(3)]
        instance = meta.instance_column()

        meta.enable_equality(instance)
        for column in advices:
            meta.enable_equality(column)

        arith_config = cls.chip_cls.configure(meta, advices[0], advices[1], advices[2])
        return CircuitConfig(instance=instance, advices=advices, arith_config=arith_config)

    def synthesize(self, config: CircuitConfig, layouter: Layouter) -> None:
        chip = self.chip_cls.construct(config.arith_config)

        a = assign_free_advice(layouter.namespace("load a"), config.advices[0], self.a)
        b = assign_free_advice(layouter.namespace("load b"), config.advices[1], self.b)

        total = chip.add(layouter.namespace("a + b"), a, b)
        product = chip.mul(layouter.namespace("a * b"), a, b)
        difference = chip.sub(layouter.namespace("a - b"), a, b)

        layouter.constrain_instance(total.cell, config.instance, SUM_ROW)
        layouter.constrain_instance(product.cell, config.instance, PRODUCT_ROW)
        layouter.constrain_instance(difference.cell, config.instance, DIFFERENCE_ROW)


def expected_instances(a: int, b: int) -> List[int]:
    """Public instance [a + b, a * b, a - b] reduced into the field."""
    a, b = to_field(a), to_field(b)
    return [int(a + b), int(a * b), int(a - b)]
