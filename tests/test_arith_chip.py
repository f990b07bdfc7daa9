"""Tests for the arithmetic chip and circuit using the mock prover."""

import pytest

from arith.circuit import ArithCircuit, expected_instances
from gadget import assign_free_advice
from gadget.arithmetic import ArithChip, ArithInstruction
from primitives.field import GOLDILOCKS_PRIME
from protocol.assembly import configure
from protocol.circuit import Circuit, Value
from protocol.constraint_system import ConstraintSystem
from protocol.dev import MockProver
from protocol.errors import NotEnoughRowsError

K = 4


class TestChipConfiguration:
    """Tests for the chip's gates and selectors."""

    def test_three_gates_and_selectors(self) -> None:
        cs = ConstraintSystem()
        a, b, c = cs.advice_column(), cs.advice_column(), cs.advice_column()
        config = ArithChip.configure(cs, a, b, c)
        assert [gate.name for gate in cs.gates] == ["add", "sub", "mul"]
        assert [s.index for s in (config.q_add, config.q_sub, config.q_mul)] == [0, 1, 2]
        assert cs.max_gate_degree() == 3

    def test_chip_implements_instruction(self) -> None:
        assert issubclass(ArithChip, ArithInstruction)

    def test_circuit_shape(self) -> None:
        """Three advice, one instance, three selector columns; instance first in the permutation."""
        cs, config = configure(ArithCircuit)
        assert cs.frozen
        assert cs.num_advice_columns == 3
        assert cs.num_instance_columns == 1
        assert cs.num_fixed_columns == 3
        assert cs.permutation_columns == [config.instance] + config.advices


class TestMockProver:
    """Tests for satisfied and unsatisfied witnesses."""

    @pytest.mark.parametrize("a, b", [(69, 42), (0, 0), (1, GOLDILOCKS_PRIME - 1), (5, 9)])
    def test_valid_witness(self, a: int, b: int) -> None:
        """A correct instance has no failures."""
        prover = MockProver.run(K, ArithCircuit.from_ints(a, b), expected_instances(a, b))
        assert prover.verify() == []
        prover.assert_satisfied()

    def test_expected_instances(self) -> None:
        assert expected_instances(69, 42) == [111, 2898, 27]
        assert expected_instances(42, 69)[2] == GOLDILOCKS_PRIME - 27

    def test_wrong_difference(self) -> None:
        """[111, 2898, 26] fails the instance copy for the difference."""
        prover = MockProver.run(K, ArithCircuit.from_ints(69, 42), [111, 2898, 26])
        failures = prover.verify()
        assert len(failures) == 1
        assert failures[0].kind == "permutation"
        assert failures[0].region == "a - b/sub"
        with pytest.raises(AssertionError):
            prover.assert_satisfied()

    def test_too_many_instance_rows(self) -> None:
        with pytest.raises(NotEnoughRowsError):
            MockProver.run(1, ArithCircuit.from_ints(1, 1), [[0, 0, 0]])


class _BrokenChip(ArithChip):
    """Writes a wrong sum into the output column."""

    def add(self, layouter, lhs, rhs):
        config = self.config

        def assign(region):
            config.q_add.enable(region, 0)
            lhs.copy_advice("lhs", region, config.a, 0)
            rhs.copy_advice("rhs", region, config.b, 0)
            return region.assign_advice("bad", config.c, 0, lhs.value() + rhs.value() + Value.known(1))

        return layouter.assign_region("add", assign)


class _BrokenCircuit(ArithCircuit):
    chip_cls = _BrokenChip


class _LoadOnly(Circuit):
    """Loads one value and exposes it."""

    def __init__(self, value=None):
        self.value = value if value is not None else Value.unknown()

    def without_witnesses(self):
        return _LoadOnly()

    @classmethod
    def configure(cls, meta):
        advice = meta.advice_column()
        instance = meta.instance_column()
        meta.enable_equality(advice)
        meta.enable_equality(instance)
        return advice, instance

    def synthesize(self, config, layouter):
        advice, instance = config
        cell = assign_free_advice(layouter, advice, self.value)
        layouter.constrain_instance(cell.cell, instance, 0)


class TestFailureReporting:
    """Tests for gate failure diagnostics."""

    def test_gate_failure_names_gate_and_row(self) -> None:
        prover = MockProver.run(K, _BrokenCircuit.from_ints(69, 42), [112, 2898, 27])
        failures = prover.verify()
        assert [f.kind for f in failures] == ["gate"]
        assert failures[0].row == 1
        assert "gate 'add'" in str(failures[0])
        assert "a + b/add" in str(failures[0])

    def test_free_advice_circuit(self) -> None:
        MockProver.run(2, _LoadOnly(Value.known(5)), [5]).assert_satisfied()
        assert MockProver.run(2, _LoadOnly(Value.known(5)), [6]).verify()
