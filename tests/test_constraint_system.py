"""Tests for expressions and the constraint system."""

import numpy as np
import pytest

from primitives.field import FF, GOLDILOCKS_PRIME
from protocol.constraint_system import ConstraintSystem
from protocol.constraints import TableConstraintContext, combine_constraints
from protocol.errors import ConstraintSystemError
from protocol.expressions import Column, ColumnKind, Constant, Rotation


def _system():
    cs = ConstraintSystem()
    a = cs.advice_column()
    b = cs.advice_column()
    instance = cs.instance_column()
    s = cs.selector()
    return cs, a, b, instance, s


class TestExpressions:
    """Tests for expression trees."""

    def test_degree(self) -> None:
        """Degrees add under products and take the max under sums."""
        cs, a, b, _, s = _system()
        captured = {}

        def gate(cells):
            x = cells.query_advice(a)
            y = cells.query_advice(b, Rotation.next())
            q = cells.query_selector(s)
            captured["sum"] = x + y
            captured["product"] = q * (x * y - 1)
            captured["scaled"] = 3 * x
            return [captured["product"]]

        cs.create_gate("g", gate)
        assert captured["sum"].degree() == 1
        assert captured["product"].degree() == 3
        assert captured["scaled"].degree() == 1

    def test_int_coercion(self) -> None:
        """Negative ints become canonical constants."""
        cs, a, _, _, _ = _system()
        captured = {}

        def gate(cells):
            captured["expr"] = cells.query_advice(a) - 1
            return [captured["expr"]]

        cs.create_gate("g", gate)
        assert repr(captured["expr"]) == "(advice[0]@0 + -(Constant(1)))"
        assert Constant(-1 % GOLDILOCKS_PRIME).value == GOLDILOCKS_PRIME - 1

    def test_evaluate_over_table_with_rotation(self) -> None:
        """Rotation 1 reads the next row, wrapping at the end."""
        cs, a, b, _, _ = _system()
        gate = cs.create_gate("g", lambda cells: [cells.query_advice(a, 1) * cells.query_advice(b)])
        ctx = TableConstraintContext({a: FF([1, 2, 3, 4]), b: FF([5, 6, 7, 8])})
        values = gate.polys[0].evaluate(ctx)
        assert np.array_equal(values, FF([2 * 5, 3 * 6, 4 * 7, 1 * 8]))

    def test_column_ordering_and_repr(self) -> None:
        advice = Column(1, ColumnKind.ADVICE)
        fixed = Column(0, ColumnKind.FIXED)
        assert advice < fixed
        assert repr(advice) == "advice[1]"
        assert Column(0, ColumnKind.ADVICE) < Column(1, ColumnKind.ADVICE)

    def test_unsupported_operand(self) -> None:
        cs, a, _, _, _ = _system()
        with pytest.raises(TypeError):
            cs.create_gate("g", lambda cells: [cells.query_advice(a) + 1.5])


class TestConstraintSystem:
    """Tests for declarations and derived shape."""

    def test_selector_owns_fixed_column(self) -> None:
        cs = ConstraintSystem()
        s0 = cs.selector()
        s1 = cs.selector()
        assert s0.column == Column(0, ColumnKind.FIXED)
        assert s1.column == Column(1, ColumnKind.FIXED)
        assert cs.selector_for_column(s1.column) is s1

    def test_frozen_rejects_declarations(self) -> None:
        """A frozen system cannot grow."""
        cs, a, _, _, _ = _system()
        cs.freeze()
        assert cs.frozen
        with pytest.raises(ConstraintSystemError):
            cs.advice_column()
        with pytest.raises(ConstraintSystemError):
            cs.enable_equality(a)
        with pytest.raises(ConstraintSystemError):
            cs.create_gate("g", lambda cells: [cells.query_advice(a)])

    def test_query_wrong_kind(self) -> None:
        cs, _, _, instance, _ = _system()
        with pytest.raises(ConstraintSystemError):
            cs.create_gate("g", lambda cells: [cells.query_advice(instance)])

    def test_foreign_column_rejected(self) -> None:
        """Columns from another system are not declared here."""
        cs, _, _, _, _ = _system()
        with pytest.raises(ConstraintSystemError):
            cs.enable_equality(Column(7, ColumnKind.ADVICE))

    def test_equality_on_selector_rejected(self) -> None:
        cs, _, _, _, s = _system()
        with pytest.raises(ConstraintSystemError):
            cs.enable_equality(s.column)

    def test_enable_equality_keeps_first_order(self) -> None:
        cs, a, b, instance, _ = _system()
        cs.enable_equality(instance)
        cs.enable_equality(a)
        cs.enable_equality(b)
        cs.enable_equality(a)
        assert cs.permutation_columns == [instance, a, b]

    def test_empty_gate_rejected(self) -> None:
        cs = ConstraintSystem()
        with pytest.raises(ConstraintSystemError):
            cs.create_gate("empty", lambda cells: [])

    def test_degree_includes_permutation(self) -> None:
        """Four equality columns give a degree-5 permutation constraint."""
        cs, a, b, instance, s = _system()
        c = cs.advice_column()
        cs.create_gate("g", lambda cells: [cells.query_selector(s) * cells.query_advice(a)])
        assert cs.degree() == 2
        for column in (instance, a, b, c):
            cs.enable_equality(column)
        assert cs.degree() == 5

    def test_queries_sorted_and_distinct(self) -> None:
        cs, a, b, _, s = _system()
        cs.create_gate("g1", lambda cells: [cells.query_advice(b, 1) + cells.query_advice(a)])
        cs.create_gate("g2", lambda cells: [cells.query_selector(s) * cells.query_advice(a)])
        assert cs.queries() == [(a, 0), (b, 1), (s.column, 0)]

    def test_conflicting_selectors(self) -> None:
        """Selectors whose gates share a column conflict."""
        cs, a, b, _, s0 = _system()
        s1 = cs.selector()
        s2 = cs.selector()
        cs.create_gate("g0", lambda cells: [cells.query_selector(s0) * cells.query_advice(a)])
        cs.create_gate("g1", lambda cells: [cells.query_selector(s1) * cells.query_advice(a)])
        cs.create_gate("g2", lambda cells: [cells.query_selector(s2) * cells.query_advice(b)])
        conflicts = cs.conflicting_selectors()
        assert conflicts[s0] == {s1}
        assert conflicts[s2] == set()

    def test_describe_changes_with_shape(self) -> None:
        cs1, _, _, _, _ = _system()
        cs2, a, _, _, _ = _system()
        cs2.enable_equality(a)
        assert cs1.describe() != cs2.describe()


class TestCombineConstraints:
    """Tests for Horner combination."""

    def test_single_constraint(self) -> None:
        assert combine_constraints([FF(5)], FF(3)) == FF(5)

    def test_horner_order(self) -> None:
        """First constraint gets the highest power."""
        assert combine_constraints([FF(1), FF(2), FF(3)], FF(10)) == FF(123)
