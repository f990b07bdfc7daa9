"""Constraint evaluation contexts.

ConstraintContext provides a uniform interface for constraint evaluation that works
for the mock prover (arrays over table rows), the prover (arrays over the extended
coset) and the verifier (scalars at xi). The same gate expressions are evaluated in
every context thanks to galois broadcasting.

Example:
    numerator = constraint_polynomial(cs, ExtendedConstraintContext(...))  # array
    at_xi = constraint_polynomial(cs, PointConstraintContext(...))         # scalar
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Sequence, Tuple, Union

import numpy as np

from primitives.field import FF, to_field
from protocol.constraint_system import ConstraintSystem
from protocol.expressions import Column
from protocol.permutation import DELTA

# Type aliases for clarity
FFPoly = FF  # Array of base field elements
Evaluation = Union[FFPoly, FF]


class ConstraintContext(ABC):
    """Column access for gate evaluation."""

    @abstractmethod
    def query(self, column: Column, rotation: int = 0) -> Evaluation:
        """Get column at the current row shifted by rotation.

        Returns:
            Array contexts: values at all points, rolled by rotation rows
            Point context: evaluation at xi * omega^rotation
        """

    def constant(self, value: int) -> FF:
        return to_field(value)


class ArgumentContext(ConstraintContext):
    """Adds what the permutation argument needs on top of column access."""

    def __init__(self, challenges: Dict[str, FF]) -> None:
        self._challenges = challenges

    def challenge(self, name: str) -> FF:
        return self._challenges[name]

    @abstractmethod
    def x(self) -> Evaluation:
        """The evaluation variable X."""

    @abstractmethod
    def l0(self) -> Evaluation:
        """First Lagrange polynomial L_0(X)."""

    @abstractmethod
    def sigma(self, index: int) -> Evaluation:
        """Permutation polynomial sigma_index(X)."""

    @abstractmethod
    def z(self, rotation: int = 0) -> Evaluation:
        """Grand product z(omega^rotation * X)."""


class TableConstraintContext(ConstraintContext):
    """Mock prover implementation - arrays over the 2^k table rows."""

    def __init__(self, columns: Dict[Column, FFPoly]):
        self._columns = columns

    def query(self, column: Column, rotation: int = 0) -> FFPoly:
        return np.roll(self._columns[column], -rotation)


class ExtendedConstraintContext(ArgumentContext):
    """Prover implementation - arrays on the extended coset.

    On the extended domain a row offset is multiplied by the extend factor.
    """

    def __init__(
        self,
        domain,
        columns: Dict[Column, FFPoly],
        sigmas: Sequence[FFPoly],
        z: FFPoly,
        challenges: Dict[str, FF],
    ):
        super().__init__(challenges)
        self._domain = domain
        self._columns = columns
        self._sigmas = sigmas
        self._z = z

    def _roll(self, values: FFPoly, rotation: int) -> FFPoly:
        return np.roll(values, -rotation * self._domain.extend) if rotation else values

    def query(self, column: Column, rotation: int = 0) -> FFPoly:
        return self._roll(self._columns[column], rotation)

    def x(self) -> FFPoly:
        return self._domain.coset_points()

    def l0(self) -> FFPoly:
        return self._domain.l0_on_coset()

    def sigma(self, index: int) -> FFPoly:
        return self._sigmas[index]

    def z(self, rotation: int = 0) -> FFPoly:
        return self._roll(self._z, rotation)


class PointConstraintContext(ArgumentContext):
    """Verifier implementation - returns scalar evaluations at xi."""

    def __init__(
        self,
        domain,
        xi: FF,
        evals: Dict[Tuple[Column, int], FF],
        instance_eval: Callable[[Column, int], FF],
        sigmas: Sequence[FF],
        z: Dict[int, FF],
        challenges: Dict[str, FF],
    ):
        super().__init__(challenges)
        self._domain = domain
        self._xi = xi
        self._evals = evals
        self._instance_eval = instance_eval
        self._sigmas = sigmas
        self._z = z

    def query(self, column: Column, rotation: int = 0) -> FF:
        if (column, rotation) in self._evals:
            return self._evals[(column, rotation)]
        return self._instance_eval(column, rotation)

    def x(self) -> FF:
        return self._xi

    def l0(self) -> FF:
        return self._domain.l0_at(self._xi)

    def sigma(self, index: int) -> FF:
        return self._sigmas[index]

    def z(self, rotation: int = 0) -> FF:
        return self._z[rotation]


# --- Constraint Lists ---

def gate_constraints(cs: ConstraintSystem, ctx: ConstraintContext) -> List[Evaluation]:
    """Every gate polynomial, in declaration order."""
    return [poly.evaluate(ctx) for gate in cs.gates for poly in gate.polys]


def permutation_constraints(cs: ConstraintSystem, ctx: ArgumentContext) -> List[Evaluation]:
    """Grand product constraints.

    L0(X) * (1 - z(X)) = 0
    z(wX) * prod(w_j + beta*sigma_j + gamma) - z(X) * prod(w_j + beta*delta^j*X + gamma) = 0
    """
    if not cs.permutation_columns:
        return []
    beta = ctx.challenge("beta")
    gamma = ctx.challenge("gamma")
    x = ctx.x()

    left = ctx.z(1)
    right = ctx.z(0)
    delta_pow = FF(1)
    for j, column in enumerate(cs.permutation_columns):
        value = ctx.query(column, 0)
        left = left * (value + beta * ctx.sigma(j) + gamma)
        right = right * (value + beta * delta_pow * x + gamma)
        delta_pow = delta_pow * DELTA

    return [ctx.l0() * (FF(1) - ctx.z(0)), left - right]


def combine_constraints(constraints: Sequence[Evaluation], vc: FF) -> Evaluation:
    """Combine constraint list using Horner accumulation.

    Computes: ((constraints[0] * vc + constraints[1]) * vc + ...) + constraints[-1]
    """
    acc = constraints[0]
    for constraint in constraints[1:]:
        acc = acc * vc + constraint
    return acc


def constraint_polynomial(cs: ConstraintSystem, ctx: ArgumentContext) -> Evaluation:
    """All gate and permutation constraints combined with powers of challenge y."""
    constraints = gate_constraints(cs, ctx) + permutation_constraints(cs, ctx)
    return combine_constraints(constraints, ctx.challenge("y"))
