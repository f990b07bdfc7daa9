"""Evaluation domain: trace subgroup H, degree bound and the extended coset."""

from typing import List, Sequence

from primitives.field import FF, SHIFT, TWO_ADICITY, batch_inverse, get_omega, get_omega_inv, powers, to_field
from primitives.ntt import NTT
from primitives.polynomial import lagrange_evals
from protocol.constraint_system import ConstraintSystem
from protocol.errors import KeyBuildError
from protocol.params import Params
from protocol.pcs import FriPcsConfig


def _next_power_of_two(value: int) -> int:
    result = 1
    while result < value:
        result <<= 1
    return result


def _log2(size: int) -> int:
    return size.bit_length() - 1


class EvaluationDomain:
    """Sizes and precomputed points for one (Params, ConstraintSystem) pair.

    Committed polynomials have degree < D. Advice and z carry a Z_H * r
    blinding term with deg r < t, so queried values at the n_queries FRI
    points and at the opening points reveal nothing about the witness.
    """

    def __init__(self, params: Params, cs: ConstraintSystem) -> None:
        self.params = params
        self.k = params.k
        self.n = 1 << params.k
        self.omega = FF(get_omega(self.k))
        self.omega_inv = FF(get_omega_inv(self.k))

        self.blinding_degree = 2 * params.n_queries + 2
        self.max_units = cs.degree()
        self.max_poly_degree = self.max_units * (self.n + self.blinding_degree - 1)
        self.degree_bound = _next_power_of_two(
            max(self.n + self.blinding_degree, self.max_poly_degree - self.n + 1)
        )

        self.n_bits_ext = _log2(self.degree_bound) + params.blowup_bits
        if self.n_bits_ext > TWO_ADICITY:
            raise KeyBuildError(f"Extended domain 2^{self.n_bits_ext} exceeds the field's two-adicity")
        self.n_ext = 1 << self.n_bits_ext
        self.extend = self.n_ext // self.n

        self.ntt = NTT(self.n)
        self.ntt_ext = NTT(self.n_ext)
        self._coset_points = SHIFT * powers(get_omega(self.n_bits_ext), self.n_ext)
        denominators = (self._coset_points - FF(1)) * FF(self.n)
        self._l0_on_coset = (self._coset_points ** self.n - FF(1)) * batch_inverse(denominators)

    # --- Extended Coset ---

    def coset_points(self) -> FF:
        """Points SHIFT * w_ext^i of the extended coset."""
        return self._coset_points

    def coset_point(self, idx: int) -> FF:
        return SHIFT * FF(get_omega(self.n_bits_ext)) ** idx

    def lde(self, coeffs: FF) -> FF:
        """Evaluate coefficients (1-D or (len, n_cols)) on the extended coset."""
        return self.ntt_ext.coset_ntt(coeffs)

    def vanishing_on_coset(self) -> FF:
        return self.coset_points() ** self.n - FF(1)

    def l0_on_coset(self) -> FF:
        return self._l0_on_coset

    # --- Single Points ---

    def rotate(self, x, rotation: int) -> FF:
        """x * w^rotation on the trace subgroup."""
        x = to_field(x)
        if rotation >= 0:
            return x * self.omega ** rotation
        return x * self.omega_inv ** (-rotation)

    def vanishing_at(self, x) -> FF:
        return to_field(x) ** self.n - FF(1)

    def l0_at(self, x) -> FF:
        return lagrange_evals(x, self.n, self.omega, [0])[0]

    def instance_at(self, values: Sequence[int], x) -> FF:
        """Evaluate the interpolant of values (rows 0..len-1, rest zero) at x."""
        if not values:
            return FF(0)
        basis = lagrange_evals(x, self.n, self.omega, range(len(values)))
        acc = FF(0)
        for weight, value in zip(basis, values):
            acc = acc + weight * to_field(value)
        return acc

    # --- FRI ---

    def fri_round_log_sizes(self) -> List[int]:
        target = self.params.final_degree_bits + self.params.blowup_bits
        sizes = [self.n_bits_ext]
        while sizes[-1] > target:
            sizes.append(max(sizes[-1] - self.params.fold_bits, target))
        return sizes

    def fri_config(self) -> FriPcsConfig:
        return FriPcsConfig(
            n_bits_ext=self.n_bits_ext,
            fri_round_log_sizes=self.fri_round_log_sizes(),
            n_queries=self.params.n_queries,
            blowup_bits=self.params.blowup_bits,
            pow_bits=self.params.pow_bits,
        )

    def to_list(self) -> List[int]:
        """Domain sizes in a fixed order, for key digests."""
        return [self.n, self.blinding_degree, self.degree_bound, self.n_ext] + self.fri_round_log_sizes()
