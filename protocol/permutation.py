"""Permutation argument: copy-constraint cycles, sigma polynomials, grand product.

Cells of the equality-enabled columns are grouped into cycles. sigma maps
each cell to the next cell of its cycle; the grand product z proves the
witness is invariant under sigma.
"""

from typing import Dict, List, Sequence, Tuple

from primitives.field import FF, SHIFT, batch_inverse, get_omega, powers
from protocol.errors import ConstraintSystemError, NotEnoughRowsError
from protocol.expressions import Column

# Coset separator: column j uses the coset DELTA^j * H for its identity labels
DELTA = SHIFT

# (column position in the permutation, row)
CellRef = Tuple[int, int]


class PermutationAssembly:
    """Cycle structure over the cells of the permutation columns.

    Uses the union-find layout: mapping[c][r] is the next cell in the cycle,
    aux[c][r] the cycle representative, sizes[c][r] the cycle size at the
    representative. Merging swaps the mapping entries, splicing the smaller
    cycle into the larger.
    """

    def __init__(self, n: int, columns: Sequence[Column]) -> None:
        self.n = n
        self.columns = list(columns)
        self._position: Dict[Column, int] = {c: i for i, c in enumerate(self.columns)}
        self.mapping: List[List[CellRef]] = [[(i, r) for r in range(n)] for i in range(len(self.columns))]
        self.aux: List[List[CellRef]] = [[(i, r) for r in range(n)] for i in range(len(self.columns))]
        self.sizes: List[List[int]] = [[1] * n for _ in range(len(self.columns))]

    def position(self, column: Column) -> int:
        if column not in self._position:
            raise ConstraintSystemError(f"Column {column!r} is not equality-enabled")
        return self._position[column]

    def copy(self, left_column: Column, left_row: int, right_column: Column, right_row: int) -> None:
        """Record that two cells must hold equal values."""
        left_col = self.position(left_column)
        right_col = self.position(right_column)
        for row in (left_row, right_row):
            if not 0 <= row < self.n:
                raise NotEnoughRowsError(row, self.n, "copy constraint")

        left = self.aux[left_col][left_row]
        right = self.aux[right_col][right_row]
        if left == right:
            return

        # Keep the larger cycle as representative
        if self.sizes[left[0]][left[1]] < self.sizes[right[0]][right[1]]:
            left, right = right, left

        self.sizes[left[0]][left[1]] += self.sizes[right[0]][right[1]]

        # Relabel every cell of the right cycle
        cell = right
        while True:
            self.aux[cell[0]][cell[1]] = left
            cell = self.mapping[cell[0]][cell[1]]
            if cell == right:
                break

        # Splice the cycles
        lc, lr = left_col, left_row
        rc, rr = right_col, right_row
        self.mapping[lc][lr], self.mapping[rc][rr] = self.mapping[rc][rr], self.mapping[lc][lr]

    def cycle(self, column: Column, row: int) -> List[CellRef]:
        """All cells in the cycle containing (column, row)."""
        start = (self.position(column), row)
        cells = [start]
        cell = self.mapping[start[0]][start[1]]
        while cell != start:
            cells.append(cell)
            cell = self.mapping[cell[0]][cell[1]]
        return cells

    def build_sigma_values(self, k: int) -> List[FF]:
        """sigma_j on H: the identity label DELTA^j' * w^r' of the mapped cell."""
        omega_powers = powers(get_omega(k), self.n)
        delta_powers = powers(DELTA, max(len(self.columns), 1))
        sigmas = []
        for col_mapping in self.mapping:
            col_idx = [c for c, _ in col_mapping]
            row_idx = [r for _, r in col_mapping]
            sigmas.append(delta_powers[col_idx] * omega_powers[row_idx])
        return sigmas


def identity_values(k: int, n_columns: int) -> List[FF]:
    """Identity labels DELTA^j * w^r for each permutation column j."""
    n = 1 << k
    omega_powers = powers(get_omega(k), n)
    delta_powers = powers(DELTA, max(n_columns, 1))
    return [omega_powers * delta_powers[j] for j in range(n_columns)]


def running_product(
    k: int,
    column_values: Sequence[FF],
    sigma_values: Sequence[FF],
    beta: FF,
    gamma: FF,
) -> Tuple[FF, FF]:
    """Build z with z[0] = 1 and z[i+1] = z[i] * prod(id terms) / prod(sigma terms).

    Returns:
        (z, product over all rows), the latter being 1 when every copy holds

    Raises:
        ZeroDivisionError: If a sigma term vanishes
    """
    n = 1 << k
    ids = identity_values(k, len(column_values))

    numerator = FF.Ones(n)
    denominator = FF.Ones(n)
    for values, identity, sigma in zip(column_values, ids, sigma_values):
        numerator *= values + beta * identity + gamma
        denominator *= values + beta * sigma + gamma

    ratios = numerator * batch_inverse(denominator)
    z = FF.Ones(n)
    for i in range(1, n):
        z[i] = z[i - 1] * ratios[i - 1]
    return z, z[n - 1] * ratios[n - 1]


def grand_product(
    k: int,
    column_values: Sequence[FF],
    sigma_values: Sequence[FF],
    beta: FF,
    gamma: FF,
) -> FF:
    """The running product z, checked to close back to 1.

    Raises:
        ValueError: If the product over all rows is not 1 (copy constraints broken)
        ZeroDivisionError: If a sigma term vanishes
    """
    z, total = running_product(k, column_values, sigma_values, beta, gamma)
    if total != FF(1):
        raise ValueError("Permutation grand product does not close")
    return z
