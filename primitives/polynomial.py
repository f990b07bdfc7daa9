"""Abstract polynomial operations.

Coefficient arrays are in ascending order [c0, c1, ...]. galois.Poly uses
descending order, so evaluation reverses before handing over.
"""

import numpy as np
from typing import Sequence

import galois
from primitives.field import FF, GOLDILOCKS_PRIME, to_field


def evaluate(coefficients: FF, x) -> FF:
    """Evaluate a polynomial given by ascending coefficients at x."""
    poly = galois.Poly(FF(coefficients)[::-1], field=FF)
    return poly(to_field(x))


def degree(coefficients: FF) -> int:
    """Return the degree of the polynomial, -1 for the zero polynomial."""
    values = [int(c) for c in coefficients]
    for i in range(len(values) - 1, -1, -1):
        if values[i] != 0:
            return i
    return -1


def blind(coefficients: FF, n: int, blinding: FF) -> FF:
    """Add Z_H(X) * r(X) to a polynomial, where Z_H = X^n - 1.

    The result agrees with the input on <omega> and has length n + len(r).

    Args:
        coefficients: Polynomial coefficients (length <= n), 1-D or (n, n_cols)
        n: Size of the trace domain H
        blinding: Coefficients of r, 1-D or (t, n_cols)
    """
    t = blinding.shape[0]
    result = FF.Zeros((n + t,) + coefficients.shape[1:])
    result[:coefficients.shape[0]] = coefficients
    result[:t] -= blinding
    result[n:n + t] += blinding
    return result


def stack_columns(columns: Sequence[FF], n: int) -> FF:
    """Stack 1-D columns of length n into an (n, n_cols) array."""
    result = FF.Zeros((n, len(columns)))
    for j, column in enumerate(columns):
        result[:, j] = column
    return result


def random_coefficients(rng, shape) -> FF:
    """Draw uniformly random coefficients using rng.randrange."""
    count = int(np.prod(shape))
    values = [rng.randrange(GOLDILOCKS_PRIME) for _ in range(count)]
    return FF(values).reshape(shape)


def vanishing_eval(x, n: int) -> FF:
    """Evaluate Z_H(x) = x^n - 1."""
    return to_field(x) ** n - FF(1)


def lagrange_evals(x, n: int, omega, rows: Sequence[int]) -> FF:
    """Evaluate L_i(x) = omega^i (x^n - 1) / (n (x - omega^i)) for each row i.

    Raises:
        ZeroDivisionError: If x lies on the domain
    """
    x = to_field(x)
    omega = to_field(omega)
    z_h = vanishing_eval(x, n)
    n_inv = FF(n) ** -1
    result = FF.Zeros(len(rows))
    for j, i in enumerate(rows):
        w_i = omega ** i
        result[j] = w_i * z_h * n_inv / (x - w_i)
    return result
