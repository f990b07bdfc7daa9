"""Number Theoretic Transform for Goldilocks field.

Radix-2 Cooley-Tukey over FF arrays. Inputs are either 1-D (one polynomial)
or 2-D with shape (N, n_cols), transformed column-wise along axis 0.
"""

import numpy as np

from primitives.field import FF, SHIFT, get_omega, get_omega_inv, powers

# --- NTT Engine ---

class NTT:
    """NTT engine for polynomial operations over Goldilocks field."""

    def __init__(self, domain_size: int) -> None:
        """Initialize NTT engine for given domain size."""
        assert domain_size > 0, "Domain size must be positive"
        assert (domain_size & (domain_size - 1)) == 0, "Domain size must be power of 2"

        self.n = domain_size
        self.n_bits = _log2(domain_size)

        # Precompute twiddle factors
        self.roots = powers(get_omega(self.n_bits), domain_size)
        self.roots_inv = powers(get_omega_inv(self.n_bits), domain_size)
        self.n_inv = FF(domain_size) ** -1
        self._rev = _bit_reverse_permutation(self.n_bits)

        # Coset shift powers r[i] = SHIFT^i and r_[i] = SHIFT^-i
        self.r = powers(SHIFT, domain_size)
        self.r_ = powers(SHIFT ** -1, domain_size)

    def ntt(self, coeffs: FF) -> FF:
        """Forward NTT: coefficients -> evaluations on <omega>."""
        return self._transform(self._pad(coeffs), self.roots)

    def intt(self, evals: FF) -> FF:
        """Inverse NTT: evaluations on <omega> -> coefficients."""
        return self._transform(self._pad(evals), self.roots_inv) * self.n_inv

    def coset_ntt(self, coeffs: FF, shift=None) -> FF:
        """Evaluate on the coset shift * <omega> (default shift is SHIFT)."""
        padded = self._pad(coeffs)
        return self._transform(padded * self._shift_powers(shift, inverse=False, ndim=padded.ndim), self.roots)

    def coset_intt(self, evals: FF, shift=None) -> FF:
        """Interpolate evaluations on the coset shift * <omega>."""
        coeffs = self.intt(evals)
        return coeffs * self._shift_powers(shift, inverse=True, ndim=coeffs.ndim)

    # --- Internals ---

    def _shift_powers(self, shift, inverse: bool, ndim: int) -> FF:
        if shift is None:
            result = self.r_ if inverse else self.r
        else:
            base = FF(int(shift))
            result = powers(base ** -1 if inverse else base, self.n)
        return result.reshape(self.n, 1) if ndim == 2 else result

    def _pad(self, values: FF) -> FF:
        if values.shape[0] > self.n:
            raise ValueError(f"Input of length {values.shape[0]} exceeds NTT size {self.n}")
        if values.shape[0] == self.n:
            return FF(values)
        padded = FF.Zeros((self.n,) + values.shape[1:])
        padded[:values.shape[0]] = values
        return padded

    def _transform(self, a: FF, roots: FF) -> FF:
        n = self.n
        tail = a.shape[1:]
        a = a[self._rev]
        m = 1
        while m < n:
            twiddles = roots[::n // (2 * m)][:m]
            if tail:
                twiddles = twiddles.reshape(m, 1)
            blocks = a.reshape((n // (2 * m), 2 * m) + tail)
            even = blocks[:, :m]
            odd = blocks[:, m:] * twiddles
            out = FF.Zeros(blocks.shape)
            out[:, :m] = even + odd
            out[:, m:] = even - odd
            a = out.reshape((n,) + tail)
            m *= 2
        return a


# --- Helpers ---

def _log2(size: int) -> int:
    """Compute log2 of power-of-2 size."""
    assert size != 0, "Size must be non-zero"
    res = 0
    while size != 1:
        size >>= 1
        res += 1
    return res


def _bit_reverse_permutation(n_bits: int) -> np.ndarray:
    """Index array mapping i to its n_bits-bit reversal."""
    n = 1 << n_bits
    rev = np.zeros(n, dtype=np.int64)
    for i in range(n):
        rev[i] = int(format(i, f"0{n_bits}b")[::-1], 2) if n_bits else 0
    return rev
