"""Commitment-scheme parameters."""

from dataclasses import dataclass

from protocol.errors import KeyBuildError

# Bounds on the table size 2^k
MIN_K = 1
MAX_K = 24


@dataclass(frozen=True)
class Params:
    """Parameters shared by key generation, prover and verifier.

    Attributes:
        k: log2 of the number of table rows
        blowup_bits: log2 of the FRI rate inverse
        n_queries: FRI query count
        pow_bits: proof-of-work bits ground before sampling queries
        fold_bits: log2 of the folding factor per FRI round
        final_degree_bits: log2 of the coefficient count sent in the clear
    """
    k: int
    blowup_bits: int = 3
    n_queries: int = 16
    pow_bits: int = 12
    fold_bits: int = 2
    final_degree_bits: int = 2

    def __post_init__(self) -> None:
        if not isinstance(self.k, int) or not MIN_K <= self.k <= MAX_K:
            raise KeyBuildError(f"k must be an integer in [{MIN_K}, {MAX_K}], got {self.k!r}")
        if self.blowup_bits < 1:
            raise KeyBuildError(f"blowup_bits must be >= 1, got {self.blowup_bits}")
        if self.n_queries < 1:
            raise KeyBuildError(f"n_queries must be >= 1, got {self.n_queries}")
        if not 0 <= self.pow_bits <= 32:
            raise KeyBuildError(f"pow_bits must be in [0, 32], got {self.pow_bits}")
        if self.fold_bits < 1:
            raise KeyBuildError(f"fold_bits must be >= 1, got {self.fold_bits}")
        if self.final_degree_bits < 0:
            raise KeyBuildError(f"final_degree_bits must be >= 0, got {self.final_degree_bits}")

    @classmethod
    def new(cls, k: int) -> "Params":
        """Default parameters for a 2^k-row table."""
        return cls(k)

    @property
    def n(self) -> int:
        return 1 << self.k

    def to_list(self) -> list:
        """Parameter values in a fixed order, for key digests."""
        return [self.k, self.blowup_bits, self.n_queries, self.pow_bits, self.fold_bits, self.final_degree_bits]
