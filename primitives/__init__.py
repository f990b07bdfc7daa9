"""Primitives - Low-level cryptographic and mathematical building blocks."""

from primitives.field import (
    FF,
    GOLDILOCKS_PRIME,
    SHIFT,
    SHIFT_INV,
    W,
    batch_inverse,
    get_omega,
    get_omega_inv,
    to_field,
)
from primitives.hashing import HASH_SIZE
from primitives.merkle_tree import (
    MerkleRoot,
    MerkleTree,
    QueryProof,
)
from primitives.ntt import NTT
from primitives.transcript import Transcript

__all__ = [
    # Field
    "FF",
    "GOLDILOCKS_PRIME",
    "W",
    "SHIFT",
    "SHIFT_INV",
    "get_omega",
    "get_omega_inv",
    "to_field",
    "batch_inverse",
    # NTT
    "NTT",
    # Merkle Tree
    "MerkleTree",
    "MerkleRoot",
    "QueryProof",
    "HASH_SIZE",
    # Transcript
    "Transcript",
]
