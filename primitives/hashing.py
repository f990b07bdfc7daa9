"""BLAKE2b hashing for Merkle commitments and proof-of-work grinding.

Leaves and internal nodes are domain separated by a one-byte prefix so a
leaf can never be reinterpreted as a node.
"""

import hashlib
from typing import Sequence

from primitives.field import elements_to_bytes, element_to_bytes

# Digest size in bytes of a Merkle node
HASH_SIZE = 32

LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"
GRINDING_PREFIX = b"\x02"

# Padding node for levels whose width is not a multiple of the arity
EMPTY_NODE = bytes(HASH_SIZE)


def linear_hash(values: Sequence[int]) -> bytes:
    """Hash a leaf: the row of field elements committed at one index."""
    return hashlib.blake2b(LEAF_PREFIX + elements_to_bytes(values), digest_size=HASH_SIZE).digest()


def hash_seq(children: Sequence[bytes]) -> bytes:
    """Hash an internal node from its children digests."""
    return hashlib.blake2b(NODE_PREFIX + b"".join(children), digest_size=HASH_SIZE).digest()


# --- Proof of Work ---

def _pow_value(challenge: int, nonce: int) -> int:
    digest = hashlib.blake2b(
        GRINDING_PREFIX + element_to_bytes(challenge) + nonce.to_bytes(8, "little"),
        digest_size=8,
    ).digest()
    return int.from_bytes(digest, "big")


def verify_grinding(challenge: int, nonce: int, pow_bits: int) -> bool:
    """Check that hash(challenge, nonce) has pow_bits leading zero bits."""
    if not 0 <= nonce < (1 << 64):
        return False
    return _pow_value(challenge, nonce) >> (64 - pow_bits) == 0


def grinding(challenge: int, pow_bits: int) -> int:
    """Find the smallest nonce satisfying verify_grinding."""
    nonce = 0
    while not verify_grinding(challenge, nonce, pow_bits):
        nonce += 1
    return nonce
