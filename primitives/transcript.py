"""
Fiat-Shamir transcript using a BLAKE2b duplex.

This module implements challenge generation for non-interactive proofs. Every
absorbed item is tagged with a one-byte prefix; squeezing a challenge absorbs
the challenge prefix too, so consecutive challenges differ.
"""
import hashlib
from typing import List, Sequence

from primitives.field import GOLDILOCKS_PRIME, element_to_bytes

# Personalization string, exactly 16 bytes as BLAKE2b requires
TRANSCRIPT_PERSONAL = b"Arith-Transcript"

PREFIX_CHALLENGE = b"\x00"
PREFIX_COMMITMENT = b"\x01"
PREFIX_SCALAR = b"\x02"

# Bits consumed per squeezed field when deriving permutations
BITS_PER_FIELD = 63


class Transcript:
    """
    Fiat-Shamir transcript.

    The transcript absorbs commitments and field elements and produces random
    challenges in a deterministic, pseudorandom manner. Prover and verifier
    perform the identical sequence of calls.
    """

    def __init__(self) -> None:
        self._state = hashlib.blake2b(digest_size=64, person=TRANSCRIPT_PERSONAL)

    def put(self, input_data: Sequence[int]) -> None:
        """
        Add field elements to the transcript.

        Args:
            input_data: Field elements to absorb (ints are reduced mod p)
        """
        for elem in input_data:
            self._state.update(PREFIX_SCALAR + element_to_bytes(int(elem) % GOLDILOCKS_PRIME))

    def put_commitment(self, root: bytes) -> None:
        """Absorb a Merkle root or key digest."""
        self._state.update(PREFIX_COMMITMENT + root)

    def get_field(self) -> int:
        """Squeeze one field element challenge."""
        self._state.update(PREFIX_CHALLENGE)
        digest = self._state.copy().digest()
        return int.from_bytes(digest, "little") % GOLDILOCKS_PRIME

    def get_state(self) -> bytes:
        """Current digest without absorbing anything."""
        return self._state.copy().digest()

    def get_permutations(self, n: int, n_bits: int) -> List[int]:
        """
        Generate n permutation values, each using n_bits bits.

        This is used to derive query indices in FRI.

        Args:
            n: Number of permutation values to generate
            n_bits: Number of bits per value

        Returns:
            List of n values, each in range [0, 2^n_bits)
        """
        n_fields = ((n * n_bits - 1) // BITS_PER_FIELD) + 1 if n * n_bits > 0 else 0
        fields = [self.get_field() for _ in range(n_fields)]

        result = []
        cur_bit = 0
        cur_field = 0
        for _ in range(n):
            a = 0
            for j in range(n_bits):
                bit = (fields[cur_field] >> cur_bit) & 1
                a += bit << j

                cur_bit += 1
                if cur_bit == BITS_PER_FIELD:
                    cur_bit = 0
                    cur_field += 1
            result.append(a)

        return result
