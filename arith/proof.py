"""Proof facade over protocol.prover / protocol.verifier."""

from typing import Sequence

from protocol.circuit import Circuit
from protocol.keygen import ProvingKey, VerifyingKey
from protocol.prover import create_proof
from protocol.verifier import verify_proof


class Proof:
    """Opaque proof bytes."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @classmethod
    def create(cls, pk: ProvingKey, circuit: Circuit, instances: Sequence, rng=None) -> "Proof":
        """Prove circuit's witness against instances.

        Raises:
            ProofCreationError: If the witness does not satisfy the circuit
        """
        return cls(create_proof(pk, circuit, instances, rng=rng))

    def verify(self, vk: VerifyingKey, instances: Sequence) -> bool:
        return verify_proof(vk, self._data, instances)

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Proof):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"Proof({len(self._data)} bytes)"


__all__ = ["Proof", "ProvingKey", "VerifyingKey"]
