"""Arith - the arithmetic circuit, its proof facade, entrypoints and CLI."""

from arith.circuit import ArithCircuit, CircuitConfig, expected_instances
from arith.proof import Proof, ProvingKey, VerifyingKey

__all__ = [
    "ArithCircuit",
    "CircuitConfig",
    "expected_instances",
    "Proof",
    "ProvingKey",
    "VerifyingKey",
]
