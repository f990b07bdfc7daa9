"""Host entrypoints: build the key and check the proof fixture for a = 69, b = 42.

The three variants do progressively less work so their timings can be
compared: full verification, key build only, and fixture load only.
"""

from pathlib import Path
from typing import Union

from arith.circuit import ArithCircuit, expected_instances
from arith.proof import Proof, VerifyingKey

K = 4
A = 69
B = 42

DEFAULT_PROOF_PATH = "proof.bin"

PathLike = Union[str, Path]


def load_proof(proof_path: PathLike = DEFAULT_PROOF_PATH) -> Proof:
    return Proof(Path(proof_path).read_bytes())


def entrypoint(proof_path: PathLike = DEFAULT_PROOF_PATH) -> None:
    """Build the verifying key and verify the fixture proof.

    Raises:
        AssertionError: If the fixture proof does not verify
    """
    circuit = ArithCircuit.from_ints(A, B)
    instances = expected_instances(A, B)
    vk = VerifyingKey.build(K, circuit)

    proof = load_proof(proof_path)
    if not proof.verify(vk, instances):
        raise AssertionError(f"Proof at {proof_path} does not verify")


def entrypoint_no_verify(proof_path: PathLike = DEFAULT_PROOF_PATH) -> None:
    """Build the verifying key and load the fixture; skip verification."""
    circuit = ArithCircuit.from_ints(A, B)
    expected_instances(A, B)
    VerifyingKey.build(K, circuit)
    load_proof(proof_path)


def entrypoint_no_verify_no_vk(proof_path: PathLike = DEFAULT_PROOF_PATH) -> None:
    """Load the fixture only."""
    ArithCircuit.from_ints(A, B)
    expected_instances(A, B)
    load_proof(proof_path)
