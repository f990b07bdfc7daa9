"""Protocol - PLONK-style constraint system, keys, prover and verifier."""

from protocol.fri import FRI
from protocol.pcs import (
    FriPcs,
    FriPcsConfig,
    FriProof,
)

from protocol.errors import (
    ConstraintSystemError,
    KeyBuildError,
    NotEnoughRowsError,
    PlonkError,
    ProofCreationError,
    ProofFormatError,
    WitnessError,
)
from protocol.params import Params
from protocol.expressions import Column, ColumnKind, Expression, Rotation
from protocol.constraint_system import ConstraintSystem, Gate, Selector
from protocol.circuit import (
    AssignedCell,
    Cell,
    Circuit,
    Layouter,
    Region,
    SimpleFloorPlanner,
    Value,
)

from protocol.keygen import ProvingKey, VerifyingKey, keygen_pk, keygen_vk

from protocol.prover import create_proof

from protocol.verifier import verify_proof

from protocol.dev import MockProver, VerifyFailure
from protocol.proof import PlonkProof

__all__ = [
    # FRI
    "FRI",
    # FRI PCS
    "FriPcs",
    "FriPcsConfig",
    "FriProof",
    # Errors
    "PlonkError",
    "ConstraintSystemError",
    "WitnessError",
    "NotEnoughRowsError",
    "KeyBuildError",
    "ProofCreationError",
    "ProofFormatError",
    # Circuit building
    "Params",
    "Column",
    "ColumnKind",
    "Expression",
    "Rotation",
    "ConstraintSystem",
    "Gate",
    "Selector",
    "AssignedCell",
    "Cell",
    "Circuit",
    "Layouter",
    "Region",
    "SimpleFloorPlanner",
    "Value",
    # Keys, proving and verification
    "ProvingKey",
    "VerifyingKey",
    "keygen_vk",
    "keygen_pk",
    "create_proof",
    "verify_proof",
    "PlonkProof",
    # Development
    "MockProver",
    "VerifyFailure",
]
