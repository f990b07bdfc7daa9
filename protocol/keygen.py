"""Key generation: fixed and permutation commitments, verifying and proving keys."""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from primitives.field import FF, elements_to_bytes
from primitives.merkle_tree import MerkleRoot, MerkleTree
from primitives.polynomial import stack_columns
from primitives.transcript import Transcript
from protocol.assembly import Assembly, configure, synthesize
from protocol.circuit import Circuit
from protocol.constraint_system import ConstraintSystem
from protocol.domain import EvaluationDomain
from protocol.errors import KeyBuildError, NotEnoughRowsError
from protocol.expressions import ColumnKind
from protocol.params import Params
from protocol.permutation import PermutationAssembly

VK_DOMAIN_TAG = b"arith-verifier/vk/v1"


class PolyKind(Enum):
    """Committed polynomial families, in commitment order."""
    ADVICE = "advice"
    FIXED = "fixed"
    SIGMA = "sigma"
    Z = "z"
    QUOTIENT = "quotient"


@dataclass(frozen=True)
class Opening:
    """A committed polynomial evaluated at xi * w^rotation."""
    kind: PolyKind
    index: int
    rotation: int = 0


def opening_queries(cs: ConstraintSystem) -> List[Opening]:
    """Every evaluation the prover sends, in transcript order.

    Instance columns are omitted: the verifier interpolates them itself.
    """
    advice = set()
    fixed = set()
    for column, rotation in cs.queries():
        if column.kind == ColumnKind.ADVICE:
            advice.add((column.index, rotation))
        elif column.kind == ColumnKind.FIXED:
            fixed.add((column.index, rotation))
    for column in cs.permutation_columns:
        if column.kind == ColumnKind.ADVICE:
            advice.add((column.index, 0))
        elif column.kind == ColumnKind.FIXED:
            fixed.add((column.index, 0))

    openings = [Opening(PolyKind.ADVICE, i, r) for i, r in sorted(advice)]
    openings += [Opening(PolyKind.FIXED, i, r) for i, r in sorted(fixed)]
    openings += [Opening(PolyKind.SIGMA, j) for j in range(len(cs.permutation_columns))]
    openings += [Opening(PolyKind.Z, 0, 0), Opening(PolyKind.Z, 0, 1)]
    openings.append(Opening(PolyKind.QUOTIENT, 0))
    return openings


# --- Keys ---

@dataclass(frozen=True, eq=False)
class VerifyingKey:
    """Everything the verifier needs; shared read-only between verifications."""
    params: Params
    domain: EvaluationDomain
    cs: ConstraintSystem
    fixed_root: MerkleRoot
    n_instance_rows: Tuple[int, ...]
    queries: Tuple[Opening, ...]
    digest: bytes

    @classmethod
    def build(cls, k: int, circuit: Circuit, params: Optional[Params] = None) -> "VerifyingKey":
        """Derive the verifying key for circuit on a 2^k-row table."""
        return keygen_vk(_params_for(k, params), circuit)

    def hash_into(self, transcript: Transcript) -> None:
        transcript.put_commitment(self.digest)

    @property
    def k(self) -> int:
        return self.params.k


@dataclass(frozen=True, eq=False)
class ProvingKey:
    """Verifying key plus the prover-side fixed and permutation data."""
    vk: VerifyingKey
    fixed_values: List[FF]
    fixed_coeffs: FF
    fixed_extended: FF
    sigma_values: List[FF]
    sigma_coeffs: FF
    sigma_extended: FF
    fixed_tree: MerkleTree
    permutation: PermutationAssembly

    @classmethod
    def build(cls, k: int, circuit: Circuit, params: Optional[Params] = None) -> "ProvingKey":
        """Derive both keys for circuit on a 2^k-row table."""
        params = _params_for(k, params)
        return keygen_pk(params, keygen_vk(params, circuit), circuit)


def _params_for(k: int, params: Optional[Params]) -> Params:
    if params is None:
        return Params(k)
    if params.k != k:
        raise KeyBuildError(f"Params built for k={params.k}, requested k={k}")
    return params


# --- Key Generation ---

@dataclass
class _FixedData:
    cs: ConstraintSystem
    domain: EvaluationDomain
    assembly: Assembly
    fixed_values: List[FF]
    sigma_values: List[FF]
    coeffs: FF
    extended: FF
    tree: MerkleTree


def _build_fixed(params: Params, circuit: Circuit) -> _FixedData:
    """Deterministic part of key generation shared by keygen_vk and keygen_pk."""
    cs, config = configure(type(circuit))
    domain = EvaluationDomain(params, cs)
    try:
        assembly = synthesize(params.k, cs, circuit.without_witnesses(), config)
    except NotEnoughRowsError as e:
        raise KeyBuildError(f"Circuit does not fit in 2^{params.k} rows: {e}") from e

    fixed_values = assembly.fixed_values()
    sigma_values = assembly.permutation.build_sigma_values(params.k)
    columns = fixed_values + sigma_values

    coeffs = domain.ntt.intt(stack_columns(columns, domain.n))
    extended = domain.lde(coeffs)
    tree = MerkleTree()
    tree.merkelize(extended)
    return _FixedData(cs, domain, assembly, fixed_values, sigma_values, coeffs, extended, tree)


def _vk_digest(params: Params, data: _FixedData, n_instance_rows: Tuple[int, ...], queries) -> bytes:
    h = hashlib.blake2b(VK_DOMAIN_TAG, digest_size=32)
    h.update(elements_to_bytes(params.to_list() + data.domain.to_list() + list(n_instance_rows)))
    h.update(data.cs.describe().encode())
    h.update(repr([(q.kind.value, q.index, q.rotation) for q in queries]).encode())
    h.update(data.tree.get_root())
    return h.digest()


def keygen_vk(params: Params, circuit: Circuit) -> VerifyingKey:
    """Generate a verifying key from the witness-free circuit.

    Raises:
        KeyBuildError: If the layout does not fit or the domain is too large
    """
    data = _build_fixed(params, circuit)
    n_instance_rows = tuple(data.assembly.instance_rows[c] for c in data.cs.instance_columns)
    queries = tuple(opening_queries(data.cs))
    return VerifyingKey(
        params=params,
        domain=data.domain,
        cs=data.cs,
        fixed_root=data.tree.get_root(),
        n_instance_rows=n_instance_rows,
        queries=queries,
        digest=_vk_digest(params, data, n_instance_rows, queries),
    )


def keygen_pk(params: Params, vk: VerifyingKey, circuit: Circuit) -> ProvingKey:
    """Generate a proving key consistent with vk.

    Raises:
        KeyBuildError: If circuit does not reproduce vk's fixed commitment
    """
    data = _build_fixed(params, circuit)
    if data.tree.get_root() != vk.fixed_root or data.cs.describe() != vk.cs.describe():
        raise KeyBuildError("Circuit does not match the verifying key")

    n_fixed = data.cs.num_fixed_columns
    return ProvingKey(
        vk=vk,
        fixed_values=data.fixed_values,
        fixed_coeffs=data.coeffs[:, :n_fixed],
        fixed_extended=data.extended[:, :n_fixed],
        sigma_values=data.sigma_values,
        sigma_coeffs=data.coeffs[:, n_fixed:],
        sigma_extended=data.extended[:, n_fixed:],
        fixed_tree=data.tree,
        permutation=data.assembly.permutation,
    )
