"""PLONK proof verification.

Verification consists of several phases:
1. Fiat-Shamir transcript reconstruction - Re-derive all random challenges from proof commitments
2. Evaluation check - Verify C(xi) = Q(xi) * Z_H(xi) where C combines every constraint
3. Proof-of-work verification - Check the grinding nonce before deriving queries
4. Merkle tree verification - Verify the opened rows against the key and stage roots
5. FRI verification - Check the DEEP composition at each query folds down to the final polynomial

The verifier returns a bare boolean; it never reports which phase failed.
"""

from typing import Dict, List, Sequence, Tuple

from primitives.field import FF, to_field
from primitives.merkle_tree import MerkleTree
from primitives.transcript import Transcript
from protocol.constraints import PointConstraintContext, constraint_polynomial
from protocol.errors import PlonkError
from protocol.expressions import Column, ColumnKind
from protocol.keygen import PolyKind, VerifyingKey
from protocol.pcs import FriPcs
from protocol.proof import STAGE_TREES, PlonkProof, from_bytes
from protocol.prover import check_instances, deep_composition

# Number of stage roots carried by the proof: advice, permutation, quotient
N_STAGE_ROOTS = 3


# --- Main Entry Point ---

def verify_proof(vk: VerifyingKey, proof: bytes, instances: Sequence) -> bool:
    """Verify proof bytes against vk and public instances.

    Returns:
        True if proof is valid, False otherwise (including malformed input)
    """
    try:
        return _verify(vk, proof, instances)
    except (PlonkError, ValueError, ZeroDivisionError, IndexError):
        return False


def _verify(vk: VerifyingKey, proof_bytes: bytes, instances: Sequence) -> bool:
    domain = vk.domain

    instance_values = check_instances(vk, instances)
    proof = from_bytes(proof_bytes)
    if not _check_shape(vk, proof):
        return False

    # --- Reconstruct Fiat-Shamir transcript ---
    transcript = Transcript()
    vk.hash_into(transcript)
    for column_values in instance_values:
        transcript.put(column_values)

    transcript.put_commitment(proof.roots[0])
    beta = to_field(transcript.get_field())
    gamma = to_field(transcript.get_field())
    transcript.put_commitment(proof.roots[1])
    y = to_field(transcript.get_field())
    transcript.put_commitment(proof.roots[2])
    xi = to_field(transcript.get_field())
    transcript.put(proof.evals)
    alpha = to_field(transcript.get_field())

    # --- CHECK 1: evaluation consistency at xi ---
    evals = [FF(e) for e in proof.evals]
    if not _verify_evaluations(vk, instance_values, evals, xi, {"beta": beta, "gamma": gamma, "y": y}):
        return False

    # --- CHECK 2: proof-of-work and query derivation ---
    fri_pcs = FriPcs(domain.fri_config())
    replayed = fri_pcs.replay(proof.fri, transcript)
    if replayed is None:
        return False
    fri_challenges, queries = replayed

    # --- CHECK 3: stage Merkle trees ---
    stage_roots = [vk.fixed_root] + list(proof.roots)
    widths = _stage_widths(vk)
    for qi, query in enumerate(queries):
        for t, root in enumerate(stage_roots):
            opening = proof.stage_queries[qi][t]
            if len(opening.v) != widths[t]:
                return False
            if not MerkleTree.verify_query_proof(root, query, opening, domain.n_ext):
                return False

    # --- CHECK 4: FRI ---
    first_layer = _first_layer_values(vk, proof, queries, evals, xi, alpha)
    return fri_pcs.verify_queries(proof.fri, fri_challenges, queries, [int(v) for v in first_layer])


# --- Helpers ---

def _stage_widths(vk: VerifyingKey) -> List[int]:
    """Leaf widths of the fixed, advice, permutation and quotient trees."""
    cs = vk.cs
    return [
        cs.num_fixed_columns + len(cs.permutation_columns),
        cs.num_advice_columns,
        1,
        2,
    ]


def _check_shape(vk: VerifyingKey, proof: PlonkProof) -> bool:
    if len(proof.roots) != N_STAGE_ROOTS or len(proof.evals) != len(vk.queries):
        return False
    if len(proof.stage_queries) != vk.params.n_queries:
        return False
    return all(len(openings) == len(STAGE_TREES) for openings in proof.stage_queries)


def _verify_evaluations(
    vk: VerifyingKey,
    instance_values: List[List[int]],
    evals: List[FF],
    xi: FF,
    challenges: Dict[str, FF],
) -> bool:
    """Check C(xi) == Q(xi) * Z_H(xi) using the claimed evaluations."""
    cs = vk.cs
    domain = vk.domain

    column_evals: Dict[Tuple[Column, int], FF] = {}
    sigma_evals: Dict[int, FF] = {}
    z_evals: Dict[int, FF] = {}
    quotient = None
    for opening, value in zip(vk.queries, evals):
        if opening.kind == PolyKind.ADVICE:
            column_evals[(Column(opening.index, ColumnKind.ADVICE), opening.rotation)] = value
        elif opening.kind == PolyKind.FIXED:
            column_evals[(Column(opening.index, ColumnKind.FIXED), opening.rotation)] = value
        elif opening.kind == PolyKind.SIGMA:
            sigma_evals[opening.index] = value
        elif opening.kind == PolyKind.Z:
            z_evals[opening.rotation] = value
        else:
            quotient = value

    instance_cache: Dict[Tuple[Column, int], FF] = {}

    def instance_eval(column: Column, rotation: int) -> FF:
        if column.kind != ColumnKind.INSTANCE:
            raise KeyError(f"No evaluation of {column!r} at rotation {rotation}")
        key = (column, rotation)
        if key not in instance_cache:
            instance_cache[key] = domain.instance_at(instance_values[column.index], domain.rotate(xi, rotation))
        return instance_cache[key]

    ctx = PointConstraintContext(
        domain,
        xi,
        column_evals,
        instance_eval,
        [sigma_evals[j] for j in range(len(cs.permutation_columns))],
        z_evals,
        challenges,
    )
    lhs = constraint_polynomial(cs, ctx)
    return int(lhs) == int(quotient * domain.vanishing_at(xi))


def _first_layer_values(
    vk: VerifyingKey,
    proof: PlonkProof,
    queries: List[int],
    evals: List[FF],
    xi: FF,
    alpha: FF,
) -> FF:
    """DEEP composition F = M + sum alpha^i (p_i - p_i(x_i)) / (X - x_i) at each query."""
    domain = vk.domain
    n_fixed = vk.cs.num_fixed_columns

    def column(tree: int, offset: int) -> FF:
        return FF([proof.stage_queries[qi][tree].v[offset] for qi in range(len(queries))])

    values_at = {}
    for opening in vk.queries:
        key = (opening.kind, opening.index)
        if opening.kind == PolyKind.FIXED:
            values_at[key] = column(0, opening.index)
        elif opening.kind == PolyKind.SIGMA:
            values_at[key] = column(0, n_fixed + opening.index)
        elif opening.kind == PolyKind.ADVICE:
            values_at[key] = column(1, opening.index)
        elif opening.kind == PolyKind.Z:
            values_at[key] = column(2, 0)
        else:
            values_at[key] = column(3, 0)

    points = FF([int(domain.coset_point(q)) for q in queries])
    mask = column(3, 1)
    return mask + deep_composition(vk.queries, evals, values_at, points, xi, alpha, domain)
