"""Top-level PLONK proof generation."""

import secrets
from typing import Dict, List, Sequence, Tuple

from primitives.field import FF, batch_inverse, to_field, to_ints
from primitives.merkle_tree import MerkleTree
from primitives.polynomial import blind, degree, evaluate, random_coefficients, stack_columns
from primitives.transcript import Transcript
from protocol.assembly import configure, normalize_instances, synthesize
from protocol.circuit import Circuit
from protocol.constraints import ExtendedConstraintContext, constraint_polynomial
from protocol.dev import MockProver
from protocol.errors import ProofCreationError
from protocol.expressions import Column
from protocol.keygen import Opening, PolyKind, ProvingKey
from protocol.pcs import FriPcs
from protocol.permutation import grand_product
from protocol.proof import PlonkProof, to_bytes


def check_instances(vk, instances: Sequence) -> List[List[int]]:
    """Normalize instances and check each column's length against vk.

    Raises:
        ValueError: On a wrong number of columns or values
    """
    values = normalize_instances(vk.cs, instances)
    for column, expected, given in zip(vk.cs.instance_columns, vk.n_instance_rows, values):
        if len(given) != expected:
            raise ValueError(f"Instance column {column!r} expects {expected} values, got {len(given)}")
    return values


def deep_composition(
    openings: Sequence[Opening],
    evals: Sequence[FF],
    values_at: Dict[Tuple[PolyKind, int], FF],
    points: FF,
    xi: FF,
    alpha: FF,
    domain,
) -> FF:
    """Sum of alpha^i * (p_i(X) - p_i(x_i)) / (X - x_i) over all openings.

    Evaluated pointwise at points, where values_at maps (kind, index) to the
    committed polynomial's values at those points. Shared by the prover (the
    whole coset) and the verifier (the query points).
    """
    rotations = sorted({o.rotation for o in openings})
    inverse = {}
    for rotation in rotations:
        inverse[rotation] = batch_inverse(points - domain.rotate(xi, rotation))

    result = FF.Zeros(len(points))
    alpha_pow = FF(1)
    for opening, value in zip(openings, evals):
        numerator = values_at[(opening.kind, opening.index)] - value
        result = result + alpha_pow * numerator * inverse[opening.rotation]
        alpha_pow = alpha_pow * alpha
    return result


# --- Main Entry Point ---

def create_proof(pk: ProvingKey, circuit: Circuit, instances: Sequence, rng=None) -> bytes:
    """Generate a proof that circuit's witness satisfies the constraints for instances.

    Args:
        pk: Proving key of the circuit
        circuit: Circuit carrying known witness values
        instances: One list per instance column (a flat list for a single column)
        rng: Object with randrange(); defaults to secrets.SystemRandom()

    Returns:
        Serialized proof bytes

    Raises:
        WitnessError: If a witness value is unknown or the table overflows
        ProofCreationError: If the witness does not satisfy the circuit for instances
    """
    rng = rng if rng is not None else secrets.SystemRandom()
    vk = pk.vk
    cs = vk.cs
    domain = vk.domain
    n = domain.n

    try:
        instance_values = check_instances(vk, instances)
    except ValueError as e:
        raise ProofCreationError(str(e)) from e

    # === WITNESS: synthesize the circuit and check it before committing ===

    circuit_cs, config = configure(type(circuit))
    if circuit_cs.describe() != cs.describe():
        raise ProofCreationError("Circuit does not match the proving key")
    assembly = synthesize(domain.k, cs, circuit, config)
    advice_values = assembly.advice_values()

    failures = MockProver(domain.k, cs, assembly, instance_values).verify()
    if failures:
        raise ProofCreationError("Witness does not satisfy the circuit:\n" + "\n".join(str(f) for f in failures))

    transcript = Transcript()
    vk.hash_into(transcript)
    for column_values in instance_values:
        transcript.put(column_values)

    instance_table = []
    for column_values in instance_values:
        padded = FF.Zeros(n)
        if column_values:
            padded[:len(column_values)] = FF(column_values)
        instance_table.append(padded)

    # === STAGE 1: advice commitment ===
    # Each column is blinded with Z_H * r, deg r < t, then extended onto the coset.

    t = domain.blinding_degree
    advice_coeffs = blind(
        domain.ntt.intt(stack_columns(advice_values, n)),
        n,
        random_coefficients(rng, (t, cs.num_advice_columns)),
    )
    advice_extended = domain.lde(advice_coeffs)
    advice_tree = MerkleTree()
    transcript.put_commitment(advice_tree.merkelize(advice_extended))

    beta = to_field(transcript.get_field())
    gamma = to_field(transcript.get_field())

    # === STAGE 2: permutation grand product ===

    table_values = {}
    for column, values in zip(cs.advice_columns, advice_values):
        table_values[column] = values
    for column, values in zip(cs.fixed_columns, pk.fixed_values):
        table_values[column] = values
    for column, values in zip(cs.instance_columns, instance_table):
        table_values[column] = values

    try:
        z = grand_product(
            domain.k,
            [table_values[c] for c in cs.permutation_columns],
            pk.sigma_values,
            beta,
            gamma,
        )
    except (ValueError, ZeroDivisionError) as e:
        raise ProofCreationError(f"Permutation argument failed: {e}") from e

    z_coeffs = blind(domain.ntt.intt(z), n, random_coefficients(rng, (t,)))
    z_extended = domain.lde(z_coeffs)
    z_tree = MerkleTree()
    transcript.put_commitment(z_tree.merkelize(z_extended.reshape(-1, 1)))

    y = to_field(transcript.get_field())

    # === STAGE 3: quotient and masking polynomial ===

    extended_columns: Dict[Column, FF] = {}
    for column in cs.advice_columns:
        extended_columns[column] = advice_extended[:, column.index]
    for column in cs.fixed_columns:
        extended_columns[column] = pk.fixed_extended[:, column.index]
    for column, values in zip(cs.instance_columns, instance_table):
        extended_columns[column] = domain.lde(domain.ntt.intt(values))

    sigma_extended = [pk.sigma_extended[:, j] for j in range(len(cs.permutation_columns))]
    ctx = ExtendedConstraintContext(
        domain,
        extended_columns,
        sigma_extended,
        z_extended,
        {"beta": beta, "gamma": gamma, "y": y},
    )
    numerator = constraint_polynomial(cs, ctx)
    quotient_extended = numerator * batch_inverse(domain.vanishing_on_coset())
    quotient_coeffs = domain.ntt_ext.coset_intt(quotient_extended)
    if degree(quotient_coeffs) >= domain.degree_bound:
        raise ProofCreationError("Quotient exceeds the degree bound; constraints are not satisfied")
    quotient_coeffs = quotient_coeffs[:domain.degree_bound]

    mask_coeffs = random_coefficients(rng, (domain.degree_bound,))
    mask_extended = domain.lde(mask_coeffs)

    quotient_tree = MerkleTree()
    transcript.put_commitment(
        quotient_tree.merkelize(stack_columns([quotient_extended, mask_extended], domain.n_ext))
    )

    xi = to_field(transcript.get_field())

    # === STAGE 4: openings at xi ===

    coefficients = {
        PolyKind.ADVICE: lambda i: advice_coeffs[:, i],
        PolyKind.FIXED: lambda i: pk.fixed_coeffs[:, i],
        PolyKind.SIGMA: lambda i: pk.sigma_coeffs[:, i],
        PolyKind.Z: lambda i: z_coeffs,
        PolyKind.QUOTIENT: lambda i: quotient_coeffs,
    }
    evals = [
        evaluate(coefficients[o.kind](o.index), domain.rotate(xi, o.rotation))
        for o in vk.queries
    ]
    transcript.put([int(e) for e in evals])

    alpha = to_field(transcript.get_field())

    # === STAGE 5: DEEP composition and FRI ===

    extended_values = {}
    for o in vk.queries:
        if o.kind == PolyKind.ADVICE:
            extended_values[(o.kind, o.index)] = advice_extended[:, o.index]
        elif o.kind == PolyKind.FIXED:
            extended_values[(o.kind, o.index)] = pk.fixed_extended[:, o.index]
        elif o.kind == PolyKind.SIGMA:
            extended_values[(o.kind, o.index)] = pk.sigma_extended[:, o.index]
        elif o.kind == PolyKind.Z:
            extended_values[(o.kind, o.index)] = z_extended
        else:
            extended_values[(o.kind, o.index)] = quotient_extended

    try:
        composition = mask_extended + deep_composition(
            vk.queries, evals, extended_values, domain.coset_points(), xi, alpha, domain
        )
    except ZeroDivisionError as e:
        raise ProofCreationError("Opening point collides with the evaluation coset") from e

    fri_pcs = FriPcs(domain.fri_config())
    try:
        fri_proof = fri_pcs.prove(composition, transcript)
    except ValueError as e:
        raise ProofCreationError(str(e)) from e

    # === STAGE 6: query openings ===

    stage_trees = [pk.fixed_tree, advice_tree, z_tree, quotient_tree]
    stage_queries = [
        [tree.get_query_proof(idx) for tree in stage_trees]
        for idx in fri_proof.query_indices
    ]

    proof = PlonkProof(
        roots=[advice_tree.get_root(), z_tree.get_root(), quotient_tree.get_root()],
        evals=to_ints(evals),
        fri=fri_proof,
        stage_queries=stage_queries,
    )
    return to_bytes(proof)
