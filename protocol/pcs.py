"""FRI Polynomial Commitment Scheme."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from primitives.field import FF, SHIFT, to_ints
from primitives.hashing import grinding, verify_grinding
from primitives.merkle_tree import MerkleRoot, MerkleTree, QueryProof
from primitives.ntt import NTT
from primitives.polynomial import degree, evaluate
from primitives.transcript import Transcript
from protocol.fri import FRI, EvalPoly

# --- Type Aliases ---

Nonce = int
QueryIndex = int


# --- Configuration ---

@dataclass
class FriPcsConfig:
    """FRI PCS parameters."""
    n_bits_ext: int
    fri_round_log_sizes: List[int]
    n_queries: int
    blowup_bits: int
    merkle_arity: int = 2
    pow_bits: int = 12

    @property
    def n_rounds(self) -> int:
        return len(self.fri_round_log_sizes) - 1

    @property
    def final_pol_length(self) -> int:
        """Coefficients of the last layer sent in the clear."""
        return 1 << max(self.fri_round_log_sizes[-1] - self.blowup_bits, 0)

    def group_size(self, fri_round: int) -> int:
        return 1 << (self.fri_round_log_sizes[fri_round] - self.fri_round_log_sizes[fri_round + 1])


@dataclass
class FriProof:
    """FRI proof: roots, final polynomial, grinding nonce, and query proofs."""
    fri_roots: List[MerkleRoot] = field(default_factory=list)
    final_pol: List[int] = field(default_factory=list)
    nonce: Nonce = 0
    query_proofs: List[List[QueryProof]] = field(default_factory=list)
    query_indices: List[QueryIndex] = field(default_factory=list)


# --- FRI PCS ---

class FriPcs:
    """FRI Polynomial Commitment Scheme."""

    def __init__(self, config: FriPcsConfig):
        self.config = config
        self.fri_trees = [MerkleTree(arity=config.merkle_arity) for _ in range(config.n_rounds)]

    def prove(self, polynomial: EvalPoly, transcript: Transcript) -> FriProof:
        """Generate FRI proof: commit-fold, finalize, grind, query.

        Args:
            polynomial: Evaluations on the coset SHIFT * <w> of size 2^n_bits_ext

        Raises:
            ValueError: If the last layer exceeds the final degree bound
        """
        cfg = self.config

        # --- Commit-Fold Loop ---
        # Each iteration: merkelize -> commit root -> derive challenge -> fold
        fri_roots: List[MerkleRoot] = []
        current_pol = polynomial

        for fri_round in range(cfg.n_rounds):
            prev_bits, curr_bits = cfg.fri_round_log_sizes[fri_round], cfg.fri_round_log_sizes[fri_round + 1]

            root = FRI.merkelize(current_pol, self.fri_trees[fri_round], prev_bits, curr_bits)
            fri_roots.append(root)
            transcript.put_commitment(root)

            challenge = transcript.get_field()
            current_pol = FRI.fold(fri_round, current_pol, challenge, cfg.n_bits_ext, prev_bits, curr_bits)

        # --- Finalize ---
        final_coeffs = self._final_coefficients(current_pol)
        if degree(final_coeffs) >= cfg.final_pol_length:
            raise ValueError("FRI final polynomial exceeds the degree bound")
        final_pol = to_ints(final_coeffs[:cfg.final_pol_length])
        transcript.put(final_pol)

        # --- Grinding (proof-of-work) ---
        grinding_challenge = transcript.get_field()
        nonce = grinding(grinding_challenge, cfg.pow_bits)

        # --- Query Phase ---
        query_indices = self._derive_query_indices(grinding_challenge, nonce)
        query_proofs = self._generate_query_proofs(query_indices)

        return FriProof(
            fri_roots=fri_roots,
            final_pol=final_pol,
            nonce=nonce,
            query_proofs=query_proofs,
            query_indices=query_indices,
        )

    def replay(self, proof: FriProof, transcript: Transcript) -> Optional[Tuple[List[int], List[QueryIndex]]]:
        """Replay the commit phase on the verifier side.

        Returns:
            (folding challenges, query indices), or None if the proof shape or
            the grinding nonce is wrong
        """
        cfg = self.config
        if len(proof.fri_roots) != cfg.n_rounds or len(proof.final_pol) != cfg.final_pol_length:
            return None

        challenges = []
        for root in proof.fri_roots:
            transcript.put_commitment(root)
            challenges.append(transcript.get_field())
        transcript.put(proof.final_pol)

        grinding_challenge = transcript.get_field()
        if not verify_grinding(grinding_challenge, proof.nonce, cfg.pow_bits):
            return None
        return challenges, self._derive_query_indices(grinding_challenge, proof.nonce)

    def verify_queries(
        self,
        proof: FriProof,
        challenges: Sequence[int],
        query_indices: Sequence[QueryIndex],
        first_layer_values: Sequence[int],
    ) -> bool:
        """Check every fold of every query down to the final polynomial.

        Args:
            first_layer_values: Value of the committed polynomial at each query
        """
        cfg = self.config
        sizes = cfg.fri_round_log_sizes
        if len(proof.query_proofs) != cfg.n_rounds:
            return False
        if any(len(layer) != len(query_indices) for layer in proof.query_proofs):
            return False

        final_pol = FF(list(proof.final_pol))
        for qi, query in enumerate(query_indices):
            expected = int(first_layer_values[qi])
            for fri_round in range(cfg.n_rounds):
                group, position = FRI.query_positions(query, sizes, fri_round)
                query_proof = proof.query_proofs[fri_round][qi]
                if len(query_proof.v) != cfg.group_size(fri_round):
                    return False
                if not MerkleTree.verify_query_proof(
                    proof.fri_roots[fri_round], group, query_proof, 1 << sizes[fri_round + 1], cfg.merkle_arity
                ):
                    return False
                if query_proof.v[position] != expected:
                    return False
                expected = FRI.verify_fold(
                    fri_round, cfg.n_bits_ext, sizes[fri_round], sizes[fri_round + 1],
                    challenges[fri_round], group, query_proof.v,
                )

            x = FRI.layer_point(cfg.n_bits_ext, sizes[-1], query % (1 << sizes[-1]))
            if int(evaluate(final_pol, x)) != expected:
                return False
        return True

    # --- Internal ---

    def _final_coefficients(self, pol: EvalPoly) -> FF:
        """Interpolate the last layer on its coset."""
        cfg = self.config
        last_bits = cfg.fri_round_log_sizes[-1]
        shift = SHIFT ** (1 << (cfg.n_bits_ext - last_bits))
        return NTT(1 << last_bits).coset_intt(pol, shift=shift)

    def _derive_query_indices(self, challenge: int, nonce: Nonce) -> List[QueryIndex]:
        """Derive pseudorandom query indices from grinding output."""
        cfg = self.config
        query_transcript = Transcript()
        query_transcript.put([challenge])
        query_transcript.put([nonce])
        return query_transcript.get_permutations(cfg.n_queries, cfg.fri_round_log_sizes[0])

    def _generate_query_proofs(self, query_indices: List[QueryIndex]) -> List[List[QueryProof]]:
        """Generate Merkle proofs for all queries at each FRI layer."""
        cfg = self.config
        return [
            [
                self.fri_trees[fri_round].get_query_proof(
                    FRI.query_positions(idx, cfg.fri_round_log_sizes, fri_round)[0]
                )
                for idx in query_indices
            ]
            for fri_round in range(cfg.n_rounds)
        ]
