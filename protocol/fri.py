"""FRI folding protocol over the Goldilocks base field."""

from typing import List, Sequence

import galois

from primitives.field import FF, SHIFT, SHIFT_INV, get_omega, get_omega_inv, powers, to_field
from primitives.merkle_tree import MerkleRoot, MerkleTree
from primitives.ntt import NTT

# --- Type Aliases ---

EvalPoly = FF  # Polynomial in evaluation form on a coset of size 2^bits


# --- FRI Protocol ---

class FRI:
    """FRI protocol: folding, commitment, and verification."""

    @staticmethod
    def fold(
        step: int,
        pol: EvalPoly,
        challenge: int,
        n_bits_ext: int,
        prev_bits: int,
        current_bits: int,
    ) -> EvalPoly:
        """Fold polynomial by factor 2^(prev_bits - current_bits) using challenge.

        Group g collects the evaluations at x_g * zeta^i, i < fold_factor,
        where x_g = shift * w^g. Interpolating the group gives the coefficients
        of the fold_factor-way split of the polynomial, which are recombined
        at challenge / x_g.
        """
        n_out = 1 << current_bits  # Output size (number of groups)
        fold_factor = (1 << prev_bits) // n_out  # Points per group

        # Coset shift of this layer: SHIFT^(2^k) where k counts folded bits so far
        k = n_bits_ext - prev_bits if step > 0 else 0
        shift_inv_pow = SHIFT_INV ** (1 << k)

        # groups[i, g] = pol[g + i * n_out]
        groups = FF(pol).reshape(fold_factor, n_out)
        coeffs = NTT(fold_factor).intt(groups) if fold_factor > 1 else groups

        # Evaluation point per group: challenge * (shift * w^g)^(-1)
        w_inv_powers = powers(get_omega_inv(prev_bits), n_out)
        points = to_field(challenge) * shift_inv_pow * w_inv_powers

        # Horner over the coefficient rows
        result = FF(coeffs[fold_factor - 1])
        for i in range(fold_factor - 2, -1, -1):
            result = result * points + coeffs[i]
        return result

    @staticmethod
    def merkelize(
        pol: EvalPoly,
        tree: MerkleTree,
        current_bits: int,
        next_bits: int,
    ) -> MerkleRoot:
        """Commit to FRI layer via Merkle tree, one leaf per folding group."""
        height = 1 << next_bits
        n_groups = 1 << (current_bits - next_bits)
        values = [int(v) for v in pol]
        rows = [[values[g + i * height] for i in range(n_groups)] for g in range(height)]
        return tree.merkelize(rows)

    @staticmethod
    def verify_fold(
        step: int,
        n_bits_ext: int,
        prev_bits: int,
        current_bits: int,
        challenge: int,
        idx: int,
        siblings: Sequence[int],
    ) -> int:
        """Verify fold step: recompute the folded value at idx from the group."""
        fold_factor = 1 << (prev_bits - current_bits)
        if len(siblings) != fold_factor:
            raise ValueError(f"Expected {fold_factor} group values, got {len(siblings)}")

        k = n_bits_ext - prev_bits if step > 0 else 0
        shift_pow = SHIFT ** (1 << k)
        w_inv = FF(get_omega_inv(prev_bits))

        coeffs = FF([int(s) for s in siblings])
        if fold_factor > 1:
            coeffs = NTT(fold_factor).intt(coeffs)

        # Evaluation point: challenge * (shift * w^idx)^(-1)
        eval_point = to_field(challenge) * (shift_pow ** -1) * (w_inv ** idx)
        return int(galois.Poly(coeffs[::-1], field=FF)(eval_point))

    @staticmethod
    def layer_point(n_bits_ext: int, bits: int, idx: int) -> FF:
        """Domain point of index idx on the layer of size 2^bits."""
        shift_pow = SHIFT ** (1 << (n_bits_ext - bits))
        w = FF(get_omega(bits))
        return shift_pow * (w ** idx)

    @staticmethod
    def query_positions(query: int, fri_round_log_sizes: Sequence[int], step: int) -> List[int]:
        """Map an original query index to (group, position in group) at a layer."""
        prev_bits = fri_round_log_sizes[step]
        next_bits = fri_round_log_sizes[step + 1]
        idx = query % (1 << prev_bits)
        return [idx % (1 << next_bits), idx >> next_bits]
