"""
FRI Polynomial Commitment Tests
===============================

What these tests cover:
    - FRI.fold(): folding agrees with the even/odd split definition
    - FRI.verify_fold(): single-point fold matches the full fold
    - FriPcs.prove() / replay() / verify_queries(): honest proofs verify,
      tampered proofs and high-degree inputs do not
"""

import copy

import pytest

from primitives.field import FF, SHIFT, get_omega
from primitives.ntt import NTT
from primitives.polynomial import evaluate
from primitives.transcript import Transcript
from protocol.fri import FRI
from protocol.pcs import FriPcs, FriPcsConfig

N_BITS_EXT = 8
BLOWUP_BITS = 2


def _config(pow_bits: int = 4) -> FriPcsConfig:
    return FriPcsConfig(
        n_bits_ext=N_BITS_EXT,
        fri_round_log_sizes=[8, 6, 4],
        n_queries=8,
        blowup_bits=BLOWUP_BITS,
        pow_bits=pow_bits,
    )


def _low_degree(n_coeffs: int = 1 << (N_BITS_EXT - BLOWUP_BITS)):
    coeffs = FF.Random(n_coeffs)
    return coeffs, NTT(1 << N_BITS_EXT).coset_ntt(coeffs)


def _prove(evals, seed: int = 1):
    transcript = Transcript()
    transcript.put([seed])
    pcs = FriPcs(_config())
    return pcs, pcs.prove(evals, transcript)


def _verify(proof, evals, seed: int = 1) -> bool:
    transcript = Transcript()
    transcript.put([seed])
    pcs = FriPcs(_config())
    replayed = pcs.replay(proof, transcript)
    if replayed is None:
        return False
    challenges, queries = replayed
    return pcs.verify_queries(proof, challenges, queries, [int(evals[q]) for q in queries])


class TestFold:
    """Tests for a single folding step."""

    def test_binary_fold_matches_split(self) -> None:
        """Folding by 2 gives P_even(y) + c * P_odd(y) on the squared coset."""
        coeffs = FF.Random(8)
        n_bits = 4
        evals = NTT(1 << n_bits).coset_ntt(coeffs)
        challenge = 987654321

        folded = FRI.fold(0, evals, challenge, n_bits, n_bits, n_bits - 1)

        even, odd = coeffs[0::2], coeffs[1::2]
        w = FF(get_omega(n_bits - 1))
        for g in range(1 << (n_bits - 1)):
            y = (SHIFT ** 2) * w ** g
            assert folded[g] == evaluate(even, y) + FF(challenge) * evaluate(odd, y)

    def test_verify_fold_matches_fold(self) -> None:
        """Recomputing one group from its leaf gives the folded value."""
        _, evals = _low_degree()
        challenge = 12345
        folded = FRI.fold(0, evals, challenge, N_BITS_EXT, 8, 6)
        tree_rows = [[int(evals[g + i * 64]) for i in range(4)] for g in range(64)]
        for g in (0, 17, 63):
            assert FRI.verify_fold(0, N_BITS_EXT, 8, 6, challenge, g, tree_rows[g]) == int(folded[g])

    def test_verify_fold_wrong_group_size(self) -> None:
        with pytest.raises(ValueError):
            FRI.verify_fold(0, N_BITS_EXT, 8, 6, 1, 0, [1, 2])

    def test_query_positions(self) -> None:
        sizes = [8, 6, 4]
        assert FRI.query_positions(0b10110101, sizes, 0) == [0b110101, 0b10]
        assert FRI.query_positions(0b10110101, sizes, 1) == [0b0101, 0b11]


class TestFriPcs:
    """Tests for the full commit, query and verify flow."""

    def test_honest_proof_verifies(self) -> None:
        _, evals = _low_degree()
        _, proof = _prove(evals)
        assert len(proof.fri_roots) == 2
        assert len(proof.final_pol) == _config().final_pol_length == 4
        assert _verify(proof, evals)

    def test_query_indices_match_replay(self) -> None:
        _, evals = _low_degree()
        _, proof = _prove(evals)
        transcript = Transcript()
        transcript.put([1])
        _, queries = FriPcs(_config()).replay(proof, transcript)
        assert queries == proof.query_indices

    def test_final_polynomial_matches_input(self) -> None:
        """Constant input folds to the same constant."""
        evals = NTT(1 << N_BITS_EXT).coset_ntt(FF([42]))
        _, proof = _prove(evals)
        assert proof.final_pol == [42, 0, 0, 0]

    def test_high_degree_rejected(self) -> None:
        """A polynomial above the rate bound cannot be proven."""
        _, evals = _low_degree(1 << N_BITS_EXT)
        with pytest.raises(ValueError):
            _prove(evals)

    def test_wrong_first_layer_values(self) -> None:
        _, evals = _low_degree()
        _, proof = _prove(evals)
        other = evals + FF(1)
        assert not _verify(proof, other)

    def test_tampered_final_polynomial(self) -> None:
        _, evals = _low_degree()
        _, proof = _prove(evals)
        bad = copy.deepcopy(proof)
        bad.final_pol[0] = (bad.final_pol[0] + 1) % (2 ** 61)
        assert not _verify(bad, evals)

    def test_tampered_nonce(self) -> None:
        """A nonce that fails the proof of work is rejected before queries."""
        _, evals = _low_degree()
        _, proof = _prove(evals)
        pcs = FriPcs(_config())

        def replay(candidate):
            transcript = Transcript()
            transcript.put([1])
            return pcs.replay(candidate, transcript)

        bad = copy.deepcopy(proof)
        bad.nonce += 1
        while replay(bad) is not None:
            bad.nonce += 1
        assert not _verify(bad, evals)

    def test_different_transcript_fails(self) -> None:
        _, evals = _low_degree()
        _, proof = _prove(evals, seed=1)
        assert not _verify(proof, evals, seed=2)

    def test_tree_access(self) -> None:
        _, evals = _low_degree()
        pcs, proof = _prove(evals)
        assert pcs.fri_trees[0].get_root() == proof.fri_roots[0]
        assert pcs.fri_trees[1].get_root() == proof.fri_roots[1]
