"""Tests for the Fiat-Shamir transcript."""

from primitives.field import GOLDILOCKS_PRIME
from primitives.transcript import Transcript


def _transcript(*items) -> Transcript:
    transcript = Transcript()
    for item in items:
        if isinstance(item, bytes):
            transcript.put_commitment(item)
        else:
            transcript.put(item)
    return transcript


class TestTranscript:
    """Tests for absorb/squeeze behaviour."""

    def test_deterministic(self) -> None:
        """Identical call sequences give identical challenges."""
        a = _transcript([1, 2, 3], b"root")
        b = _transcript([1, 2, 3], b"root")
        assert a.get_field() == b.get_field()
        assert a.get_state() == b.get_state()

    def test_absorbed_data_changes_challenge(self) -> None:
        assert _transcript([1, 2, 3]).get_field() != _transcript([1, 2, 4]).get_field()

    def test_commitment_and_scalar_are_separated(self) -> None:
        """A root and a scalar with the same bytes absorb differently."""
        scalar = _transcript([1])
        commitment = _transcript((1).to_bytes(8, "little"))
        assert scalar.get_field() != commitment.get_field()

    def test_consecutive_challenges_differ(self) -> None:
        transcript = _transcript([7])
        assert transcript.get_field() != transcript.get_field()

    def test_values_reduced_mod_p(self) -> None:
        """Ints are absorbed modulo p."""
        assert _transcript([-1]).get_field() == _transcript([GOLDILOCKS_PRIME - 1]).get_field()

    def test_challenge_in_field(self) -> None:
        assert 0 <= _transcript([5]).get_field() < GOLDILOCKS_PRIME

    def test_get_state_does_not_absorb(self) -> None:
        a = _transcript([9])
        b = _transcript([9])
        a.get_state()
        assert a.get_field() == b.get_field()


class TestPermutations:
    """Tests for query index derivation."""

    def test_values_in_range(self) -> None:
        values = _transcript([1]).get_permutations(40, 11)
        assert len(values) == 40
        assert all(0 <= v < (1 << 11) for v in values)

    def test_deterministic(self) -> None:
        assert _transcript([1]).get_permutations(8, 9) == _transcript([1]).get_permutations(8, 9)

    def test_zero_count(self) -> None:
        assert _transcript([1]).get_permutations(0, 9) == []
