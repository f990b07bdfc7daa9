"""Tests for the binary proof format."""

import struct

import pytest

from primitives.field import GOLDILOCKS_PRIME
from primitives.merkle_tree import QueryProof
from protocol.errors import ProofFormatError
from protocol.pcs import FriProof
from protocol.proof import MAGIC, PlonkProof, from_bytes, to_bytes


def _digest(tag: int) -> bytes:
    return bytes([tag]) * 32


def _sample_proof() -> PlonkProof:
    opening = QueryProof(v=[1, 2, GOLDILOCKS_PRIME - 1], mp=[[_digest(9)], [_digest(8)]])
    return PlonkProof(
        roots=[_digest(1), _digest(2), _digest(3)],
        evals=[5, 6, 7, 8],
        fri=FriProof(
            fri_roots=[_digest(4), _digest(5)],
            final_pol=[11, 12, 13, 14],
            nonce=777,
            query_proofs=[[opening, opening], [opening, opening]],
        ),
        stage_queries=[[opening] * 4, [opening] * 4],
    )


class TestProofEncoding:
    """Tests for to_bytes / from_bytes."""

    def test_decode_recovers_fields(self) -> None:
        proof = from_bytes(to_bytes(_sample_proof()))
        assert proof.roots == [_digest(1), _digest(2), _digest(3)]
        assert proof.evals == [5, 6, 7, 8]
        assert proof.fri.final_pol == [11, 12, 13, 14]
        assert proof.fri.nonce == 777
        assert len(proof.stage_queries) == 2
        assert all(len(openings) == 4 for openings in proof.stage_queries)
        assert proof.fri.query_proofs[1][0].v == [1, 2, GOLDILOCKS_PRIME - 1]
        assert proof.fri.query_proofs[1][0].mp == [[_digest(9)], [_digest(8)]]

    def test_starts_with_magic(self) -> None:
        assert to_bytes(_sample_proof()).startswith(MAGIC + b"\x01")

    def test_encoding_is_canonical(self) -> None:
        """Decoding and re-encoding reproduces the same bytes."""
        data = to_bytes(_sample_proof())
        assert to_bytes(from_bytes(data)) == data

    def test_truncated(self) -> None:
        data = to_bytes(_sample_proof())
        with pytest.raises(ProofFormatError):
            from_bytes(data[:-1])

    def test_trailing_bytes(self) -> None:
        with pytest.raises(ProofFormatError):
            from_bytes(to_bytes(_sample_proof()) + b"\x00")

    def test_bad_magic(self) -> None:
        data = to_bytes(_sample_proof())
        with pytest.raises(ProofFormatError):
            from_bytes(b"XXXX" + data[4:])

    def test_bad_version(self) -> None:
        data = to_bytes(_sample_proof())
        with pytest.raises(ProofFormatError):
            from_bytes(data[:4] + b"\x02" + data[5:])

    def test_non_canonical_element(self) -> None:
        """An evaluation >= p is rejected."""
        data = bytearray(to_bytes(_sample_proof()))
        # evals start after magic, version, root count and three roots, then a u32 count
        offset = 4 + 1 + 1 + 3 * 32 + 4
        data[offset:offset + 8] = struct.pack("<Q", GOLDILOCKS_PRIME)
        with pytest.raises(ProofFormatError) as e:
            from_bytes(bytes(data))
        assert "Non-canonical" in str(e.value)

    def test_empty_input(self) -> None:
        with pytest.raises(ProofFormatError):
            from_bytes(b"")
