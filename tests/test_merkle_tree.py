"""Tests for the BLAKE2b Merkle tree and grinding."""

import pytest

from primitives.hashing import EMPTY_NODE, grinding, hash_seq, linear_hash, verify_grinding
from primitives.merkle_tree import MerkleTree, QueryProof, merkle_depth


def _rows(height: int, width: int):
    return [[i * width + j for j in range(width)] for i in range(height)]


class TestMerkleTree:
    """Tests for tree construction and openings."""

    def test_single_leaf_root_is_leaf_hash(self) -> None:
        tree = MerkleTree()
        assert tree.merkelize([[1, 2, 3]]) == linear_hash([1, 2, 3])

    def test_two_leaves(self) -> None:
        """Root of two leaves hashes both leaf digests."""
        tree = MerkleTree()
        root = tree.merkelize([[1], [2]])
        assert root == hash_seq([linear_hash([1]), linear_hash([2])])

    def test_odd_level_padded_with_empty_node(self) -> None:
        tree = MerkleTree()
        tree.merkelize([[1], [2], [3]])
        assert tree.levels[1][1] == hash_seq([linear_hash([3]), EMPTY_NODE])

    @pytest.mark.parametrize("arity", [2, 4])
    @pytest.mark.parametrize("height", [1, 5, 16])
    def test_every_opening_verifies(self, arity: int, height: int) -> None:
        """get_query_proof output verifies against the root for every leaf."""
        tree = MerkleTree(arity=arity)
        root = tree.merkelize(_rows(height, 3))
        for idx in range(height):
            proof = tree.get_query_proof(idx)
            assert proof.v == _rows(height, 3)[idx]
            assert len(proof.mp) == merkle_depth(height, arity)
            assert MerkleTree.verify_query_proof(root, idx, proof, height, arity)

    def test_tampered_value_fails(self) -> None:
        tree = MerkleTree()
        root = tree.merkelize(_rows(8, 2))
        proof = tree.get_query_proof(3)
        proof.v[0] += 1
        assert not MerkleTree.verify_query_proof(root, 3, proof, 8)

    def test_wrong_index_fails(self) -> None:
        """An opening does not verify at a different index."""
        tree = MerkleTree()
        root = tree.merkelize(_rows(8, 2))
        assert not MerkleTree.verify_query_proof(root, 4, tree.get_query_proof(3), 8)

    def test_wrong_path_length_fails(self) -> None:
        tree = MerkleTree()
        root = tree.merkelize(_rows(8, 2))
        proof = tree.get_query_proof(0)
        short = QueryProof(v=proof.v, mp=proof.mp[:-1])
        assert not MerkleTree.verify_query_proof(root, 0, short, 8)

    def test_out_of_range_query(self) -> None:
        tree = MerkleTree()
        tree.merkelize(_rows(4, 1))
        with pytest.raises(ValueError):
            tree.get_query_proof(4)

    def test_empty_table_rejected(self) -> None:
        with pytest.raises(ValueError):
            MerkleTree().merkelize([])


class TestGrinding:
    """Tests for proof-of-work nonces."""

    @pytest.mark.parametrize("pow_bits", [0, 4, 8])
    def test_found_nonce_verifies(self, pow_bits: int) -> None:
        nonce = grinding(123456789, pow_bits)
        assert verify_grinding(123456789, nonce, pow_bits)

    def test_nonce_is_smallest(self) -> None:
        """grinding returns the first valid nonce."""
        nonce = grinding(42, 6)
        assert all(not verify_grinding(42, n, 6) for n in range(nonce))

    def test_negative_nonce_rejected(self) -> None:
        assert not verify_grinding(1, -1, 0)
