"""Merkle tree over rows of field elements.

Leaf i commits to row i of a (height, n_cols) table. Internal nodes hash
`arity` children; levels whose width is not a multiple of the arity are
padded with EMPTY_NODE.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from primitives.hashing import EMPTY_NODE, hash_seq, linear_hash

# --- Type Aliases ---

MerkleRoot = bytes


@dataclass
class QueryProof:
    """Opening of one leaf: its values and the sibling digests per level."""
    v: List[int] = field(default_factory=list)
    mp: List[List[bytes]] = field(default_factory=list)


def merkle_depth(height: int, arity: int) -> int:
    """Number of levels between the leaves and the root."""
    depth = 0
    while height > 1:
        height = (height + arity - 1) // arity
        depth += 1
    return depth


class MerkleTree:
    """Merkle tree with configurable arity, hashing rows with BLAKE2b."""

    def __init__(self, arity: int = 2) -> None:
        if arity < 2:
            raise ValueError(f"arity must be >= 2, got {arity}")
        self.arity = arity
        self.height = 0
        self.n_cols = 0
        self.levels: List[List[bytes]] = []
        self.source_data: List[List[int]] | None = None

    def merkelize(self, rows: Sequence[Sequence[int]]) -> MerkleRoot:
        """Build the tree from table rows and return the root."""
        if len(rows) == 0:
            raise ValueError("Cannot merkelize an empty table")
        self.source_data = [[int(v) for v in row] for row in rows]
        self.height = len(self.source_data)
        self.n_cols = len(self.source_data[0])

        level = [linear_hash(row) for row in self.source_data]
        self.levels = [level]
        while len(level) > 1:
            extra = (self.arity - len(level) % self.arity) % self.arity
            padded = level + [EMPTY_NODE] * extra
            level = [hash_seq(padded[i:i + self.arity]) for i in range(0, len(padded), self.arity)]
            self.levels.append(level)
        return self.get_root()

    def get_root(self) -> MerkleRoot:
        """Return the Merkle root commitment."""
        if not self.levels:
            raise ValueError("Tree has not been built")
        return self.levels[-1][0]

    def get_query_proof(self, idx: int) -> QueryProof:
        """Extract leaf values and Merkle path for the leaf at idx.

        Raises:
            ValueError: If source_data not available or idx out of range
        """
        if self.source_data is None:
            raise ValueError("Source data not stored - cannot extract leaf values")
        if idx < 0 or idx >= self.height:
            raise ValueError(f"Query index {idx} out of range [0, {self.height})")

        mp: List[List[bytes]] = []
        pos = idx
        for level in self.levels[:-1]:
            start = pos - pos % self.arity
            group = [level[i] if i < len(level) else EMPTY_NODE for i in range(start, start + self.arity)]
            mp.append([node for i, node in enumerate(group) if start + i != pos])
            pos //= self.arity
        return QueryProof(v=list(self.source_data[idx]), mp=mp)

    @staticmethod
    def verify_query_proof(
        root: MerkleRoot,
        idx: int,
        proof: QueryProof,
        height: int,
        arity: int = 2,
    ) -> bool:
        """Recompute the root from a query proof and compare."""
        if idx < 0 or idx >= height:
            return False
        if len(proof.mp) != merkle_depth(height, arity):
            return False

        node = linear_hash(proof.v)
        pos = idx
        for siblings in proof.mp:
            if len(siblings) != arity - 1:
                return False
            children = list(siblings)
            children.insert(pos % arity, node)
            node = hash_seq(children)
            pos //= arity
        return node == root
