"""PLONK proof data structures and binary serialization.

Layout (all integers little-endian):

    magic "ARPF" | version u8
    n_roots u8   | roots (32 bytes each)
    n_evals u32  | evals (u64 each)
    n_fri u8     | fri roots (32 bytes each)
    n_final u32  | final polynomial coefficients (u64 each)
    nonce u64
    n_queries u16 | n_trees u8
    per query, per tree:      merkle proof
    per fri layer, per query: merkle proof

    merkle proof: n_values u16 | values u64 | n_levels u8 | per level: n_siblings u8 | siblings

The format is self-describing so it parses without the verifying key; the
verifier checks every count against the key afterwards.
"""

import struct
from dataclasses import dataclass, field
from typing import List

from primitives.field import ELEMENT_BYTES, element_from_bytes
from primitives.hashing import HASH_SIZE
from primitives.merkle_tree import MerkleRoot, QueryProof
from protocol.errors import ProofFormatError
from protocol.pcs import FriProof

MAGIC = b"ARPF"
VERSION = 1

# Stage trees opened at every query, in order
STAGE_TREES = ("fixed", "advice", "permutation", "quotient")


# --- Proof Data Structures ---

@dataclass
class PlonkProof:
    """Complete proof for one circuit instance.

    Attributes:
        roots: Stage commitments [advice, permutation, quotient]
        evals: Opening evaluations, one per VerifyingKey.queries entry
        fri: FRI proof of the DEEP composition polynomial
        stage_queries: stage_queries[q][t] opens tree t (see STAGE_TREES) at query q
    """
    roots: List[MerkleRoot] = field(default_factory=list)
    evals: List[int] = field(default_factory=list)
    fri: FriProof = field(default_factory=FriProof)
    stage_queries: List[List[QueryProof]] = field(default_factory=list)


# --- Binary Serialization ---

def _pack_query_proof(out: List[bytes], proof: QueryProof) -> None:
    out.append(struct.pack("<H", len(proof.v)))
    out.append(struct.pack(f"<{len(proof.v)}Q", *proof.v))
    out.append(struct.pack("<B", len(proof.mp)))
    for level in proof.mp:
        out.append(struct.pack("<B", len(level)))
        out.extend(level)


def to_bytes(proof: PlonkProof) -> bytes:
    """Serialize proof to its binary form."""
    out: List[bytes] = [MAGIC, struct.pack("<B", VERSION)]

    out.append(struct.pack("<B", len(proof.roots)))
    out.extend(proof.roots)

    out.append(struct.pack(f"<I{len(proof.evals)}Q", len(proof.evals), *proof.evals))

    out.append(struct.pack("<B", len(proof.fri.fri_roots)))
    out.extend(proof.fri.fri_roots)

    final_pol = proof.fri.final_pol
    out.append(struct.pack(f"<I{len(final_pol)}Q", len(final_pol), *final_pol))
    out.append(struct.pack("<Q", proof.fri.nonce))

    n_trees = len(proof.stage_queries[0]) if proof.stage_queries else 0
    out.append(struct.pack("<HB", len(proof.stage_queries), n_trees))
    for openings in proof.stage_queries:
        for query_proof in openings:
            _pack_query_proof(out, query_proof)

    for layer in proof.fri.query_proofs:
        for query_proof in layer:
            _pack_query_proof(out, query_proof)

    return b"".join(out)


class _Reader:
    """Cursor over proof bytes that fails with ProofFormatError."""

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.idx = 0

    def take(self, size: int) -> bytes:
        if self.idx + size > len(self.data):
            raise ProofFormatError(f"Proof truncated at byte {self.idx}")
        chunk = self.data[self.idx:self.idx + size]
        self.idx += size
        return chunk

    def unpack(self, fmt: str) -> tuple:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))

    def u8(self) -> int:
        return self.unpack("<B")[0]

    def u16(self) -> int:
        return self.unpack("<H")[0]

    def u32(self) -> int:
        return self.unpack("<I")[0]

    def u64(self) -> int:
        return self.unpack("<Q")[0]

    def elements(self, count: int) -> List[int]:
        chunk = self.take(count * ELEMENT_BYTES)
        try:
            return [
                element_from_bytes(chunk[i:i + ELEMENT_BYTES])
                for i in range(0, len(chunk), ELEMENT_BYTES)
            ]
        except ValueError as e:
            raise ProofFormatError(str(e)) from e

    def hashes(self, count: int) -> List[bytes]:
        return [self.take(HASH_SIZE) for _ in range(count)]

    def query_proof(self) -> QueryProof:
        values = self.elements(self.u16())
        mp = [self.hashes(self.u8()) for _ in range(self.u8())]
        return QueryProof(v=values, mp=mp)

    def finish(self) -> None:
        if self.idx != len(self.data):
            raise ProofFormatError(f"{len(self.data) - self.idx} trailing bytes after proof")


def from_bytes(data: bytes) -> PlonkProof:
    """Deserialize binary proof.

    Raises:
        ProofFormatError: On bad magic/version, truncation, trailing bytes
            or non-canonical field elements
    """
    reader = _Reader(data)
    if reader.take(len(MAGIC)) != MAGIC:
        raise ProofFormatError("Bad proof magic")
    version = reader.u8()
    if version != VERSION:
        raise ProofFormatError(f"Unsupported proof version {version}")

    proof = PlonkProof()
    proof.roots = reader.hashes(reader.u8())
    proof.evals = reader.elements(reader.u32())

    proof.fri.fri_roots = reader.hashes(reader.u8())
    proof.fri.final_pol = reader.elements(reader.u32())
    proof.fri.nonce = reader.u64()

    n_queries, n_trees = reader.unpack("<HB")
    proof.stage_queries = [[reader.query_proof() for _ in range(n_trees)] for _ in range(n_queries)]
    proof.fri.query_proofs = [
        [reader.query_proof() for _ in range(n_queries)]
        for _ in range(len(proof.fri.fri_roots))
    ]

    reader.finish()
    return proof
