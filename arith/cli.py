"""Command line: generate the proof fixture and time the entrypoints.

    arith-verifier gen-proof [--k K] [--a A] [--b B] [--out PATH]
    arith-verifier bench [--proof PATH]
"""

import argparse
import time
from pathlib import Path
from typing import List, Optional

from arith import entrypoint as entrypoints
from arith.circuit import ArithCircuit, expected_instances
from arith.proof import Proof, ProvingKey


def gen_proof(k: int, a: int, b: int, out: Path) -> Proof:
    """Create a proof for (a, b) at 2^k rows, check it and write it to out."""
    circuit = ArithCircuit.from_ints(a, b)
    instances = expected_instances(a, b)

    start = time.perf_counter()
    pk = ProvingKey.build(k, circuit.without_witnesses())
    print(f"Built proving key in [{(time.perf_counter() - start) * 1000:.0f}ms]")

    start = time.perf_counter()
    proof = Proof.create(pk, circuit, instances)
    print(f"Created proof in [{(time.perf_counter() - start) * 1000:.0f}ms]")

    if not proof.verify(pk.vk, instances):
        raise SystemExit("Freshly created proof does not verify")

    out.write_bytes(bytes(proof))
    print(f"Proof size [{len(proof) / 1024:.2f} kB]")
    print(f"Wrote {out}")
    return proof


def bench(proof_path: Path) -> None:
    """Run each entrypoint once and print its wall time."""
    runs = [
        ("built vk and verified", entrypoints.entrypoint),
        ("built vk, no verify", entrypoints.entrypoint_no_verify),
        ("no vk, no verify", entrypoints.entrypoint_no_verify_no_vk),
    ]
    for label, fn in runs:
        start = time.perf_counter()
        fn(proof_path)
        print(f"{fn.__name__}: {label} in [{(time.perf_counter() - start) * 1000:.0f}ms]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arith-verifier",
        description="Prove and verify knowledge of a, b with public [a + b, a * b, a - b].",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("gen-proof", help="Generate the proof fixture")
    gen.add_argument("--k", type=int, default=entrypoints.K, help="log2 of the number of rows")
    gen.add_argument("--a", type=int, default=entrypoints.A, help="First private input")
    gen.add_argument("--b", type=int, default=entrypoints.B, help="Second private input")
    gen.add_argument("--out", type=Path, default=Path(entrypoints.DEFAULT_PROOF_PATH), help="Output path")

    bench_parser = subparsers.add_parser("bench", help="Time the three entrypoints")
    bench_parser.add_argument(
        "--proof", type=Path, default=Path(entrypoints.DEFAULT_PROOF_PATH), help="Proof fixture path"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "gen-proof":
        gen_proof(args.k, args.a, args.b, args.out)
    else:
        bench(args.proof)


if __name__ == "__main__":
    main()
