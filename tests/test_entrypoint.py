"""Tests for the host entrypoints and the command line."""

import subprocess
import sys
from pathlib import Path

import pytest

from arith import cli
from arith.entrypoint import (
    entrypoint,
    entrypoint_no_verify,
    entrypoint_no_verify_no_vk,
    load_proof,
)


@pytest.fixture(scope="session")
def proof_path(tmp_path_factory):
    """Proof fixture for a=69, b=42 at k=4, generated once per session."""
    path = tmp_path_factory.mktemp("fixture") / "proof.bin"
    cli.gen_proof(4, 69, 42, path)
    return path


class TestEntrypoints:
    """Tests for the three entrypoint variants."""

    def test_entrypoint_verifies_fixture(self, proof_path) -> None:
        entrypoint(proof_path)

    def test_no_verify_variants(self, proof_path) -> None:
        entrypoint_no_verify(proof_path)
        entrypoint_no_verify_no_vk(proof_path)

    def test_load_proof(self, proof_path) -> None:
        assert len(load_proof(proof_path)) == proof_path.stat().st_size

    def test_corrupt_fixture_fails(self, proof_path, tmp_path) -> None:
        """A tampered fixture raises AssertionError from the verifying entrypoint only."""
        data = bytearray(proof_path.read_bytes())
        data[-1] ^= 0x01
        bad = tmp_path / "proof.bin"
        bad.write_bytes(bytes(data))
        with pytest.raises(AssertionError):
            entrypoint(bad)
        entrypoint_no_verify(bad)

    def test_corrupt_fixture_fails_under_optimize(self, proof_path, tmp_path) -> None:
        """Rejection does not depend on assert statements, so python -O still fails."""
        data = bytearray(proof_path.read_bytes())
        data[-1] ^= 0x01
        bad = tmp_path / "proof.bin"
        bad.write_bytes(bytes(data))
        result = subprocess.run(
            [sys.executable, "-O", "-c", "import sys; from arith.entrypoint import entrypoint; entrypoint(sys.argv[1])", str(bad)],
            cwd=Path(__file__).resolve().parent.parent,
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0
        assert "AssertionError" in result.stderr

    def test_missing_fixture(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            entrypoint_no_verify_no_vk(tmp_path / "missing.bin")

    def test_default_path_is_working_directory(self, proof_path, monkeypatch) -> None:
        monkeypatch.chdir(proof_path.parent)
        entrypoint()


class TestCli:
    """Tests for the arith-verifier command."""

    def test_gen_proof_prints_size(self, tmp_path, capsys) -> None:
        out = tmp_path / "out.bin"
        cli.main(["gen-proof", "--k", "4", "--a", "3", "--b", "5", "--out", str(out)])
        printed = capsys.readouterr().out
        assert "Proof size [" in printed
        assert " kB]" in printed
        assert out.exists()

    def test_bench_prints_one_line_per_entrypoint(self, proof_path, capsys) -> None:
        cli.main(["bench", "--proof", str(proof_path)])
        lines = [line for line in capsys.readouterr().out.splitlines() if line]
        assert len(lines) == 3
        assert lines[0].startswith("entrypoint:")
        assert lines[2].startswith("entrypoint_no_verify_no_vk:")

    def test_requires_command(self) -> None:
        with pytest.raises(SystemExit):
            cli.main([])
