"""
merkleproof CLI commands: build roots, extract proofs, verify proof bundles.

Commands:
  merkleproof root     - Compute the Merkle root of a leaves file
  merkleproof prove    - Extract an inclusion proof as a JSON bundle
  merkleproof verify   - Verify a proof bundle
  merkleproof version  - Show version info

Leaves files hold one 0x-prefixed 32-byte hex element per line. Blank lines
are placeholders and are discarded; lines starting with '#' are comments.

Exit codes:
  0  ok / proof valid
  1  error
  2  verification failed
  3  bad input (malformed elements, unknown element, index mismatch)
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from merkleproof.hashing import DEFAULT_ALGORITHM

console = Console()

merkleproof_app = typer.Typer(
    name="merkleproof",
    help="Merkle roots and inclusion proofs over 32-byte hashes",
    no_args_is_help=True,
)

ALGORITHM_ENVVAR = "MERKLEPROOF_ALGORITHM"


@merkleproof_app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Merkle roots and inclusion proofs over 32-byte hashes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _output_json(data: Dict[str, Any], exit_code: Optional[int] = None) -> None:
    """Print structured JSON to stdout and exit.

    Exit codes follow the module contract; "failed" maps to 2 and any other
    non-ok status to 1 unless *exit_code* overrides it.
    """
    print(json.dumps(data, indent=2, default=str))
    if exit_code is not None:
        raise typer.Exit(exit_code)
    status = data.get("status", "ok")
    if status == "ok":
        raise typer.Exit(0)
    elif status == "failed":
        raise typer.Exit(2)
    else:
        raise typer.Exit(1)


def _bad_input(command: str, exc: Exception, output_json: bool) -> None:
    """Report a bad-input failure and exit 3."""
    payload: Dict[str, Any] = {"command": command, "status": "error"}
    if hasattr(exc, "to_dict"):
        payload["error"] = exc.to_dict()
        message = f"{exc.code}: {exc.message}"
    else:
        payload["error"] = {"code": "E_BAD_INPUT", "message": str(exc)}
        message = str(exc)
    if output_json:
        _output_json(payload, exit_code=3)
    console.print(f"[red]Error:[/] {escape(message)}")
    raise typer.Exit(3)


def _read_leaves(path: Path) -> List[str]:
    """Read a leaves file; blank lines are kept as placeholders."""
    lines = path.read_text().splitlines()
    return [line for line in lines if not line.lstrip().startswith("#")]


def _algorithm_option() -> Any:
    return typer.Option(
        DEFAULT_ALGORITHM,
        "--algorithm",
        "-a",
        envvar=ALGORITHM_ENVVAR,
        help="Digest algorithm (keccak256, sha256)",
    )


@merkleproof_app.command("root")
def root_cmd(
    leaves_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Leaves file (one 0x hex per line)"),
    ordered: bool = typer.Option(False, "--ordered", help="Preserve leaf order and duplicates"),
    algorithm: str = _algorithm_option(),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Compute the Merkle root of a leaves file."""
    from merkleproof.encoding import decode_elements, element_to_hex
    from merkleproof.errors import MerkleProofError
    from merkleproof.tree import MerkleTree

    try:
        tree = MerkleTree(decode_elements(_read_leaves(leaves_file)), ordered, algorithm)
    except MerkleProofError as e:
        _bad_input("root", e, output_json)

    root_hex = element_to_hex(tree.root)
    if output_json:
        _output_json({
            "command": "root",
            "status": "ok",
            "algorithm": tree.algorithm,
            "ordered": tree.preserve_order,
            "leaf_count": len(tree),
            "layer_count": len(tree.layers),
            "root": root_hex,
        })

    table = Table(show_header=False, box=None)
    table.add_column("field", style="dim")
    table.add_column("value", style="cyan")
    table.add_row("mode", "ordered" if tree.preserve_order else "unordered")
    table.add_row("algorithm", tree.algorithm)
    table.add_row("leaves", str(len(tree)))
    table.add_row("layers", str(len(tree.layers)))
    table.add_row("root", root_hex if root_hex is not None else "(empty tree)")
    console.print(table)


@merkleproof_app.command("prove")
def prove_cmd(
    leaves_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Leaves file (one 0x hex per line)"),
    element: str = typer.Argument(..., help="Element to prove (0x hex)"),
    index: Optional[int] = typer.Option(None, "--index", "-i", help="1-based leaf index (ordered mode)"),
    ordered: bool = typer.Option(False, "--ordered", help="Preserve leaf order and duplicates"),
    algorithm: str = _algorithm_option(),
    packed: bool = typer.Option(False, "--packed", help="Also print the packed proof blob"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the proof bundle to this file"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Extract an inclusion proof for ELEMENT as a JSON bundle."""
    from merkleproof.bundle import ProofBundle
    from merkleproof.encoding import decode_elements, element_from_hex
    from merkleproof.errors import MerkleProofError
    from merkleproof.tree import MerkleTree

    if index is not None and not ordered:
        _bad_input("prove", ValueError("--index requires --ordered"), output_json)

    try:
        tree = MerkleTree(decode_elements(_read_leaves(leaves_file)), ordered, algorithm)
        bundle = ProofBundle.from_tree(tree, element_from_hex(element), index)
    except MerkleProofError as e:
        _bad_input("prove", e, output_json)

    if out is not None:
        out.write_text(bundle.to_json() + "\n")

    if output_json:
        data: Dict[str, Any] = {"command": "prove", "status": "ok", "bundle": bundle.model_dump()}
        if packed:
            data["packed_proof"] = bundle.packed_proof()
        if out is not None:
            data["out"] = str(out)
        _output_json(data)

    if out is None:
        print(bundle.to_json())
    else:
        console.print(f"[green]Proof bundle written:[/] {out}")
    if packed:
        print(bundle.packed_proof())


@merkleproof_app.command("verify")
def verify_cmd(
    bundle_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Proof bundle JSON"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Verify a proof bundle (exit 0 valid, 2 invalid, 3 bad input)."""
    from merkleproof.bundle import ProofBundle

    try:
        bundle = ProofBundle.from_json(bundle_file.read_text())
    except ValidationError as e:
        _bad_input("verify", e, output_json)

    valid = bundle.verify()
    if output_json:
        _output_json({
            "command": "verify",
            "status": "ok" if valid else "failed",
            "valid": valid,
            **bundle.summary(),
        })

    mode = f"ordered, index {bundle.index}" if bundle.ordered else "unordered"
    if valid:
        console.print(Panel.fit(
            f"[bold green]VALID[/]\n\n"
            f"Mode:      {mode}\n"
            f"Algorithm: {bundle.algorithm}\n"
            f"Proof:     {len(bundle.proof)} sibling(s)",
            title="merkleproof verify",
        ))
        return

    console.print(Panel.fit(
        f"[bold red]INVALID[/]\n\n"
        f"Mode:      {mode}\n"
        f"Algorithm: {bundle.algorithm}\n"
        "The proof does not recompute the stated root.",
        title="merkleproof verify",
    ))
    raise typer.Exit(2)


@merkleproof_app.command("version")
def show_version(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show merkleproof version and configuration."""
    from merkleproof import __version__
    from merkleproof.hashing import DIGESTS

    if output_json:
        _output_json({
            "command": "version",
            "status": "ok",
            "version": __version__,
            "default_algorithm": DEFAULT_ALGORITHM,
            "algorithms": sorted(DIGESTS),
        })

    console.print(f"[bold]merkleproof {__version__}[/]")
    console.print(f"Default algorithm: {DEFAULT_ALGORITHM}")
    console.print(f"Available:         {', '.join(sorted(DIGESTS))}")
