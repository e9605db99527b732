#!/usr/bin/env python3
"""
Replay the merkleproof conformance vectors.

Every bundle is checked twice: in-process through ProofBundle and, unless
--no-cli is given, through `merkleproof verify --json` in a subprocess. Both
verdicts are mapped onto the CLI exit codes (0 valid, 2 invalid, 3 malformed)
and compared with expected_outcomes.json. Results are tallied per vector
category (valid / tampered / malformed) and tree mode.

Usage:
    python conformance/generate_vectors.py
    python conformance/run_vectors.py [--vectors-dir DIR] [--no-cli]

Exits 0 when every vector agrees on both paths, 1 otherwise.
"""
from __future__ import annotations

import json
import subprocess
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from merkleproof.bundle import ProofBundle

VECTORS_DIR = Path(__file__).parent / "vectors_v1"

console = Console()


def verdict_in_process(text: str) -> int:
    """Exit code the verifier owes *text*, computed without a subprocess."""
    try:
        bundle = ProofBundle.from_json(text)
    except ValidationError:
        return 3
    return 0 if bundle.verify() else 2


def verdict_from_cli(bundle_file: Path) -> int:
    cmd = [sys.executable, "-m", "merkleproof.cli", "verify", str(bundle_file), "--json"]
    return subprocess.run(cmd, capture_output=True, text=True).returncode


def _load_entries(vectors_dir: Path) -> Optional[Tuple[Dict[str, Any], List[Dict[str, Any]]]]:
    outcomes_file = vectors_dir / "expected_outcomes.json"
    if not outcomes_file.exists():
        console.print(f"[red]No outcomes file at {outcomes_file}[/]; run generate_vectors.py first")
        return None
    outcomes = json.loads(outcomes_file.read_text())
    entries = outcomes.get("entries") or []
    if not entries:
        console.print(f"[red]{outcomes_file} lists no vectors[/]")
        return None
    return outcomes, entries


def run_vectors(vectors_dir: Path = VECTORS_DIR, use_cli: bool = True) -> int:
    """Check every vector under *vectors_dir*; return 0 if all agree, else 1."""
    loaded = _load_entries(vectors_dir)
    if loaded is None:
        return 1
    outcomes, entries = loaded

    tally: Counter = Counter()
    mismatches: List[str] = []

    for entry in entries:
        name = entry["name"]
        group = (entry.get("category", "?"), entry.get("mode", "?"))
        expected = entry["expect_exit"]
        bundle_file = vectors_dir / "bundles" / f"{name}.json"

        if not bundle_file.exists():
            mismatches.append(f"{name}: bundle file missing")
            tally[group + ("fail",)] += 1
            continue

        got = {"in-process": verdict_in_process(bundle_file.read_text())}
        if use_cli:
            got["cli"] = verdict_from_cli(bundle_file)

        wrong = {path: code for path, code in got.items() if code != expected}
        if wrong:
            detail = ", ".join(f"{path} exit {code}" for path, code in wrong.items())
            mismatches.append(f"{name}: expected exit {expected}, {detail}")
            tally[group + ("fail",)] += 1
        else:
            tally[group + ("pass",)] += 1

    table = Table(title=f"merkleproof vectors v{outcomes.get('vectors_version', '?')} ({outcomes.get('algorithm', '?')})")
    table.add_column("category")
    table.add_column("mode")
    table.add_column("pass", justify="right", style="green")
    table.add_column("fail", justify="right", style="red")
    for category, mode in sorted({key[:2] for key in tally}):
        table.add_row(category, mode, str(tally[(category, mode, "pass")]), str(tally[(category, mode, "fail")]))
    console.print(table)

    if mismatches:
        for line in mismatches:
            console.print(f"  [red]MISMATCH[/] {line}")
        return 1

    paths = "in-process and CLI" if use_cli else "in-process"
    console.print(f"[green]{len(entries)} vectors agree ({paths})[/]")
    return 0


def main(
    vectors_dir: Path = typer.Option(VECTORS_DIR, "--vectors-dir", help="Directory holding expected_outcomes.json"),
    no_cli: bool = typer.Option(False, "--no-cli", help="Skip the subprocess replay"),
):
    raise typer.Exit(run_vectors(vectors_dir, use_cli=not no_cli))


if __name__ == "__main__":
    typer.run(main)
