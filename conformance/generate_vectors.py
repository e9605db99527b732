#!/usr/bin/env python3
"""
Generate the merkleproof conformance vectors.

Creates proof bundles with known verification outcomes, for replaying
against this package and against any external verifier that claims to
implement the same tree:
  - valid bundles, both modes, balanced and unbalanced trees (exit 0)
  - tampered bundles: flipped proof byte, wrong root, shifted index (exit 2)
  - malformed bundles: short element, missing ordered index (exit 3)

Run from the repo root:
    python conformance/generate_vectors.py

Output: conformance/vectors_v1/bundles/<name>.json
        conformance/vectors_v1/expected_outcomes.json
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from merkleproof.bundle import ProofBundle
from merkleproof.hashing import DEFAULT_ALGORITHM, digest
from merkleproof.tree import MerkleTree

VECTORS_DIR = Path(__file__).parent / "vectors_v1"
VECTORS_VERSION = "1"

# Fixed seed so every environment derives the same leaves.
_VECTOR_SEED = "merkleproof-vectors-v1"

# Tree sizes: powers of two plus the unbalanced shapes that exercise promotion.
TREE_SIZES = (1, 2, 3, 5, 7, 8, 12)

# Extra 0-based positions per tree size. Leaf 11 of 12 sits under a promoted
# node whose first sibling joins one layer up; a verifier that resyncs on
# `index > 2**remaining` pairs it on the wrong side.
EXTRA_POSITIONS = {12: (10,)}


def vector_leaves(count: int) -> List[bytes]:
    return [digest(f"{_VECTOR_SEED}:{i}".encode(), DEFAULT_ALGORITHM) for i in range(count)]


def _flip_hex(value: str) -> str:
    """Flip the last nibble of a 0x hex element."""
    last = value[-1]
    return value[:-1] + ("0" if last != "0" else "1")


def _valid_bundles() -> Dict[str, ProofBundle]:
    bundles: Dict[str, ProofBundle] = {}
    for n in TREE_SIZES:
        leaves = vector_leaves(n)
        unordered = MerkleTree(leaves)
        ordered = MerkleTree(leaves, preserve_order=True)
        for position in sorted({0, n // 2, n - 1, *EXTRA_POSITIONS.get(n, ())}):
            leaf = leaves[position]
            bundles[f"unordered_n{n}_leaf{position + 1}"] = ProofBundle.from_tree(unordered, leaf)
            bundles[f"ordered_n{n}_leaf{position + 1}"] = ProofBundle.from_tree(ordered, leaf, position + 1)
    return bundles


def _tampered_bundles(valid: Dict[str, ProofBundle]) -> Dict[str, ProofBundle]:
    bundles: Dict[str, ProofBundle] = {}
    for name in ("unordered_n12_leaf12", "ordered_n12_leaf12", "ordered_n5_leaf5"):
        bundle = valid[name]
        proof = list(bundle.proof)
        proof[0] = _flip_hex(proof[0])
        bundles[f"{name}_proof_flip"] = bundle.model_copy(update={"proof": proof})
        bundles[f"{name}_root_flip"] = bundle.model_copy(update={"root": _flip_hex(bundle.root)})
    bundles["ordered_n8_leaf5_index_shift"] = valid["ordered_n8_leaf5"].model_copy(update={"index": 4})
    bundles["ordered_n12_leaf7_index_out_of_range"] = valid["ordered_n12_leaf7"].model_copy(update={"index": 13})
    return bundles


def _malformed_bundles(valid: Dict[str, ProofBundle]) -> Dict[str, Dict[str, Any]]:
    short = json.loads(valid["unordered_n3_leaf2"].to_json())
    short["element"] = short["element"][:-2]
    missing_index = json.loads(valid["ordered_n3_leaf2"].to_json())
    del missing_index["index"]
    return {
        "malformed_short_element": short,
        "malformed_missing_index": missing_index,
    }


def generate_vectors(out_dir: Path = VECTORS_DIR) -> List[Dict[str, Any]]:
    """Write every vector under *out_dir* and return the expected outcomes."""
    bundles_dir = out_dir / "bundles"
    bundles_dir.mkdir(parents=True, exist_ok=True)

    valid = _valid_bundles()
    entries: List[Dict[str, Any]] = []

    def _write(name: str, text: str, category: str, ordered: bool, expect_exit: int) -> None:
        (bundles_dir / f"{name}.json").write_text(text + "\n")
        entries.append({
            "name": name,
            "category": category,
            "mode": "ordered" if ordered else "unordered",
            "expect_exit": expect_exit,
        })

    for name, bundle in valid.items():
        _write(name, bundle.to_json(), "valid", bundle.ordered, 0)
    for name, bundle in _tampered_bundles(valid).items():
        _write(name, bundle.to_json(), "tampered", bundle.ordered, 2)
    for name, raw in _malformed_bundles(valid).items():
        _write(name, json.dumps(raw, indent=2), "malformed", raw["ordered"], 3)

    outcomes = {
        "vectors_version": VECTORS_VERSION,
        "algorithm": DEFAULT_ALGORITHM,
        "entries": entries,
    }
    (out_dir / "expected_outcomes.json").write_text(json.dumps(outcomes, indent=2) + "\n")
    return entries


if __name__ == "__main__":
    written = generate_vectors()
    print(f"Wrote {len(written)} vectors to {VECTORS_DIR}")
    sys.exit(0)
