"""
merkleproof: Merkle trees and inclusion proofs over 32-byte hashes.

- Build a tree in unordered mode (dedup + sort, commutative pairs) or
  ordered mode (leaf sequence and positions preserved)
- Extract compact sibling-hash proofs for any leaf
- Verify proofs against a known root, without the tree
- Hex / packed-proof adapters for external (e.g. on-chain) verifiers
"""

__version__ = "0.3.0"

from .errors import ElementNotFound, IndexMismatch, InvalidElementSize, MerkleProofError
from .hashing import DEFAULT_ALGORITHM, combine
from .tree import EMPTY_ROOT, MerkleTree, merkle_root
from .verify import check_proof, check_proof_ordered

__all__ = [
    "__version__",
    "DEFAULT_ALGORITHM",
    "EMPTY_ROOT",
    "MerkleTree",
    "merkle_root",
    "combine",
    "check_proof",
    "check_proof_ordered",
    "MerkleProofError",
    "InvalidElementSize",
    "ElementNotFound",
    "IndexMismatch",
]
