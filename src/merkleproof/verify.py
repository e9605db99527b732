"""
Proof verification.

Both verifiers are one-shot reductions of (proof, element) to a recomputed
root. They never raise: malformed input of any kind verifies as False.

Unordered proofs fold with the commutative combine, so sibling side is
irrelevant. Ordered proofs replay the builder's left/right decisions from
the 1-based leaf index and the proof length alone. The tree is never padded,
so a node that was promoted past one or more layers has fewer siblings
than the tree has levels; the index is resynchronised past those layers
before each sibling is applied.

Rounding: descending (extraction) uses floor, see ``tree.parent_index``;
ascending (verification) uses round-half-up, see ``round_half_up``.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from merkleproof.hashing import DEFAULT_ALGORITHM, ELEMENT_SIZE, DIGESTS, combine

logger = logging.getLogger(__name__)


def round_half_up(index: int) -> int:
    """1-based index of a node's parent when ascending one layer."""
    return (index + 1) // 2


def _is_element(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == ELEMENT_SIZE


def _well_formed(proof: Any, root: Any, element: Any, algorithm: str) -> bool:
    if algorithm not in DIGESTS:
        return False
    if not _is_element(root) or not _is_element(element):
        return False
    if isinstance(proof, (str, bytes, bytearray)) or not isinstance(proof, Sequence):
        return False
    return all(_is_element(p) for p in proof)


def _promoted(index: int, remaining: int) -> bool:
    """True when the node at 1-based *index* was promoted without a sibling.

    A node on a promoted path needs one sibling for each set bit of its
    0-based position and none for the clear bits, so it has exactly
    ``remaining`` siblings left when that bit count equals ``remaining``.
    Only odd indices (left children) can have been promoted.
    """
    return index % 2 == 1 and bin(index - 1).count("1") == remaining


def check_proof(
    proof: Sequence[bytes],
    root: Optional[bytes],
    element: bytes,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """Verify an unordered proof: fold with the sorted-pair combine."""
    if not _well_formed(proof, root, element, algorithm):
        logger.debug("unordered proof rejected: malformed input")
        return False

    running = bytes(element)
    for sibling in proof:
        running = combine(running, bytes(sibling), False, algorithm)
    return running == bytes(root)


def check_proof_ordered(
    proof: Sequence[bytes],
    root: Optional[bytes],
    element: bytes,
    index: int,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """Verify an ordered proof for the leaf at 1-based *index*."""
    if not _well_formed(proof, root, element, algorithm):
        logger.debug("ordered proof rejected: malformed input")
        return False
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        logger.debug("ordered proof rejected: bad index %r", index)
        return False

    running = bytes(element)
    for i, sibling in enumerate(proof):
        remaining = len(proof) - i

        # Skip the layers this node was carried through without a partner.
        while remaining > 0 and _promoted(index, remaining):
            index = round_half_up(index)

        if index % 2 == 0:
            running = combine(bytes(sibling), running, True, algorithm)
        else:
            running = combine(running, bytes(sibling), True, algorithm)
        index = round_half_up(index)

    # Anything but the root position means the index claimed a longer path.
    if index != 1:
        logger.debug("ordered proof rejected: index did not reach the root")
        return False
    return running == bytes(root)


__all__ = [
    "round_half_up",
    "check_proof",
    "check_proof_ordered",
]
