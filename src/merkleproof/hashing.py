"""
Digest selection and pairwise node hashing.

Algorithm notes:
- Elements are raw 32-byte digests.
- Internal node hash = DIGEST(left_bytes || right_bytes).
- Ordered mode keeps (left, right) as given; unordered mode sorts the pair
  ascending by byte value first, so the combination is commutative.
- An odd node left over at the end of a layer is promoted unchanged
  (combine with an absent partner), never duplicated.

The digest is chosen once per tree and shared by construction, extraction
and verification. Keccak-256 is the default so roots and proofs match an
Ethereum-side verifier.
"""
from __future__ import annotations

import hashlib
from typing import Callable, Dict, Optional

from eth_utils import keccak

from merkleproof.errors import UnsupportedAlgorithm

DEFAULT_ALGORITHM = "keccak256"
ELEMENT_SIZE = 32


def _keccak256(data: bytes) -> bytes:
    return keccak(data)


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


DIGESTS: Dict[str, Callable[[bytes], bytes]] = {
    "keccak256": _keccak256,
    "sha256": _sha256,
}


def get_digest(algorithm: str = DEFAULT_ALGORITHM) -> Callable[[bytes], bytes]:
    """Return the digest function registered under *algorithm*."""
    try:
        return DIGESTS[algorithm]
    except KeyError:
        raise UnsupportedAlgorithm(
            f"Unsupported algorithm: {algorithm!r} (known: {', '.join(sorted(DIGESTS))})"
        ) from None


def digest(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> bytes:
    """Hash *data* with the configured algorithm."""
    return get_digest(algorithm)(data)


def combine(
    first: Optional[bytes],
    second: Optional[bytes],
    preserve_order: bool,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Optional[bytes]:
    """Combine two node hashes into their parent.

    If only one operand is present it is returned unchanged (promotion).
    With both present, ordered mode hashes ``first || second`` and unordered
    mode hashes the concatenation of the pair sorted ascending, so that
    ``combine(a, b, False) == combine(b, a, False)``.
    """
    if second is None:
        return first
    if first is None:
        return second
    if preserve_order:
        return digest(first + second, algorithm)
    if second < first:
        first, second = second, first
    return digest(first + second, algorithm)


__all__ = [
    "DEFAULT_ALGORITHM",
    "ELEMENT_SIZE",
    "DIGESTS",
    "get_digest",
    "digest",
    "combine",
]
