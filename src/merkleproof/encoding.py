"""
Boundary codec for elements and proofs.

The core only ever sees raw 32-byte values. Anything arriving from outside
(CLI files, JSON bundles, an external verifier's ABI) is hex: a 66-character
``0x``-prefixed string per element, and a single packed ``0x`` blob for a
whole proof. This module converts between the two and wraps external
verifier callables so they receive exactly that representation.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

from eth_utils import decode_hex, encode_hex, is_0x_prefixed

from merkleproof.errors import InvalidElementSize, InvalidHexEncoding
from merkleproof.hashing import ELEMENT_SIZE

HEX_ELEMENT_LENGTH = 2 + 2 * ELEMENT_SIZE

ElementLike = Union[bytes, bytearray, str]


def is_placeholder(value: Any) -> bool:
    """True for the blank values an input collection may carry."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    return False


def element_from_hex(value: str) -> bytes:
    """Decode a ``0x``-prefixed hex element to 32 raw bytes."""
    if not isinstance(value, str):
        raise InvalidHexEncoding(f"Expected hex string, got {type(value).__name__}")
    value = value.strip()
    if not is_0x_prefixed(value):
        raise InvalidHexEncoding(f"Missing 0x prefix: {value[:16]!r}")
    try:
        raw = decode_hex(value)
    except ValueError as exc:
        raise InvalidHexEncoding(f"Not a hex string: {value[:16]!r} ({exc})") from None
    if len(raw) != ELEMENT_SIZE:
        raise InvalidElementSize(
            f"Element must be {ELEMENT_SIZE} bytes ({HEX_ELEMENT_LENGTH} hex chars with 0x), "
            f"got {len(raw)} bytes"
        )
    return raw


def element_to_hex(element: Optional[bytes]) -> Optional[str]:
    """Encode raw bytes as ``0x`` hex. ``None`` (the empty root) passes through."""
    if element is None:
        return None
    return encode_hex(bytes(element))


def to_element(value: ElementLike) -> bytes:
    """Accept raw bytes or a hex string and return raw bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return element_from_hex(value)


def decode_elements(values: Iterable[Any]) -> List[bytes]:
    """Drop blank placeholders, then decode every remaining value."""
    return [to_element(v) for v in values if not is_placeholder(v)]


def pack_proof(proof: Sequence[bytes]) -> str:
    """Concatenate proof elements into one ``0x`` blob, in proof order."""
    return "0x" + "".join(bytes(p).hex() for p in proof)


def unpack_proof(blob: Union[str, bytes]) -> List[bytes]:
    """Split a packed proof back into 32-byte elements."""
    if isinstance(blob, str):
        if not is_0x_prefixed(blob):
            raise InvalidHexEncoding("Packed proof must be 0x-prefixed")
        try:
            raw = decode_hex(blob)
        except ValueError as exc:
            raise InvalidHexEncoding(f"Packed proof is not hex ({exc})") from None
    else:
        raw = bytes(blob)
    if len(raw) % ELEMENT_SIZE:
        raise InvalidElementSize(
            f"Packed proof length {len(raw)} is not a multiple of {ELEMENT_SIZE}"
        )
    return [raw[i:i + ELEMENT_SIZE] for i in range(0, len(raw), ELEMENT_SIZE)]


# ---------------------------------------------------------------------------
# External verifier adapters
# ---------------------------------------------------------------------------

def check_proof_solidity_factory(
    check_proof_method: Callable[[str, str, str], Any],
) -> Callable[[Sequence[bytes], bytes, bytes], Any]:
    """Wrap an external unordered verifier (e.g. a contract method).

    The returned callable takes raw ``(proof, root, element)`` and invokes
    the method with ``(packed_proof, root_hex, element_hex)``.
    """

    def check(proof: Sequence[bytes], root: bytes, element: bytes) -> Any:
        return check_proof_method(
            pack_proof(proof), element_to_hex(root), element_to_hex(element)
        )

    return check


def check_proof_ordered_solidity_factory(
    check_proof_ordered_method: Callable[[str, str, str, int], Any],
) -> Callable[[Sequence[bytes], bytes, bytes, int], Any]:
    """Wrap an external ordered verifier; the 1-based index is passed through."""

    def check(proof: Sequence[bytes], root: bytes, element: bytes, index: int) -> Any:
        return check_proof_ordered_method(
            pack_proof(proof), element_to_hex(root), element_to_hex(element), index
        )

    return check


__all__ = [
    "HEX_ELEMENT_LENGTH",
    "is_placeholder",
    "element_from_hex",
    "element_to_hex",
    "to_element",
    "decode_elements",
    "pack_proof",
    "unpack_proof",
    "check_proof_solidity_factory",
    "check_proof_ordered_solidity_factory",
]
