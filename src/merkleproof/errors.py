"""
Error taxonomy for merkleproof.

Every failure the core can raise is synchronous, local and non-retryable:
the caller must supply corrected input. Each exception carries a
deterministic error code so the CLI and boundary adapters can report it
without parsing messages.

Verification never raises; these are construction and lookup failures only.
"""
from __future__ import annotations

from typing import Any, Dict

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

E_ELEMENT_SIZE = "E_ELEMENT_SIZE"
E_ELEMENT_NOT_FOUND = "E_ELEMENT_NOT_FOUND"
E_INDEX_MISMATCH = "E_INDEX_MISMATCH"
E_HEX_INVALID = "E_HEX_INVALID"
E_ALGORITHM_UNKNOWN = "E_ALGORITHM_UNKNOWN"


class MerkleProofError(ValueError):
    """Base class for all merkleproof failures."""

    code = "E_MERKLEPROOF"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InvalidElementSize(MerkleProofError):
    """An element is not exactly 32 bytes."""

    code = E_ELEMENT_SIZE


class ElementNotFound(MerkleProofError):
    """A proof was requested for a value absent from the processed leaves."""

    code = E_ELEMENT_NOT_FOUND


class IndexMismatch(MerkleProofError):
    """The claimed element is not the stored leaf at the claimed 1-based index."""

    code = E_INDEX_MISMATCH


class InvalidHexEncoding(MerkleProofError):
    code = E_HEX_INVALID


class UnsupportedAlgorithm(MerkleProofError):
    code = E_ALGORITHM_UNKNOWN


__all__ = [
    "E_ELEMENT_SIZE",
    "E_ELEMENT_NOT_FOUND",
    "E_INDEX_MISMATCH",
    "E_HEX_INVALID",
    "E_ALGORITHM_UNKNOWN",
    "MerkleProofError",
    "InvalidElementSize",
    "ElementNotFound",
    "IndexMismatch",
    "InvalidHexEncoding",
    "UnsupportedAlgorithm",
]
