"""
Merkle tree construction and proof extraction.

The tree is a tuple of layers:

    (leaves, combined_hashes_1, combined_hashes_2, ..., (root,))

Two strategies, picked by ``preserve_order``:

1. unordered (default) - dedup and sort the leaves, and sort every pair of
   pre-images, so a proof verifies without knowing the leaf index.
2. ordered - keep the leaves and pairs exactly as given, and use the
   1-based leaf index to verify.

A layer of odd length promotes its last node to the next layer unchanged.
Nothing is padded, so a tree over n leaves has layers of length
n, ceil(n/2), ceil(n/4), ..., 1.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from merkleproof.encoding import is_placeholder, pack_proof
from merkleproof.errors import ElementNotFound, IndexMismatch, InvalidElementSize
from merkleproof.hashing import DEFAULT_ALGORITHM, ELEMENT_SIZE, combine, get_digest

logger = logging.getLogger(__name__)

# Root of a tree built from no usable elements.
EMPTY_ROOT = None

Layer = Tuple[Optional[bytes], ...]


def parent_index(index: int) -> int:
    """Index of a node's parent when descending into the layer above (floor)."""
    return index // 2


def dedup(elements: Iterable[bytes]) -> List[bytes]:
    """Drop repeated values, keeping the first occurrence of each."""
    return list(dict.fromkeys(elements))


def next_layer(layer: Sequence[bytes], preserve_order: bool, algorithm: str = DEFAULT_ALGORITHM) -> Layer:
    parents: List[Optional[bytes]] = []
    for i in range(0, len(layer), 2):
        right = layer[i + 1] if i + 1 < len(layer) else None
        parents.append(combine(layer[i], right, preserve_order, algorithm))
    return tuple(parents)


def build_layers(
    leaves: Sequence[bytes],
    preserve_order: bool,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Tuple[Layer, ...]:
    """Derive every layer from the leaves up to the root.

    In unordered mode the leaves are deduplicated and sorted first; in
    ordered mode they are used exactly as given.
    """
    if not preserve_order:
        leaves = sorted(dedup(leaves))
    if not leaves:
        return ((EMPTY_ROOT,),)

    layers: List[Layer] = [tuple(leaves)]
    while len(layers[-1]) > 1:
        layers.append(next_layer(layers[-1], preserve_order, algorithm))
    return tuple(layers)


def locate_index(element: bytes, elements: Sequence[bytes]) -> int:
    """Return the first position holding *element* (compared by value)."""
    for i, candidate in enumerate(elements):
        if candidate == element:
            return i
    raise ElementNotFound("Element not found in merkle tree")


def extract_proof(index: int, layers: Sequence[Layer]) -> List[bytes]:
    """Collect sibling hashes for the leaf at 0-based *index*, leaf to root."""
    proof: List[bytes] = []
    for layer in layers[:-1]:
        sibling = index - 1 if index % 2 else index + 1
        if sibling < len(layer):
            proof.append(layer[sibling])
        index = parent_index(index)
    return proof


def extract_proof_ordered(
    element: bytes,
    index: int,
    elements: Sequence[bytes],
    layers: Sequence[Layer],
) -> List[bytes]:
    """Proof for *element* claimed to sit at 1-based *index*."""
    if not 1 <= index <= len(elements) or elements[index - 1] != element:
        raise IndexMismatch(f"Element does not match leaf at index {index} in tree")
    return extract_proof(index - 1, layers)


def _validate(elements: Iterable[Any]) -> List[bytes]:
    usable = [e for e in elements if not is_placeholder(e)]
    for position, e in enumerate(usable):
        if not isinstance(e, (bytes, bytearray)) or len(e) != ELEMENT_SIZE:
            raise InvalidElementSize(
                f"Elements must be {ELEMENT_SIZE} byte values "
                f"(element {position}: {type(e).__name__} of length {_length(e)})"
            )
    return [bytes(e) for e in usable]


def _length(value: Any) -> Union[int, str]:
    try:
        return len(value)
    except TypeError:
        return "n/a"


class MerkleTree:
    """Immutable Merkle tree over 32-byte elements.

    Blank placeholders (``b""``, ``""``, ``None``) are removed before the
    size check. Construction is all-or-nothing: any element that is not
    exactly 32 bytes raises :class:`InvalidElementSize`.
    """

    __slots__ = ("_elements", "_preserve_order", "_algorithm", "_layers")

    def __init__(
        self,
        elements: Iterable[Any],
        preserve_order: bool = False,
        algorithm: str = DEFAULT_ALGORITHM,
    ):
        get_digest(algorithm)
        preserve_order = bool(preserve_order)
        layers = build_layers(_validate(elements), preserve_order, algorithm)
        leaves = () if layers[0][0] is EMPTY_ROOT else layers[0]

        object.__setattr__(self, "_elements", leaves)
        object.__setattr__(self, "_preserve_order", preserve_order)
        object.__setattr__(self, "_algorithm", algorithm)
        object.__setattr__(self, "_layers", layers)
        logger.debug(
            "built %s tree: %d leaves, %d layers, algorithm=%s",
            "ordered" if preserve_order else "unordered",
            len(leaves),
            len(layers),
            algorithm,
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __len__(self) -> int:
        return len(self._elements)

    def __repr__(self) -> str:
        root = self.root.hex() if self.root is not None else None
        return (
            f"MerkleTree(leaves={len(self._elements)}, preserve_order={self._preserve_order}, "
            f"algorithm={self._algorithm!r}, root={root!r})"
        )

    @property
    def elements(self) -> Tuple[bytes, ...]:
        return self._elements

    @property
    def preserve_order(self) -> bool:
        return self._preserve_order

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return self._layers

    @property
    def root(self) -> Optional[bytes]:
        """The root hash, or ``EMPTY_ROOT`` for a tree with no elements."""
        return self._layers[-1][0]

    def get_root(self) -> Optional[bytes]:
        return self.root

    def get_proof(self, element: bytes, as_hex: bool = False) -> Union[List[bytes], str]:
        """Proof for the first leaf equal to *element*.

        With ``as_hex=True`` the proof is returned packed as one ``0x`` blob.
        """
        index = locate_index(element, self._elements)
        proof = extract_proof(index, self._layers)
        return pack_proof(proof) if as_hex else proof

    def get_proof_ordered(
        self, element: bytes, index: int, as_hex: bool = False
    ) -> Union[List[bytes], str]:
        """Proof for *element* at 1-based *index*; checks the leaf matches first."""
        proof = extract_proof_ordered(element, index, self._elements, self._layers)
        return pack_proof(proof) if as_hex else proof


def merkle_root(
    elements: Iterable[Any],
    preserve_order: bool = False,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Optional[bytes]:
    """Root of a freshly built tree over *elements*."""
    return MerkleTree(elements, preserve_order, algorithm).root


__all__ = [
    "EMPTY_ROOT",
    "MerkleTree",
    "merkle_root",
    "build_layers",
    "next_layer",
    "dedup",
    "parent_index",
    "locate_index",
    "extract_proof",
    "extract_proof_ordered",
]
