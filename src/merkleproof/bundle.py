"""
Proof bundle: the JSON artifact handed between a prover and a verifier.

A bundle carries everything a verifier needs and nothing else: digest
algorithm, mode, root, element, 1-based index (ordered mode only) and the
sibling hashes, all as ``0x`` hex. It is frozen once built.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from merkleproof.encoding import element_from_hex, element_to_hex, pack_proof
from merkleproof.hashing import DEFAULT_ALGORITHM, DIGESTS
from merkleproof.tree import MerkleTree, locate_index
from merkleproof.verify import check_proof, check_proof_ordered

BUNDLE_SCHEMA_VERSION = "1.0"


def _check_hex_element(value: str) -> str:
    element_from_hex(value)
    return value.strip().lower()


class ProofBundle(BaseModel):
    """Self-contained inclusion proof for one element."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_version: str = Field(default=BUNDLE_SCHEMA_VERSION)
    algorithm: str = Field(default=DEFAULT_ALGORITHM)
    ordered: bool = False
    root: Optional[str] = None
    element: str
    index: Optional[int] = None
    proof: List[str] = Field(default_factory=list)

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        if value not in DIGESTS:
            raise ValueError(f"unknown algorithm {value!r}")
        return value

    @field_validator("element")
    @classmethod
    def _element_hex(cls, value: str) -> str:
        return _check_hex_element(value)

    @field_validator("root")
    @classmethod
    def _root_hex(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_hex_element(value)

    @field_validator("proof")
    @classmethod
    def _proof_hex(cls, value: List[str]) -> List[str]:
        return [_check_hex_element(v) for v in value]

    @model_validator(mode="after")
    def _index_matches_mode(self) -> "ProofBundle":
        if self.ordered and (self.index is None or self.index < 1):
            raise ValueError("ordered bundles need a 1-based index")
        if not self.ordered and self.index is not None:
            raise ValueError("index is only meaningful for ordered bundles")
        return self

    @classmethod
    def from_tree(cls, tree: MerkleTree, element: bytes, index: Optional[int] = None) -> "ProofBundle":
        """Extract a proof for *element* from *tree* and bundle it.

        Ordered trees need the 1-based *index*; unordered trees locate the
        element by value.
        """
        if tree.preserve_order:
            if index is None:
                index = locate_index(element, tree.elements) + 1
            proof = tree.get_proof_ordered(element, index)
        else:
            proof = tree.get_proof(element)
            index = None
        return cls(
            algorithm=tree.algorithm,
            ordered=tree.preserve_order,
            root=element_to_hex(tree.root),
            element=element_to_hex(element),
            index=index,
            proof=[element_to_hex(p) for p in proof],
        )

    @classmethod
    def from_json(cls, text: str) -> "ProofBundle":
        return cls.model_validate_json(text)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    def proof_elements(self) -> List[bytes]:
        return [element_from_hex(p) for p in self.proof]

    def packed_proof(self) -> str:
        return pack_proof(self.proof_elements())

    def verify(self) -> bool:
        """Recompute the root from the bundle and compare."""
        if self.root is None:
            return False
        root = element_from_hex(self.root)
        element = element_from_hex(self.element)
        proof = self.proof_elements()
        if self.ordered:
            return check_proof_ordered(proof, root, element, self.index, self.algorithm)
        return check_proof(proof, root, element, self.algorithm)

    def summary(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "ordered": self.ordered,
            "root": self.root,
            "element": self.element,
            "index": self.index,
            "proof_length": len(self.proof),
        }


__all__ = ["BUNDLE_SCHEMA_VERSION", "ProofBundle"]
