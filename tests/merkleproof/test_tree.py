"""Tests for layer derivation, the MerkleTree type and proof extraction."""
from __future__ import annotations

import math

import pytest

from merkleproof.errors import (
    E_ELEMENT_NOT_FOUND,
    E_ELEMENT_SIZE,
    E_INDEX_MISMATCH,
    ElementNotFound,
    IndexMismatch,
    InvalidElementSize,
    UnsupportedAlgorithm,
)
from merkleproof.hashing import combine, digest
from merkleproof.tree import (
    EMPTY_ROOT,
    MerkleTree,
    build_layers,
    dedup,
    extract_proof,
    locate_index,
    merkle_root,
    parent_index,
)


def _leaf(i: int) -> bytes:
    return digest(f"leaf-{i}".encode())


def _leaves(n: int):
    return [_leaf(i) for i in range(n)]


H0 = b"a" * 32
H1 = b"b" * 32
H2 = b"c" * 32


class TestBuildLayers:
    @pytest.mark.parametrize("n", range(1, 40))
    def test_layer_lengths_halve_with_ceiling(self, n):
        layers = build_layers(_leaves(n), preserve_order=True)
        for below, above in zip(layers, layers[1:]):
            assert len(above) == math.ceil(len(below) / 2)
        assert len(layers[-1]) == 1

    def test_odd_node_is_promoted_unchanged(self):
        layers = build_layers([H0, H1, H2], preserve_order=True)
        assert layers[1] == (combine(H0, H1, True), H2)
        assert layers[2] == (combine(combine(H0, H1, True), H2, True),)

    def test_unordered_dedups_and_sorts(self):
        layers = build_layers([H2, H0, H2, H1, H0], preserve_order=False)
        assert layers[0] == (H0, H1, H2)

    def test_ordered_keeps_duplicates_and_order(self):
        layers = build_layers([H2, H0, H2], preserve_order=True)
        assert layers[0] == (H2, H0, H2)

    def test_empty_yields_sentinel_layer(self):
        assert build_layers([], preserve_order=False) == ((EMPTY_ROOT,),)
        assert build_layers([], preserve_order=True) == ((EMPTY_ROOT,),)

    def test_dedup_keeps_first_occurrence(self):
        assert dedup([H1, H0, H1, H2, H0]) == [H1, H0, H2]


class TestMerkleTree:
    def test_single_leaf_is_root(self):
        tree = MerkleTree([H0])
        assert tree.root == H0
        assert tree.layers == ((H0,),)

    def test_two_leaf_unordered_root(self):
        assert merkle_root([H1, H0]) == digest(H0 + H1)

    def test_permutation_invariance_unordered(self):
        leaves = _leaves(11)
        expected = merkle_root(leaves)
        assert merkle_root(list(reversed(leaves))) == expected
        assert merkle_root(leaves[5:] + leaves[:5]) == expected

    def test_order_sensitivity_ordered(self):
        leaves = _leaves(6)
        assert merkle_root(leaves, True) != merkle_root(list(reversed(leaves)), True)

    def test_dedup_unordered(self):
        assert merkle_root([H0, H0]) == merkle_root([H0])
        assert merkle_root([H0, H1, H0]) == merkle_root([H0, H1])

    def test_no_dedup_ordered(self):
        tree = MerkleTree([H0, H1, H0], preserve_order=True)
        assert len(tree) == 3
        assert tree.root == combine(combine(H0, H1, True), H0, True)
        assert tree.root != merkle_root([H0, H1], True)

    def test_unordered_leaves_sorted_and_unique(self):
        tree = MerkleTree([H2, H1, H2, H0])
        assert tree.elements == (H0, H1, H2)

    @pytest.mark.parametrize("preserve_order", [False, True])
    def test_empty_input(self, preserve_order):
        assert merkle_root([], preserve_order) is EMPTY_ROOT
        assert merkle_root([""], preserve_order) is EMPTY_ROOT
        assert merkle_root([b"", None], preserve_order) is EMPTY_ROOT
        assert len(MerkleTree([""], preserve_order)) == 0

    def test_placeholders_removed_before_validation(self):
        assert merkle_root(["", H0, b""]) == H0

    @pytest.mark.parametrize("bad", [b"a" * 31, b"a" * 33, "a" * 32, 42])
    def test_invalid_element_size(self, bad):
        with pytest.raises(InvalidElementSize) as exc:
            MerkleTree([H0, bad])
        assert exc.value.code == E_ELEMENT_SIZE

    def test_bytearray_elements_accepted(self):
        tree = MerkleTree([bytearray(H0), H1])
        assert tree.elements == (H0, H1)

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(UnsupportedAlgorithm):
            MerkleTree([H0], algorithm="blake3")

    def test_sha256_tree_differs(self):
        leaves = _leaves(5)
        assert MerkleTree(leaves, algorithm="sha256").root != MerkleTree(leaves).root

    def test_immutable(self):
        tree = MerkleTree(_leaves(4))
        with pytest.raises(AttributeError):
            tree.layers = ()
        with pytest.raises(AttributeError):
            tree.extra = 1
        assert isinstance(tree.layers, tuple)
        assert all(isinstance(layer, tuple) for layer in tree.layers)

    def test_value_equality_not_identity(self):
        first = bytes(bytearray(b"d" * 32))
        second = bytes(bytearray(b"d" * 32))
        assert first is not second
        tree = MerkleTree([first, second, H0])
        assert len(tree) == 2
        assert tree.get_proof(bytes(bytearray(b"d" * 32))) == [H0]


class TestProofExtraction:
    def test_parent_index_floors(self):
        assert [parent_index(i) for i in range(6)] == [0, 0, 1, 1, 2, 2]

    def test_locate_index(self):
        assert locate_index(H1, [H0, H1, H1]) == 1
        with pytest.raises(ElementNotFound) as exc:
            locate_index(H2, [H0, H1])
        assert exc.value.code == E_ELEMENT_NOT_FOUND

    def test_promoted_leaf_has_short_proof(self):
        tree = MerkleTree([H0, H1, H2], preserve_order=True)
        proof = tree.get_proof(H2)
        assert proof == [combine(H0, H1, True)]
        assert len(proof) < len(tree.layers) - 1

    def test_full_proof_length(self):
        tree = MerkleTree(_leaves(8), preserve_order=True)
        for i in range(8):
            assert len(extract_proof(i, tree.layers)) == len(tree.layers) - 1

    @pytest.mark.parametrize("n", range(1, 34))
    def test_proof_never_longer_than_depth(self, n):
        tree = MerkleTree(_leaves(n), preserve_order=True)
        for i in range(n):
            assert len(extract_proof(i, tree.layers)) <= len(tree.layers) - 1

    def test_proof_for_missing_element(self):
        tree = MerkleTree([H0, H1])
        with pytest.raises(ElementNotFound):
            tree.get_proof(H2)

    def test_proof_on_empty_tree(self):
        with pytest.raises(ElementNotFound):
            MerkleTree([]).get_proof(H0)

    def test_ordered_proof_checks_leaf(self):
        tree = MerkleTree([H0, H1, H2], preserve_order=True)
        assert tree.get_proof_ordered(H1, 2) == [H0, H2]
        with pytest.raises(IndexMismatch) as exc:
            tree.get_proof_ordered(H1, 1)
        assert exc.value.code == E_INDEX_MISMATCH

    @pytest.mark.parametrize("index", [0, -1, 4, 100])
    def test_ordered_proof_index_out_of_range(self, index):
        tree = MerkleTree([H0, H1, H2], preserve_order=True)
        with pytest.raises(IndexMismatch):
            tree.get_proof_ordered(H2, index)

    def test_ordered_proof_with_duplicates(self):
        tree = MerkleTree([H0, H1, H0], preserve_order=True)
        assert tree.get_proof(H0) == tree.get_proof_ordered(H0, 1)
        assert tree.get_proof_ordered(H0, 3) == [combine(H0, H1, True)]

    def test_hex_proof_is_packed(self):
        tree = MerkleTree([H0, H1, H2])
        packed = tree.get_proof(H0, as_hex=True)
        assert packed == "0x" + H1.hex() + H2.hex()
        assert tree.get_proof_ordered(H0, 1, as_hex=True) == packed
