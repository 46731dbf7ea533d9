"""Binary SHA-256 hash trees and partial (pruned) trees.

Leaves and internal nodes are domain separated: leaf = H(0x00 || nonce ||
payload), node = H(0x01 || left || right), over raw digest bytes. Each
level is padded to a power of two with ZERO_HASH.

A PartialTree keeps the path to every included leaf and collapses every
other subtree to its hash, which is the minimum needed to recompute the
root. Reconstruction rejects trees that hide nothing under a Branch, so a
prover cannot pad a proof with subtrees the verifier has no use for.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass
from typing import final

from forwardledger.core.result import Err, Ok

ZERO_HASH = "00" * 32
LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"
MAX_LEAVES = 1 << 20


def hash_leaf(nonce: bytes, payload: bytes) -> str:
    return hashlib.sha256(LEAF_PREFIX + nonce + payload).hexdigest()


def hash_node(left: str, right: str) -> str:
    return hashlib.sha256(NODE_PREFIX + bytes.fromhex(left) + bytes.fromhex(right)).hexdigest()


def component_nonce(privacy_salt: bytes, group: int, index: int) -> bytes:
    """Per-leaf nonce so low-entropy hidden components cannot be guessed."""
    return hashlib.sha256(
        privacy_salt + group.to_bytes(4, "big") + index.to_bytes(4, "big"),
    ).digest()


def padded_width(count: int) -> int:
    """Smallest power of two >= count (1 for empty input)."""
    width = 1
    while width < count:
        width <<= 1
    return width


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def _pad(hashes: Sequence[str]) -> list[str]:
    width = padded_width(len(hashes))
    return list(hashes) + [ZERO_HASH] * (width - len(hashes))


def merkle_root(hashes: Sequence[str]) -> str:
    """Root over hashes; ZERO_HASH for an empty sequence."""
    if not hashes:
        return ZERO_HASH
    level = _pad(hashes)
    while len(level) > 1:
        level = [hash_node(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


# ---------------------------------------------------------------------------
# Partial tree
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class IncludedLeaf:
    """A disclosed leaf; its component travels alongside the tree."""

    hash: str


@final
@dataclass(frozen=True, slots=True)
class HiddenNode:
    """A pruned subtree (or hidden leaf), represented only by its hash."""

    hash: str


@final
@dataclass(frozen=True, slots=True)
class Branch:
    left: PartialNode
    right: PartialNode


type PartialNode = IncludedLeaf | HiddenNode | Branch


@final
@dataclass(frozen=True, slots=True)
class PartialTree:
    """Pruned tree over `width` leaf slots (a power of two)."""

    root: PartialNode
    width: int


@final
@dataclass(frozen=True, slots=True)
class ReconstructedTree:
    """Result of replaying a PartialTree: the root hash and included leaves."""

    root_hash: str
    included: tuple[tuple[int, str], ...]  # (leaf index, leaf hash), ascending


def build_partial_tree(leaf_hashes: Sequence[str], included: frozenset[int]) -> PartialTree:
    """Prune the full tree over leaf_hashes down to the included indices."""
    padded = _pad(leaf_hashes)

    def subtree_hash(start: int, width: int) -> str:
        if width == 1:
            return padded[start]
        half = width // 2
        return hash_node(subtree_hash(start, half), subtree_hash(start + half, half))

    def build(start: int, width: int) -> PartialNode:
        if not any(start <= i < start + width for i in included):
            return HiddenNode(hash=subtree_hash(start, width))
        if width == 1:
            return IncludedLeaf(hash=padded[start])
        half = width // 2
        return Branch(left=build(start, half), right=build(start + half, half))

    return PartialTree(root=build(0, len(padded)), width=len(padded))


def reconstruct(tree: PartialTree) -> Ok[ReconstructedTree] | Err[str]:
    """Recompute the root of a partial tree and list its included leaves.

    Err when the shape is inconsistent with `width` or the tree is not
    minimal (a Branch with nothing included beneath it).
    """
    if not _is_power_of_two(tree.width) or tree.width > MAX_LEAVES:
        return Err(f"Partial tree width must be a power of two <= {MAX_LEAVES}, got {tree.width}")

    included: list[tuple[int, str]] = []

    def walk(node: PartialNode, start: int, width: int) -> Ok[str] | Err[str]:
        match node:
            case HiddenNode(hash=h):
                return Ok(h)
            case IncludedLeaf(hash=h):
                if width != 1:
                    return Err(f"Included leaf at subtree of width {width} (index {start})")
                included.append((start, h))
                return Ok(h)
            case Branch(left=left, right=right):
                if width == 1:
                    return Err(f"Branch below leaf level at index {start}")
                before = len(included)
                half = width // 2
                match walk(left, start, half):
                    case Err() as e:
                        return e
                    case Ok(lh):
                        pass
                match walk(right, start + half, half):
                    case Err() as e:
                        return e
                    case Ok(rh):
                        pass
                if len(included) == before:
                    return Err(f"Non-minimal partial tree: branch at index {start} reveals nothing")
                return Ok(hash_node(lh, rh))
            case _:
                return Err(f"Unknown partial tree node {type(node).__name__}")

    try:
        root = walk(tree.root, 0, tree.width)
    except ValueError as e:
        return Err(f"Malformed hash in partial tree: {e}")
    match root:
        case Err() as e:
            return e
        case Ok(h):
            return Ok(ReconstructedTree(root_hash=h, included=tuple(included)))
