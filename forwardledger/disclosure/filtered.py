"""Component trees over a transaction and filtered (partially disclosed) views.

The transaction id is the root of a two-level tree: one subtree per
ComponentGroup, whose roots are then combined into the id. A FilteredView
reveals the components matching a predicate together with the minimal
partial tree for each touched group and the root of every group. The
verifier recomputes each touched group root, then the id, and refuses any
view that discloses something the predicate does not accept.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import final

from forwardledger.core.errors import AttestationViolation
from forwardledger.core.result import Err, Ok
from forwardledger.core.serialization import canonical_bytes
from forwardledger.core.types import UtcDatetime
from forwardledger.disclosure.merkle import (
    PartialTree,
    build_partial_tree,
    component_nonce,
    hash_leaf,
    merkle_root,
    reconstruct,
)

type ComponentPredicate = Callable[[object], bool]


class ComponentGroup(IntEnum):
    """Top-level leaves of the transaction tree. Order is part of the id."""

    INPUTS = 0
    OUTPUTS = 1
    COMMANDS = 2
    TRANSFERS = 3
    SIGNERS = 4


_SOURCE = "disclosure.filtered.verify_filtered_view"


# ---------------------------------------------------------------------------
# Full tree
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ComponentTree:
    """Every component of a transaction with its leaf hash, plus the id."""

    privacy_salt: str
    components: tuple[tuple[object, ...], ...]  # indexed by ComponentGroup
    leaf_hashes: tuple[tuple[str, ...], ...]
    group_hashes: tuple[str, ...]
    id: str

    @staticmethod
    def build(
        groups: Mapping[ComponentGroup, Sequence[object]],
        privacy_salt: str,
    ) -> Ok[ComponentTree] | Err[str]:
        """Hash every component; groups absent from the mapping are empty."""
        try:
            salt = bytes.fromhex(privacy_salt)
        except ValueError as e:
            return Err(f"privacy_salt must be hex: {e}")
        if not salt:
            return Err("privacy_salt must not be empty")

        components: list[tuple[object, ...]] = []
        leaf_hashes: list[tuple[str, ...]] = []
        for group in ComponentGroup:
            members = tuple(groups.get(group, ()))
            hashes: list[str] = []
            for index, component in enumerate(members):
                match canonical_bytes(component):
                    case Err(e):
                        return Err(f"{group.name}[{index}]: {e}")
                    case Ok(payload):
                        hashes.append(hash_leaf(component_nonce(salt, group, index), payload))
            components.append(members)
            leaf_hashes.append(tuple(hashes))

        group_hashes = tuple(merkle_root(h) for h in leaf_hashes)
        return Ok(ComponentTree(
            privacy_salt=privacy_salt,
            components=tuple(components),
            leaf_hashes=tuple(leaf_hashes),
            group_hashes=group_hashes,
            id=merkle_root(group_hashes),
        ))

    def group(self, group: ComponentGroup) -> tuple[object, ...]:
        return self.components[group]


# ---------------------------------------------------------------------------
# Filtered view
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class FilteredComponent:
    """One disclosed leaf: its position, content and nonce (hex)."""

    index: int
    component: object
    nonce: str


@final
@dataclass(frozen=True, slots=True)
class FilteredGroup:
    group: ComponentGroup
    components: tuple[FilteredComponent, ...]
    partial_tree: PartialTree


@final
@dataclass(frozen=True, slots=True)
class FilteredView:
    """What a counterparty shows a third party instead of the transaction."""

    tx_id: str
    group_hashes: tuple[str, ...]
    groups: tuple[FilteredGroup, ...]

    def disclosed(self) -> tuple[object, ...]:
        return tuple(fc.component for g in self.groups for fc in g.components)


def build_filtered_view(tree: ComponentTree, predicate: ComponentPredicate) -> FilteredView:
    """Disclose exactly the components accepted by predicate."""
    salt = bytes.fromhex(tree.privacy_salt)
    groups: list[FilteredGroup] = []
    for group in ComponentGroup:
        members = tree.components[group]
        chosen = [i for i, c in enumerate(members) if predicate(c)]
        if not chosen:
            continue
        groups.append(FilteredGroup(
            group=group,
            components=tuple(
                FilteredComponent(
                    index=i,
                    component=members[i],
                    nonce=component_nonce(salt, group, i).hex(),
                )
                for i in chosen
            ),
            partial_tree=build_partial_tree(tree.leaf_hashes[group], frozenset(chosen)),
        ))
    return FilteredView(tx_id=tree.id, group_hashes=tree.group_hashes, groups=tuple(groups))


def _reject(tx_id: str, message: str, code: str) -> Err[AttestationViolation]:
    return Err(AttestationViolation(
        message=message,
        code=code,
        timestamp=UtcDatetime.now(),
        source=_SOURCE,
        tx_id=tx_id,
    ))


def _verify_group(
    tx_id: str, fg: FilteredGroup, group_hash: str, predicate: ComponentPredicate,
) -> Ok[None] | Err[AttestationViolation]:
    name = fg.group.name
    if not fg.components:
        return _reject(tx_id, f"{name}: group disclosed with no components", "EMPTY_DISCLOSURE")

    match reconstruct(fg.partial_tree):
        case Err(e):
            return _reject(tx_id, f"{name}: {e}", "MALFORMED_PARTIAL_TREE")
        case Ok(rebuilt):
            pass

    if rebuilt.root_hash != group_hash:
        return _reject(tx_id, f"{name}: partial tree does not match group hash", "HASH_MISMATCH")

    included = dict(rebuilt.included)
    disclosed_indices = [fc.index for fc in fg.components]
    if len(set(disclosed_indices)) != len(disclosed_indices):
        return _reject(tx_id, f"{name}: duplicate disclosed index", "DUPLICATE_DISCLOSURE")
    if set(disclosed_indices) != set(included):
        return _reject(
            tx_id,
            f"{name}: disclosed indices {sorted(disclosed_indices)} "
            f"do not match tree leaves {sorted(included)}",
            "INDEX_MISMATCH",
        )

    for fc in fg.components:
        try:
            nonce = bytes.fromhex(fc.nonce)
        except ValueError:
            return _reject(tx_id, f"{name}[{fc.index}]: nonce is not hex", "HASH_MISMATCH")
        match canonical_bytes(fc.component):
            case Err(e):
                return _reject(tx_id, f"{name}[{fc.index}]: {e}", "HASH_MISMATCH")
            case Ok(payload):
                pass
        if hash_leaf(nonce, payload) != included[fc.index]:
            return _reject(
                tx_id, f"{name}[{fc.index}]: component does not match its leaf hash",
                "HASH_MISMATCH",
            )
        if not predicate(fc.component):
            return _reject(
                tx_id, f"{name}[{fc.index}]: disclosed component is outside the filter",
                "EXTRANEOUS_DISCLOSURE",
            )
    return Ok(None)


def verify_filtered_view(
    view: FilteredView, predicate: ComponentPredicate,
) -> Ok[tuple[object, ...]] | Err[AttestationViolation]:
    """Check a filtered view against its claimed transaction id.

    Returns the disclosed components in (group, index) order.
    """
    tx_id = view.tx_id
    if len(view.group_hashes) != len(ComponentGroup):
        return _reject(
            tx_id,
            f"Expected {len(ComponentGroup)} group hashes, got {len(view.group_hashes)}",
            "MALFORMED_VIEW",
        )
    try:
        root = merkle_root(view.group_hashes)
    except ValueError as e:
        return _reject(tx_id, f"Malformed group hash: {e}", "MALFORMED_VIEW")
    if root != tx_id:
        return _reject(tx_id, "Group hashes do not reproduce the transaction id", "HASH_MISMATCH")

    seen: set[ComponentGroup] = set()
    for fg in view.groups:
        if not isinstance(fg.group, ComponentGroup):
            return _reject(tx_id, f"Unknown component group {fg.group!r}", "MALFORMED_VIEW")
        if fg.group in seen:
            return _reject(tx_id, f"{fg.group.name}: group disclosed twice", "DUPLICATE_DISCLOSURE")
        seen.add(fg.group)
        match _verify_group(tx_id, fg, view.group_hashes[fg.group], predicate):
            case Err() as e:
                return e
            case Ok():
                pass

    ordered = sorted(view.groups, key=lambda g: g.group)
    return Ok(tuple(
        fc.component
        for g in ordered
        for fc in sorted(g.components, key=lambda c: c.index)
    ))
