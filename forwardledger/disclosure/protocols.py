"""Verifiable partial disclosure as a capability.

Anything that can commit to a transaction's components, reveal a subset,
and verify a revealed subset against the commitment can back the oracle.
MerkleDisclosure is the implementation shipped with the package.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, final, runtime_checkable

from forwardledger.core.errors import AttestationViolation
from forwardledger.core.result import Err, Ok
from forwardledger.disclosure.filtered import (
    ComponentGroup,
    ComponentPredicate,
    ComponentTree,
    FilteredView,
    build_filtered_view,
    verify_filtered_view,
)


@runtime_checkable
class DisclosureScheme(Protocol):
    def commit(
        self, groups: Mapping[ComponentGroup, Sequence[object]], privacy_salt: str,
    ) -> Ok[ComponentTree] | Err[str]: ...

    def reveal(self, tree: ComponentTree, predicate: ComponentPredicate) -> FilteredView: ...

    def verify(
        self, view: FilteredView, predicate: ComponentPredicate,
    ) -> Ok[tuple[object, ...]] | Err[AttestationViolation]: ...


@final
class MerkleDisclosure:
    """SHA-256 hash trees with pruned partial trees."""

    def commit(
        self, groups: Mapping[ComponentGroup, Sequence[object]], privacy_salt: str,
    ) -> Ok[ComponentTree] | Err[str]:
        return ComponentTree.build(groups, privacy_salt)

    def reveal(self, tree: ComponentTree, predicate: ComponentPredicate) -> FilteredView:
        return build_filtered_view(tree, predicate)

    def verify(
        self, view: FilteredView, predicate: ComponentPredicate,
    ) -> Ok[tuple[object, ...]] | Err[AttestationViolation]:
        return verify_filtered_view(view, predicate)
