"""forwardledger.disclosure — hash-tree commitments and filtered views."""

from forwardledger.disclosure.filtered import ComponentGroup as ComponentGroup
from forwardledger.disclosure.filtered import ComponentPredicate as ComponentPredicate
from forwardledger.disclosure.filtered import ComponentTree as ComponentTree
from forwardledger.disclosure.filtered import FilteredComponent as FilteredComponent
from forwardledger.disclosure.filtered import FilteredGroup as FilteredGroup
from forwardledger.disclosure.filtered import FilteredView as FilteredView
from forwardledger.disclosure.filtered import build_filtered_view as build_filtered_view
from forwardledger.disclosure.filtered import verify_filtered_view as verify_filtered_view
from forwardledger.disclosure.merkle import ZERO_HASH as ZERO_HASH
from forwardledger.disclosure.merkle import Branch as Branch
from forwardledger.disclosure.merkle import HiddenNode as HiddenNode
from forwardledger.disclosure.merkle import IncludedLeaf as IncludedLeaf
from forwardledger.disclosure.merkle import PartialTree as PartialTree
from forwardledger.disclosure.merkle import build_partial_tree as build_partial_tree
from forwardledger.disclosure.merkle import merkle_root as merkle_root
from forwardledger.disclosure.merkle import reconstruct as reconstruct
from forwardledger.disclosure.protocols import DisclosureScheme as DisclosureScheme
from forwardledger.disclosure.protocols import MerkleDisclosure as MerkleDisclosure
