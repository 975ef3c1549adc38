"""
Merkle membership for the DAO registry.

The registry is an append-only tree of DAO bullas hashed with the Poseidon
2-to-1 compression. Relations only consume (leaf, position, path, root); the
tree itself belongs to the ledger and is provided here for wallets, ledger
simulations and tests.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .field import validate_element
from .poseidon import poseidon_hash

logger = logging.getLogger(__name__)

MERKLE_DEPTH = 32

EMPTY_LEAF = 0


def compute_root(leaf: int, position: int, path: List[int]) -> int:
    """Fold leaf with its siblings; bit i of position is the side at level i"""
    current = leaf
    for level, sibling in enumerate(path):
        if (position >> level) & 1:
            current = poseidon_hash(sibling, current)
        else:
            current = poseidon_hash(current, sibling)
    return current


def verify_membership(leaf: int, position: int, path: List[int], claimed_root: int) -> bool:
    """Verify Merkle path; any malformed input is a rejection"""
    if not isinstance(position, int) or position < 0 or position >= (1 << len(path)):
        return False

    if not validate_element(leaf) or not validate_element(claimed_root):
        return False

    if not all(validate_element(sibling) for sibling in path):
        return False

    return compute_root(leaf, position, path) == claimed_root


@dataclass
class SparseMerkleTree:
    """Append-only sparse Merkle tree with precomputed empty subtrees"""
    depth: int = MERKLE_DEPTH
    empty_nodes: List[int] = field(default_factory=list)
    nodes: Dict[Tuple[int, int], int] = field(default_factory=dict)  # (level, index) -> hash
    leaf_count: int = 0
    root_history: List[int] = field(default_factory=list)

    def __post_init__(self):
        """Precompute empty node hashes; level 0 is the leaf level"""
        if self.depth <= 0:
            raise ValueError("Tree depth must be positive")
        empty = [EMPTY_LEAF]
        for _ in range(self.depth):
            empty.append(poseidon_hash(empty[-1], empty[-1]))
        self.empty_nodes = empty
        self.root_history.append(self.get_root())

    def _node(self, level: int, index: int) -> int:
        return self.nodes.get((level, index), self.empty_nodes[level])

    def append(self, value: int) -> int:
        """Append a leaf, returning its position"""
        index = self.leaf_count
        if index >= (1 << self.depth):
            raise ValueError(f"Tree of depth {self.depth} is full")

        if not validate_element(value):
            raise ValueError(f"Value {value} outside field bounds")

        self.nodes[(0, index)] = value
        current = value
        node_index = index
        for level in range(self.depth):
            sibling = self._node(level, node_index ^ 1)
            if node_index & 1:
                current = poseidon_hash(sibling, current)
            else:
                current = poseidon_hash(current, sibling)
            node_index >>= 1
            self.nodes[(level + 1, node_index)] = current

        self.leaf_count += 1
        self.root_history.append(current)
        logger.debug(f"Appended leaf at position {index}, new root {hex(current)}")
        return index

    def get_root(self) -> int:
        """Get Merkle root"""
        return self._node(self.depth, 0)

    def get_path(self, position: int) -> List[int]:
        """Sibling hashes from the leaf level upwards"""
        if position < 0 or position >= self.leaf_count:
            raise ValueError(f"Position {position} out of bounds")

        path = []
        node_index = position
        for level in range(self.depth):
            path.append(self._node(level, node_index ^ 1))
            node_index >>= 1
        return path

    def is_known_root(self, root: int) -> bool:
        """Roots of every past snapshot stay valid for proofs built against them"""
        return root in self.root_history
