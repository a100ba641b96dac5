#!/usr/bin/env python3
"""
Lineage resolution for AMIs copied across regions.

Every AMI in the canonical region becomes the root of a tree. Every other
AMI is attached to a tree using the first heuristic that matches:

1. a root with exactly the same name
2. a root whose ID is the AMI's copied-from reference
3. a root whose name equals the name of the AMI the reference points to
4. a root whose name is a prefix of the AMI's name, or vice versa

Anything left over becomes a single-node orphan tree.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ami_cleanup.logging_utils import get_logger
from ami_cleanup.models import AMI, AMITree

logger = get_logger(__name__)


@dataclass
class LineageForest:
    """Result of lineage resolution"""

    trees: List[AMITree] = field(default_factory=list)
    orphans: List[AMI] = field(default_factory=list)

    def all_trees(self) -> List[AMITree]:
        """Rooted trees plus orphan singletons, sorted by root name"""
        combined = self.trees + [AMITree(root=orphan) for orphan in self.orphans]
        return sorted(combined, key=lambda tree: _root_order(tree.root))


def _root_order(ami: AMI):
    created = ami.created_date.timestamp() if ami.created_date else 0.0
    return (ami.name, created, ami.region, ami.id)


def _child_order(ami: AMI):
    return (ami.region, ami.name, ami.id)


def _names_overlap(name: str, root_name: str) -> bool:
    return name.startswith(root_name) or root_name.startswith(name)


class LineageResolver:
    """Builds a LineageForest from a flat list of AMIs"""

    def __init__(self, canonical_region: str):
        self.canonical_region = canonical_region

    def resolve(self, amis: Iterable[AMI]) -> LineageForest:
        amis = list(amis)
        ami_by_id: Dict[str, AMI] = {ami.id: ami for ami in amis}

        # Candidate order is fixed so ties resolve the same way every run
        roots = sorted((ami for ami in amis if ami.region == self.canonical_region), key=_root_order)
        trees = [AMITree(root=root) for root in roots]

        trees_by_name: Dict[str, AMITree] = {}
        trees_by_root_id: Dict[str, AMITree] = {}
        for tree in trees:
            trees_by_name.setdefault(tree.root.name, tree)
            trees_by_root_id.setdefault(tree.root.id, tree)

        orphans: List[AMI] = []
        for ami in amis:
            if ami.region == self.canonical_region:
                continue
            tree = self._find_parent(ami, trees, trees_by_name, trees_by_root_id, ami_by_id)
            if tree is None:
                orphans.append(ami)
            else:
                tree.children.append(ami)

        for tree in trees:
            tree.children.sort(key=_child_order)

        orphans.sort(key=_root_order)
        if orphans:
            logger.info(f"{len(orphans)} AMI(s) could not be linked to a {self.canonical_region} root")
        return LineageForest(trees=trees, orphans=orphans)

    def _find_parent(
        self,
        ami: AMI,
        trees: List[AMITree],
        trees_by_name: Dict[str, AMITree],
        trees_by_root_id: Dict[str, AMITree],
        ami_by_id: Dict[str, AMI],
    ) -> Optional[AMITree]:
        tree = trees_by_name.get(ami.name)
        if tree is not None:
            return tree

        if ami.copied_from:
            tree = trees_by_root_id.get(ami.copied_from)
            if tree is not None:
                return tree

            source = ami_by_id.get(ami.copied_from)
            if source is not None and source is not ami:
                tree = trees_by_name.get(source.name)
                if tree is not None:
                    return tree

        for tree in trees:
            if _names_overlap(ami.name, tree.root.name):
                logger.debug(f"Linked {ami.key} to {tree.root.name} by name prefix")
                return tree

        return None
