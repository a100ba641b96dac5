"""
Data model shared by the collector, lineage resolver and interactive screen.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple

KEY_SEPARATOR = ":"


class AMIStatus(str, Enum):
    """Visibility of an AMI as seen by this tool"""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    UPDATING = "UPDATING"
    ERROR = "ERROR"


@dataclass
class AMI:
    """A single AMI in one region.

    Records are created by the inventory collector and mutated in place
    (status, error_msg) while revocations run. They are never removed.
    """

    id: str
    name: str
    region: str
    created_date: Optional[datetime] = None
    status: AMIStatus = AMIStatus.PRIVATE
    architecture: str = ""
    copied_from: Optional[str] = None
    error_msg: Optional[str] = None

    @property
    def key(self) -> str:
        return make_ami_key(self.region, self.id)

    @property
    def is_public(self) -> bool:
        return self.status == AMIStatus.PUBLIC


@dataclass
class AMITree:
    """A canonical-region AMI and its cross-region copies.

    Orphans are trees with no children whose root lives outside the
    canonical region.
    """

    root: AMI
    children: List[AMI] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Stable identifier used by the expansion set"""
        return self.root.key

    def members(self) -> Iterator[AMI]:
        yield self.root
        yield from self.children

    def public_members(self) -> List[AMI]:
        return [ami for ami in self.members() if ami.is_public]

    def copy_counts(self) -> Tuple[int, int]:
        """(public, private) counts over the children"""
        public = sum(1 for child in self.children if child.status == AMIStatus.PUBLIC)
        private = sum(1 for child in self.children if child.status == AMIStatus.PRIVATE)
        return public, private


def make_ami_key(region: str, ami_id: str) -> str:
    return f"{region}{KEY_SEPARATOR}{ami_id}"


def parse_ami_key(key: str) -> Tuple[str, str]:
    """Split a selection key into (region, ami_id).

    Raises:
        ValueError: If the key is not exactly "<region>:<ami_id>"
    """
    parts = key.split(KEY_SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError("invalid AMI key format")
    return parts[0], parts[1]
