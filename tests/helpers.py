"""Shared builders for AMI records and trees used across the tests."""

from datetime import datetime, timezone
from typing import Optional

from ami_cleanup.models import AMI, AMIStatus, AMITree


def make_ami(
    ami_id: str,
    name: str = "capa-ami-ubuntu-22.04-v1.30.0",
    region: str = "us-east-1",
    status: AMIStatus = AMIStatus.PUBLIC,
    copied_from: Optional[str] = None,
    architecture: str = "x86_64",
) -> AMI:
    return AMI(
        id=ami_id,
        name=name,
        region=region,
        created_date=datetime(2024, 5, 1, 10, 22, 33, tzinfo=timezone.utc),
        status=status,
        architecture=architecture,
        copied_from=copied_from,
    )


def make_tree(root: AMI, *children: AMI) -> AMITree:
    return AMITree(root=root, children=list(children))
