#!/usr/bin/env python3
"""
AMI inventory collection across regions.

Wraps the two EC2 calls the tool needs (DescribeImages and
ModifyImageAttribute) and normalizes raw image dicts into AMI records.
"""

from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ami_cleanup.logging_utils import get_logger
from ami_cleanup.models import AMI, AMIStatus

logger = get_logger(__name__)

SOURCE_AMI_TAG_KEYS = ("SourceAMI", "source-ami")


class _RegionalClients:
    """Per-region EC2 clients created from one session.

    boto3 sessions are not thread-safe but the clients they produce are,
    so clients are created under a lock and reused.
    """

    def __init__(self, session: boto3.Session):
        self.session = session
        self._clients: Dict[str, Any] = {}
        self._lock = Lock()

    def ec2(self, region: str):
        with self._lock:
            client = self._clients.get(region)
            if client is None:
                client = self.session.client("ec2", region_name=region)
                self._clients[region] = client
            return client


class EC2ImageProvider(_RegionalClients):
    """Lists images matching a name filter for a fixed owner scope"""

    def __init__(self, session: boto3.Session, owners: List[str], name_filter: str):
        super().__init__(session)
        self.owners = owners
        self.name_filter = name_filter

    def describe_images(self, region: str) -> List[Dict[str, Any]]:
        """Return the raw image dicts for one region (single page, no pagination)"""
        response = self.ec2(region).describe_images(
            Owners=self.owners,
            Filters=[{"Name": "name", "Values": [self.name_filter]}],
        )
        return response.get("Images", [])


class LaunchPermissionRevoker(_RegionalClients):
    """Removes the "launch permission for all" grant from an image"""

    def revoke_public_launch(self, region: str, ami_id: str) -> None:
        """Make an AMI private.

        Raises:
            botocore.exceptions.ClientError: If the API call is rejected
            botocore.exceptions.BotoCoreError: On transport/credential failures
        """
        self.ec2(region).modify_image_attribute(
            ImageId=ami_id,
            LaunchPermission={"Remove": [{"Group": "all"}]},
        )


def parse_creation_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an EC2 CreationDate (e.g. 2024-05-01T10:22:33.000Z)"""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Could not parse creation date '{value}'")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_source_ami(image: Dict[str, Any]) -> Optional[str]:
    """Find the AMI an image was copied from.

    The SourceAMI/source-ami tag wins; otherwise the first "ami-" token in
    the description is used (CopyImage writes "Copied ami-xxx from ...").
    """
    for tag in image.get("Tags") or []:
        if tag.get("Key") in SOURCE_AMI_TAG_KEYS:
            return tag.get("Value")

    description = image.get("Description") or ""
    if "ami-" in description:
        for part in description.split(" "):
            if part.startswith("ami-"):
                return part
    return None


def normalize_image(image: Dict[str, Any], region: str) -> AMI:
    """Convert a DescribeImages entry into an AMI record"""
    return AMI(
        id=image.get("ImageId", ""),
        name=image.get("Name", ""),
        region=region,
        created_date=parse_creation_date(image.get("CreationDate")),
        status=AMIStatus.PUBLIC if image.get("Public") else AMIStatus.PRIVATE,
        architecture=image.get("Architecture", ""),
        copied_from=extract_source_ami(image),
    )


class AMIInventory:
    """Collects AMIs from every configured region"""

    def __init__(self, provider: EC2ImageProvider, regions: List[str]):
        self.provider = provider
        self.regions = list(dict.fromkeys(regions))
        self.failed_regions: Dict[str, str] = {}

    def fetch_amis(self) -> List[AMI]:
        """Fetch public and private AMIs from all regions.

        A region that fails is logged and skipped; it contributes no records.

        Returns:
            Flat list of AMI records, in region order
        """
        all_amis: List[AMI] = []
        self.failed_regions = {}

        for region in self.regions:
            try:
                images = self.provider.describe_images(region)
            except (ClientError, BotoCoreError) as e:
                logger.warning(f"Failed to fetch AMIs in {region}: {e}")
                self.failed_regions[region] = str(e)
                continue

            amis = [normalize_image(image, region) for image in images]
            public_count = sum(1 for ami in amis if ami.is_public)
            logger.info(f"{region}: found {len(amis)} AMIs ({public_count} public)")
            all_amis.extend(amis)

        return all_amis
