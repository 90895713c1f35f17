"""
EC2 Resource Types
==================

EC2 resources that expose no creation timestamp. Their age comes from
the first-seen tag, written with ``CreateTags``.

Classes
-------
SecurityGroups
    Non-default VPC security groups.
ElasticIPs
    Allocated Elastic IP addresses.
IPAMPools
    VPC IP Address Manager pools.

Notes
-----
Default security groups cannot be deleted and are never listed.
Deleting an Elastic IP that is still associated fails and is recorded
as a failed outcome.
"""

from __future__ import annotations

import logging
from typing import Iterator, List

from cloudsweep.core.models import ResourceCandidate
from cloudsweep.resources.base import AWSResource, tags_to_dict

logger = logging.getLogger(__name__)


class EC2Resource(AWSResource):
    """EC2 resource taggable through ``CreateTags``."""

    service_name = "ec2"
    supports_tagging = True

    def tag_resource(self, identifier: str, key: str, value: str) -> None:
        self.client.create_tags(
            Resources=[identifier],
            Tags=[{"Key": key, "Value": value}],
        )


class SecurityGroups(EC2Resource):
    """Non-default EC2 security groups."""

    resource_type = "security-group"
    not_found_codes = frozenset({"InvalidGroup.NotFound", "InvalidGroupId.NotFound"})

    def list_candidates(self) -> Iterator[List[ResourceCandidate]]:
        paginator = self.client.get_paginator("describe_security_groups")
        for page in paginator.paginate():
            batch = []
            for sg in page.get("SecurityGroups", []):
                if sg.get("GroupName") == "default":
                    continue
                tags = tags_to_dict(sg.get("Tags"))
                batch.append(
                    ResourceCandidate(
                        identifier=sg["GroupId"],
                        label=tags.get("Name", sg.get("GroupName")),
                        tags=tags,
                    )
                )
            yield batch

    def delete(self, identifier: str) -> None:
        self.client.delete_security_group(GroupId=identifier)


class ElasticIPs(EC2Resource):
    """Elastic IP allocations."""

    resource_type = "elastic-ip"
    not_found_codes = frozenset({"InvalidAllocationID.NotFound"})

    def list_candidates(self) -> Iterator[List[ResourceCandidate]]:
        # DescribeAddresses is not paginated
        response = self.client.describe_addresses()
        batch = []
        for address in response.get("Addresses", []):
            allocation_id = address.get("AllocationId")
            if not allocation_id:
                continue
            tags = tags_to_dict(address.get("Tags"))
            batch.append(
                ResourceCandidate(
                    identifier=allocation_id,
                    label=tags.get("Name", address.get("PublicIp")),
                    tags=tags,
                )
            )
        yield batch

    def delete(self, identifier: str) -> None:
        self.client.release_address(AllocationId=identifier)


class IPAMPools(EC2Resource):
    """VPC IPAM pools, deleted together with their allocations."""

    resource_type = "ipam-pool"
    not_found_codes = frozenset({"InvalidIpamPoolId.NotFound"})

    def list_candidates(self) -> Iterator[List[ResourceCandidate]]:
        paginator = self.client.get_paginator("describe_ipam_pools")
        for page in paginator.paginate():
            batch = []
            for pool in page.get("IpamPools", []):
                tags = tags_to_dict(pool.get("Tags"))
                batch.append(
                    ResourceCandidate(
                        identifier=pool["IpamPoolId"],
                        label=tags.get("Name"),
                        tags=tags,
                    )
                )
            yield batch

    def delete(self, identifier: str) -> None:
        self.client.delete_ipam_pool(IpamPoolId=identifier, Cascade=True)
