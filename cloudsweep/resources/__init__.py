"""
Resource Types
==============

Concrete :class:`ResourceLister` / :class:`ResourceDeleter` pairs, one
class per AWS resource type, each bound to a single region.

Available Resource Types
------------------------
elb
    Classic Elastic Load Balancers (native creation time, confirmed delete).
security-group
    Non-default EC2 security groups (first-seen tag).
elastic-ip
    Elastic IP allocations (first-seen tag).
ipam-pool
    VPC IPAM pools (first-seen tag).
opensearch-domain
    OpenSearch domains (first-seen tag, confirmed delete).

Adding New Resource Types
-------------------------
1. Subclass :class:`AWSResource` and set ``resource_type``,
   ``service_name`` and ``not_found_codes``.
2. Implement ``list_candidates`` and ``delete``; set
   ``requires_confirmation`` and implement ``describe_survivors`` when
   deletion is asynchronous; set ``supports_tagging`` and implement
   ``tag_resource`` when the provider has no creation timestamp.
3. Register the class in :data:`RESOURCE_TYPES`.

See Also
--------
cloudsweep.resources.base : The contracts.
"""

from typing import Dict, Iterable, List, Optional, Type

from cloudsweep.resources.base import (
    AWSResource,
    ResourceDeleter,
    ResourceLister,
)
from cloudsweep.resources.ec2 import ElasticIPs, IPAMPools, SecurityGroups
from cloudsweep.resources.elb import LoadBalancers
from cloudsweep.resources.opensearch import OpenSearchDomains

RESOURCE_TYPES: Dict[str, Type[AWSResource]] = {
    cls.resource_type: cls
    for cls in (
        LoadBalancers,
        SecurityGroups,
        ElasticIPs,
        IPAMPools,
        OpenSearchDomains,
    )
}


def select_resource_types(
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> List[Type[AWSResource]]:
    """
    Resolve ``--resource-type`` / ``--exclude-resource-type`` selections.

    Raises
    ------
    KeyError
        If a name is not a registered resource type.
    """
    include = list(include or [])
    exclude = set(exclude or [])

    for name in list(include) + sorted(exclude):
        if name not in RESOURCE_TYPES:
            raise KeyError(name)

    names = include or list(RESOURCE_TYPES)
    return [RESOURCE_TYPES[name] for name in names if name not in exclude]


__all__ = [
    "AWSResource",
    "ElasticIPs",
    "IPAMPools",
    "LoadBalancers",
    "OpenSearchDomains",
    "RESOURCE_TYPES",
    "ResourceDeleter",
    "ResourceLister",
    "SecurityGroups",
    "select_resource_types",
]
