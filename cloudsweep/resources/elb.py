"""
Classic Load Balancers
======================

Classic ELBs expose a native ``CreatedTime``, so no first-seen tag is
written. Deletion is asynchronous: after the delete calls are issued the
surviving names are polled until the API answers ``LoadBalancerNotFound``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Sequence

from cloudsweep.core.models import ResourceCandidate
from cloudsweep.resources.base import AWSResource, tags_to_dict

logger = logging.getLogger(__name__)

# DescribeTags accepts at most 20 load balancer names per call
DESCRIBE_TAGS_BATCH = 20


class LoadBalancers(AWSResource):
    """Classic Elastic Load Balancers (v1)."""

    resource_type = "elb"
    service_name = "elb"
    requires_confirmation = True
    not_found_codes = frozenset({"LoadBalancerNotFound"})

    def _describe_tags(self, names: List[str]) -> Dict[str, Dict[str, str]]:
        tags: Dict[str, Dict[str, str]] = {}
        for start in range(0, len(names), DESCRIBE_TAGS_BATCH):
            chunk = names[start:start + DESCRIBE_TAGS_BATCH]
            response = self.client.describe_tags(LoadBalancerNames=chunk)
            for description in response.get("TagDescriptions", []):
                tags[description["LoadBalancerName"]] = tags_to_dict(description.get("Tags"))
        return tags

    def list_candidates(self) -> Iterator[List[ResourceCandidate]]:
        paginator = self.client.get_paginator("describe_load_balancers")
        for page in paginator.paginate():
            balancers = page.get("LoadBalancerDescriptions", [])
            if not balancers:
                continue
            tags = self._describe_tags([b["LoadBalancerName"] for b in balancers])
            yield [
                ResourceCandidate(
                    identifier=balancer["LoadBalancerName"],
                    created_at=balancer.get("CreatedTime"),
                    tags=tags.get(balancer["LoadBalancerName"], {}),
                )
                for balancer in balancers
            ]

    def delete(self, identifier: str) -> None:
        self.client.delete_load_balancer(LoadBalancerName=identifier)

    def describe_survivors(self, identifiers: Sequence[str]) -> List[str]:
        response = self.client.describe_load_balancers(LoadBalancerNames=list(identifiers))
        return [b["LoadBalancerName"] for b in response.get("LoadBalancerDescriptions", [])]
