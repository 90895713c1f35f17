"""
OpenSearch Domains
==================

Domains carry no usable creation timestamp, so age comes from the
first-seen tag. Tags are addressed by domain ARN while deletes use the
domain name; the ARN of every listed domain is remembered for tagging.

Deletion is asynchronous. A domain being torn down is still returned by
``DescribeDomains`` until it is gone, so confirmation polls until the
queried names no longer appear.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Sequence

from cloudsweep.core.models import ResourceCandidate
from cloudsweep.resources.base import AWSResource, tags_to_dict

logger = logging.getLogger(__name__)

# DescribeDomains accepts at most 5 domain names per call
DESCRIBE_DOMAINS_BATCH = 5


class OpenSearchDomains(AWSResource):
    """Amazon OpenSearch Service domains."""

    resource_type = "opensearch-domain"
    service_name = "opensearch"
    supports_tagging = True
    requires_confirmation = True
    not_found_codes = frozenset({"ResourceNotFoundException"})

    def __init__(self, aws_client) -> None:
        super().__init__(aws_client)
        self._arns: Dict[str, str] = {}

    def _describe(self, names: Sequence[str]) -> List[dict]:
        statuses = []
        for start in range(0, len(names), DESCRIBE_DOMAINS_BATCH):
            chunk = list(names[start:start + DESCRIBE_DOMAINS_BATCH])
            response = self.client.describe_domains(DomainNames=chunk)
            statuses.extend(response.get("DomainStatusList", []))
        return statuses

    def list_candidates(self) -> Iterator[List[ResourceCandidate]]:
        """
        One batch of live domains, in ``ListDomainNames`` order.

        ``DescribeDomains`` answers in its own order, so its statuses are
        put back into the order the names were listed.
        """
        response = self.client.list_domain_names()
        names = [d["DomainName"] for d in response.get("DomainNames", [])]
        if not names:
            return

        position = {name: index for index, name in enumerate(names)}
        statuses = sorted(
            self._describe(names),
            key=lambda s: position.get(s["DomainName"], len(position)),
        )

        batch = []
        for status in statuses:
            # Domains already being deleted are left alone
            if status.get("Deleted"):
                continue
            name = status["DomainName"]
            arn = status.get("ARN")
            tags: Dict[str, str] = {}
            if arn:
                self._arns[name] = arn
                tags = tags_to_dict(self.client.list_tags(ARN=arn).get("TagList"))
            batch.append(ResourceCandidate(identifier=name, tags=tags))
        yield batch

    def tag_resource(self, identifier: str, key: str, value: str) -> None:
        arn = self._arns.get(identifier)
        if arn is None:
            raise KeyError(f"No ARN known for OpenSearch domain {identifier}")
        self.client.add_tags(ARN=arn, TagList=[{"Key": key, "Value": value}])

    def delete(self, identifier: str) -> None:
        self.client.delete_domain(DomainName=identifier)

    def describe_survivors(self, identifiers: Sequence[str]) -> List[str]:
        return [status["DomainName"] for status in self._describe(identifiers)]
