from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List

from domain.errors import NoValidPoliciesError
from domain.models import Policy, VisualizationData
from domain.ports.documents import DocumentDecoder
from domain.services.extract_policy_graph import PolicyGraphExtractor
from domain.services.normalize_policy import normalize_policies

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyVisualization:
    policies: List[Policy]
    data: VisualizationData

    def to_dict(self) -> dict[str, Any]:
        payload = self.data.to_dict()
        payload["summary"] = {
            "policies": len(self.policies),
            "nodes": len(self.data.nodes),
            "edges": len(self.data.edges),
        }
        return payload


class VisualizePolicies:
    def __init__(self, decoder: DocumentDecoder, extractor: PolicyGraphExtractor) -> None:
        self.decoder = decoder
        self.extractor = extractor

    def load(self, text: str) -> list[Policy]:
        records = self.decoder.decode(text)
        policies = normalize_policies(records)
        logger.debug("Normalized %d of %d documents", len(policies), len(records))
        if not policies:
            raise NoValidPoliciesError()
        return policies

    def visualize(self, text: str) -> PolicyVisualization:
        policies = self.load(text)
        return PolicyVisualization(policies=policies, data=self.extractor.extract(policies))
