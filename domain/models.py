from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Literal, NamedTuple, Optional, Union

from pydantic import BaseModel, Field

NETWORK_POLICY_KIND = "NetworkPolicy"
ADMIN_NETWORK_POLICY_KIND = "AdminNetworkPolicy"
BASELINE_ADMIN_NETWORK_POLICY_KIND = "BaseAdminNetworkPolicy"
POLICY_KINDS = (
    NETWORK_POLICY_KIND,
    ADMIN_NETWORK_POLICY_KIND,
    BASELINE_ADMIN_NETWORK_POLICY_KIND,
)

DEFAULT_NAMESPACE = "default"
GLOBAL_NAMESPACE = "global"
ANY_LABEL = "any"
DEFAULT_PROTOCOL = "TCP"

RuleAction = Literal["Allow", "Deny", "Pass"]
RULE_ACTIONS: tuple[str, ...] = ("Allow", "Deny", "Pass")
NodeType = Literal["namespace", "pod", "external"]
EdgeDirection = Literal["ingress", "egress"]


class MatchExpression(BaseModel):
    key: str
    operator: str
    values: Optional[List[str]] = None


class LabelSelector(BaseModel):
    match_labels: Optional[Dict[str, str]] = Field(
        default=None, serialization_alias="matchLabels"
    )
    match_expressions: Optional[List[MatchExpression]] = Field(
        default=None, serialization_alias="matchExpressions"
    )

    def is_empty(self) -> bool:
        return not self.match_labels and not self.match_expressions


class IPBlock(BaseModel):
    cidr: str
    excepts: List[str] = Field(default_factory=list)


class PodPeer(BaseModel):
    peer_type: Literal["pod"] = "pod"
    selector: LabelSelector


class NamespacePeer(BaseModel):
    peer_type: Literal["namespace"] = "namespace"
    selector: LabelSelector


class IPBlockPeer(BaseModel):
    peer_type: Literal["ip_block"] = "ip_block"
    ip_block: IPBlock


NetworkPolicyPeer = Annotated[
    Union[PodPeer, NamespacePeer, IPBlockPeer], Field(discriminator="peer_type")
]


class NetworkPolicyPort(BaseModel):
    protocol: Optional[str] = None
    port: Optional[Union[int, str]] = None
    end_port: Optional[int] = None


class NetworkPolicyIngressRule(BaseModel):
    peers: List[NetworkPolicyPeer] = Field(default_factory=list)
    ports: List[NetworkPolicyPort] = Field(default_factory=list)


class NetworkPolicyEgressRule(BaseModel):
    peers: List[NetworkPolicyPeer] = Field(default_factory=list)
    ports: List[NetworkPolicyPort] = Field(default_factory=list)


class NetworkPolicySpec(BaseModel):
    pod_selector: Optional[LabelSelector] = None
    policy_types: List[str] = Field(default_factory=list)
    ingress: List[NetworkPolicyIngressRule] = Field(default_factory=list)
    egress: List[NetworkPolicyEgressRule] = Field(default_factory=list)


class NetworkPolicy(BaseModel):
    kind: Literal["NetworkPolicy"] = "NetworkPolicy"
    api_version: Optional[str] = None
    name: str = Field(..., min_length=1)
    namespace: str = DEFAULT_NAMESPACE
    spec: NetworkPolicySpec = Field(default_factory=NetworkPolicySpec)


class NamespacesPeer(BaseModel):
    peer_type: Literal["namespaces"] = "namespaces"
    namespace_selector: LabelSelector


class PodsPeer(BaseModel):
    peer_type: Literal["pods"] = "pods"
    namespace_selector: LabelSelector = Field(default_factory=LabelSelector)
    pod_selector: LabelSelector = Field(default_factory=LabelSelector)


# Admin subjects share the peer shapes.
AdminPeer = Annotated[Union[NamespacesPeer, PodsPeer], Field(discriminator="peer_type")]


class PortNumber(BaseModel):
    port_type: Literal["port_number"] = "port_number"
    protocol: str = DEFAULT_PROTOCOL
    port: int


class PortRange(BaseModel):
    port_type: Literal["port_range"] = "port_range"
    protocol: str = DEFAULT_PROTOCOL
    start: int
    end: int


class NamedPort(BaseModel):
    port_type: Literal["named_port"] = "named_port"
    name: str = Field(..., min_length=1)


AdminPort = Annotated[
    Union[PortNumber, PortRange, NamedPort], Field(discriminator="port_type")
]


class AdminRule(BaseModel):
    name: Optional[str] = None
    action: RuleAction
    peers: List[AdminPeer] = Field(..., min_length=1)
    ports: List[AdminPort] = Field(default_factory=list)


class AdminPolicySpec(BaseModel):
    subject: Optional[AdminPeer] = None
    ingress: List[AdminRule] = Field(default_factory=list)
    egress: List[AdminRule] = Field(default_factory=list)


class AdminNetworkPolicy(BaseModel):
    kind: Literal["AdminNetworkPolicy"] = "AdminNetworkPolicy"
    api_version: Optional[str] = None
    name: str = Field(..., min_length=1)
    priority: int = 0
    spec: AdminPolicySpec = Field(default_factory=AdminPolicySpec)


class BaseAdminNetworkPolicy(BaseModel):
    kind: Literal["BaseAdminNetworkPolicy"] = "BaseAdminNetworkPolicy"
    api_version: Optional[str] = None
    name: str = Field(..., min_length=1)
    spec: AdminPolicySpec = Field(default_factory=AdminPolicySpec)


Policy = Annotated[
    Union[NetworkPolicy, AdminNetworkPolicy, BaseAdminNetworkPolicy],
    Field(discriminator="kind"),
]


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class NodePlacement:
    position: Point
    size: Size


class NodeKey(NamedTuple):
    kind: str
    namespace: str
    label: str


@dataclass(frozen=True)
class VisualNode:
    id: str
    key: NodeKey
    type: NodeType
    label: str
    index: int
    placement: NodePlacement
    namespace: str | None = None
    selector: LabelSelector | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "x": self.placement.position.x,
            "y": self.placement.position.y,
            "width": self.placement.size.width,
            "height": self.placement.size.height,
        }
        if self.namespace is not None:
            payload["namespace"] = self.namespace
        if self.selector is not None:
            payload["selector"] = self.selector.model_dump(by_alias=True, exclude_none=True)
        return payload


@dataclass(frozen=True)
class VisualEdge:
    id: str
    source: str
    target: str
    type: EdgeDirection
    policy_name: str
    policy_kind: str
    action: RuleAction | None = None
    ports: List[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "policyName": self.policy_name,
            "policyKind": self.policy_kind,
        }
        if self.action is not None:
            payload["action"] = self.action
        if self.ports is not None:
            payload["ports"] = list(self.ports)
        return payload


@dataclass(frozen=True)
class VisualizationData:
    nodes: List[VisualNode]
    edges: List[VisualEdge]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "meta": {
                "node_count": len(self.nodes),
                "edge_count": len(self.edges),
            },
        }
