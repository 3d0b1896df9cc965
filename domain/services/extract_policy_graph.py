from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from domain.models import (
    ANY_LABEL,
    DEFAULT_PROTOCOL,
    GLOBAL_NAMESPACE,
    AdminNetworkPolicy,
    AdminPeer,
    AdminPort,
    AdminRule,
    BaseAdminNetworkPolicy,
    EdgeDirection,
    IPBlockPeer,
    LabelSelector,
    NamedPort,
    NamespacePeer,
    NamespacesPeer,
    NetworkPolicy,
    NetworkPolicyPeer,
    NetworkPolicyPort,
    NodeKey,
    NodeType,
    PodPeer,
    PodsPeer,
    Policy,
    PortNumber,
    PortRange,
    RuleAction,
    VisualEdge,
    VisualizationData,
    VisualNode,
)
from domain.ports.layout import NodeLayoutEngine
from domain.services.canonicalize_selector import selector_text


@dataclass
class ExtractionContext:
    layout: NodeLayoutEngine
    nodes: list[VisualNode] = field(default_factory=list)
    edges: list[VisualEdge] = field(default_factory=list)
    nodes_by_key: dict[NodeKey, VisualNode] = field(default_factory=dict)

    def node(
        self,
        node_type: NodeType,
        label: str,
        namespace: str | None = None,
        selector: LabelSelector | None = None,
    ) -> VisualNode:
        key = NodeKey(node_type, namespace or GLOBAL_NAMESPACE, label)
        existing = self.nodes_by_key.get(key)
        if existing is not None:
            return existing
        index = len(self.nodes)
        node = VisualNode(
            id=f"node-{index}",
            key=key,
            type=node_type,
            label=label,
            index=index,
            placement=self.layout.place(index, label, namespace),
            namespace=namespace,
            selector=selector,
        )
        self.nodes_by_key[key] = node
        self.nodes.append(node)
        return node

    def edge(
        self,
        source: VisualNode,
        target: VisualNode,
        direction: EdgeDirection,
        policy: Policy,
        *,
        action: RuleAction | None = None,
        ports: list[str] | None = None,
    ) -> VisualEdge:
        edge = VisualEdge(
            id=f"edge-{len(self.edges)}",
            source=source.id,
            target=target.id,
            type=direction,
            policy_name=policy.name,
            policy_kind=policy.kind,
            action=action,
            ports=ports or None,
        )
        self.edges.append(edge)
        return edge

    def result(self) -> VisualizationData:
        return VisualizationData(nodes=list(self.nodes), edges=list(self.edges))


class PolicyGraphExtractor:
    def __init__(self, layout: NodeLayoutEngine) -> None:
        self.layout = layout

    def extract(self, policies: Iterable[Policy]) -> VisualizationData:
        context = ExtractionContext(layout=self.layout)
        for policy in policies:
            if isinstance(policy, NetworkPolicy):
                self._extract_network_policy(context, policy)
            elif isinstance(policy, (AdminNetworkPolicy, BaseAdminNetworkPolicy)):
                self._extract_admin_policy(context, policy)
        return context.result()

    def _extract_network_policy(self, context: ExtractionContext, policy: NetworkPolicy) -> None:
        subject = context.node(
            "pod",
            pod_label(policy.spec.pod_selector),
            policy.namespace,
            policy.spec.pod_selector,
        )
        for ingress_rule in policy.spec.ingress:
            ports = [format_network_port(port) for port in ingress_rule.ports]
            for peer in ingress_rule.peers:
                source = self._network_peer_node(context, peer, policy.namespace)
                context.edge(source, subject, "ingress", policy, ports=ports)
        for egress_rule in policy.spec.egress:
            ports = [format_network_port(port) for port in egress_rule.ports]
            for peer in egress_rule.peers:
                target = self._network_peer_node(context, peer, policy.namespace)
                context.edge(subject, target, "egress", policy, ports=ports)

    def _extract_admin_policy(
        self,
        context: ExtractionContext,
        policy: AdminNetworkPolicy | BaseAdminNetworkPolicy,
    ) -> None:
        subject = self._admin_peer_node(context, policy.spec.subject)
        for rule in policy.spec.ingress:
            ports = _admin_ports(rule)
            for peer in rule.peers:
                source = self._admin_peer_node(context, peer)
                context.edge(source, subject, "ingress", policy, action=rule.action, ports=ports)
        for rule in policy.spec.egress:
            ports = _admin_ports(rule)
            for peer in rule.peers:
                target = self._admin_peer_node(context, peer)
                context.edge(subject, target, "egress", policy, action=rule.action, ports=ports)

    def _network_peer_node(
        self, context: ExtractionContext, peer: NetworkPolicyPeer, namespace: str
    ) -> VisualNode:
        if isinstance(peer, PodPeer):
            return context.node("pod", pod_label(peer.selector), namespace, peer.selector)
        if isinstance(peer, NamespacePeer):
            return context.node("namespace", namespace_label(peer.selector), None, peer.selector)
        if isinstance(peer, IPBlockPeer):
            return context.node("external", f"CIDR: {peer.ip_block.cidr}")
        return context.node("external", ANY_LABEL)

    def _admin_peer_node(self, context: ExtractionContext, peer: AdminPeer | None) -> VisualNode:
        # Namespace selection wins over pod selection when a record carried both.
        if isinstance(peer, NamespacesPeer):
            return context.node(
                "namespace",
                namespace_label(peer.namespace_selector),
                None,
                peer.namespace_selector,
            )
        if isinstance(peer, PodsPeer):
            return context.node("pod", pod_label(peer.pod_selector), None, peer.pod_selector)
        return context.node("pod", pod_label(None))


def pod_label(selector: LabelSelector | None) -> str:
    return f"pods: {selector_text(selector)}"


def namespace_label(selector: LabelSelector | None) -> str:
    return f"ns: {selector_text(selector)}"


def format_network_port(port: NetworkPolicyPort) -> str:
    protocol = port.protocol or DEFAULT_PROTOCOL
    if port.port is None:
        return f"{protocol}:{ANY_LABEL}"
    return f"{protocol}:{port.port}"


def format_admin_port(port: AdminPort) -> str:
    if isinstance(port, PortNumber):
        return f"{port.protocol}:{port.port}"
    if isinstance(port, PortRange):
        return f"{port.protocol}:{port.start}-{port.end}"
    if isinstance(port, NamedPort):
        return f"named:{port.name}"
    msg = f"Unsupported admin port: {port!r}"
    raise TypeError(msg)


def _admin_ports(rule: AdminRule) -> list[str]:
    return [format_admin_port(port) for port in rule.ports]


def count_rule_peers(policies: Sequence[Policy]) -> int:
    total = 0
    for policy in policies:
        for rule in [*policy.spec.ingress, *policy.spec.egress]:
            total += len(rule.peers)
    return total
