from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from domain.models import (
    ADMIN_NETWORK_POLICY_KIND,
    DEFAULT_NAMESPACE,
    DEFAULT_PROTOCOL,
    NETWORK_POLICY_KIND,
    POLICY_KINDS,
    RULE_ACTIONS,
    AdminNetworkPolicy,
    AdminPeer,
    AdminPolicySpec,
    AdminPort,
    AdminRule,
    BaseAdminNetworkPolicy,
    IPBlock,
    IPBlockPeer,
    LabelSelector,
    NamedPort,
    NamespacePeer,
    NamespacesPeer,
    NetworkPolicy,
    NetworkPolicyEgressRule,
    NetworkPolicyIngressRule,
    NetworkPolicyPeer,
    NetworkPolicyPort,
    NetworkPolicySpec,
    PodPeer,
    PodsPeer,
    Policy,
    PortNumber,
    PortRange,
)
from domain.services.canonicalize_selector import normalize_selector, stringify

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_policy(record: Any) -> Policy | None:
    """Turn one decoded document into a typed policy, or ``None`` if rejected."""
    if not isinstance(record, Mapping):
        return None
    kind = record.get("kind")
    metadata = _as_mapping(record.get("metadata"))
    name = metadata.get("name")
    if kind not in POLICY_KINDS:
        logger.debug("Skipping document with unsupported kind %r", kind)
        return None
    if not isinstance(name, str) or not name:
        logger.debug("Skipping %s document without metadata.name", kind)
        return None

    api_version = record.get("apiVersion")
    api_version = api_version if isinstance(api_version, str) else None
    spec = _as_mapping(record.get("spec"))

    if kind == NETWORK_POLICY_KIND:
        namespace = metadata.get("namespace")
        return NetworkPolicy(
            api_version=api_version,
            name=name,
            namespace=namespace if isinstance(namespace, str) and namespace else DEFAULT_NAMESPACE,
            spec=_normalize_network_policy_spec(spec),
        )
    if kind == ADMIN_NETWORK_POLICY_KIND:
        return AdminNetworkPolicy(
            api_version=api_version,
            name=name,
            priority=_coerce_int(spec.get("priority")) or 0,
            spec=_normalize_admin_spec(spec, name),
        )
    return BaseAdminNetworkPolicy(
        api_version=api_version,
        name=name,
        spec=_normalize_admin_spec(spec, name),
    )


def normalize_policies(records: list[Any]) -> list[Policy]:
    policies: list[Policy] = []
    for record in records:
        policy = normalize_policy(record)
        if policy is not None:
            policies.append(policy)
    return policies


def _normalize_network_policy_spec(spec: Mapping[str, Any]) -> NetworkPolicySpec:
    policy_types = spec.get("policyTypes")
    return NetworkPolicySpec(
        pod_selector=normalize_selector(spec.get("podSelector")),
        policy_types=[stringify(item) for item in policy_types]
        if isinstance(policy_types, list)
        else [],
        ingress=[
            NetworkPolicyIngressRule(peers=peers, ports=ports)
            for peers, ports in _map_list(spec.get("ingress"), _network_rule_parts("from"))
        ],
        egress=[
            NetworkPolicyEgressRule(peers=peers, ports=ports)
            for peers, ports in _map_list(spec.get("egress"), _network_rule_parts("to"))
        ],
    )


def _network_rule_parts(
    peers_field: str,
) -> Callable[[Any], tuple[list[NetworkPolicyPeer], list[NetworkPolicyPort]] | None]:
    def normalize(raw: Any) -> tuple[list[NetworkPolicyPeer], list[NetworkPolicyPort]] | None:
        if not isinstance(raw, Mapping):
            return None
        peers = _map_list(raw.get(peers_field), _normalize_network_peer)
        ports = _map_list(raw.get("ports"), _normalize_network_port)
        if not peers and not ports:
            return None
        return peers, ports

    return normalize


def _normalize_network_peer(raw: Any) -> NetworkPolicyPeer | None:
    if not isinstance(raw, Mapping):
        return None
    pod_selector = normalize_selector(raw.get("podSelector"))
    if pod_selector is not None:
        return PodPeer(selector=pod_selector)
    namespace_selector = normalize_selector(raw.get("namespaceSelector"))
    if namespace_selector is not None:
        return NamespacePeer(selector=namespace_selector)
    ip_block = _normalize_ip_block(raw.get("ipBlock"))
    if ip_block is not None:
        return IPBlockPeer(ip_block=ip_block)
    return None


def _normalize_ip_block(raw: Any) -> IPBlock | None:
    if not isinstance(raw, Mapping):
        return None
    cidr = raw.get("cidr")
    if not isinstance(cidr, str) or not cidr.strip():
        return None
    excepts = raw.get("except")
    return IPBlock(
        cidr=cidr.strip(),
        excepts=[stringify(item) for item in excepts] if isinstance(excepts, list) else [],
    )


def _normalize_network_port(raw: Any) -> NetworkPolicyPort | None:
    if not isinstance(raw, Mapping):
        return None
    protocol = _as_protocol(raw.get("protocol"))
    port: int | str | None = None
    raw_port = raw.get("port")
    if raw_port is not None:
        port = _coerce_int(raw_port)
        if port is None:
            if not isinstance(raw_port, str) or not raw_port.strip():
                return None
            port = raw_port.strip()
    end_port: int | None = None
    if raw.get("endPort") is not None:
        end_port = _coerce_int(raw.get("endPort"))
        if end_port is None:
            return None
    if protocol is None and port is None and end_port is None:
        return None
    return NetworkPolicyPort(protocol=protocol, port=port, end_port=end_port)


def _normalize_admin_spec(spec: Mapping[str, Any], policy_name: str) -> AdminPolicySpec:
    return AdminPolicySpec(
        subject=_normalize_admin_subject(spec.get("subject")),
        ingress=_map_list(spec.get("ingress"), _admin_rule("from", policy_name)),
        egress=_map_list(spec.get("egress"), _admin_rule("to", policy_name)),
    )


def _normalize_admin_subject(raw: Any) -> AdminPeer | None:
    if not isinstance(raw, Mapping):
        return None
    subject = _normalize_admin_peer(raw)
    if subject is not None:
        return subject
    namespace_selector = normalize_selector(raw.get("namespaceSelector"))
    if namespace_selector is not None:
        return NamespacesPeer(namespace_selector=namespace_selector)
    pod_selector = normalize_selector(raw.get("podSelector"))
    if pod_selector is not None:
        return PodsPeer(namespace_selector=LabelSelector(), pod_selector=pod_selector)
    return None


def _admin_rule(peers_field: str, policy_name: str) -> Callable[[Any], AdminRule | None]:
    def normalize(raw: Any) -> AdminRule | None:
        if not isinstance(raw, Mapping):
            return None
        action = _as_action(raw.get("action"))
        peers = _map_list(raw.get(peers_field), _normalize_admin_peer)
        if action is None or not peers:
            logger.debug(
                "Dropping rule %r of %s: action=%r peers=%d",
                raw.get("name"),
                policy_name,
                raw.get("action"),
                len(peers),
            )
            return None
        name = raw.get("name")
        return AdminRule(
            name=name if isinstance(name, str) else None,
            action=action,
            peers=peers,
            ports=_map_list(raw.get("ports"), _normalize_admin_port),
        )

    return normalize


def _normalize_admin_peer(raw: Any) -> AdminPeer | None:
    if not isinstance(raw, Mapping):
        return None
    namespaces = normalize_selector(raw.get("namespaces"))
    if namespaces is not None:
        return NamespacesPeer(namespace_selector=namespaces)
    pods = raw.get("pods")
    if isinstance(pods, Mapping):
        return PodsPeer(
            namespace_selector=normalize_selector(pods.get("namespaceSelector"))
            or LabelSelector(),
            pod_selector=normalize_selector(pods.get("podSelector")) or LabelSelector(),
        )
    return None


def _normalize_admin_port(raw: Any) -> AdminPort | None:
    # The first populated form decides the entry; a malformed form drops it.
    if not isinstance(raw, Mapping):
        return None
    if raw.get("portNumber") is not None:
        port_number = _as_mapping(raw.get("portNumber"))
        port = _coerce_int(port_number.get("port"))
        if port is None:
            return None
        return PortNumber(
            protocol=_as_protocol(port_number.get("protocol")) or DEFAULT_PROTOCOL,
            port=port,
        )
    if raw.get("portRange") is not None:
        port_range = _as_mapping(raw.get("portRange"))
        start = _coerce_int(port_range.get("start"))
        end = _coerce_int(port_range.get("end"))
        if start is None or end is None:
            return None
        return PortRange(
            protocol=_as_protocol(port_range.get("protocol")) or DEFAULT_PROTOCOL,
            start=start,
            end=end,
        )
    named_port = raw.get("namedPort")
    if isinstance(named_port, str) and named_port.strip():
        return NamedPort(name=named_port.strip())
    return None


def _map_list(raw: Any, normalize: Callable[[Any], T | None]) -> list[T]:
    if not isinstance(raw, list):
        return []
    items: list[T] = []
    for item in raw:
        normalized = normalize(item)
        if normalized is not None:
            items.append(normalized)
    return items


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_action(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    action = value.strip().capitalize()
    return action if action in RULE_ACTIONS else None


def _as_protocol(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().upper()


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
