from __future__ import annotations

from adapters.layout.grid import GridLayoutEngine
from domain.models import (
    AdminNetworkPolicy,
    AdminPolicySpec,
    IPBlock,
    IPBlockPeer,
    NetworkPolicy,
    NetworkPolicyIngressRule,
    NetworkPolicyPort,
    NetworkPolicySpec,
    NodeKey,
    Point,
)
from domain.services.extract_policy_graph import (
    PolicyGraphExtractor,
    count_rule_peers,
    format_network_port,
)
from domain.services.normalize_policy import normalize_policies
from tests.helpers.policy_fixtures import (
    admin_namespaces_peer,
    admin_pods_peer,
    admin_policy_record,
    namespace_peer,
    network_policy_record,
    pod_peer,
)


def test_api_allow_scenario_yields_two_nodes_and_one_edge(
    extractor: PolicyGraphExtractor,
) -> None:
    policies = normalize_policies(
        [
            network_policy_record(
                ingress=[
                    {
                        "from": [pod_peer(app="frontend")],
                        "ports": [{"protocol": "TCP", "port": 8080}],
                    }
                ]
            )
        ]
    )

    data = extractor.extract(policies)

    assert [(node.label, node.namespace, node.type) for node in data.nodes] == [
        ("pods: app=api", "default", "pod"),
        ("pods: app=frontend", "default", "pod"),
    ]
    assert len(data.edges) == 1
    edge = data.edges[0]
    nodes = {node.label: node for node in data.nodes}
    assert edge.source == nodes["pods: app=frontend"].id
    assert edge.target == nodes["pods: app=api"].id
    assert edge.type == "ingress"
    assert edge.ports == ["TCP:8080"]
    assert edge.action is None
    assert edge.policy_name == "api-allow"
    assert edge.policy_kind == "NetworkPolicy"


def test_same_identity_resolves_to_one_node(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            network_policy_record(
                name="one",
                ingress=[{"from": [pod_peer(app="web"), pod_peer(app="web")]}],
            ),
            network_policy_record(
                name="two",
                pod_labels={"app": "web"},
                egress=[{"to": [pod_peer(app="api")]}],
            ),
        ]
    )

    data = extractor.extract(policies)

    assert len(data.nodes) == 2
    assert len(data.edges) == 3
    api, web = data.nodes
    assert api.key == NodeKey("pod", "default", "pods: app=api")
    assert web.key == NodeKey("pod", "default", "pods: app=web")
    assert [(edge.source, edge.target, edge.type) for edge in data.edges] == [
        (web.id, api.id, "ingress"),
        (web.id, api.id, "ingress"),
        (web.id, api.id, "egress"),
    ]


def test_namespace_scopes_pod_identity(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            network_policy_record(name="a", namespace="team-a"),
            network_policy_record(name="b", namespace="team-b"),
        ]
    )

    data = extractor.extract(policies)

    assert [node.key for node in data.nodes] == [
        NodeKey("pod", "team-a", "pods: app=api"),
        NodeKey("pod", "team-b", "pods: app=api"),
    ]


def test_network_peer_kinds_map_to_node_types(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            network_policy_record(
                ingress=[
                    {
                        "from": [
                            namespace_peer(team="ops"),
                            {"ipBlock": {"cidr": "192.168.0.0/16"}},
                            {"podSelector": {}},
                        ]
                    }
                ]
            )
        ]
    )

    data = extractor.extract(policies)

    assert [(node.type, node.label, node.namespace) for node in data.nodes] == [
        ("pod", "pods: app=api", "default"),
        ("namespace", "ns: team=ops", None),
        ("external", "CIDR: 192.168.0.0/16", None),
        ("pod", "pods: any", "default"),
    ]
    assert data.nodes[2].key == NodeKey("external", "global", "CIDR: 192.168.0.0/16")
    assert data.nodes[2].selector is None


def test_missing_pod_selector_renders_any(extractor: PolicyGraphExtractor) -> None:
    policy = NetworkPolicy(
        name="bare",
        namespace="web",
        spec=NetworkPolicySpec(
            ingress=[
                NetworkPolicyIngressRule(
                    peers=[IPBlockPeer(ip_block=IPBlock(cidr="0.0.0.0/0"))],
                    ports=[NetworkPolicyPort(protocol="UDP", port=53)],
                )
            ]
        ),
    )

    data = extractor.extract([policy])

    assert data.nodes[0].label == "pods: any"
    assert data.edges[0].ports == ["UDP:53"]


def test_admin_edges_carry_action_and_formatted_ports(
    extractor: PolicyGraphExtractor,
) -> None:
    policies = normalize_policies(
        [
            admin_policy_record(
                ingress=[
                    {
                        "action": "allow",
                        "from": [admin_namespaces_peer(app="monitoring")],
                        "ports": [
                            {"portNumber": {"protocol": "tcp", "port": 80}},
                            {"portRange": {"protocol": "udp", "start": 100, "end": 200}},
                            {"namedPort": "https"},
                        ],
                    }
                ],
                egress=[
                    {
                        "action": "Deny",
                        "to": [admin_pods_peer({"env": "x"}, app="db")],
                    }
                ],
            )
        ]
    )

    data = extractor.extract(policies)

    assert [(node.type, node.label, node.namespace) for node in data.nodes] == [
        ("namespace", "ns: environment=production", None),
        ("namespace", "ns: app=monitoring", None),
        ("pod", "pods: app=db", None),
    ]
    ingress, egress = data.edges
    assert ingress.action == "Allow"
    assert ingress.ports == ["TCP:80", "UDP:100-200", "named:https"]
    assert ingress.source == data.nodes[1].id
    assert ingress.target == data.nodes[0].id
    assert egress.action == "Deny"
    assert egress.ports is None
    assert egress.source == data.nodes[0].id
    assert egress.target == data.nodes[2].id
    assert egress.policy_kind == "AdminNetworkPolicy"


def test_invalid_admin_rule_contributes_nothing(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            admin_policy_record(
                ingress=[
                    {"action": "Reject", "from": [admin_namespaces_peer(app="ghost")]},
                    {"action": "Pass", "from": [admin_namespaces_peer(app="real")]},
                ]
            )
        ]
    )

    data = extractor.extract(policies)

    assert [node.label for node in data.nodes] == [
        "ns: environment=production",
        "ns: app=real",
    ]
    assert [edge.action for edge in data.edges] == ["Pass"]


def test_admin_subject_with_namespaces_and_pods_uses_namespaces(
    extractor: PolicyGraphExtractor,
) -> None:
    # Preference for namespaces is inherited behavior rather than a derived rule.
    policies = normalize_policies(
        [
            admin_policy_record(
                subject={
                    "namespaces": {"matchLabels": {"env": "prod"}},
                    "pods": {"podSelector": {"matchLabels": {"app": "api"}}},
                }
            )
        ]
    )

    data = extractor.extract(policies)

    assert [(node.type, node.label) for node in data.nodes] == [("namespace", "ns: env=prod")]


def test_admin_policy_without_subject_targets_any_pod(extractor: PolicyGraphExtractor) -> None:
    policy = AdminNetworkPolicy(name="orphan", spec=AdminPolicySpec())

    data = extractor.extract([policy])

    assert [(node.type, node.label) for node in data.nodes] == [("pod", "pods: any")]
    assert data.edges == []


def test_baseline_policy_edges_keep_kind(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            admin_policy_record(
                name="default",
                kind="BaseAdminNetworkPolicy",
                subject={"namespaces": {}},
                ingress=[{"action": "Deny", "from": [{"namespaces": {}}]}],
            )
        ]
    )

    data = extractor.extract(policies)

    assert len(data.nodes) == 1
    assert data.nodes[0].label == "ns: any"
    edge = data.edges[0]
    assert edge.source == edge.target == data.nodes[0].id
    assert edge.policy_kind == "BaseAdminNetworkPolicy"
    assert edge.action == "Deny"


def test_edge_count_matches_rule_peers_and_order(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            network_policy_record(
                name="np",
                ingress=[{"from": [pod_peer(app="a"), pod_peer(app="b")]}],
                egress=[{"to": [pod_peer(app="c")]}, {"to": [namespace_peer(x="y")]}],
            ),
            admin_policy_record(
                name="anp",
                ingress=[{"action": "Allow", "from": [admin_namespaces_peer(app="m")]}],
                egress=[
                    {
                        "action": "Pass",
                        "to": [admin_namespaces_peer(a="1"), admin_namespaces_peer(a="2")],
                    }
                ],
            ),
        ]
    )

    data = extractor.extract(policies)

    assert len(data.edges) == count_rule_peers(policies) == 7
    assert [(edge.policy_name, edge.type) for edge in data.edges] == [
        ("np", "ingress"),
        ("np", "ingress"),
        ("np", "egress"),
        ("np", "egress"),
        ("anp", "ingress"),
        ("anp", "egress"),
        ("anp", "egress"),
    ]
    assert [edge.id for edge in data.edges] == [f"edge-{idx}" for idx in range(7)]


def test_repeated_extraction_is_deterministic(extractor: PolicyGraphExtractor) -> None:
    policies = normalize_policies(
        [
            network_policy_record(
                ingress=[{"from": [pod_peer(app="web"), namespace_peer(team="a")]}],
            ),
            admin_policy_record(
                egress=[{"action": "Deny", "to": [admin_namespaces_peer(zone="dmz")]}],
            ),
        ]
    )

    first = extractor.extract(policies)
    second = extractor.extract(policies)

    assert first.to_dict() == second.to_dict()
    assert first.nodes == second.nodes
    assert first.edges == second.edges


def test_nodes_are_placed_on_grid_in_creation_order() -> None:
    extractor = PolicyGraphExtractor(GridLayoutEngine())
    policies = normalize_policies(
        [
            network_policy_record(
                ingress=[{"from": [pod_peer(app=f"p{idx}") for idx in range(6)]}],
            )
        ]
    )

    data = extractor.extract(policies)

    assert [node.index for node in data.nodes] == list(range(7))
    assert data.nodes[0].placement.position == Point(100.0, 100.0)
    assert data.nodes[4].placement.position == Point(900.0, 100.0)
    assert data.nodes[5].placement.position == Point(100.0, 250.0)
    assert data.nodes[6].placement.position == Point(300.0, 250.0)


def test_empty_policy_list_returns_empty_graph(extractor: PolicyGraphExtractor) -> None:
    data = extractor.extract([])

    assert data.nodes == []
    assert data.edges == []
    assert data.to_dict() == {
        "nodes": [],
        "edges": [],
        "meta": {"node_count": 0, "edge_count": 0},
    }


def test_network_port_formatting_defaults() -> None:
    assert format_network_port(NetworkPolicyPort(port=443)) == "TCP:443"
    assert format_network_port(NetworkPolicyPort(protocol="SCTP", port="diameter")) == (
        "SCTP:diameter"
    )
    assert format_network_port(NetworkPolicyPort(protocol="UDP")) == "UDP:any"


def test_node_to_dict_shape(extractor: PolicyGraphExtractor) -> None:
    data = extractor.extract(normalize_policies([network_policy_record()]))

    payload = data.to_dict()["nodes"][0]

    assert payload["id"] == "node-0"
    assert payload["type"] == "pod"
    assert payload["label"] == "pods: app=api"
    assert payload["namespace"] == "default"
    assert payload["selector"] == {"matchLabels": {"app": "api"}}
    assert (payload["x"], payload["y"]) == (100.0, 100.0)
    assert payload["width"] >= 80


def test_node_selector_serializes_with_manifest_field_names(
    extractor: PolicyGraphExtractor,
) -> None:
    peer = {
        "podSelector": {
            "matchExpressions": [{"key": "tier", "operator": "In", "values": ["web"]}],
        }
    }
    data = extractor.extract(
        normalize_policies([network_policy_record(ingress=[{"from": [peer]}])])
    )

    payload = data.to_dict()["nodes"][1]

    assert payload["label"] == "pods: tier In web"
    assert payload["selector"] == {
        "matchExpressions": [{"key": "tier", "operator": "In", "values": ["web"]}],
    }
