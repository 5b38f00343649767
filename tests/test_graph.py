"""Unit tests for tools.graph — cluster nodes, links and the force layout."""
import pytest

from tools.graph import (
    MAX_RADIUS,
    MIN_RADIUS,
    Link,
    Node,
    build_cluster_graph,
    build_links,
    build_nodes,
    force_layout,
    jaccard,
)

CLUSTERS = [
    {"id": "a", "cluster_name": "Reporting", "count": 10, "industries": ["SaaS"], "companies": ["Acme"]},
    {"id": "b", "cluster_name": "Onboarding", "count": 5, "industries": ["SaaS"], "companies": ["Beta"]},
    {"id": "c", "cluster_name": "Billing", "count": 0, "industries": ["Retail"], "companies": ["Gamma"]},
]


class TestJaccard:
    def test_overlap(self):
        assert jaccard({1, 2}, {2, 3}) == pytest.approx(1 / 3)

    def test_empty_sets(self):
        assert jaccard(set(), set()) == 0.0


class TestBuildNodes:
    def test_radius_scales_with_count(self):
        nodes = build_nodes(CLUSTERS)
        assert [n.id for n in nodes] == ["a", "b", "c"]
        assert nodes[0].radius == MAX_RADIUS
        assert nodes[1].radius == pytest.approx((MIN_RADIUS + MAX_RADIUS) / 2)
        assert nodes[2].radius == MIN_RADIUS

    def test_all_zero_counts(self):
        nodes = build_nodes([{"id": "x", "cluster_name": "X", "count": 0}])
        assert nodes[0].radius == MIN_RADIUS


class TestBuildLinks:
    def test_links_only_clusters_sharing_tags(self):
        links = build_links(CLUSTERS)
        assert len(links) == 1
        link = links[0]
        assert (link.source, link.target) == (0, 1)
        # Shared: industry SaaS; union: SaaS, Acme, Beta.
        assert link.strength == pytest.approx(1 / 3)

    def test_industry_and_company_with_same_name_are_distinct(self):
        clusters = [
            {"industries": ["Acme"], "companies": []},
            {"industries": [], "companies": ["Acme"]},
        ]
        assert build_links(clusters) == []


class TestForceLayout:
    def test_nodes_stay_inside_canvas(self):
        nodes = [Node(id=str(i), name=str(i), count=1, radius=30) for i in range(8)]
        links = [Link(source=0, target=i, strength=1.0) for i in range(1, 8)]
        force_layout(nodes, links, 400, 300)
        for node in nodes:
            assert node.radius <= node.x <= 400 - node.radius
            assert node.radius <= node.y <= 300 - node.radius

    def test_empty(self):
        assert force_layout([], [], 800, 600) == []

    def test_deterministic(self):
        first = build_cluster_graph(CLUSTERS)
        second = build_cluster_graph(CLUSTERS)
        assert first == second


class TestBuildClusterGraph:
    def test_links_reference_node_ids(self):
        graph = build_cluster_graph(CLUSTERS, width=1000, height=500)
        assert graph["width"] == 1000
        assert graph["height"] == 500
        assert {n["id"] for n in graph["nodes"]} == {"a", "b", "c"}
        assert graph["links"] == [{"source": "a", "target": "b", "strength": pytest.approx(1 / 3)}]
