"""Force-directed layout for the pain point cluster graph.

Pure functions: positions only, no drawing. The same input always produces
the same output.
"""
import math
from dataclasses import asdict, dataclass
from typing import Any, Iterable

MIN_RADIUS = 20.0
MAX_RADIUS = 50.0
REPULSION = 2000.0
ATTRACTION = 0.05


@dataclass
class Node:
    id: str
    name: str
    count: int
    radius: float
    x: float = 0.0
    y: float = 0.0


@dataclass
class Link:
    source: int
    target: int
    strength: float


def _get(cluster: Any, key: str, default=None):
    if isinstance(cluster, dict):
        return cluster.get(key, default)
    return getattr(cluster, key, default)


def jaccard(a: set, b: set) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def build_nodes(clusters: list[Any]) -> list[Node]:
    """One node per cluster; radius scales linearly with count."""
    counts = [int(_get(c, "count", 0) or 0) for c in clusters]
    top = max(counts, default=0)
    nodes = []
    for cluster, count in zip(clusters, counts):
        scale = count / top if top else 0.0
        nodes.append(Node(
            id=str(_get(cluster, "id", "") or _get(cluster, "cluster_name", "")),
            name=_get(cluster, "cluster_name", ""),
            count=count,
            radius=MIN_RADIUS + (MAX_RADIUS - MIN_RADIUS) * scale,
        ))
    return nodes


def build_links(clusters: list[Any]) -> list[Link]:
    """Link clusters sharing industries or companies; strength is their Jaccard overlap."""
    tags = [
        {("industry", i) for i in _get(c, "industries", None) or []}
        | {("company", name) for name in _get(c, "companies", None) or []}
        for c in clusters
    ]
    links = []
    for a in range(len(clusters)):
        for b in range(a + 1, len(clusters)):
            strength = jaccard(tags[a], tags[b])
            if strength > 0:
                links.append(Link(source=a, target=b, strength=strength))
    return links


def force_layout(
    nodes: list[Node],
    links: Iterable[Link],
    width: float,
    height: float,
    iterations: int = 100,
) -> list[Node]:
    """Place nodes in place and return them.

    Nodes start on a circle around the centre; each iteration pushes every
    pair apart by REPULSION / d**2, pulls linked pairs together by
    d * strength * ATTRACTION, then clamps each node inside the canvas.
    """
    links = list(links)
    if not nodes:
        return nodes

    cx, cy = width / 2, height / 2
    ring = min(width, height) * 0.35
    for i, node in enumerate(nodes):
        angle = (i / len(nodes)) * 2 * math.pi
        node.x = cx + ring * math.cos(angle)
        node.y = cy + ring * math.sin(angle)

    for _ in range(iterations):
        for a in range(len(nodes)):
            for b in range(a + 1, len(nodes)):
                na, nb = nodes[a], nodes[b]
                dx, dy = nb.x - na.x, nb.y - na.y
                distance = math.hypot(dx, dy) or 1.0
                force = REPULSION / (distance * distance)
                fx, fy = dx / distance * force, dy / distance * force
                na.x -= fx
                na.y -= fy
                nb.x += fx
                nb.y += fy

        for link in links:
            source, target = nodes[link.source], nodes[link.target]
            dx, dy = target.x - source.x, target.y - source.y
            distance = math.hypot(dx, dy) or 1.0
            force = distance * link.strength * ATTRACTION
            fx, fy = dx / distance * force, dy / distance * force
            source.x += fx
            source.y += fy
            target.x -= fx
            target.y -= fy

        for node in nodes:
            node.x = max(node.radius, min(width - node.radius, node.x))
            node.y = max(node.radius, min(height - node.radius, node.y))

    return nodes


def build_cluster_graph(
    clusters: list[Any], width: float = 800, height: float = 600, iterations: int = 100
) -> dict[str, Any]:
    """Nodes and links for the cluster graph, laid out for a width x height canvas."""
    nodes = build_nodes(clusters)
    links = build_links(clusters)
    force_layout(nodes, links, width, height, iterations)
    return {
        "nodes": [asdict(n) for n in nodes],
        "links": [
            {"source": nodes[link.source].id, "target": nodes[link.target].id, "strength": link.strength}
            for link in links
        ],
        "width": width,
        "height": height,
    }
