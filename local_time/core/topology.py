"""
Reference Graph
===============

Structural view of how universes tie into shared real-world referents.

Nodes are universe ids and real-event ids (from reality anchors) plus, when
networks are supplied, one ``(NETWORK, key)`` tuple per network, which never
coincides with a universe or event id. Edges run from a universe to each
referent it anchors to (with relationship type and confidence) and from a
universe to each network it belongs to.

Two universes are related when a path connects them, e.g. a film and a
documentary that both anchor to ``event:moon_landing_1969``.

The graph is STRUCTURE only: no centrality or ranking measures are exposed;
reality scoring lives in the gradient analyzer.
"""

from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Optional, Set, Tuple
from dataclasses import dataclass
import networkx as nx

from ..contracts.universe import Universe, UniverseNetwork


UNIVERSE = "universe"
REAL_EVENT = "real_event"
NETWORK = "network"


def network_node(network_key: str) -> Tuple[str, str]:
    """Graph node standing for the network ``network_key``."""
    return (NETWORK, network_key)


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for the reference graph."""
    node_count: int
    edge_count: int
    density: float
    is_connected: bool
    connected_components_count: int
    diameter: Optional[int] = None  # Only for connected graphs


class ReferenceGraph:
    """
    Wraps a networkx DiGraph built from registered universes.
    """

    def __init__(self):
        self._graph = nx.DiGraph()

    def build(
        self,
        universes: Iterable[Universe],
        networks: Iterable[UniverseNetwork] = (),
    ) -> None:
        """
        Build graph from universes (and optionally networks).

        Replaces internal graph state.
        """
        self._graph = nx.DiGraph()

        for universe in universes:
            universe_id = universe.universe_id.value
            self._graph.add_node(universe_id, kind=UNIVERSE, universe_type=universe.type.value)
            for anchor in universe.reality_relation.reality_anchors:
                if anchor.real_event_id not in self._graph:
                    self._graph.add_node(anchor.real_event_id, kind=REAL_EVENT)
                self._graph.add_edge(
                    universe_id,
                    anchor.real_event_id,
                    relationship_type=anchor.relationship_type,
                    confidence=anchor.confidence,
                )

        for network in networks:
            node = network_node(network.key)
            self._graph.add_node(node, kind=NETWORK, network_id=network.key)
            for member in network.universes:
                if member.value not in self._graph:
                    self._graph.add_node(member.value, kind=UNIVERSE)
                self._graph.add_edge(member.value, node, relationship_type="member_of")

    def _nodes_of_kind(self, nodes: Iterable[Hashable], kind: str) -> Set[str]:
        return {n for n in nodes if self._graph.nodes[n].get("kind") == kind}

    def get_anchored_universes(self, real_event_id: str) -> Set[str]:
        """Universe ids that anchor to ``real_event_id``."""
        if real_event_id not in self._graph:
            return set()
        return self._nodes_of_kind(self._graph.predecessors(real_event_id), UNIVERSE)

    def get_anchors(self, universe_id: str) -> Dict[str, Dict[str, object]]:
        """Referents of one universe with their edge attributes."""
        if universe_id not in self._graph:
            return {}
        return {
            target: dict(attrs)
            for _, target, attrs in self._graph.out_edges(universe_id, data=True)
            if self._graph.nodes[target].get("kind") == REAL_EVENT
        }

    def get_shared_anchors(self, universe_a: str, universe_b: str) -> Set[str]:
        return set(self.get_anchors(universe_a)) & set(self.get_anchors(universe_b))

    def get_connected_clusters(self) -> List[Set[str]]:
        """
        Universe ids grouped by weak connectivity.

        Returned in arbitrary order; clusters are not ranked.
        """
        if not self._graph:
            return []
        clusters = []
        for component in nx.weakly_connected_components(self._graph):
            members = self._nodes_of_kind(component, UNIVERSE)
            if members:
                clusters.append(members)
        return clusters

    def get_reference_path(self, start_id: Hashable, end_id: Hashable) -> Optional[List[Hashable]]:
        """
        Shortest chain of nodes linking two ids, ignoring edge direction.
        Network hops appear as their ``network_node`` tuples.
        """
        try:
            return nx.shortest_path(self._graph.to_undirected(as_view=True), source=start_id, target=end_id)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

    def compute_metrics(self) -> GraphMetrics:
        if not self._graph:
            return GraphMetrics(0, 0, 0.0, False, 0, None)

        undirected = self._graph.to_undirected(as_view=True)
        is_connected = nx.is_connected(undirected)

        diameter = None
        if is_connected and len(undirected) > 1:
            diameter = nx.diameter(undirected)

        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(self._graph),
            is_connected=is_connected,
            connected_components_count=nx.number_weakly_connected_components(self._graph),
            diameter=diameter,
        )

    @property
    def graph(self) -> nx.DiGraph:
        """Read-only view of the underlying graph."""
        return self._graph.copy(as_view=True)
