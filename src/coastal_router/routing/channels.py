"""Curated channel graph: hand-picked clear-water waypoints joined by known-safe edges."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
import yaml
import networkx as nx

from coastal_router.core.geodesy import haversine_km
from coastal_router.core.models import GeoPoint
from coastal_router.land.predicates import is_land, segment_is_clear, validate_polyline
from coastal_router.land.store import LandGeometryStore


@dataclass
class ChannelGraph:
    name: str
    nodes: Dict[str, GeoPoint]
    graph: nx.Graph

    @classmethod
    def from_yaml(cls, path: Path) -> "ChannelGraph":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        nodes: Dict[str, GeoPoint] = {}
        graph = nx.Graph()
        for node in data.get("nodes", []):
            point = GeoPoint(float(node["lat"]), float(node["lng"]))
            nodes[str(node["id"])] = point
            graph.add_node(str(node["id"]))
        for a, b in data.get("edges", []):
            a, b = str(a), str(b)
            if a not in nodes or b not in nodes:
                continue
            pa, pb = nodes[a], nodes[b]
            graph.add_edge(a, b, weight_km=haversine_km(pa.lat, pa.lng, pb.lat, pb.lng))
        return cls(name=str(data.get("name", Path(path).stem)), nodes=nodes, graph=graph)

    def access_nodes(self, point: GeoPoint, store: LandGeometryStore, in_land: bool) -> List[str]:
        """Nodes reachable in a straight clear line from `point`, nearest first."""
        ranked = sorted(
            self.nodes,
            key=lambda nid: (haversine_km(point.lat, point.lng, *self.nodes[nid]), nid),
        )
        return [nid for nid in ranked if segment_is_clear(store, point, self.nodes[nid], a_in_land=in_land)]

    def route(self, start: GeoPoint, goal: GeoPoint, store: LandGeometryStore) -> Optional[List[GeoPoint]]:
        """Interior waypoints start -> goal through the graph, or None if no safe route."""
        start_in_land = is_land(store, start)
        goal_in_land = is_land(store, goal)
        entries = self.access_nodes(start, store, start_in_land)
        exits = self.access_nodes(goal, store, goal_in_land)
        if not entries or not exits:
            return None
        entry, exit_ = entries[0], exits[0]
        try:
            node_path = nx.shortest_path(self.graph, entry, exit_, weight="weight_km")
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

        interior = [self.nodes[nid] for nid in node_path]
        report = validate_polyline(
            store,
            [start, *interior, goal],
            start_in_land=start_in_land,
            end_in_land=goal_in_land,
        )
        if not report.is_ok:
            return None
        return interior
