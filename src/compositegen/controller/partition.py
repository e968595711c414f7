"""
Mesh Partition Builder
======================
This module groups the nodes and elements of a tetrahedral mesh.

Why is this file needed?
------------------------
1. Boundary groups: Fourteen node groups for the faces, edges and corners of
   the box, found by exact coordinate equality with 0 or the box extents.
   They do not exclude region membership; a node on the top face is also a
   piston node.
2. Region groups: Every node (by its coordinates) and every element (by its
   centroid) is assigned to exactly one of the materials, the matrix or the
   piston slab.
3. Quality: Every tetrahedron is rated; bad and degenerate elements are
   counted and reported, never rejected.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import logging
import math
from typing import TYPE_CHECKING

from compositegen.controller.classifier import Classifier, RegionKind
from compositegen.model.geometry_primitives import Vector
from compositegen.model.geometry_utils import circumradius, dist, inradius
from compositegen.utils import timer

if TYPE_CHECKING:
    from compositegen.config import DomainConfig
    from compositegen.controller.mesh import TetMesh
    from compositegen.model.state import ParticleLayout

logger = logging.getLogger(__name__)

# Thresholds of the element quality rule (both must be exceeded)
MAX_RADIUS_RATIO = 6.0
MAX_EDGE_RATIO = 5.0

MATRIX_NODES = "matrix_nodes"
PISTON_NODES = "piston_nodes"
MATRIX_ELEMENTS = "matrix"
PISTON_ELEMENTS = "Piston"


def boundary_predicates(domain: DomainConfig) -> dict[str, Callable[[Vector], bool]]:
    """Boundary node groups, in output order, keyed by group name."""
    L, W, H = domain.length, domain.width, domain.height

    def on_x_edge(p: Vector) -> bool:
        return p.x == 0.0 or p.x == L

    def on_y_edge(p: Vector) -> bool:
        return p.y == 0.0 or p.y == W

    return {
        "top_nodes": lambda p: p.z == H,
        "bottom_nodes": lambda p: p.z == 0.0,
        "left_nodes": lambda p: p.x == 0.0,
        "right_nodes": lambda p: p.x == L,
        "front_nodes": lambda p: p.y == 0.0,
        "back_nodes": lambda p: p.y == W,
        "corner_nodes": lambda p: on_x_edge(p) and on_y_edge(p) and p.z == 0.0,
        "top_corner_nodes": lambda p: on_x_edge(p) and on_y_edge(p) and p.z == H,
        "zleft_nodes": lambda p: p.x == 0.0 and on_y_edge(p),
        "zright_nodes": lambda p: p.x == L and on_y_edge(p),
        "yleft_nodes": lambda p: p.x == 0.0 and p.z == 0.0,
        "yright_nodes": lambda p: p.x == L and p.z == 0.0,
        "xfront_nodes": lambda p: p.y == 0.0 and p.z == 0.0,
        "xback_nodes": lambda p: p.y == W and p.z == 0.0,
    }


BOUNDARY_GROUPS = (
    "top_nodes", "bottom_nodes", "left_nodes", "right_nodes", "front_nodes", "back_nodes",
    "corner_nodes", "top_corner_nodes", "zleft_nodes", "zright_nodes",
    "yleft_nodes", "yright_nodes", "xfront_nodes", "xback_nodes",
)


@dataclass(frozen=True)
class ElementQuality:
    inradius: float
    circumradius: float
    shortest_edge: float
    longest_edge: float

    @property
    def is_degenerate(self) -> bool:
        """Flat or collapsed tetrahedron; the radius ratio is undefined."""
        return (
            self.inradius == 0.0
            or self.shortest_edge == 0.0
            or not math.isfinite(self.circumradius)
        )

    @property
    def radius_ratio(self) -> float:
        if self.is_degenerate:
            return math.nan
        return self.circumradius / self.inradius

    @property
    def edge_ratio(self) -> float:
        if self.shortest_edge == 0.0:
            return math.nan
        return self.longest_edge / self.shortest_edge

    @property
    def is_bad(self) -> bool:
        if self.is_degenerate:
            return False
        return self.radius_ratio > MAX_RADIUS_RATIO and self.edge_ratio > MAX_EDGE_RATIO


def element_quality(A: Vector, B: Vector, C: Vector, D: Vector) -> ElementQuality:
    edges = (dist(A, B), dist(A, D), dist(A, C), dist(B, C), dist(B, D), dist(C, D))
    return ElementQuality(
        inradius=inradius(A, B, C, D),
        circumradius=circumradius(A, B, C, D),
        shortest_edge=min(edges),
        longest_edge=max(edges),
    )


@dataclass
class Partition:
    """Named node groups and element groups, in output order."""
    node_groups: dict[str, list[int]] = field(default_factory=dict)
    element_groups: dict[str, list[int]] = field(default_factory=dict)
    bad_elements: int = 0
    degenerate_elements: int = 0


class PartitionBuilder:
    """
    Builds a Partition for a mesh from the particle layout and the box.

    Node groups: the fourteen boundary groups, `matrix_nodes`, `piston_nodes`
    and one `<material>_nodes` group per material.
    Element groups: `matrix`, `Piston` and one group per material.
    """

    def __init__(self, layout: ParticleLayout, domain: DomainConfig) -> None:
        self.layout = layout
        self.domain = domain
        self.classifier = Classifier(layout, domain)
        self._boundaries = boundary_predicates(domain)

    def _empty_partition(self) -> Partition:
        partition = Partition()
        for name in BOUNDARY_GROUPS:
            partition.node_groups[name] = []
        partition.node_groups[MATRIX_NODES] = []
        partition.node_groups[PISTON_NODES] = []
        for entry in self.layout.materials:
            partition.node_groups[f"{entry.name}_nodes"] = []

        partition.element_groups[MATRIX_ELEMENTS] = []
        partition.element_groups[PISTON_ELEMENTS] = []
        for entry in self.layout.materials:
            partition.element_groups[entry.name] = []
        return partition

    @timer
    def build(self, mesh: TetMesh) -> Partition:
        partition = self._empty_partition()
        self._group_nodes(mesh, partition)
        self._group_elements(mesh, partition)

        if partition.degenerate_elements:
            logger.warning(f"Degenerate elements (flat or collapsed): {partition.degenerate_elements}")
        logger.info(f"Bad elements: {partition.bad_elements}")
        for name, ids in partition.element_groups.items():
            logger.debug(f"Element group {name}: {len(ids)}")
        return partition

    def _group_nodes(self, mesh: TetMesh, partition: Partition) -> None:
        groups = partition.node_groups
        material_groups = [groups[f"{entry.name}_nodes"] for entry in self.layout.materials]

        for uid in sorted(mesh.nodes):
            p = mesh.nodes[uid]
            for name, predicate in self._boundaries.items():
                if predicate(p):
                    groups[name].append(uid)

            region = self.classifier.region_of(p)
            match region.kind:
                case RegionKind.MATERIAL:
                    material_groups[region.material].append(uid)
                case RegionKind.PISTON:
                    groups[PISTON_NODES].append(uid)
                case RegionKind.MATRIX:
                    groups[MATRIX_NODES].append(uid)

    def _group_elements(self, mesh: TetMesh, partition: Partition) -> None:
        groups = partition.element_groups
        material_groups = [groups[entry.name] for entry in self.layout.materials]

        for k, element in enumerate(mesh.elements, start=1):
            points = mesh.element_points(element)

            quality = element_quality(*points)
            if quality.is_degenerate:
                partition.degenerate_elements += 1
                logger.debug(f"Element {k} is degenerate: {element}")
            elif quality.is_bad:
                partition.bad_elements += 1

            region = self.classifier.region_of(mesh.centroid(points))
            match region.kind:
                case RegionKind.MATERIAL:
                    material_groups[region.material].append(k)
                case RegionKind.PISTON:
                    groups[PISTON_ELEMENTS].append(k)
                case RegionKind.MATRIX:
                    groups[MATRIX_ELEMENTS].append(k)
