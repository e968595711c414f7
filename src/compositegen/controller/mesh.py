"""
Tetrahedral Mesh Reader
=======================
This module loads the nodes and the tetrahedra of a Gmsh MSH 2.2 ASCII file.

Why is this file needed?
------------------------
1. Leniency: Mesh exports are read line by line. Metadata before `$Nodes` is
   skipped, node lines need exactly four columns, element lines need the
   column count their tag count implies, and everything else (including
   non-tetrahedral elements) is skipped without failing the run.
2. Renumbering: Tetrahedra are stored in file order; their position + 1 is the
   element id written to the partitioned mesh.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os

from compositegen.errors import MeshFormatError
from compositegen.model.geometry_primitives import Vector
from compositegen.utils import timer

logger = logging.getLogger(__name__)

# MSH 2.2 element type code of the 4-node tetrahedron
TETRAHEDRON = 4
NODES_PER_TETRAHEDRON = 4

Tetrahedron = tuple[int, int, int, int]


@dataclass
class TetMesh:
    # node id -> coordinates
    nodes: dict[int, Vector] = field(default_factory=dict)
    elements: list[Tetrahedron] = field(default_factory=list)

    def element_points(self, element: Tetrahedron) -> tuple[Vector, Vector, Vector, Vector]:
        n1, n2, n3, n4 = element
        return self.nodes[n1], self.nodes[n2], self.nodes[n3], self.nodes[n4]

    @staticmethod
    def centroid(points: tuple[Vector, Vector, Vector, Vector]) -> Vector:
        A, B, C, D = points
        return Vector(
            (A.x + B.x + C.x + D.x) / 4.0,
            (A.y + B.y + C.y + D.y) / 4.0,
            (A.z + B.z + C.z + D.z) / 4.0,
        )

    @classmethod
    @timer
    def from_file(cls, filename: str | os.PathLike) -> TetMesh:
        """Load mesh data from a file."""
        logger.info(f"Reading mesh from: {filename}")
        mesh = cls()
        skipped_nodes = 0
        skipped_elements = 0

        with open(filename, "r", encoding="utf-8") as f:
            # 1) Skip metadata up to the node block
            for line in f:
                if line.strip() == "$Nodes":
                    break
            else:
                raise MeshFormatError(f"No $Nodes block found in {filename}.")

            count_line = next(f, "").strip()
            try:
                declared_nodes = int(count_line)
            except ValueError:
                raise MeshFormatError(f"Invalid node count ({count_line}) in {filename}.") from None

            # 2) Nodes
            for line in f:
                if line.startswith("$"):
                    break
                words = line.split()
                if len(words) != 4:
                    skipped_nodes += 1
                    continue
                try:
                    uid = int(words[0])
                    mesh.nodes[uid] = Vector(float(words[1]), float(words[2]), float(words[3]))
                except ValueError:
                    skipped_nodes += 1

            # 3) Elements: every remaining non-'$' line is a candidate
            for line in f:
                if line.startswith("$"):
                    continue
                words = line.split()
                if len(words) < 3:
                    continue
                try:
                    elem_type = int(words[1])
                    num_tags = int(words[2])
                except ValueError:
                    skipped_elements += 1
                    continue
                if elem_type != TETRAHEDRON or len(words) != 3 + num_tags + NODES_PER_TETRAHEDRON:
                    continue

                try:
                    n1, n2, n3, n4 = (int(w) for w in words[3 + num_tags:])
                except ValueError:
                    skipped_elements += 1
                    continue
                if any(n not in mesh.nodes for n in (n1, n2, n3, n4)):
                    skipped_elements += 1
                    continue
                mesh.elements.append((n1, n2, n3, n4))

        if len(mesh.nodes) != declared_nodes:
            logger.warning(
                f"Node block declares {declared_nodes} nodes but {len(mesh.nodes)} were read."
            )
        if skipped_nodes or skipped_elements:
            logger.debug(f"Skipped {skipped_nodes} node line(s) and {skipped_elements} element line(s).")

        logger.info(f"Mesh loaded: {len(mesh.nodes)} nodes, {len(mesh.elements)} tetrahedra.")
        return mesh
