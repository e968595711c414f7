"""
Input/Output Manager
Handles the plain-text files exchanged between the two tools: the particle
control-point file, the Gmsh geometry script and the partitioned mesh (.dat).
"""
from __future__ import annotations

import logging
import os
from typing import Iterator, TYPE_CHECKING
from typing import assert_never

from compositegen.errors import ConfigurationError
from compositegen.model.geometry_primitives import Cylinder, Sphere, Vector
from compositegen.model.materials import Morphology
from compositegen.model.state import ParticleLayout
from compositegen.utils import format_real

if TYPE_CHECKING:
    from compositegen.controller.mesh import TetMesh
    from compositegen.controller.partition import Partition

# Get module logger
logger = logging.getLogger(__name__)

# Group tags of the partitioned mesh format
NODE_GROUP_TAG = 7
ELEMENT_GROUP_TAG = 8

# Columns of a control-point line per morphology: radius + 2 or 1 point triples
CONTROL_POINT_COLUMNS = {
    Morphology.CYLINDER: 7,
    Morphology.SPHERE: 4,
}


class IOManager:

    # ---- CONTROL POINTS ----
    @staticmethod
    def write_control_points(layout: ParticleLayout, filepath: str | os.PathLike) -> None:
        """
        Writes, per material: name, morphology token, particle count, then one
        `radius x1 y1 z1 [x2 y2 z2]` line per particle.
        """
        logger.info(f"Writing control points to: {filepath}")
        with open(filepath, "w", encoding="utf-8") as f:
            for index, entry in enumerate(layout.materials):
                shapes = layout.shapes_of(index)
                f.write(f"{entry.name}\n{entry.morph.value}\n{len(shapes)}\n")
                for shape in shapes:
                    match shape:
                        case Cylinder(center=start, end=end, radius=radius):
                            points = (start, end)
                        case Sphere(center=center, radius=radius):
                            points = (center,)
                        case _:
                            assert_never(shape)
                    words = [format_real(radius)]
                    for p in points:
                        words.extend(format_real(v) for v in (p.x, p.y, p.z))
                    f.write(" ".join(words) + "\n")

    @staticmethod
    def read_control_points(filepath: str | os.PathLike) -> ParticleLayout:
        """
        Rebuilds the particle layout from a control-point file.

        Particle lines with the wrong number of columns are skipped.
        """
        logger.info(f"Reading control points from: {filepath}")
        layout = ParticleLayout()

        with open(filepath, "r", encoding="utf-8") as f:
            lines: Iterator[str] = (line.rstrip("\r\n") for line in f)

            for name in lines:
                if not name.strip():
                    continue

                morph_token = next(lines, "")
                try:
                    morph = Morphology.from_token(morph_token)
                except ConfigurationError:
                    raise ConfigurationError(
                        f"Unknown morphology ({morph_token}) for material '{name}' in {filepath}."
                    ) from None

                count_token = next(lines, "").strip()
                try:
                    count = int(count_token)
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid particle count ({count_token}) for material '{name}' in {filepath}."
                    ) from None

                index = layout.add_material(name, morph)
                expected = CONTROL_POINT_COLUMNS[morph]
                skipped = 0

                for i in range(count):
                    line = next(lines, None)
                    if line is None:
                        logger.warning(
                            f"Control-point file ended after {i} of {count} particles of '{name}'."
                        )
                        break

                    words = line.split()
                    if len(words) != expected:
                        skipped += 1
                        continue
                    try:
                        values = [float(w) for w in words]
                    except ValueError:
                        skipped += 1
                        continue

                    radius = values[0]
                    first = Vector(*values[1:4])
                    match morph:
                        case Morphology.CYLINDER:
                            layout.add(index, Cylinder(center=first, end=Vector(*values[4:7]), radius=radius))
                        case Morphology.SPHERE:
                            layout.add(index, Sphere(center=first, radius=radius))

                if skipped:
                    logger.debug(f"Skipped {skipped} malformed control-point line(s) of '{name}'.")

        logger.info(f"Loaded {len(layout)} particles of {len(layout.materials)} material(s).")
        return layout

    # ---- GEOMETRY SCRIPT ----
    @staticmethod
    def save_geo_script(script: str, filepath: str | os.PathLike) -> None:
        logger.info(f"Writing geometry script to: {filepath}")
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(script)

    # ---- PARTITIONED MESH ----
    @staticmethod
    def write_partitioned_mesh(mesh: TetMesh, partition: Partition, filepath: str | os.PathLike) -> None:
        """
        Writes the partitioned mesh:
            3 4 <num nodes> <num elements>
            <node id> x y z            (ascending node id)
            <element k> n1 n2 n3 n4    (k = 1..N)
            7 <node group> <count>     followed by one node id per line
            8 <element group> <count>  followed by one element id per line
        """
        logger.info(f"Writing partitioned mesh to: {filepath}")
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(f"3 4 {len(mesh.nodes)} {len(mesh.elements)}\n")

            for uid in sorted(mesh.nodes):
                p = mesh.nodes[uid]
                f.write(f"{uid} {format_real(p.x)} {format_real(p.y)} {format_real(p.z)}\n")

            for k, (n1, n2, n3, n4) in enumerate(mesh.elements, start=1):
                f.write(f"{k} {n1} {n2} {n3} {n4}\n")

            for name, ids in partition.node_groups.items():
                f.write(f"{NODE_GROUP_TAG} {name} {len(ids)}\n")
                f.writelines(f"{uid}\n" for uid in ids)

            for name, ids in partition.element_groups.items():
                f.write(f"{ELEMENT_GROUP_TAG} {name} {len(ids)}\n")
                f.writelines(f"{uid}\n" for uid in ids)
