"""
Mesh Generation (Gmsh Adapter)
==============================
This module runs the Gmsh mesher on a generated geometry script.

Why is this file needed?
------------------------
1. Convenience: `geogen --mesh` can produce the tetrahedral mesh in the same
   run instead of calling the external mesher by hand.
2. Format: The mesh is written as MSH 2.2 ASCII, the format the partition
   step reads.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import os

import gmsh

from compositegen.errors import MeshingError

logger = logging.getLogger(__name__)

# Gmsh 3D algorithm ids
DELAUNAY_3D = 1
HXT_3D = 10


@dataclass
class MeshStats:
    """Summary of a written volume mesh."""
    filepath: str
    num_nodes: int
    num_elements: int


class GmshMesher:
    """
    Meshes `.geo` scripts with the Gmsh Python API.

    One Gmsh session is opened per call and always closed again, so a failed
    run does not leak state into the next one.
    """

    def __init__(self, algorithm_3d: int = DELAUNAY_3D, optimize: bool = True) -> None:
        self.algorithm_3d = algorithm_3d
        self.optimize = optimize
        self._initialized = False

    def _ensure_init(self) -> None:
        if self._initialized and gmsh.is_initialized():
            return
        if self._initialized:
            logger.warning("Gmsh session was closed externally; starting a new one")
        gmsh.initialize()
        self._initialized = True

    def _close(self) -> None:
        if not self._initialized:
            return
        self._initialized = False
        try:
            gmsh.finalize()
        except Exception as e:
            logger.warning(f"Could not close the Gmsh session: {e}")

    def mesh_geo_file(
        self,
        geo_file: str | os.PathLike,
        msh_file: str | os.PathLike,
        dim: int = 3,
    ) -> MeshStats:
        """
        Meshes a geometry script and writes the mesh as MSH 2.2 ASCII.

        Args:
            geo_file: Geometry script written by the generator.
            msh_file: Output mesh path.
            dim: Highest dimension to mesh (3 for the tetrahedral volume mesh).
        """
        self._ensure_init()
        output = os.fspath(msh_file)

        try:
            gmsh.option.set_number("General.Terminal", 0)
            logger.info(f"Meshing geometry script: {geo_file}")
            gmsh.open(os.fspath(geo_file))

            gmsh.option.set_number("Mesh.Algorithm3D", self.algorithm_3d)
            gmsh.option.set_number("Mesh.MshFileVersion", 2.2)
            gmsh.option.set_number("Mesh.Binary", 0)

            gmsh.model.mesh.generate(dim)
            if self.optimize:
                gmsh.model.mesh.optimize("")

            node_tags, _, _ = gmsh.model.mesh.get_nodes()
            _, elem_tags, _ = gmsh.model.mesh.get_elements(dim=dim)
            stats = MeshStats(
                filepath=output,
                num_nodes=len(node_tags),
                num_elements=sum(len(tags) for tags in elem_tags),
            )

            gmsh.write(output)
            logger.info(f"Mesh written: {stats.num_nodes} nodes, {stats.num_elements} elements -> {output}")
            return stats

        except Exception as e:
            logger.exception(f"Gmsh could not mesh {geo_file}")
            raise MeshingError(f"Gmsh could not mesh {geo_file}: {e}") from e

        finally:
            self._close()
