"""
Geometry Script Writer (Gmsh .geo)
==================================
This module turns accepted particles into a Gmsh geometry script.

Why is this file needed?
------------------------
1. Translation: It converts the placed cylinders and spheres into the
   declarative `.geo` records (Point, Line, Circle, Line Loop, Plane Surface,
   Surface, Surface Loop, Volume) consumed by the external mesher.
2. Numbering: Every record carries an id from one IdCounters object, so the
   ids grow monotonically across the whole run and the emission order is
   reproducible.
3. Buffering: Records are kept in memory and only rendered to text once
   placement has succeeded, so a failed run never leaves a partial script.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional, Sequence, TYPE_CHECKING

from compositegen import __version__
from compositegen.model.geometry_primitives import Sphere, Vector
from compositegen.utils import format_real

if TYPE_CHECKING:
    from compositegen.config import DomainConfig

logger = logging.getLogger(__name__)

# Surfaces of the piston volume; excluded from the matrix surface loop
PISTON_SURFACES = (2, 4, 6, 8, 10)
PISTON_INTERFACE_SURFACE = 11

# Box/piston topology, 1-based point ids (points 1-4 at z=0, 5-8 at the
# piston base, 9-12 at the top)
BOX_LINES = (
    (1, 2), (2, 3), (3, 4), (4, 1),
    (1, 5), (2, 6), (3, 7), (4, 8),
    (5, 6), (6, 7), (7, 8), (8, 5),
    (9, 10), (10, 11), (11, 12), (12, 9),
    (5, 9), (6, 10), (7, 11), (8, 12),
)

BOX_LINE_LOOPS = (
    (8, -11, -7, 3),
    (20, -15, -19, 11),
    (4, 5, -12, -8),
    (17, -16, -20, 12),
    (6, -9, -5, 1),
    (9, 18, -13, -17),
    (2, 7, -10, -6),
    (10, 19, -14, -18),
    (-1, -4, -3, -2),
    (13, 14, 15, 16),
    (-9, -12, -11, -10),
)


@dataclass
class IdCounters:
    """Next free id per record kind. Surface loops 1 and 2 belong to the box and the piston."""
    point: int = 1
    line: int = 1
    line_loop: int = 1
    surface: int = 1
    surface_loop: int = 3


class GeoScriptWriter:
    """
    Buffers the records of one geometry script.

    Usage:
        writer = GeoScriptWriter(domain, mesh_size=200.0)
        writer.header(seed)
        writer.box_and_piston()
        writer.cylinder(points, mesh_size)   # per accepted particle
        writer.footer()
        text = writer.render()
    """

    def __init__(self, domain: DomainConfig, mesh_size: float, counters: Optional[IdCounters] = None) -> None:
        self.domain = domain
        self.mesh_size = mesh_size
        self.counters = counters if counters is not None else IdCounters()
        self._out: list[str] = []
        # surface loop id -> line loop ids (surface ids equal line loop ids)
        self.surface_loops: dict[int, list[int]] = {}

    # ---- RECORDS ----
    def _blank(self) -> None:
        self._out.append("")

    def point(self, p: Vector, cl: float) -> int:
        uid = self.counters.point
        self.counters.point += 1
        self._out.append(
            f"Point({uid}) = {{ {format_real(p.x)},{format_real(p.y)},{format_real(p.z)},{format_real(cl)} }};"
        )
        return uid

    def line(self, start: int, end: int) -> int:
        uid = self.counters.line
        self.counters.line += 1
        self._out.append(f"Line({uid}) = {{ {start},{end} }};")
        return uid

    def circle(self, start: int, center: int, end: int) -> int:
        """Circle arc; shares the id sequence with lines."""
        uid = self.counters.line
        self.counters.line += 1
        self._out.append(f"Circle({uid}) = {{ {start},{center},{end} }};")
        return uid

    def line_loop(self, curves: Sequence[int]) -> int:
        uid = self.counters.line_loop
        self.counters.line_loop += 1
        self._out.append(f"Line Loop({uid}) = {{ {','.join(str(c) for c in curves)} }};")
        return uid

    def plane_surface(self, loop: int) -> int:
        uid = self.counters.surface
        self.counters.surface += 1
        self._out.append(f"Plane Surface({uid}) = {{ {loop} }};")
        return uid

    def surface(self, loop: int) -> int:
        uid = self.counters.surface
        self.counters.surface += 1
        self._out.append(f"Surface({uid}) = {{ {loop} }};")
        return uid

    def _register_surface_loop(self, loops: list[int]) -> int:
        uid = self.counters.surface_loop
        self.counters.surface_loop += 1
        self.surface_loops[uid] = loops
        return uid

    # ---- SECTIONS ----
    def header(self, seed: int, timestamp: Optional[datetime] = None) -> None:
        stamp = (timestamp or datetime.now()).strftime("%a %b %d %H:%M:%S %Y")
        self._out.extend([
            f"/* Gmsh geometry script generated by compositegen {__version__}",
            f" * Timestamp: {stamp}",
            f" * Rand seed: {seed}",
            " */",
            "",
            # Frontal-Delaunay 2D algorithm
            "Mesh.Algorithm = 6;",
            "",
        ])

    def box_and_piston(self) -> None:
        """Outer box split at the piston base; fixed ids 1-12 / 1-20 / 1-11."""
        L, W, H = self.domain.length, self.domain.width, self.domain.height
        zp = self.domain.piston_base

        self._out.append("// Box")
        for z in (0.0, zp, H):
            for x, y in ((0.0, 0.0), (L, 0.0), (L, W), (0.0, W)):
                self.point(Vector(x, y, z), self.mesh_size)
        self._blank()

        for start, end in BOX_LINES:
            self.line(start, end)
        self._blank()

        loops = [self.line_loop(curves) for curves in BOX_LINE_LOOPS]
        self._blank()

        for loop in loops:
            self.plane_surface(loop)
        self._blank()

    def cylinder(self, points: Sequence[Vector], mesh_size: float) -> int:
        """
        Emit one cylinder.

        Args:
            points: The 10 control points in canonical order: first center,
                its (-y, +y, -z, +z) perimeter points, second center and its
                four perimeter points, all already rotated and translated.
            mesh_size: Characteristic length of the points.

        Returns:
            The surface loop id of the cylinder.
        """
        if len(points) != 10:
            raise ValueError(f"A cylinder needs 10 control points, got {len(points)}.")

        self._out.append("// Cylinder")
        c1, p1, p2, p3, p4, c2, p5, p6, p7, p8 = (self.point(p, mesh_size) for p in points)
        self._blank()

        # End faces
        a1 = self.circle(p3, c1, p1)
        a2 = self.circle(p1, c1, p4)
        a3 = self.circle(p4, c1, p2)
        a4 = self.circle(p2, c1, p3)
        a5 = self.circle(p5, c2, p7)
        a6 = self.circle(p7, c2, p6)
        a7 = self.circle(p6, c2, p8)
        a8 = self.circle(p8, c2, p5)
        self._blank()

        # Generators along the axis
        l1 = self.line(p1, p5)
        l2 = self.line(p2, p6)
        l3 = self.line(p3, p7)
        l4 = self.line(p4, p8)
        self._blank()

        loops = [
            self.line_loop((a1, a2, a3, a4)),
            self.line_loop((a5, a6, a7, a8)),
            self.line_loop((-a1, l3, -a5, -l1)),
            self.line_loop((l1, -a8, -l4, -a2)),
            self.line_loop((l4, -a7, -l2, -a3)),
            self.line_loop((l2, -a6, -l3, -a4)),
        ]
        self._blank()

        for loop in loops[:2]:
            self.plane_surface(loop)
        self._blank()

        for loop in loops[2:]:
            self.surface(loop)
        self._blank()

        return self._register_surface_loop(loops)

    def sphere(self, sphere: Sphere, mesh_size: float) -> int:
        """Emit one sphere as eight octant patches; returns its surface loop id."""
        c, r = sphere.center, sphere.radius

        self._out.append("// Sphere")
        cp = self.point(c, mesh_size)
        p1 = self.point(Vector(c.x - r, c.y, c.z), mesh_size)
        p2 = self.point(Vector(c.x + r, c.y, c.z), mesh_size)
        p3 = self.point(Vector(c.x, c.y - r, c.z), mesh_size)
        p4 = self.point(Vector(c.x, c.y + r, c.z), mesh_size)
        p5 = self.point(Vector(c.x, c.y, c.z - r), mesh_size)
        p6 = self.point(Vector(c.x, c.y, c.z + r), mesh_size)
        self._blank()

        a1 = self.circle(p1, cp, p3)
        a2 = self.circle(p3, cp, p2)
        a3 = self.circle(p2, cp, p4)
        a4 = self.circle(p4, cp, p1)
        a5 = self.circle(p3, cp, p6)
        a6 = self.circle(p6, cp, p4)
        a7 = self.circle(p4, cp, p5)
        a8 = self.circle(p5, cp, p3)
        a9 = self.circle(p1, cp, p6)
        a10 = self.circle(p6, cp, p2)
        a11 = self.circle(p2, cp, p5)
        a12 = self.circle(p5, cp, p1)
        self._blank()

        loops = [
            self.line_loop((a1, a5, -a9)),
            self.line_loop((a2, -a10, -a5)),
            self.line_loop((a10, a3, -a6)),
            self.line_loop((a9, a6, a4)),
            self.line_loop((-a2, -a8, -a11)),
            self.line_loop((a8, -a1, -a12)),
            self.line_loop((a12, -a4, a7)),
            self.line_loop((a11, -a7, -a3)),
        ]
        self._blank()

        for loop in loops:
            self.surface(loop)
        self._blank()

        return self._register_surface_loop(loops)

    def footer(self) -> None:
        """Surface loops (matrix, piston, one per particle) and one volume per loop."""
        self._out.append("// " + "-" * 60)

        matrix = [
            str(s) for s in range(1, self.counters.surface)
            if s not in PISTON_SURFACES
        ]
        piston = [str(s) for s in (*PISTON_SURFACES, PISTON_INTERFACE_SURFACE)]
        self._out.append(f"Surface Loop(1) = {{ {','.join(matrix)} }};")
        self._out.append(f"Surface Loop(2) = {{ {', '.join(piston)} }};")
        for uid, loops in self.surface_loops.items():
            self._out.append(f"Surface Loop({uid}) = {{ {','.join(str(l) for l in loops)} }};")
        self._blank()

        for uid in range(1, self.counters.surface_loop):
            self._out.append(f"Volume({uid}) = {{ {uid} }};")

    def render(self) -> str:
        return "\n".join(self._out) + "\n"
