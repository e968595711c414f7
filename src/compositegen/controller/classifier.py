"""
Containment Classification
Decides which region (a material, the piston slab or the matrix) a point of
the mesh belongs to.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Optional, TYPE_CHECKING
from typing import assert_never

from compositegen.model.geometry_primitives import Cylinder, Shape, Sphere, Vector
from compositegen.model.geometry_utils import cross, dist, dot, norm

if TYPE_CHECKING:
    from compositegen.config import DomainConfig
    from compositegen.model.state import ParticleLayout

logger = logging.getLogger(__name__)


class RegionKind(StrEnum):
    MATERIAL = "material"
    PISTON = "piston"
    MATRIX = "matrix"


@dataclass(frozen=True)
class Region:
    kind: RegionKind
    # Index into the layout's material list (MATERIAL only)
    material: Optional[int] = None


PISTON = Region(RegionKind.PISTON)
MATRIX = Region(RegionKind.MATRIX)


def cylinder_contains(cylinder: Cylinder, point: Vector) -> bool:
    """
    Finite-cylinder test with A, B the axis end points:
    c1 = (B-A).(P-A) >= 0, c2 = (A-B).(P-B) >= 0 and
    |(P-A) x (P-B)| / |B-A| <= radius.
    """
    A, B = cylinder.center, cylinder.end
    AB = Vector.between(A, B)
    length = norm(AB)
    if length == 0.0:
        return False

    AP = Vector.between(A, point)
    BP = Vector.between(B, point)

    c1 = dot(AB, AP)
    c2 = dot(-AB, BP)
    if c1 < 0.0 or c2 < 0.0:
        return False

    d = norm(cross(AP, BP)) / length
    return d <= cylinder.radius


def sphere_contains(sphere: Sphere, point: Vector) -> bool:
    """Closed ball test; a point at exactly `radius` is inside."""
    return dist(point, sphere.center) <= sphere.radius


def contains(shape: Shape, point: Vector) -> bool:
    match shape:
        case Cylinder():
            return cylinder_contains(shape, point)
        case Sphere():
            return sphere_contains(shape, point)
        case _:
            assert_never(shape)


class Classifier:
    """
    First-match region lookup.

    Materials are tested in layout order and, within a material, particles in
    acceptance order. Points outside every particle are piston when
    z >= height - piston thickness, matrix otherwise.
    """

    def __init__(self, layout: ParticleLayout, domain: DomainConfig) -> None:
        self.layout = layout
        self.domain = domain
        self._shapes: list[list[Shape]] = [
            layout.shapes_of(index) for index in range(len(layout.materials))
        ]

    def material_of(self, point: Vector) -> Optional[int]:
        for index, shapes in enumerate(self._shapes):
            if any(contains(shape, point) for shape in shapes):
                return index
        return None

    def region_of(self, point: Vector) -> Region:
        material = self.material_of(point)
        if material is not None:
            return Region(RegionKind.MATERIAL, material)
        if point.z >= self.domain.piston_base:
            return PISTON
        return MATRIX
