"""
Particle Placement (Rejection Sampling)
=======================================
This module places the particles of every configured material inside the box.

Why is this file needed?
------------------------
1. Sampling: Each candidate gets a size from its material's distribution and
   a random pose (cylinders: random axis and translation; spheres: a center
   drawn inside the shrunken box).
2. Constraints: A candidate is kept only if all of its representative points
   are strictly inside the box minus the boundary tolerance (and below the
   piston slab) and it keeps `tol_particles` clearance from every accepted
   particle of every material.
3. Emission: Accepted particles are appended to the layout and emitted to the
   geometry script writer in acceptance order.

Every particle gets at most `iter_limit` attempts; running out aborts the
whole run with PlacementError.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Optional, TYPE_CHECKING
from typing import assert_never

import numpy as np

from compositegen.controller.geo_writer import GeoScriptWriter
from compositegen.errors import ConfigurationError, PlacementError
from compositegen.model.geometry_primitives import Cylinder, Matrix, Shape, Sphere, Vector, X_AXIS
from compositegen.model.geometry_utils import dist, dot, line_line_distance, point_line_distance, rotation_matrix
from compositegen.model.materials import Morphology
from compositegen.model.state import ParticleLayout
from compositegen.utils import timer

if TYPE_CHECKING:
    from compositegen.config import DomainConfig, GeneratorConfig
    from compositegen.model.materials import MaterialSpec

logger = logging.getLogger(__name__)


def resolve_seed(seed: int) -> int:
    """Seed 0 means "seed from the clock"."""
    if seed:
        return seed
    return int(time.time())


def cylinder_control_points(radius: float, length: float, rotation: Matrix, translation: Vector) -> list[Vector]:
    """
    The 10 control points of a cylinder built along +x at the origin, then
    rotated and translated: first center, (-y, +y, -z, +z) perimeter points,
    second center and its four perimeter points.
    """
    canonical = []
    for x in (0.0, length):
        canonical.extend([
            Vector(x, 0.0, 0.0),
            Vector(x, -radius, 0.0),
            Vector(x, radius, 0.0),
            Vector(x, 0.0, -radius),
            Vector(x, 0.0, radius),
        ])
    return [dot(rotation, p) + translation for p in canonical]


def sphere_control_points(sphere: Sphere) -> list[Vector]:
    """Center followed by the six axis extremes."""
    c, r = sphere.center, sphere.radius
    return [
        c,
        Vector(c.x - r, c.y, c.z), Vector(c.x + r, c.y, c.z),
        Vector(c.x, c.y - r, c.z), Vector(c.x, c.y + r, c.z),
        Vector(c.x, c.y, c.z - r), Vector(c.x, c.y, c.z + r),
    ]


def separation(a: Shape, b: Shape) -> float:
    """
    Distance measure used for collision checks between two particles.

    Cylinder-cylinder uses the distance between the infinite axis lines,
    cylinder-sphere the distance of the sphere center from the axis line and
    sphere-sphere the center distance.
    """
    match a, b:
        case Cylinder(), Cylinder():
            return line_line_distance(
                a.center, Vector.between(a.center, a.end), b.center, Vector.between(b.center, b.end)
            )
        case Cylinder(), Sphere():
            return point_line_distance(b.center, a.center, Vector.between(a.center, a.end))
        case Sphere(), Cylinder():
            return point_line_distance(a.center, b.center, Vector.between(b.center, b.end))
        case Sphere(), Sphere():
            return dist(a.center, b.center)
    raise TypeError(f"Unsupported particle pair: {type(a).__name__}, {type(b).__name__}")


def collides(a: Shape, b: Shape, tolerance: float) -> bool:
    return separation(a, b) <= a.radius + b.radius + tolerance


def in_bounds(points: list[Vector], domain: DomainConfig, tolerance: float) -> bool:
    """Strict containment in the box shrunk by `tolerance`, below the piston slab."""
    x_max = domain.length - tolerance
    y_max = domain.width - tolerance
    z_max = domain.piston_base - tolerance
    return all(
        tolerance < p.x < x_max and tolerance < p.y < y_max and tolerance < p.z < z_max
        for p in points
    )


@dataclass
class PlacementResult:
    """Outcome of a successful run."""
    seed: int
    layout: ParticleLayout
    script: str


class PlacementEngine:
    """
    Places all materials of a GeneratorConfig, in configuration order.

    Random streams:
        - sizes of UNIFORM distributions, cylinder axes and translations and
          sphere centers come from one run generator seeded with the run seed;
        - sizes of GAUSSIAN distributions come from a generator that is either
          re-created from the run seed for every particle
          (`reseed_per_particle = true`), or one independent stream per
          material spawned from the run seed.
    """

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config
        self.domain = config.domain
        self.seed = resolve_seed(config.seed)
        self.rng = np.random.default_rng(self.seed)
        self.layout = ParticleLayout()
        self.writer = GeoScriptWriter(self.domain, config.global_mesh_size)

    @timer
    def run(self) -> PlacementResult:
        logger.info(f"Rand seed: {self.seed}")
        self.writer.header(self.seed)
        self.writer.box_and_piston()

        streams = np.random.SeedSequence(self.seed).spawn(len(self.config.materials))

        for spec, stream in zip(self.config.materials, streams):
            material_rng = None if self.config.reseed_per_particle else np.random.default_rng(stream)
            self.place_material(spec, material_rng)

        self.writer.footer()
        return PlacementResult(seed=self.seed, layout=self.layout, script=self.writer.render())

    def place_material(self, spec: MaterialSpec, material_rng: Optional[np.random.Generator] = None) -> int:
        """Place every particle of one material; returns the number placed."""
        index = self.layout.add_material(spec.name, spec.morph)
        count = spec.required_count(self.domain.background_volume)
        mesh_size = self.config.mesh_size_for(spec)

        for _ in range(count):
            gaussian_rng = material_rng if material_rng is not None else np.random.default_rng(self.seed)
            shape, points = self._place_one(spec, gaussian_rng)
            self.layout.add(index, shape)

            match shape:
                case Cylinder():
                    self.writer.cylinder(points, mesh_size)
                case Sphere():
                    self.writer.sphere(shape, mesh_size)
                case _:
                    assert_never(shape)

        logger.info(f"{spec.name}: {count} {spec.morph.value}")
        return count

    def _place_one(self, spec: MaterialSpec, gaussian_rng: np.random.Generator) -> tuple[Shape, list[Vector]]:
        """SAMPLE -> CHECK_BOUNDS -> CHECK_COLLISION until accepted or out of attempts."""
        limit = self.config.iter_limit
        tol_boundary = self.config.tol_particle_boundary

        for attempt in range(1, limit + 1):
            match spec.morph:
                case Morphology.CYLINDER:
                    candidate = self.sample_cylinder(spec, gaussian_rng)
                case Morphology.SPHERE:
                    candidate = self.sample_sphere(spec, gaussian_rng)
                case _:
                    raise ConfigurationError(f"No value found for morph in {spec.name}.")

            if candidate is None:
                continue
            shape, points = candidate

            if not in_bounds(points, self.domain, tol_boundary):
                continue
            if self.collides_with_accepted(shape):
                continue

            logger.debug(f"{spec.name}: accepted particle {len(self.layout) + 1} after {attempt} attempt(s)")
            return shape, points

        raise PlacementError(spec.name, limit)

    def sample_cylinder(
        self, spec: MaterialSpec, gaussian_rng: np.random.Generator
    ) -> Optional[tuple[Cylinder, list[Vector]]]:
        """One random cylinder, or None when a size draw is not positive."""
        radius = spec.radius.sample(self.rng, gaussian_rng)
        length = spec.length.sample(self.rng, gaussian_rng)

        axis = Vector(*self.rng.uniform(-1.0, 1.0, size=3))
        translation = Vector(
            self.rng.uniform(0.0, self.domain.length),
            self.rng.uniform(0.0, self.domain.width),
            self.rng.uniform(0.0, self.domain.height),
        )

        if radius <= 0.0 or length <= 0.0 or axis.magnitude == 0.0:
            return None

        points = cylinder_control_points(radius, length, rotation_matrix(X_AXIS, axis), translation)
        return Cylinder(center=points[0], end=points[5], radius=radius), points

    def sample_sphere(
        self, spec: MaterialSpec, gaussian_rng: np.random.Generator
    ) -> Optional[tuple[Sphere, list[Vector]]]:
        """One random sphere whose center keeps `tol + r` clearance from the walls, or None."""
        radius = spec.radius.sample(self.rng, gaussian_rng)
        if radius <= 0.0:
            return None

        low = self.config.tol_particle_boundary + radius
        # Too large to fit between the walls
        if 2.0 * low >= min(self.domain.length, self.domain.width) or 2.0 * low >= self.domain.piston_base:
            return None
        center = Vector(
            self.rng.uniform(low, self.domain.length - low),
            self.rng.uniform(low, self.domain.width - low),
            self.rng.uniform(low, self.domain.piston_base - low),
        )
        sphere = Sphere(center=center, radius=radius)
        return sphere, sphere_control_points(sphere)

    def collides_with_accepted(self, shape: Shape) -> bool:
        tol = self.config.tol_particles
        return any(collides(shape, particle.shape, tol) for particle in self.layout)
