"""
Particle Layout (Data Model)
============================
This module defines the central data structure shared by both tools: the
ordered list of accepted particles, grouped by material.

Why is this file needed?
------------------------
1. Ownership: The layout owns the material entries; particles refer to their
   material by index, never by reference.
2. Ordering: Particles are kept in acceptance order. The generator serializes
   them in this order and the classifier rebuilds them in the same order, so
   first-match containment sees identical lists on both sides.
3. Inspection: A quick matplotlib preview of the placed particles.

Classes:
    MaterialEntry: Name and morphology of one material.
    ParticleLayout: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterator, Optional, TYPE_CHECKING
from typing import assert_never

import numpy as np

from compositegen.model.geometry_primitives import Cylinder, Particle, Shape, Sphere
from compositegen.model.materials import Morphology

if TYPE_CHECKING:
    from matplotlib.figure import Figure
    from compositegen.config import DomainConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialEntry:
    name: str
    morph: Morphology


@dataclass
class ParticleLayout:
    """
    Accepted particles of a placement run (or of a control-point file).
    """
    materials: list[MaterialEntry] = field(default_factory=list)
    particles: list[Particle] = field(default_factory=list)

    def add_material(self, name: str, morph: Morphology) -> int:
        """Register a material and return its index."""
        self.materials.append(MaterialEntry(name=name, morph=morph))
        return len(self.materials) - 1

    def add(self, material: int, shape: Shape) -> Particle:
        """Append an accepted particle of material index `material`."""
        entry = self.materials[material]
        match shape:
            case Cylinder():
                expected = Morphology.CYLINDER
            case Sphere():
                expected = Morphology.SPHERE
            case _:
                assert_never(shape)
        if entry.morph != expected:
            raise ValueError(
                f"Cannot add a {expected.name.lower()} to material '{entry.name}' ({entry.morph.name.lower()})."
            )
        particle = Particle(material=material, shape=shape)
        self.particles.append(particle)
        return particle

    def shapes_of(self, material: int) -> list[Shape]:
        """Particles of one material, in acceptance order."""
        return [p.shape for p in self.particles if p.material == material]

    def __iter__(self) -> Iterator[Particle]:
        return iter(self.particles)

    def __len__(self) -> int:
        return len(self.particles)

    def plot(self, domain: Optional[DomainConfig] = None, show: bool = True) -> Figure:
        """Plot particle centers (spheres) and axes (cylinders) in 3D."""
        import matplotlib.pyplot as plt

        plt.rcParams["figure.constrained_layout.use"] = True
        fig = plt.figure()
        ax = fig.add_subplot(projection="3d")

        cmap = plt.get_cmap("gist_rainbow", max(1, len(self.materials)))

        for index, entry in enumerate(self.materials):
            color = cmap(index % cmap.N)
            label = entry.name
            for shape in self.shapes_of(index):
                match shape:
                    case Cylinder(center=start, end=end):
                        seg = np.array([start.to_array(), end.to_array()])
                        ax.plot(seg[:, 0], seg[:, 1], seg[:, 2], color=color, lw=2, label=label)
                    case Sphere(center=center):
                        ax.scatter(center.x, center.y, center.z, color=color, label=label)
                    case _:
                        assert_never(shape)
                label = "_nolegend_"

        if domain is not None:
            ax.set_xlim(0.0, domain.length)
            ax.set_ylim(0.0, domain.width)
            ax.set_zlim(0.0, domain.height)

        ax.set_title(f"{len(self.particles)} particles")
        ax.set_xlabel("X Coordinate")
        ax.set_ylabel("Y Coordinate")
        ax.set_zlabel("Z Coordinate")
        if self.particles:
            ax.legend(loc="best")

        if show:
            plt.show()
        return fig
