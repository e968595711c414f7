"""
Pytest configuration for compositegen tests
"""
from pathlib import Path
from typing import Callable

import pytest

from compositegen.config import DomainConfig
from compositegen.model.geometry_primitives import Sphere, Vector
from compositegen.model.materials import Morphology
from compositegen.model.state import ParticleLayout


# One sphere of radius exactly 5 in a 100^3 box with a 10 thick piston
SINGLE_SPHERE_CONFIG = """\
# single sphere scenario
length = 100
width = 100
height = 100
piston_thicc = 10
global_mesh_size = 10
tol_particles = 1
tol_particles_boundaries = 1
rand_seed = 1

material = agg
morph = sph
count = 1
rad_min = 5
rad_max = 5
"""

# Box 100 x 100 x 50 with a piston slab from z = 40. Nodes 5, 8, 9 and 10
# surround the sphere at (50, 50, 25); nodes 4, 11, 12 and 13 lie in the slab.
SMALL_MESH = """\
$MeshFormat
2.2 0 8
$EndMeshFormat
$Nodes
12
1 0 0 0
2 100 0 0
3 0 100 0
4 0 0 50
5 50 50 28
7 10 10 10
8 48 49 24
9 52 49 24
10 50 53 24
11 10 0 50
12 0 10 50
13 0 0 45
$EndNodes
$Elements
7
1 15 2 0 1 1
2 4 2 0 1 1 2 3 7
3 4 2 0 1 5 8 9 10
4 4 2 0 1 4 11 12 13
5 4 2 0 1 1 2 3 99
6 2 2 0 1 1 2 3
7 4 2 0 1 1 2 3
$EndElements
"""

SMALL_MESH_CONFIG = """\
length = 100
width = 100
height = 50
piston_thicc = 10
material = ignored_by_the_partitioner
"""

SMALL_MESH_CONTROL_POINTS = """\
agg
sph
1
5 50 50 25
"""


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write `text` to tmp_path/name and return the path."""
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def small_domain() -> DomainConfig:
    return DomainConfig(length=100.0, width=100.0, height=50.0, piston_thickness=10.0)


@pytest.fixture
def sphere_layout() -> ParticleLayout:
    layout = ParticleLayout()
    index = layout.add_material("agg", Morphology.SPHERE)
    layout.add(index, Sphere(center=Vector(50.0, 50.0, 25.0), radius=5.0))
    return layout
