"""
Geometric Primitives for particle placement and mesh classification.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Union, TYPE_CHECKING
import numpy as np
import math

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Vector:
    """
    A vector in 3D space. Used both as a point and as a direction.
    """
    x: float
    y: float
    z: float = 0.0

    @classmethod
    def between(cls, start: Vector, end: Vector) -> Vector:
        """Vector pointing from `start` to `end`."""
        return cls(end.x - start.x, end.y - start.y, end.z - start.z)

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar, self.z * scalar)

    def __truediv__(self, scalar: float) -> Vector:
        if scalar == 0.0: raise ZeroDivisionError
        return Vector(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y, -self.z)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def normalize(self) -> Vector:
        mag = self.magnitude
        if mag == 0.0: return Vector(0.0, 0.0, 0.0)
        return self / mag

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z])


X_AXIS = Vector(1.0, 0.0, 0.0)


@dataclass(frozen=True)
class Matrix:
    """A 3x3 matrix stored as three row vectors; applied as matrix . vector."""
    row1: Vector
    row2: Vector
    row3: Vector

    @classmethod
    def identity(cls) -> Matrix:
        return cls(Vector(1.0, 0.0, 0.0), Vector(0.0, 1.0, 0.0), Vector(0.0, 0.0, 1.0))

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.row1.to_array(), self.row2.to_array(), self.row3.to_array()])


@dataclass(frozen=True)
class Cylinder:
    """
    A right circular cylinder given by the two end centers of its axis.

    The base center is `center`; the axis direction and length are derived from
    the second end point so the same two numbers can be written to and read back
    from the control-point file.
    """
    center: Vector
    end: Vector
    radius: float

    @property
    def axis(self) -> Vector:
        """Unit direction from the base center to the far end."""
        return Vector.between(self.center, self.end).normalize()

    @property
    def length(self) -> float:
        return Vector.between(self.center, self.end).magnitude

    @property
    def volume(self) -> float:
        return math.pi * self.radius**2 * self.length


@dataclass(frozen=True)
class Sphere:
    """A sphere given by center and radius."""
    center: Vector
    radius: float

    @property
    def volume(self) -> float:
        return 4.0 / 3.0 * math.pi * self.radius**3


# Tagged variant of the two supported morphologies
Shape = Union[Cylinder, Sphere]


@dataclass(frozen=True)
class Particle:
    """An accepted particle; `material` is the index into the material list."""
    material: int
    shape: Shape
