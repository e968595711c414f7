from __future__ import annotations

from typing import Sequence, overload

import math

from compositegen.model.geometry_primitives import Vector, Matrix


def norm(vec: Vector) -> float:
    """Euclidean norm of a vector."""
    return math.sqrt(vec.x * vec.x + vec.y * vec.y + vec.z * vec.z)


def dist(vec1: Vector, vec2: Vector) -> float:
    """Euclidean distance between two points."""
    return math.sqrt(
        (vec1.x - vec2.x) ** 2 + (vec1.y - vec2.y) ** 2 + (vec1.z - vec2.z) ** 2
    )


@overload
def dot(a: Vector, b: Vector) -> float: ...
@overload
def dot(a: Matrix, b: Vector) -> Vector: ...


def dot(a: Vector | Matrix, b: Vector) -> float | Vector:
    """
    Dot product.

    Vector . Vector gives a scalar; Matrix . Vector applies the matrix to the
    vector (each row dotted with `b`).
    """
    match a:
        case Matrix(row1=r1, row2=r2, row3=r3):
            return Vector(dot(r1, b), dot(r2, b), dot(r3, b))
        case Vector():
            return a.x * b.x + a.y * b.y + a.z * b.z
    raise TypeError(f"Unsupported operand for dot: {type(a).__name__}")


def cross(vec1: Vector, vec2: Vector) -> Vector:
    """Cross product of two vectors."""
    return Vector(
        vec1.y * vec2.z - vec1.z * vec2.y,
        vec1.z * vec2.x - vec1.x * vec2.z,
        vec1.x * vec2.y - vec1.y * vec2.x,
    )


def unit_cross(vec1: Vector, vec2: Vector) -> Vector:
    """
    Normalized cross product.

    Returns the zero vector when the inputs are equal (or otherwise parallel),
    instead of dividing a zero cross product by its zero norm.
    """
    if vec1 == vec2:
        return Vector(0.0, 0.0, 0.0)

    prod = cross(vec1, vec2)
    mag = norm(prod)
    if mag == 0.0:
        return Vector(0.0, 0.0, 0.0)
    return prod / mag


def rotation_matrix(a1: Vector, a2: Vector) -> Matrix:
    """
    Rotation matrix taking direction `a1` onto direction `a2` (Rodrigues).

    The sine is always taken non-negative, so the rotation sense is defined by
    the axis a1 x a2 alone. For parallel inputs the axis degenerates to zero and
    the result reduces to cos(theta) times the identity.
    """
    c = dot(a1, a2) / (norm(a1) * norm(a2))
    s = math.sqrt(max(0.0, 1.0 - c * c))
    C = 1.0 - c

    ax = unit_cross(a1, a2)
    x, y, z = ax.x, ax.y, ax.z

    return Matrix(
        Vector(x * x * C + c,     x * y * C - z * s, x * z * C + y * s),
        Vector(y * x * C + z * s, y * y * C + c,     y * z * C - x * s),
        Vector(z * x * C - y * s, z * y * C + x * s, z * z * C + c),
    )


def determinant(matrix: Sequence[Sequence[float]]) -> float:
    """
    Determinant of a square matrix by recursive Laplace (cofactor) expansion
    along the first row.
    """
    n = len(matrix)
    if n == 1:
        return matrix[0][0]
    if n == 2:
        return matrix[0][0] * matrix[1][1] - matrix[0][1] * matrix[1][0]

    total = 0.0
    for col in range(n):
        minor = [row[:col] + row[col + 1:] for row in (list(r) for r in matrix[1:])]
        sign = -1.0 if col % 2 else 1.0
        total += sign * matrix[0][col] * determinant(minor)
    return total


def inradius(A: Vector, B: Vector, C: Vector, D: Vector) -> float:
    """
    Inradius of the tetrahedron ABCD.

    r = |AB . (AC x AD)| / (|n_ABC| + |n_ABD| + |n_ACD| + |n_BCD|), i.e. six
    times the volume over twice the surface area. Zero for a flat tetrahedron.
    """
    ab = Vector.between(A, B)
    ac = Vector.between(A, C)
    ad = Vector.between(A, D)
    bc = Vector.between(B, C)
    bd = Vector.between(B, D)

    triple = abs(dot(ab, cross(ac, ad)))
    faces = (
        norm(cross(ab, ac))
        + norm(cross(ab, ad))
        + norm(cross(ac, ad))
        + norm(cross(bc, bd))
    )
    if faces == 0.0:
        return 0.0
    return triple / faces


def circumradius(A: Vector, B: Vector, C: Vector, D: Vector) -> float:
    """
    Circumradius of the tetrahedron ABCD from the 4x4 determinant formulation
    of the circumsphere.

    Returns NaN when the four points are coplanar (a == 0).
    """
    pts = (A, B, C, D)
    sq = [p.x * p.x + p.y * p.y + p.z * p.z for p in pts]

    a = determinant([[p.x, p.y, p.z, 1.0] for p in pts])
    if a == 0.0:
        return math.nan

    dx = determinant([[s, p.y, p.z, 1.0] for s, p in zip(sq, pts)])
    dy = -determinant([[s, p.x, p.z, 1.0] for s, p in zip(sq, pts)])
    dz = determinant([[s, p.x, p.y, 1.0] for s, p in zip(sq, pts)])
    c = determinant([[s, p.x, p.y, p.z] for s, p in zip(sq, pts)])

    return math.sqrt(max(0.0, dx * dx + dy * dy + dz * dz - 4.0 * a * c)) / (2.0 * abs(a))


def point_line_distance(point: Vector, origin: Vector, direction: Vector) -> float:
    """Distance of `point` from the infinite line through `origin` along `direction`."""
    return norm(cross(Vector.between(origin, point), direction)) / norm(direction)


def line_line_distance(p1: Vector, a1: Vector, p2: Vector, a2: Vector) -> float:
    """
    Distance between two infinite lines through p1 (direction a1) and p2
    (direction a2), via the common perpendicular n = a1 x a2.

    Parallel lines fall back to the point-to-line distance.
    """
    n = cross(a1, a2)
    n_mag = norm(n)
    if n_mag == 0.0:
        return point_line_distance(p2, p1, a1)
    return abs(dot(Vector.between(p1, p2), n)) / n_mag
