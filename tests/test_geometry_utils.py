import math

import numpy as np
import pytest

from compositegen.model.geometry_primitives import Cylinder, Matrix, Vector, X_AXIS
from compositegen.model.geometry_utils import (
    circumradius, cross, determinant, dist, dot, inradius, line_line_distance,
    norm, point_line_distance, rotation_matrix, unit_cross,
)


# Regular tetrahedron inscribed in a cube of side 2 around the origin
REGULAR_TET = (
    Vector(1.0, 1.0, 1.0),
    Vector(1.0, -1.0, -1.0),
    Vector(-1.0, 1.0, -1.0),
    Vector(-1.0, -1.0, 1.0),
)


# ============================================================================
# Vector algebra
# ============================================================================

class TestVectorAlgebra(object):

    def test_norm_and_dist(self) -> None:
        assert norm(Vector(3.0, 4.0, 0.0)) == 5.0
        assert dist(Vector(1.0, 1.0, 1.0), Vector(1.0, 1.0, 3.0)) == 2.0

    def test_dot_vector(self) -> None:
        assert dot(Vector(1.0, 2.0, 3.0), Vector(4.0, -5.0, 6.0)) == 12.0

    def test_dot_matrix_applies_rows(self) -> None:
        m = Matrix(Vector(0.0, -1.0, 0.0), Vector(1.0, 0.0, 0.0), Vector(0.0, 0.0, 1.0))
        assert dot(m, Vector(1.0, 0.0, 0.0)) == Vector(0.0, 1.0, 0.0)

    def test_matrix_to_array_stacks_rows(self) -> None:
        m = Matrix(Vector(1.0, 2.0, 3.0), Vector(4.0, 5.0, 6.0), Vector(7.0, 8.0, 9.0))
        np.testing.assert_array_equal(m.to_array(), [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
        np.testing.assert_array_equal(Matrix.identity().to_array(), np.eye(3))

    def test_cross_right_handed(self) -> None:
        assert cross(Vector(1.0, 0.0, 0.0), Vector(0.0, 1.0, 0.0)) == Vector(0.0, 0.0, 1.0)

    def test_unit_cross_is_normalized(self) -> None:
        u = unit_cross(Vector(2.0, 0.0, 0.0), Vector(0.0, 3.0, 0.0))
        assert u == Vector(0.0, 0.0, 1.0)

    def test_unit_cross_of_equal_inputs_is_zero(self) -> None:
        v = Vector(0.3, -0.2, 0.9)
        assert unit_cross(v, v) == Vector(0.0, 0.0, 0.0)

    def test_unit_cross_of_parallel_inputs_is_zero(self) -> None:
        assert unit_cross(Vector(1.0, 0.0, 0.0), Vector(-2.0, 0.0, 0.0)) == Vector(0.0, 0.0, 0.0)

    def test_cylinder_derived_axis_and_length(self) -> None:
        cyl = Cylinder(center=Vector(1.0, 1.0, 1.0), end=Vector(1.0, 1.0, 5.0), radius=0.5)
        assert cyl.axis == Vector(0.0, 0.0, 1.0)
        assert cyl.length == 4.0
        assert cyl.volume == pytest.approx(math.pi * 0.25 * 4.0)


# ============================================================================
# Rotation
# ============================================================================

class TestRotationMatrix(object):

    def test_x_onto_y(self) -> None:
        m = rotation_matrix(X_AXIS, Vector(0.0, 1.0, 0.0))
        np.testing.assert_allclose(dot(m, X_AXIS).to_array(), [0.0, 1.0, 0.0], atol=1e-12)

    @pytest.mark.parametrize("target", [
        Vector(1.0, 2.0, 3.0),
        Vector(-0.4, 0.1, -0.9),
        Vector(0.0, 0.0, -1.0),
        Vector(0.7, -0.7, 0.01),
    ])
    def test_takes_x_onto_direction(self, target: Vector) -> None:
        m = rotation_matrix(X_AXIS, target)
        np.testing.assert_allclose(
            dot(m, X_AXIS).to_array(), target.normalize().to_array(), atol=1e-12
        )

    def test_preserves_lengths(self) -> None:
        m = rotation_matrix(X_AXIS, Vector(0.2, -0.5, 0.8))
        v = Vector(3.0, -1.0, 2.0)
        assert norm(dot(m, v)) == pytest.approx(norm(v))

    def test_is_orthonormal(self) -> None:
        m = rotation_matrix(X_AXIS, Vector(-0.3, 0.6, 0.2)).to_array()
        np.testing.assert_allclose(m @ m.T, np.eye(3), atol=1e-12)

    def test_same_direction_is_identity(self) -> None:
        m = rotation_matrix(X_AXIS, Vector(5.0, 0.0, 0.0))
        np.testing.assert_allclose(m.to_array(), np.eye(3), atol=1e-12)

    def test_opposite_direction_flips(self) -> None:
        m = rotation_matrix(X_AXIS, Vector(-1.0, 0.0, 0.0))
        np.testing.assert_allclose(m.to_array(), -np.eye(3), atol=1e-12)


# ============================================================================
# Determinant and tetrahedron radii
# ============================================================================

class TestTetrahedronRadii(object):

    def test_determinant_diagonal(self) -> None:
        assert determinant([[2.0, 0.0, 0.0], [0.0, 3.0, 0.0], [0.0, 0.0, 4.0]]) == 24.0

    def test_determinant_matches_numpy(self) -> None:
        m = [
            [2.0, -1.0, 0.5, 3.0],
            [1.0, 4.0, -2.0, 0.0],
            [0.0, 1.5, 3.0, -1.0],
            [5.0, 0.0, 1.0, 2.0],
        ]
        np.testing.assert_allclose(determinant(m), np.linalg.det(np.array(m)), rtol=1e-12)

    def test_regular_tetrahedron(self) -> None:
        r = inradius(*REGULAR_TET)
        R = circumradius(*REGULAR_TET)
        np.testing.assert_allclose(r, 1.0 / math.sqrt(3.0), rtol=1e-12)
        np.testing.assert_allclose(R, math.sqrt(3.0), rtol=1e-12)
        np.testing.assert_allclose(R / r, 3.0, rtol=1e-12)

    def test_right_corner_tetrahedron(self) -> None:
        A, B, C, D = Vector(0, 0, 0), Vector(1, 0, 0), Vector(0, 1, 0), Vector(0, 0, 1)
        np.testing.assert_allclose(circumradius(A, B, C, D), math.sqrt(3.0) / 2.0, rtol=1e-12)
        np.testing.assert_allclose(inradius(A, B, C, D), 1.0 / (3.0 + math.sqrt(3.0)), rtol=1e-12)

    def test_coplanar_points_are_not_an_error(self) -> None:
        pts = (Vector(0, 0, 0), Vector(1, 0, 0), Vector(0, 1, 0), Vector(1, 1, 0))
        assert math.isnan(circumradius(*pts))
        assert inradius(*pts) == 0.0

    def test_collapsed_points(self) -> None:
        p = Vector(1.0, 2.0, 3.0)
        assert inradius(p, p, p, p) == 0.0
        assert math.isnan(circumradius(p, p, p, p))


# ============================================================================
# Line distances
# ============================================================================

class TestLineDistances(object):

    def test_point_line_distance(self) -> None:
        d = point_line_distance(Vector(4.0, 3.0, 0.0), Vector(0.0, 0.0, 0.0), Vector(2.0, 0.0, 0.0))
        assert d == 3.0

    def test_skew_lines(self) -> None:
        d = line_line_distance(
            Vector(0.0, 0.0, 0.0), Vector(1.0, 0.0, 0.0),
            Vector(7.0, -2.0, 5.0), Vector(0.0, 1.0, 0.0),
        )
        assert d == 5.0

    def test_parallel_lines_fall_back_to_point_distance(self) -> None:
        d = line_line_distance(
            Vector(0.0, 0.0, 0.0), Vector(1.0, 0.0, 0.0),
            Vector(3.0, 4.0, 0.0), Vector(-2.0, 0.0, 0.0),
        )
        assert d == 4.0

    def test_intersecting_lines(self) -> None:
        d = line_line_distance(
            Vector(0.0, 0.0, 0.0), Vector(1.0, 1.0, 0.0),
            Vector(2.0, 0.0, 0.0), Vector(-1.0, 1.0, 0.0),
        )
        assert d == pytest.approx(0.0)
