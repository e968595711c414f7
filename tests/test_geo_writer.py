from datetime import datetime

import pytest

from conftest import SINGLE_SPHERE_CONFIG

from compositegen.config import DomainConfig, GeneratorConfig
from compositegen.controller.geo_writer import GeoScriptWriter, IdCounters
from compositegen.controller.placement import PlacementEngine, cylinder_control_points
from compositegen.model.geometry_primitives import Matrix, Sphere, Vector


def _lines(writer: GeoScriptWriter, prefix: str) -> list[str]:
    return [line for line in writer.render().splitlines() if line.startswith(prefix)]


@pytest.fixture
def writer() -> GeoScriptWriter:
    w = GeoScriptWriter(DomainConfig(), mesh_size=200.0)
    w.box_and_piston()
    return w


# ============================================================================
# Box and piston
# ============================================================================

class TestBoxAndPiston(object):

    def test_record_counts(self, writer: GeoScriptWriter) -> None:
        assert len(_lines(writer, "Point(")) == 12
        assert len(_lines(writer, "Line(")) == 20
        assert len(_lines(writer, "Line Loop(")) == 11
        assert len(_lines(writer, "Plane Surface(")) == 11
        assert writer.counters == IdCounters(point=13, line=21, line_loop=12, surface=12, surface_loop=3)

    def test_points_split_at_piston_base(self, writer: GeoScriptWriter) -> None:
        points = _lines(writer, "Point(")
        assert points[0] == "Point(1) = { 0,0,0,200 };"
        assert points[2] == "Point(3) = { 10000,5000,0,200 };"
        assert points[4] == "Point(5) = { 0,0,5000,200 };"
        assert points[11] == "Point(12) = { 0,5000,5500,200 };"

    def test_topology(self, writer: GeoScriptWriter) -> None:
        assert _lines(writer, "Line(17)") == ["Line(17) = { 5,9 };"]
        assert _lines(writer, "Line Loop(1) ") == ["Line Loop(1) = { 8,-11,-7,3 };"]
        assert _lines(writer, "Line Loop(11)") == ["Line Loop(11) = { -9,-12,-11,-10 };"]

    def test_footer_without_particles(self, writer: GeoScriptWriter) -> None:
        writer.footer()
        assert _lines(writer, "Surface Loop(") == [
            "Surface Loop(1) = { 1,3,5,7,9,11 };",
            "Surface Loop(2) = { 2, 4, 6, 8, 10, 11 };",
        ]
        assert _lines(writer, "Volume(") == ["Volume(1) = { 1 };", "Volume(2) = { 2 };"]


# ============================================================================
# Particles
# ============================================================================

class TestParticles(object):

    def test_cylinder_records(self, writer: GeoScriptWriter) -> None:
        points = cylinder_control_points(10.0, 100.0, Matrix.identity(), Vector(500.0, 500.0, 500.0))
        loop = writer.cylinder(points, 20.0)

        assert loop == 3
        assert writer.surface_loops[3] == [12, 13, 14, 15, 16, 17]
        assert writer.counters.point == 23
        assert writer.counters.line == 33
        assert writer.counters.line_loop == 18
        assert writer.counters.surface == 18

        assert _lines(writer, "Point(13)") == ["Point(13) = { 500,500,500,20 };"]
        assert _lines(writer, "Circle(21)") == ["Circle(21) = { 16,13,14 };"]
        assert _lines(writer, "Line(29)") == ["Line(29) = { 14,19 };"]
        assert _lines(writer, "Line Loop(14)") == ["Line Loop(14) = { -21,31,-25,-29 };"]
        assert _lines(writer, "Plane Surface(")[-2:] == [
            "Plane Surface(12) = { 12 };", "Plane Surface(13) = { 13 };",
        ]
        assert _lines(writer, "Surface(") == [
            "Surface(14) = { 14 };", "Surface(15) = { 15 };",
            "Surface(16) = { 16 };", "Surface(17) = { 17 };",
        ]

    def test_cylinder_needs_ten_points(self, writer: GeoScriptWriter) -> None:
        with pytest.raises(ValueError, match="10 control points"):
            writer.cylinder([Vector(0.0, 0.0, 0.0)] * 9, 20.0)

    def test_sphere_records(self, writer: GeoScriptWriter) -> None:
        loop = writer.sphere(Sphere(Vector(100.0, 200.0, 300.0), 50.0), 20.0)

        assert loop == 3
        assert writer.surface_loops[3] == list(range(12, 20))
        assert _lines(writer, "Point(14)") == ["Point(14) = { 50,200,300,20 };"]
        assert _lines(writer, "Circle(")[0] == "Circle(21) = { 14,13,16 };"
        assert _lines(writer, "Line Loop(12)") == ["Line Loop(12) = { 21,25,-29 };"]
        assert len(_lines(writer, "Surface(")) == 8

    def test_footer_includes_particles(self, writer: GeoScriptWriter) -> None:
        writer.sphere(Sphere(Vector(100.0, 200.0, 300.0), 50.0), 20.0)
        writer.sphere(Sphere(Vector(900.0, 200.0, 300.0), 50.0), 20.0)
        writer.footer()

        loops = _lines(writer, "Surface Loop(")
        assert loops[0] == "Surface Loop(1) = { 1,3,5,7,9,11,12,13,14,15,16,17,18,19,20,21,22,23,24,25,26,27 };"
        assert loops[2] == "Surface Loop(3) = { 12,13,14,15,16,17,18,19 };"
        assert loops[3] == "Surface Loop(4) = { 20,21,22,23,24,25,26,27 };"
        assert _lines(writer, "Volume(")[-1] == "Volume(4) = { 4 };"

    def test_header(self) -> None:
        w = GeoScriptWriter(DomainConfig(), mesh_size=200.0)
        w.header(7, timestamp=datetime(2024, 1, 2, 3, 4, 5))
        text = w.render()
        assert text.startswith("/* Gmsh geometry script generated by compositegen")
        assert " * Rand seed: 7" in text
        assert " * Timestamp: " in text
        assert "Mesh.Algorithm = 6;" in text


# ============================================================================
# Full script
# ============================================================================

class TestGeneratedScript(object):

    def test_single_sphere_script(self, write_file) -> None:
        config = GeneratorConfig.from_file(write_file("one.cfg", SINGLE_SPHERE_CONFIG))
        script = PlacementEngine(config).run().script
        lines = script.splitlines()

        assert " * Rand seed: 1" in lines
        assert sum(line.startswith("Point(") for line in lines) == 19
        assert "Point(5) = { 0,0,90,10 };" in lines
        assert "Surface Loop(3) = { 12,13,14,15,16,17,18,19 };" in lines
        assert [line for line in lines if line.startswith("Volume(")] == [
            "Volume(1) = { 1 };", "Volume(2) = { 2 };", "Volume(3) = { 3 };",
        ]
