import logging
from types import SimpleNamespace

import pytest

from conftest import SINGLE_SPHERE_CONFIG

from compositegen.errors import MeshingError
from compositegen.main import geogen

pytest.importorskip("gmsh")

from compositegen.controller import mesher  # noqa: E402


@pytest.fixture
def reset_logging():
    yield
    package_logger = logging.getLogger("compositegen")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


class _FakeGmsh(object):
    """Records the calls of the mesher instead of running Gmsh."""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[str] = []
        self.options: dict[str, float] = {}
        self._fail = fail
        self.option = SimpleNamespace(set_number=self._set_number)
        self.model = SimpleNamespace(mesh=SimpleNamespace(
            generate=self._generate, optimize=self._optimize,
            get_nodes=self._get_nodes, get_elements=self._get_elements,
        ))

    def initialize(self) -> None:
        self.calls.append("initialize")

    def is_initialized(self) -> bool:
        return "initialize" in self.calls

    def finalize(self) -> None:
        self.calls.append("finalize")

    def open(self, path: str) -> None:
        self.calls.append(f"open {path}")

    def write(self, path: str) -> None:
        self.calls.append(f"write {path}")

    def _set_number(self, name: str, value: float) -> None:
        self.options[name] = value

    def _generate(self, dim: int) -> None:
        if self._fail:
            raise Exception("meshing failed")
        self.calls.append(f"generate {dim}")

    def _optimize(self, method: str) -> None:
        self.calls.append("optimize")

    def _get_nodes(self):
        return [1, 2, 3, 4, 5], [], []

    def _get_elements(self, dim: int):
        return [4], [[1, 2]], [[]]


class TestGmshMesher(object):

    def test_mesh_geo_file(self, monkeypatch, tmp_path) -> None:
        fake = _FakeGmsh()
        monkeypatch.setattr(mesher, "gmsh", fake)

        stats = mesher.GmshMesher().mesh_geo_file(tmp_path / "a.geo", tmp_path / "a.msh")

        assert (stats.num_nodes, stats.num_elements) == (5, 2)
        assert stats.filepath == str(tmp_path / "a.msh")
        assert fake.options["Mesh.MshFileVersion"] == 2.2
        assert fake.options["Mesh.Binary"] == 0
        assert fake.calls[0] == "initialize"
        assert "generate 3" in fake.calls
        assert fake.calls[-1] == "finalize"

    def test_failure_still_finalizes(self, monkeypatch, tmp_path) -> None:
        fake = _FakeGmsh(fail=True)
        monkeypatch.setattr(mesher, "gmsh", fake)

        with pytest.raises(MeshingError, match="meshing failed") as info:
            mesher.GmshMesher().mesh_geo_file(tmp_path / "a.geo", tmp_path / "a.msh")
        assert type(info.value.__cause__) is Exception
        assert fake.calls[-1] == "finalize"

    def test_optimization_can_be_disabled(self, monkeypatch, tmp_path) -> None:
        fake = _FakeGmsh()
        monkeypatch.setattr(mesher, "gmsh", fake)

        mesher.GmshMesher(algorithm_3d=mesher.HXT_3D, optimize=False).mesh_geo_file(
            tmp_path / "a.geo", tmp_path / "a.msh"
        )
        assert "optimize" not in fake.calls
        assert fake.options["Mesh.Algorithm3D"] == mesher.HXT_3D

    def test_geogen_reports_meshing_failure(self, monkeypatch, write_file, tmp_path, caplog, reset_logging) -> None:
        monkeypatch.setattr(mesher, "gmsh", _FakeGmsh(fail=True))
        cfg = write_file("one.cfg", SINGLE_SPHERE_CONFIG)
        geo = tmp_path / "out.geo"
        args = ["-f", str(cfg), "-o", str(geo), "-m", str(tmp_path / "cp.mat"), "--mesh", str(tmp_path / "out.msh")]

        with caplog.at_level(logging.ERROR, logger="compositegen"):
            assert geogen(args) == 1
        assert "meshing failed Exiting.." in caplog.text
        assert geo.exists()
