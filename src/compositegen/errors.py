"""
Error Taxonomy
==============
All fatal conditions raised by the generator and the classifier derive from
CompositeGenError so the command-line layer can report them uniformly.
"""


class CompositeGenError(Exception):
    """Base class for fatal errors of both tools."""


class ConfigurationError(CompositeGenError, ValueError):
    """Invalid, missing or contradictory configuration or control-point data."""


class PlacementError(CompositeGenError, RuntimeError):
    """A particle could not be placed within the iteration limit."""

    def __init__(self, material: str, attempts: int) -> None:
        super().__init__(
            f"Reached limit for iterative particle insertion ({attempts} attempts) "
            f"while placing material '{material}'."
        )
        self.material = material
        self.attempts = attempts


class MeshFormatError(CompositeGenError, ValueError):
    """The mesh file has no readable node block."""


class MeshingError(CompositeGenError, RuntimeError):
    """Gmsh could not mesh the geometry script."""
