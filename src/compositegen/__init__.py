"""
compositegen - random particle microstructures for composite FEA models.

Two tools share this package:
- geogen: places non-overlapping cylinders/spheres in a box and writes a Gmsh
  geometry script plus a particle control-point file.
- eurekagen: reads the tetrahedral mesh of that script, classifies every node
  and element into material/matrix/piston regions and boundary node groups,
  and writes the partitioned mesh.
"""

__version__ = "0.1.0"
