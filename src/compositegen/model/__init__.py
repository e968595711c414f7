"""
The MODEL layer contains pure data structures and geometry.
It has NO knowledge of the placement algorithm or of Gmsh.
It deals with Geometry, Materials, the particle layout and I/O.
"""
