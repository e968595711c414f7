"""
Placement, classification and partitioning
==========================================
The algorithms that turn a configuration into a geometry script and a mesh
into a partitioned mesh.
"""
