"""
photocloud
==========
Turns a set of photographs into an interactive 3D point cloud, using pixel
brightness as a stand-in for depth.
"""
__version__ = "0.1.0"
