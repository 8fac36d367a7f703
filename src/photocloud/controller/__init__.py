"""
Point Cloud Pipeline
====================
Photographs -> PixelSampler -> PointCloudCache -> DensityResampler -> RenderGeometry.

Note: The sampler, cache and resampler are pure Python/NumPy/Pillow and do
NOT import PySide6. Only the workers and the settings controller are Qt aware.
"""
