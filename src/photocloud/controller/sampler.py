"""
Pixel Sampler (Pillow Adapter)
==============================
Decodes one photograph into per-pixel luminance and color samples.

Why is this file needed?
------------------------
1. Translation: It converts raw JPEG/PNG bytes into normalized image-plane
   coordinates, the only representation the rest of the pipeline knows.
2. Gatekeeping: Unsupported types are rejected before Pillow ever sees them.
"""
from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image

from photocloud.model.dataset import PhotoDataset
from photocloud.model.errors import DecodeFailure, UnsupportedMediaError
from photocloud.model.photos import SourceImage, is_accepted_type

logger = logging.getLogger(__name__)


class PixelSampler:
    """
    Pixel i (row-major) of a W x H image maps to

        x = (i mod W) / W - 0.5
        y = floor(i / W) / H - 0.5

    luminance is the mean of the three channels, colors are channels / 255.
    """

    @staticmethod
    def accepts(mime_type: str) -> bool:
        return is_accepted_type(mime_type)

    def decode(self, image: SourceImage) -> np.ndarray:
        """Return an (H, W, 3) uint8 RGB array."""
        if not self.accepts(image.mime_type):
            raise UnsupportedMediaError(image.mime_type, image.name)
        try:
            with Image.open(io.BytesIO(image.data)) as img:
                img.load()
                # Palette, grayscale and alpha images all end up as plain RGB
                return np.asarray(img.convert("RGB"), dtype=np.uint8)
        except Exception as e:
            # Pillow reports broken files as OSError, SyntaxError, EOFError, ... depending on the plugin
            raise DecodeFailure(image.name, str(e)) from e

    def sample(self, image: SourceImage) -> PhotoDataset:
        """Decode and sample one photograph. The fragment has source_count=1."""
        rgb = self.decode(image)
        height, width = rgb.shape[:2]

        idx = np.arange(width * height)
        x = (idx % width) / width - 0.5
        y = (idx // width) / height - 0.5

        pixels = rgb.reshape(-1, 3).astype(np.float64)
        luminance = pixels.sum(axis=1) / (3 * 255)
        colors = pixels / 255.0

        logger.debug(f"Sampled '{image.name}': {width}x{height} px.")
        return PhotoDataset(
            xy=np.column_stack((x, y)),
            luminance=luminance,
            colors=colors,
            source_count=1,
        )
