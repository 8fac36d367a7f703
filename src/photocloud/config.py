"""
Configuration & Constants
=========================
This module serves as the central registry for global constants.

Why is this file needed?
------------------------
1. Abstraction: It keeps the magic numbers of the pipeline (world scale,
   debounce window, camera framing) in one place instead of scattering them
   through the controllers and widgets.
2. Overrides: The environment variable names read at startup are declared
   here, next to the defaults they override.

Exports:
    ACCEPTED_MIME_TYPES (frozenset[str]): Raster formats the sampler decodes.
"""
import os

# --- Intake ---
ACCEPTED_MIME_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/jpg", "image/png"})
ACCEPTED_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png")
# Parallel decodes when the dataset is (re)built
DECODE_WORKERS: int = min(4, os.cpu_count() or 1)

# --- Pipeline ---
WORLD_SCALE: float = 5.0  # image plane [-0.5, 0.5] -> world [-2.5, 2.5]
DEBOUNCE_MS: int = 100

# --- Viewer ---
FRAME_INTERVAL_MS: int = 16  # ~60 FPS
# Mirror the cloud vertically on screen only; the geometry keeps worldY = y * 5
DISPLAY_FLIP_Y: bool = True
CAMERA_FOV: float = 75.0
CAMERA_NEAR: float = 0.1
CAMERA_FAR: float = 1000.0
CAMERA_DEFAULT_POSITION: tuple[float, float, float] = (0.0, 0.0, 5.0)
CAMERA_DEFAULT_TARGET: tuple[float, float, float] = (0.0, 0.0, 0.0)

CONTROLS_DAMPING: float = 0.05
CONTROLS_MIN_DISTANCE: float = 1.0
CONTROLS_MAX_DISTANCE: float = 50.0

AMBIENT_INTENSITY: float = 0.6
KEY_LIGHT_INTENSITY: float = 0.8
KEY_LIGHT_POSITION: tuple[float, float, float] = (1.0, 1.0, 1.0)
FILL_LIGHT_INTENSITY: float = 0.3
FILL_LIGHT_POSITION: tuple[float, float, float] = (-1.0, -1.0, -1.0)

# --- Environment overrides ---
LOG_LEVEL_ENV: str = "PHOTOCLOUD_LOG_LEVEL"
LOG_FILE_ENV: str = "PHOTOCLOUD_LOG_FILE"
