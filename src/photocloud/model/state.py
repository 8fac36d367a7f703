"""
Scan Settings (Data Model)
==========================
This module defines the user-tunable configuration of the point cloud.

Why is this file needed?
------------------------
1. Single Value: All sliders of the Settings panel write into one immutable
   ScanSettings value. Replacing it never touches the decoded photographs.
2. Ranges: The documented slider ranges live next to the fields so the UI
   can clamp before anything reaches the pipeline.

Classes:
    ScanSettings: The settings value.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
import logging
import re

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

# (min, max) per numeric field, inclusive
SETTINGS_RANGES: dict[str, tuple[float, float]] = {
    "point_size": (0.01, 0.1),
    "point_density": (0.01, 0.5),
    "color_intensity": (0.1, 2.0),
    "depth_effect": (0.1, 2.0),
}

# Fields whose change requires a new resample (background only rebuilds the viewer)
GEOMETRY_FIELDS: frozenset[str] = frozenset(SETTINGS_RANGES)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


def hex_to_rgb(color: str) -> tuple[float, float, float]:
    """'#ff8000' -> (1.0, 0.50196, 0.0)"""
    if not _HEX_COLOR.match(color):
        raise ValueError(f"Expected a '#rrggbb' color, got {color!r}.")
    return tuple(int(color[i:i + 2], 16) / 255.0 for i in (1, 3, 5))


@dataclass(frozen=True)
class ScanSettings:
    point_size: float = 0.02
    point_density: float = 0.1
    color_intensity: float = 1.0
    depth_effect: float = 1.0
    background_color: str = "#ffffff"

    def clamped(self) -> ScanSettings:
        """
        Return a copy with every numeric field clamped into its slider range.

        The pipeline itself never re-validates ranges; this is the UI's job.
        A malformed background color falls back to the default.
        """
        changes: dict[str, object] = {
            name: _clamp(getattr(self, name), lo, hi)
            for name, (lo, hi) in SETTINGS_RANGES.items()
        }
        if not _HEX_COLOR.match(self.background_color):
            logger.warning(f"Invalid background color {self.background_color!r}, using default.")
            changes["background_color"] = ScanSettings.background_color
        return replace(self, **changes)

    def with_changes(self, **changes: object) -> ScanSettings:
        """Replace the given fields. Unknown field names raise TypeError."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown settings field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def changed_fields(self, other: ScanSettings) -> set[str]:
        return {f.name for f in fields(self) if getattr(self, f.name) != getattr(other, f.name)}

    @property
    def background_rgb(self) -> tuple[float, float, float]:
        return hex_to_rgb(self.background_color)


DEFAULT_SETTINGS = ScanSettings()
