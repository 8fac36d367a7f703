"""
Error Taxonomy
==============
All failures of the point cloud pipeline and the viewer are local and
non-fatal. These exceptions exist so the layers can tell the cases apart;
the callers catch them, log, and carry on.
"""


class PhotoCloudError(Exception):
    """Base class for all photocloud errors."""


class UnsupportedMediaError(PhotoCloudError):
    """The declared MIME type is not one of the accepted raster formats."""

    def __init__(self, mime_type: str, name: str = "") -> None:
        self.mime_type = mime_type
        self.name = name
        label = f" '{name}'" if name else ""
        super().__init__(f"Unsupported media type{label}: {mime_type!r}")


class DecodeFailure(PhotoCloudError):
    """An accepted image type could not be decoded."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to decode '{name}': {reason}")


class EmptyInputError(PhotoCloudError):
    """Generation requested with zero photographs (soft, treated as a no-op)."""


class RenderSurfaceUnavailable(PhotoCloudError):
    """A viewer operation was invoked without a valid display surface."""
