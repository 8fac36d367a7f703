"""
Photo Intake (Data Model)
=========================
The ordered list of photographs the user has loaded.

Why is this file needed?
------------------------
1. Filtering: Only JPEG/PNG files may reach the pipeline. Everything else is
   rejected here, before any decode is attempted.
2. Ownership: The view attaches a preview handle (thumbnail) to each photo.
   Removing a photo releases that handle through a registered callback.

Classes:
    SourceImage: Raw bytes + declared MIME type.
    PhotoCollection: Ordered, index-addressable list of SourceImage.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import mimetypes
import os
from typing import Any, Callable, Iterable, Iterator, Optional

from photocloud.config import ACCEPTED_MIME_TYPES

logger = logging.getLogger(__name__)


def is_accepted_type(mime_type: Optional[str]) -> bool:
    return bool(mime_type) and mime_type.lower() in ACCEPTED_MIME_TYPES


@dataclass(eq=False)
class SourceImage:
    """
    An opaque decodable image resource.

    `preview` is a handle owned by the view (e.g. a QPixmap thumbnail); the
    pipeline never looks at it.
    """
    data: bytes
    mime_type: str
    name: str = ""
    preview: Any = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: str) -> SourceImage:
        """Read a file and declare its MIME type from the extension."""
        mime_type, _ = mimetypes.guess_type(path)
        with open(path, "rb") as f:
            data = f.read()
        return cls(data=data, mime_type=mime_type or "application/octet-stream", name=os.path.basename(path))

    @property
    def is_accepted(self) -> bool:
        return is_accepted_type(self.mime_type)


class PhotoCollection:
    """Ordered photographs with removal by index."""

    def __init__(self, release_preview: Optional[Callable[[SourceImage], None]] = None) -> None:
        self._photos: list[SourceImage] = []
        self._release_preview = release_preview

    def __len__(self) -> int:
        return len(self._photos)

    def __iter__(self) -> Iterator[SourceImage]:
        return iter(self._photos)

    def __getitem__(self, index: int) -> SourceImage:
        return self._photos[index]

    def snapshot(self) -> list[SourceImage]:
        """Copy of the current order, safe to hand to a background thread."""
        return list(self._photos)

    def add(self, images: Iterable[SourceImage]) -> list[SourceImage]:
        """Append the accepted images and return them; others are logged and dropped."""
        added: list[SourceImage] = []
        for image in images:
            if not image.is_accepted:
                logger.warning(f"Rejected '{image.name}': unsupported type {image.mime_type!r}.")
                continue
            self._photos.append(image)
            added.append(image)
        return added

    def add_paths(self, paths: Iterable[str]) -> list[SourceImage]:
        """Read files from disk. Files of the wrong type are not even read."""
        images: list[SourceImage] = []
        for path in paths:
            mime_type, _ = mimetypes.guess_type(path)
            if not is_accepted_type(mime_type):
                logger.warning(f"Rejected '{path}': unsupported type {mime_type!r}.")
                continue
            try:
                images.append(SourceImage.from_path(path))
            except OSError as e:
                logger.error(f"Could not read '{path}': {e}")
        return self.add(images)

    def remove(self, index: int) -> SourceImage:
        """Remove by index and release the photo's preview handle."""
        photo = self._photos.pop(index)
        self._release(photo)
        return photo

    def clear(self) -> None:
        for photo in self._photos:
            self._release(photo)
        self._photos.clear()

    def _release(self, photo: SourceImage) -> None:
        if photo.preview is None:
            return
        if self._release_preview is not None:
            try:
                self._release_preview(photo)
            except Exception as e:
                logger.warning(f"Failed to release preview of '{photo.name}': {e}")
        photo.preview = None
