"""
Settings Controller
===================
Owns the current ScanSettings and decides when the point cloud has to be
regenerated.

Why is this file needed?
------------------------
1. Debounce: Dragging a slider fires dozens of valueChanged signals per
   second. A single-shot QTimer is restarted on every change, so only one
   regeneration runs once the slider has been still for DEBOUNCE_MS.
2. Latest wins: The timer carries no arguments. When it fires, it reads the
   settings as they are at that moment.
3. Routing: Background color changes bypass the debounce; they rebuild the
   viewer, not the geometry.
"""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from photocloud.config import DEBOUNCE_MS
from photocloud.model.state import GEOMETRY_FIELDS, ScanSettings

logger = logging.getLogger(__name__)


class SettingsController(QObject):
    settings_changed = Signal(object)  # ScanSettings
    regenerate_requested = Signal(object)  # ScanSettings at fire time
    background_changed = Signal(str)

    def __init__(
        self,
        settings: Optional[ScanSettings] = None,
        debounce_ms: int = DEBOUNCE_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._settings: ScanSettings = (settings or ScanSettings()).clamped()

        # init debounce timer
        self._regen_timer = QTimer(self)
        self._regen_timer.setSingleShot(True)
        self._regen_timer.setInterval(debounce_ms)
        self._regen_timer.timeout.connect(self._fire)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    @property
    def settings(self) -> ScanSettings:
        return self._settings

    @property
    def is_pending(self) -> bool:
        return self._regen_timer.isActive()

    def update(self, **changes: object) -> ScanSettings:
        """
        Apply field changes (clamped to the slider ranges).

        Geometry fields (re)start the debounce timer, the background color is
        forwarded immediately.
        """
        new = self._settings.with_changes(**changes).clamped()
        return self.replace(new)

    def replace(self, settings: ScanSettings) -> ScanSettings:
        new = settings.clamped()
        changed = new.changed_fields(self._settings)
        if not changed:
            return self._settings

        self._settings = new
        logger.debug(f"Settings changed: {', '.join(sorted(changed))}")
        self.settings_changed.emit(new)

        if "background_color" in changed:
            self.background_changed.emit(new.background_color)
        if changed & GEOMETRY_FIELDS:
            self.schedule()
        return new

    def reset(self) -> ScanSettings:
        return self.replace(ScanSettings())

    def schedule(self) -> None:
        """Cancel-and-replace: restarting an active timer discards the old deadline."""
        self._regen_timer.start()

    def request_now(self) -> None:
        """Skip the debounce window (e.g. the Generate button)."""
        self._regen_timer.stop()
        self._fire()

    def cancel(self) -> None:
        self._regen_timer.stop()

    # ------------------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------------------

    def _fire(self) -> None:
        self.regenerate_requested.emit(self._settings)
