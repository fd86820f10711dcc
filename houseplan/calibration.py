from __future__ import annotations
import logging, math
from dataclasses import replace
from typing import Callable, Optional

from .geometry import distance, line_length, polygon_area
from .models import Line, Mode
from .utils import area_unit

log = logging.getLogger(__name__)


class CalibrationProtocol:
    """Reference-line calibration: draw a line, then type its real length.

    Idle -> (reference line drawn) -> AwaitingDistance -> apply | cancel -> Idle
    """
    IDLE = "idle"
    AWAITING_DISTANCE = "awaiting_distance"

    def __init__(self, store, status_cb: Optional[Callable[[str], None]] = None):
        self.store = store
        self.state = self.IDLE
        self.reference: Optional[Line] = None
        self._status_cb = status_cb

    @property
    def awaiting_distance(self) -> bool:
        return self.state == self.AWAITING_DISTANCE

    def begin(self):
        """Enter calibrate mode; any pending reference line is dropped."""
        self.reference = None
        self.state = self.IDLE
        self.store.set_mode(Mode.CALIBRATE)

    def on_reference_line_drawn(self, line: Line):
        self.reference = line
        self.state = self.AWAITING_DISTANCE
        self._status(f"Reference line: {distance(line.start, line.end):.1f} px, enter its real length")

    @staticmethod
    def parse_distance(value) -> Optional[float]:
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                value = float(value.strip().replace(",", "."))
            except ValueError:
                return None
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
            return None
        return float(value)

    def apply(self, distance_value, unit: Optional[str] = None) -> bool:
        """Set the scale from the pending reference line.

        Invalid input leaves everything as it was; the caller stays in the
        distance prompt and may retry or cancel.
        """
        if not self.awaiting_distance or self.reference is None:
            return False
        real = self.parse_distance(distance_value)
        if real is None:
            log.warning("calibration distance rejected: %r", distance_value)
            self._status("Enter a positive number")
            return False
        px = distance(self.reference.start, self.reference.end)
        if px <= 0:
            log.debug("zero-length reference line, calibration refused")
            return False

        unit = unit or self.store.unit
        scale = px / real
        lines = [replace(l, length=line_length(l.start, l.end, scale), unit=unit) for l in self.store.lines]
        polygons = [replace(p, area=polygon_area(p.points, scale), unit=area_unit(unit))
                    for p in self.store.polygons]
        self.store.set_calibration(scale, unit, lines, polygons)
        log.info("calibrated: %.4f px/%s from %.1f px = %g %s", scale, unit, px, real, unit)

        self.reference = None
        self.state = self.IDLE
        self.store.set_mode(Mode.MEASURE)
        self._status(f"Scale set: {scale:.2f} px per {unit}")
        return True

    def cancel(self):
        self.reference = None
        self.state = self.IDLE

    def _status(self, text: str):
        if self._status_cb:
            self._status_cb(text)
