from __future__ import annotations
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from PySide6.QtCore import QObject, Qt, Signal

from .calibration import CalibrationProtocol
from .factory import EntityFactory
from .geometry import axis_snap, distance
from .models import Mode, Line, Point, Entity
from .utils import MIN_LINE_PX

log = logging.getLogger(__name__)


class InteractionStateMachine(QObject):
    """Turns pointer input in the current mode into drafts and commits.

    Drafts live here until committed; the store only ever sees finished
    entities. Positions are image pixels (QPointF, Point or (x, y)).
    """
    draftChanged = Signal()
    committed = Signal(object)

    def __init__(self, store, library=None, status_cb: Optional[Callable[[str], None]] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.store = store
        self.factory = EntityFactory(store, library, status_cb)
        self.calibration = CalibrationProtocol(store, status_cb)
        self._draft_line: Optional[Line] = None
        self._draft_points: List[Point] = []
        self._status_cb = status_cb
        store.modeChanged.connect(self._on_mode_changed)

    # ---- drafts (read-only for the renderer) ----
    @property
    def draft_line(self) -> Optional[Line]:
        return self._draft_line

    @property
    def draft_polygon(self) -> Tuple[Point, ...]:
        return tuple(self._draft_points)

    @property
    def is_drawing(self) -> bool:
        return self._draft_line is not None

    def cancel_draft(self):
        if self._draft_line is None and not self._draft_points:
            return
        self._draft_line = None
        self._draft_points = []
        self.draftChanged.emit()

    # ---- modes ----
    def set_mode(self, mode: str) -> bool:
        if mode == Mode.CALIBRATE:
            self.begin_calibration()
            return True
        return self.store.set_mode(mode)

    def begin_calibration(self):
        self.cancel_draft()
        self.calibration.begin()

    def _on_mode_changed(self, mode: str):
        self.cancel_draft()
        if mode != Mode.CALIBRATE:
            self.calibration.cancel()

    # ---- pointer ----
    def pointer_down(self, pos, button=Qt.LeftButton, modifiers=Qt.NoModifier) -> bool:
        if button != Qt.LeftButton:
            return False
        mode = self.store.mode
        p = Point.of(pos)

        if mode == Mode.VIEW:
            return False
        if mode == Mode.AREA:
            self._draft_points.append(p)
            self.draftChanged.emit()
            return True
        if mode == Mode.ANNOTATE:
            note = self.store.add_annotation(self.factory.annotation(p))
            self.store.select(note.id)
            self.committed.emit(note)
            return True
        if mode == Mode.CALIBRATE and self.calibration.awaiting_distance:
            return False

        self._draft_line = self.factory.draft_line(p, mode)
        self.draftChanged.emit()
        return True

    def pointer_move(self, pos, modifiers=Qt.NoModifier) -> bool:
        if self._draft_line is None:
            return False
        p = Point.of(pos)
        # Shift draws freely, otherwise lock to the dominant axis
        if not (modifiers & Qt.ShiftModifier):
            p = axis_snap(self._draft_line.start, p)
        self._draft_line = replace(self._draft_line, end=p)
        self.draftChanged.emit()
        return True

    def pointer_up(self, pos=None, modifiers=Qt.NoModifier) -> Optional[Entity]:
        if self._draft_line is None:
            return None
        if pos is not None:
            self.pointer_move(pos, modifiers)
        line = self._draft_line
        self._draft_line = None
        self.draftChanged.emit()

        if distance(line.start, line.end) < MIN_LINE_PX:
            log.debug("draft line under %.0f px discarded", MIN_LINE_PX)
            return None
        mode = self.store.mode
        if mode == Mode.CALIBRATE:
            self.calibration.on_reference_line_drawn(line)
            return None
        if mode == Mode.MEASURE and self.store.is_calibrated:
            committed = self.store.add_line(self.factory.measured(line))
            self.committed.emit(committed)
            return committed
        return None

    # ---- area ----
    def finish_polygon(self) -> Optional[Entity]:
        if len(self._draft_points) < 3:
            self.cancel_draft()
            return None
        if not self.store.is_calibrated:
            return None
        poly = self.store.add_polygon(self.factory.polygon(self._draft_points))
        self._draft_points = []
        self.draftChanged.emit()
        self.committed.emit(poly)
        return poly

    def undo_last_point(self) -> bool:
        if not self._draft_points:
            return False
        self._draft_points.pop()
        self.draftChanged.emit()
        return True

    # ---- calibration / furniture ----
    def apply_calibration(self, distance_value, unit: Optional[str] = None) -> bool:
        return self.calibration.apply(distance_value, unit)

    def cancel_calibration(self):
        self.calibration.cancel()

    def place_furniture(self, template, image=None):
        item = self.factory.place_furniture(template, image)
        if item is not None:
            self.committed.emit(item)
        return item
