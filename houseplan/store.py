from __future__ import annotations
import json, logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from .errors import DuplicateIdError
from .geometry import line_length, polygon_area
from .models import (Mode, EntityKind, NAME_FIELD, Entity, Line, Polygon, FurnitureItem,
                     Annotation, Point, ProjectData)
from .state import ProjectState
from .utils import DEFAULT_UNIT, ROTATION_STEP, area_unit, is_positive_number, normalize_rotation

log = logging.getLogger(__name__)


class EntityStore(QObject):
    """Owns every drawn entity plus calibration, mode and selection.

    Collections are tuples of frozen dataclasses and every commit replaces
    them wholesale, so a snapshot can never be changed behind its back.
    Mode and selection are transient: they are not part of snapshots.
    """

    # pre-mutation snapshot (JSON), label; emitted before the change is applied
    aboutToCommit = Signal(str, str)
    changed = Signal()
    modeChanged = Signal(str)
    selectionChanged = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.state = ProjectState()
        self._data: Dict[str, Tuple[Entity, ...]] = {k: () for k in EntityKind.ALL}
        self._index: Dict[str, str] = {}
        self._scale: Optional[float] = None
        self._unit: str = DEFAULT_UNIT
        self._mode: str = Mode.VIEW
        self._selected_id: Optional[str] = None
        self._depth = 0

    # ---- read side ----
    @property
    def lines(self) -> Tuple[Line, ...]: return self._data[EntityKind.LINE]

    @property
    def polygons(self) -> Tuple[Polygon, ...]: return self._data[EntityKind.POLYGON]

    @property
    def furniture(self) -> Tuple[FurnitureItem, ...]: return self._data[EntityKind.FURNITURE]

    @property
    def annotations(self) -> Tuple[Annotation, ...]: return self._data[EntityKind.ANNOTATION]

    @property
    def scale(self) -> Optional[float]: return self._scale

    @property
    def unit(self) -> str: return self._unit

    @property
    def is_calibrated(self) -> bool: return self._scale is not None

    @property
    def mode(self) -> str: return self._mode

    @property
    def selected_id(self) -> Optional[str]: return self._selected_id

    @property
    def selected_furniture_id(self) -> Optional[str]:
        if self.kind_of(self._selected_id) == EntityKind.FURNITURE:
            return self._selected_id
        return None

    def kind_of(self, entity_id: Optional[str]) -> Optional[str]:
        return self._index.get(entity_id) if entity_id is not None else None

    def get(self, entity_id: str) -> Optional[Entity]:
        kind = self.kind_of(entity_id)
        if kind is None:
            return None
        return next(e for e in self._data[kind] if e.id == entity_id)

    def total_length(self) -> float:
        return sum(l.length or 0.0 for l in self.lines)

    def total_area(self) -> float:
        return sum(p.area or 0.0 for p in self.polygons)

    def snapshot(self) -> str:
        return self.state.dumps(self)

    # ---- commits ----
    @contextmanager
    def transaction(self, label: str = "change"):
        """Group mutations into one commit (one undo step)."""
        if self._depth == 0:
            self.aboutToCommit.emit(self.snapshot(), label)
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
        if self._depth == 0:
            log.debug("commit: %s", label)
            self.changed.emit()

    def _reindex(self, replacing: Dict[str, Tuple[Entity, ...]]) -> Dict[str, str]:
        """Id index after swapping in the given collections; raises on a clash."""
        index = {k: v for k, v in self._index.items() if v not in replacing}
        for kind, items in replacing.items():
            for e in items:
                if e.id in index:
                    raise DuplicateIdError(e.id)
                index[e.id] = kind
        return index

    def _derived(self, e: Entity) -> Entity:
        if self._scale is None:
            return e
        if isinstance(e, Line):
            return replace(e, length=line_length(e.start, e.end, self._scale), unit=self._unit)
        if isinstance(e, Polygon):
            return replace(e, area=polygon_area(e.points, self._scale), unit=area_unit(self._unit))
        return e

    def _add(self, e: Entity, label: str) -> Entity:
        if e.id in self._index:
            raise DuplicateIdError(e.id)
        with self.transaction(label):
            self._data[e.kind] = self._data[e.kind] + (e,)
            self._index[e.id] = e.kind
        return e

    def _update(self, kind: str, entity_id: str, changes: Dict, label: str) -> bool:
        items = self._data[kind]
        pos = next((i for i, e in enumerate(items) if e.id == entity_id), None)
        if pos is None:
            return False
        changes.pop("id", None)
        for key in ("start", "end"):
            if key in changes:
                changes[key] = Point.of(changes[key])
        if "points" in changes:
            changes["points"] = tuple(Point.of(p) for p in changes["points"])
        old = items[pos]
        new = replace(old, **changes)
        if {"start", "end", "points"} & changes.keys():
            new = self._derived(new)
        if new == old:
            return False
        with self.transaction(label):
            self._data[kind] = items[:pos] + (new,) + items[pos + 1:]
        return True

    def _remove(self, kind: str, entity_id: str, label: str) -> bool:
        if self._index.get(entity_id) != kind:
            return False
        with self.transaction(label):
            self._data[kind] = tuple(e for e in self._data[kind] if e.id != entity_id)
            del self._index[entity_id]
        if self._selected_id == entity_id:
            self.select(None)
        return True

    def _set_all(self, kind: str, items: Iterable[Entity], label: str):
        items = tuple(items)
        index = self._reindex({kind: items})
        with self.transaction(label):
            self._data[kind] = items
            self._index = index

    # ---- lines ----
    def add_line(self, line: Line) -> Line:
        return self._add(line, "add line")

    def update_line(self, line_id: str, **changes) -> bool:
        return self._update(EntityKind.LINE, line_id, changes, "edit line")

    def remove_line(self, line_id: str) -> bool:
        return self._remove(EntityKind.LINE, line_id, "delete line")

    def set_lines(self, lines: Iterable[Line]):
        self._set_all(EntityKind.LINE, lines, "set lines")

    # ---- polygons ----
    def add_polygon(self, polygon: Polygon) -> Polygon:
        return self._add(polygon, "add area")

    def update_polygon(self, polygon_id: str, **changes) -> bool:
        return self._update(EntityKind.POLYGON, polygon_id, changes, "edit area")

    def remove_polygon(self, polygon_id: str) -> bool:
        return self._remove(EntityKind.POLYGON, polygon_id, "delete area")

    def set_polygons(self, polygons: Iterable[Polygon]):
        self._set_all(EntityKind.POLYGON, polygons, "set areas")

    # ---- furniture ----
    def add_furniture(self, item: FurnitureItem) -> FurnitureItem:
        return self._add(item, "add furniture")

    def update_furniture(self, item_id: str, **changes) -> bool:
        return self._update(EntityKind.FURNITURE, item_id, changes, "edit furniture")

    def remove_furniture(self, item_id: str) -> bool:
        return self._remove(EntityKind.FURNITURE, item_id, "delete furniture")

    def set_furniture(self, items: Iterable[FurnitureItem]):
        self._set_all(EntityKind.FURNITURE, items, "set furniture")

    def move_furniture(self, item_id: str, x: float, y: float) -> bool:
        return self._update(EntityKind.FURNITURE, item_id, {"x": float(x), "y": float(y)}, "move furniture")

    def rotate_furniture(self, item_id: str, delta: float = ROTATION_STEP) -> bool:
        item = self.get(item_id)
        if not isinstance(item, FurnitureItem):
            return False
        return self._update(EntityKind.FURNITURE, item_id,
                            {"rotation": normalize_rotation(item.rotation + delta)}, "rotate furniture")

    # ---- annotations ----
    def add_annotation(self, annotation: Annotation) -> Annotation:
        return self._add(annotation, "add note")

    def update_annotation(self, annotation_id: str, **changes) -> bool:
        return self._update(EntityKind.ANNOTATION, annotation_id, changes, "edit note")

    def remove_annotation(self, annotation_id: str) -> bool:
        return self._remove(EntityKind.ANNOTATION, annotation_id, "delete note")

    def set_annotations(self, annotations: Iterable[Annotation]):
        self._set_all(EntityKind.ANNOTATION, annotations, "set notes")

    # ---- any kind ----
    def rename_any(self, entity_id: str, name: str) -> bool:
        kind = self.kind_of(entity_id)
        if kind is None:
            return False
        return self._update(kind, entity_id, {NAME_FIELD[kind]: name}, "rename")

    def recolor_any(self, entity_id: str, color: str) -> bool:
        kind = self.kind_of(entity_id)
        if kind is None:
            return False
        return self._update(kind, entity_id, {"color": color}, "recolor")

    def delete_any(self, entity_id: str) -> bool:
        kind = self.kind_of(entity_id)
        if kind is None:
            return False
        return self._remove(kind, entity_id, f"delete {kind}")

    # ---- calibration ----
    def set_calibration(self, scale: float, unit: str, lines: Iterable[Line], polygons: Iterable[Polygon]):
        """Install a new scale together with the lines/areas derived from it."""
        if not is_positive_number(scale):
            raise ValueError(f"scale must be a positive number, got {scale!r}")
        lines = tuple(lines); polygons = tuple(polygons)
        index = self._reindex({EntityKind.LINE: lines, EntityKind.POLYGON: polygons})
        with self.transaction("calibrate"):
            self._data[EntityKind.LINE] = lines
            self._data[EntityKind.POLYGON] = polygons
            self._index = index
            self._scale = float(scale)
            self._unit = unit

    def set_unit(self, unit: str) -> bool:
        """Pick the unit for the next calibration.

        Only an uncalibrated plan takes a bare unit change; a calibrated one
        changes units by recalibrating.
        """
        unit = (unit or "").strip()
        if not unit or unit == self._unit:
            return False
        if self._scale is not None:
            log.warning("unit change to %r refused: plan is calibrated in %s", unit, self._unit)
            return False
        with self.transaction("set unit"):
            self._unit = unit
        return True

    # ---- mode / selection (transient) ----
    def can_enter(self, mode: str) -> bool:
        if mode not in Mode.ALL:
            return False
        return self._scale is not None or mode not in Mode.NEEDS_SCALE

    def set_mode(self, mode: str) -> bool:
        if not self.can_enter(mode):
            log.warning("mode %r refused (calibrated=%s)", mode, self.is_calibrated)
            return False
        if mode != self._mode:
            self._mode = mode
            self.modeChanged.emit(mode)
        return True

    def select(self, entity_id: Optional[str]):
        if entity_id is not None and entity_id not in self._index:
            entity_id = None
        if entity_id != self._selected_id:
            self._selected_id = entity_id
            self.selectionChanged.emit(entity_id)

    def _settle_transient(self):
        if self._scale is None and self._mode in Mode.NEEDS_SCALE:
            self._mode = Mode.VIEW
            self.modeChanged.emit(self._mode)
        if self._selected_id is not None and self._selected_id not in self._index:
            self._selected_id = None
            self.selectionChanged.emit(None)

    # ---- whole-state replacement ----
    def _prepare(self, project: ProjectData):
        data = {
            EntityKind.LINE: tuple(project.lines),
            EntityKind.POLYGON: tuple(project.polygons),
            EntityKind.FURNITURE: tuple(project.furniture),
            EntityKind.ANNOTATION: tuple(project.annotations),
        }
        return data, self._reindex(data)

    def _install(self, project: ProjectData, data, index):
        self._data = data
        self._index = index
        self._scale = project.scale
        self._unit = project.unit

    def load(self, project: ProjectData):
        """Replace the persisted slice with ``project`` as one commit."""
        data, index = self._prepare(project)
        with self.transaction("open project"):
            self._install(project, data, index)
        self._settle_transient()

    def restore(self, snapshot: str):
        """Replace the persisted slice without recording history (undo/redo)."""
        project = self.state.parse(json.loads(snapshot))
        self._install(project, *self._prepare(project))
        self.changed.emit()
        self._settle_transient()

    def reset(self):
        empty = ProjectData()
        data, index = self._prepare(empty)
        with self.transaction("reset"):
            self._install(empty, data, index)
        if self._mode != Mode.VIEW:
            self._mode = Mode.VIEW
            self.modeChanged.emit(self._mode)
        self.select(None)
