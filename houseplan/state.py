from __future__ import annotations
import json, logging, math
from typing import Any, Dict, List, Optional

from .errors import ProjectFormatError
from .models import Line, Polygon, FurnitureItem, Annotation, Point, ProjectData
from .utils import DEFAULT_UNIT, LINE_COLOR, AREA_COLOR, ANNOTATION_COLOR, ANNOTATION_TEXT, ANNOTATION_FONT_SIZE

log = logging.getLogger(__name__)

# Furniture saved before templates existed carried a ``type`` instead of a
# ``templateId``. "toilet" really was the desk entry in those files.
LEGACY_TEMPLATE_IDS = {
    "bed": "bed-queen",
    "sofa": "sofa-3seat",
    "table": "dining-table-4",
    "toilet": "desk-small",
    "custom": "custom",
}
LEGACY_FALLBACK = "custom"

_MISSING = object()


def migrate_furniture_record(rec: Dict[str, Any]) -> Dict[str, Any]:
    if "type" not in rec or "templateId" in rec:
        return rec
    out = {k: v for k, v in rec.items() if k != "type"}
    out["templateId"] = LEGACY_TEMPLATE_IDS.get(rec["type"], LEGACY_FALLBACK)
    return out


# ---- field readers ----
def _num(rec: Dict, key: str, where: str, default: Any = _MISSING) -> float:
    v = rec.get(key, _MISSING)
    if v is _MISSING or v is None:
        if default is _MISSING:
            raise ProjectFormatError(f"{where}: missing '{key}'")
        return default
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
        raise ProjectFormatError(f"{where}: '{key}' must be a number, got {v!r}")
    return float(v)


def _str(rec: Dict, key: str, where: str, default: Any = _MISSING) -> Optional[str]:
    v = rec.get(key, _MISSING)
    if v is _MISSING or v is None:
        if default is _MISSING:
            raise ProjectFormatError(f"{where}: missing '{key}'")
        return default
    if not isinstance(v, str):
        raise ProjectFormatError(f"{where}: '{key}' must be a string, got {v!r}")
    return v


def _id(rec: Dict, where: str) -> str:
    v = rec.get("id")
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    if not isinstance(v, str) or not v:
        raise ProjectFormatError(f"{where}: missing 'id'")
    return v


def _point(v: Any, where: str) -> Point:
    if not isinstance(v, dict):
        raise ProjectFormatError(f"{where}: point must be an object with x/y")
    return Point(_num(v, "x", where), _num(v, "y", where))


def _records(data: Dict, key: str) -> List[Dict]:
    v = data.get(key)
    if v is None:
        return []
    if not isinstance(v, list):
        raise ProjectFormatError(f"'{key}' must be a list")
    for i, rec in enumerate(v):
        if not isinstance(rec, dict):
            raise ProjectFormatError(f"{key}[{i}]: record must be an object")
    return v


class ProjectState:
    """Converts the persisted slice of a store to and from project JSON."""

    # ---- out ----
    def serialize(self, store) -> Dict:
        return {
            "lines": [self._line_out(l) for l in store.lines],
            "polygons": [self._polygon_out(p) for p in store.polygons],
            "furniture": [self._furniture_out(f) for f in store.furniture],
            "annotations": [self._annotation_out(a) for a in store.annotations],
            "scale": store.scale,
            "unit": store.unit,
        }

    def dumps(self, store, indent: Optional[int] = None) -> str:
        return json.dumps(self.serialize(store), ensure_ascii=False, indent=indent)

    @staticmethod
    def _line_out(l: Line) -> Dict:
        d = {"id": l.id, "start": {"x": l.start.x, "y": l.start.y},
             "end": {"x": l.end.x, "y": l.end.y}, "name": l.name, "color": l.color}
        if l.length is not None: d["length"] = l.length
        if l.unit is not None: d["unit"] = l.unit
        return d

    @staticmethod
    def _polygon_out(p: Polygon) -> Dict:
        d = {"id": p.id, "points": [{"x": q.x, "y": q.y} for q in p.points],
             "name": p.name, "color": p.color}
        if p.area is not None: d["area"] = p.area
        if p.unit is not None: d["unit"] = p.unit
        return d

    @staticmethod
    def _furniture_out(f: FurnitureItem) -> Dict:
        return {"id": f.id, "templateId": f.template_id, "name": f.name,
                "width": f.width, "depth": f.depth, "x": f.x, "y": f.y,
                "rotation": f.rotation, "color": f.color}

    @staticmethod
    def _annotation_out(a: Annotation) -> Dict:
        return {"id": a.id, "text": a.text, "x": a.x, "y": a.y, "fontSize": a.font_size,
                "color": a.color, "backgroundColor": a.background_color, "rotation": a.rotation}

    # ---- in ----
    def parse(self, data: Any) -> ProjectData:
        """Validate a decoded project. Raises ProjectFormatError, never partially."""
        if not isinstance(data, dict):
            raise ProjectFormatError("project must be a JSON object")
        project = ProjectData(
            lines=[self._line_in(r, f"lines[{i}]") for i, r in enumerate(_records(data, "lines"))],
            polygons=[self._polygon_in(r, f"polygons[{i}]") for i, r in enumerate(_records(data, "polygons"))],
            furniture=[self._furniture_in(migrate_furniture_record(r), f"furniture[{i}]")
                       for i, r in enumerate(_records(data, "furniture"))],
            annotations=[self._annotation_in(r, f"annotations[{i}]")
                         for i, r in enumerate(_records(data, "annotations"))],
        )
        scale = _num(data, "scale", "project", default=None)
        project.scale = scale if scale is not None and scale > 0 else None
        project.unit = _str(data, "unit", "project", default=DEFAULT_UNIT) or DEFAULT_UNIT

        seen = set()
        for coll in (project.lines, project.polygons, project.furniture, project.annotations):
            for e in coll:
                if e.id in seen:
                    raise ProjectFormatError(f"duplicate id {e.id!r}")
                seen.add(e.id)
        return project

    @staticmethod
    def _line_in(r: Dict, where: str) -> Line:
        return Line(id=_id(r, where), start=_point(r.get("start"), where), end=_point(r.get("end"), where),
                    name=_str(r, "name", where, ""), color=_str(r, "color", where, LINE_COLOR),
                    length=_num(r, "length", where, None), unit=_str(r, "unit", where, None))

    @staticmethod
    def _polygon_in(r: Dict, where: str) -> Polygon:
        pts = r.get("points")
        if not isinstance(pts, list):
            raise ProjectFormatError(f"{where}: 'points' must be a list")
        return Polygon(id=_id(r, where), points=[_point(p, where) for p in pts],
                       name=_str(r, "name", where, ""), color=_str(r, "color", where, AREA_COLOR),
                       area=_num(r, "area", where, None), unit=_str(r, "unit", where, None))

    @staticmethod
    def _furniture_in(r: Dict, where: str) -> FurnitureItem:
        return FurnitureItem(id=_id(r, where), template_id=_str(r, "templateId", where, LEGACY_FALLBACK),
                             name=_str(r, "name", where, ""),
                             width=_num(r, "width", where), depth=_num(r, "depth", where),
                             x=_num(r, "x", where, 0.0), y=_num(r, "y", where, 0.0),
                             rotation=_num(r, "rotation", where, 0.0),
                             color=_str(r, "color", where, LINE_COLOR))

    @staticmethod
    def _annotation_in(r: Dict, where: str) -> Annotation:
        return Annotation(id=_id(r, where), text=_str(r, "text", where, ANNOTATION_TEXT),
                          x=_num(r, "x", where, 0.0), y=_num(r, "y", where, 0.0),
                          font_size=_num(r, "fontSize", where, ANNOTATION_FONT_SIZE),
                          color=_str(r, "color", where, ANNOTATION_COLOR),
                          background_color=_str(r, "backgroundColor", where, None),
                          rotation=_num(r, "rotation", where, 0.0))

    def deserialize(self, store, data: Any):
        project = self.parse(data)
        store.load(project)
        log.info("project loaded: %d lines, %d areas, %d furniture, %d notes",
                 len(project.lines), len(project.polygons), len(project.furniture), len(project.annotations))

    def loads(self, store, text: str):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProjectFormatError(f"not valid JSON: {e}") from e
        self.deserialize(store, data)

    # ---- files ----
    def save_project(self, store, path: str):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.serialize(store), f, ensure_ascii=False, indent=2)
        log.info("project saved to %s", path)

    def open_project(self, store, path: str):
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ProjectFormatError(f"cannot read {path}: {e}") from e
        self.loads(store, text)
