from __future__ import annotations
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple, Union

from .utils import (LINE_COLOR, AREA_COLOR, ANNOTATION_COLOR, ANNOTATION_TEXT,
                    ANNOTATION_FONT_SIZE, DEFAULT_UNIT, normalize_rotation)


class Mode:
    VIEW = "view"
    CALIBRATE = "calibrate"
    MEASURE = "measure"
    AREA = "area"
    ANNOTATE = "annotate"

    ALL = (VIEW, CALIBRATE, MEASURE, AREA, ANNOTATE)
    NEEDS_SCALE = (MEASURE, AREA, ANNOTATE)


class EntityKind:
    LINE = "line"
    POLYGON = "polygon"
    FURNITURE = "furniture"
    ANNOTATION = "annotation"

    ALL = (LINE, POLYGON, FURNITURE, ANNOTATION)


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    @classmethod
    def of(cls, p) -> "Point":
        """Accepts a Point, a QPointF-like object or an (x, y) pair."""
        if isinstance(p, Point):
            return p
        if callable(getattr(p, "x", None)):
            return cls(float(p.x()), float(p.y()))
        x, y = p
        return cls(float(x), float(y))


@dataclass(frozen=True)
class Line:
    kind: ClassVar[str] = EntityKind.LINE
    id: str
    start: Point
    end: Point
    name: str = ""
    color: str = LINE_COLOR
    length: Optional[float] = None
    unit: Optional[str] = None


@dataclass(frozen=True)
class Polygon:
    kind: ClassVar[str] = EntityKind.POLYGON
    id: str
    points: Tuple[Point, ...]
    name: str = ""
    color: str = AREA_COLOR
    area: Optional[float] = None
    unit: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(self.points))


@dataclass(frozen=True)
class FurnitureTemplate:
    id: str
    name: str
    width: float            # meters
    depth: float            # meters
    icon: str = "📦"
    default_color: str = "#ef4444"
    category: str = "custom"
    is_built_in: bool = False


@dataclass(frozen=True)
class FurnitureItem:
    kind: ClassVar[str] = EntityKind.FURNITURE
    id: str
    template_id: str        # weak reference, may dangle
    name: str
    width: float            # meters
    depth: float            # meters
    x: float = 0.0          # top-left, px
    y: float = 0.0
    rotation: float = 0.0
    color: str = "#ef4444"

    def __post_init__(self):
        object.__setattr__(self, "rotation", normalize_rotation(self.rotation))


@dataclass(frozen=True)
class Annotation:
    kind: ClassVar[str] = EntityKind.ANNOTATION
    id: str
    text: str = ANNOTATION_TEXT
    x: float = 0.0
    y: float = 0.0
    font_size: float = ANNOTATION_FONT_SIZE
    color: str = ANNOTATION_COLOR
    background_color: Optional[str] = None
    rotation: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "rotation", normalize_rotation(self.rotation))

    # annotations share the name/color capability through their text
    @property
    def name(self) -> str:
        return self.text


Entity = Union[Line, Polygon, FurnitureItem, Annotation]

# field that rename_any() writes for each kind
NAME_FIELD = {
    EntityKind.LINE: "name",
    EntityKind.POLYGON: "name",
    EntityKind.FURNITURE: "name",
    EntityKind.ANNOTATION: "text",
}


@dataclass
class ProjectData:
    lines: List[Line] = field(default_factory=list)
    polygons: List[Polygon] = field(default_factory=list)
    furniture: List[FurnitureItem] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)
    scale: Optional[float] = None
    unit: str = DEFAULT_UNIT
