from __future__ import annotations
import logging
from typing import Callable, Optional, Sequence, Union

from .geometry import line_length, polygon_area
from .models import Mode, Line, Polygon, Annotation, FurnitureItem, FurnitureTemplate, Point
from .utils import (LINE_COLOR, AREA_COLOR, ANNOTATION_COLOR, ANNOTATION_TEXT, ANNOTATION_FONT_SIZE,
                    REFERENCE_NAME, area_unit, new_id)

log = logging.getLogger(__name__)


class EntityFactory:
    """Builds entities with their default names, colors and fresh ids."""

    def __init__(self, store, library=None, status_cb: Optional[Callable[[str], None]] = None):
        self.store = store
        self.library = library
        self._status_cb = status_cb

    def draft_line(self, p: Point, mode: str) -> Line:
        if mode == Mode.CALIBRATE:
            name = REFERENCE_NAME
        else:
            name = f"Measurement {len(self.store.lines) + 1}"
        return Line(id=new_id(), start=p, end=p, name=name, color=LINE_COLOR)

    def measured(self, line: Line) -> Line:
        scale = self.store.scale
        return Line(id=line.id, start=line.start, end=line.end, name=line.name, color=line.color,
                    length=line_length(line.start, line.end, scale), unit=self.store.unit)

    def polygon(self, points: Sequence[Point]) -> Polygon:
        scale = self.store.scale
        return Polygon(id=new_id(), points=tuple(points), name=f"Area {len(self.store.polygons) + 1}",
                       color=AREA_COLOR, area=polygon_area(points, scale), unit=area_unit(self.store.unit))

    def annotation(self, p: Point) -> Annotation:
        return Annotation(id=new_id(), text=ANNOTATION_TEXT, x=p.x, y=p.y,
                          font_size=ANNOTATION_FONT_SIZE, color=ANNOTATION_COLOR,
                          background_color=None, rotation=0.0)

    # ---- furniture ----
    def furniture_from_template(self, template: FurnitureTemplate, image=None) -> FurnitureItem:
        """Item centred on the image (top-left at origin when no image is known)."""
        scale = self.store.scale
        x = y = 0.0
        if image is not None:
            x = image.width() / 2 - template.width * scale / 2
            y = image.height() / 2 - template.depth * scale / 2
        return FurnitureItem(id=new_id(), template_id=template.id, name=template.name,
                             width=template.width, depth=template.depth, x=x, y=y,
                             rotation=0.0, color=template.default_color)

    def place_furniture(self, template: Union[FurnitureTemplate, str], image=None) -> Optional[FurnitureItem]:
        if not self.store.is_calibrated:
            self._status("Calibrate the plan first")
            log.warning("furniture placement refused: plan is not calibrated")
            return None
        if isinstance(template, str):
            found = self.library.get(template) if self.library is not None else None
            if found is None:
                log.warning("unknown furniture template %r", template)
                return None
            template = found
        item = self.store.add_furniture(self.furniture_from_template(template, image))
        if self.library is not None:
            self.library.add_to_recent(template.id)
        self.store.select(item.id)
        self.store.set_mode(Mode.VIEW)
        self._status(f"Placed: {item.name}")
        return item

    def _status(self, text: str):
        if self._status_cb:
            self._status_cb(text)
