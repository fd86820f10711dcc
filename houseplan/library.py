from __future__ import annotations
import logging
from dataclasses import replace, asdict
from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from .models import FurnitureTemplate, FurnitureItem
from .utils import RECENT_TEMPLATES, is_positive_number, new_template_id

log = logging.getLogger(__name__)


def _t(id, name, width, depth, icon, color, category) -> FurnitureTemplate:
    return FurnitureTemplate(id, name, width, depth, icon, color, category, True)


BUILT_IN_TEMPLATES: Tuple[FurnitureTemplate, ...] = (
    # Bedroom
    _t("bed-single", "Single Bed", 0.9, 1.9, "🛏️", "#3b82f6", "bedroom"),
    _t("bed-double", "Double Bed", 1.4, 1.9, "🛏️", "#3b82f6", "bedroom"),
    _t("bed-queen", "Queen Bed", 1.5, 2.0, "🛏️", "#3b82f6", "bedroom"),
    _t("bed-king", "King Bed", 1.8, 2.0, "🛏️", "#3b82f6", "bedroom"),
    _t("wardrobe", "Wardrobe", 1.2, 0.6, "🚪", "#78716c", "bedroom"),
    _t("nightstand", "Nightstand", 0.5, 0.4, "🪑", "#a8a29e", "bedroom"),
    # Living room
    _t("sofa-2seat", "2-Seat Sofa", 1.6, 0.9, "🛋️", "#6b7280", "living"),
    _t("sofa-3seat", "3-Seat Sofa", 2.4, 0.9, "🛋️", "#6b7280", "living"),
    _t("armchair", "Armchair", 0.9, 0.85, "🪑", "#6b7280", "living"),
    _t("coffee-table", "Coffee Table", 1.2, 0.6, "🪵", "#854d0e", "living"),
    _t("tv-stand", "TV Stand", 1.5, 0.45, "📺", "#1c1917", "living"),
    # Kitchen / dining
    _t("dining-table-4", "Dining Table (4)", 1.2, 0.8, "🪑", "#854d0e", "kitchen"),
    _t("dining-table-6", "Dining Table (6)", 1.8, 0.9, "🪑", "#854d0e", "kitchen"),
    _t("dining-chair", "Dining Chair", 0.45, 0.45, "🪑", "#a8a29e", "kitchen"),
    _t("fridge", "Refrigerator", 0.7, 0.7, "🧊", "#e5e5e5", "kitchen"),
    _t("stove", "Stove/Oven", 0.6, 0.6, "🍳", "#404040", "kitchen"),
    # Office
    _t("desk-small", "Small Desk", 1.2, 0.6, "🖥️", "#d97706", "office"),
    _t("desk-large", "Large Desk", 1.8, 0.8, "🖥️", "#d97706", "office"),
    _t("office-chair", "Office Chair", 0.6, 0.6, "💺", "#1e293b", "office"),
    _t("bookshelf", "Bookshelf", 0.8, 0.3, "📚", "#78716c", "office"),
    # Bathroom
    _t("toilet", "Toilet", 0.4, 0.65, "🚽", "#fafafa", "bathroom"),
    _t("bathtub", "Bathtub", 0.7, 1.7, "🛁", "#fafafa", "bathroom"),
    _t("shower", "Shower", 0.9, 0.9, "🚿", "#e5e5e5", "bathroom"),
    _t("sink-bathroom", "Bathroom Sink", 0.6, 0.45, "🚰", "#fafafa", "bathroom"),
    # Generic
    _t("custom", "Custom", 1.0, 1.0, "📦", "#ef4444", "custom"),
)

CATEGORIES: Tuple[Tuple[str, str, str], ...] = (
    ("bedroom", "Bedroom", "🛏️"),
    ("living", "Living Room", "🛋️"),
    ("kitchen", "Kitchen/Dining", "🍽️"),
    ("office", "Office", "💼"),
    ("bathroom", "Bathroom", "🚿"),
    ("custom", "Custom", "📦"),
)

_BUILT_IN_IDS = frozenset(t.id for t in BUILT_IN_TEMPLATES)
_EDITABLE = ("name", "width", "depth", "icon", "default_color", "category")


class FurnitureLibrary(QObject):
    """Built-in catalog plus user templates and a most-recently-used list."""
    changed = Signal()
    recentChanged = Signal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._custom: List[FurnitureTemplate] = []
        self._recent: List[str] = []

    # ---- lookups ----
    @property
    def custom_templates(self) -> Tuple[FurnitureTemplate, ...]:
        return tuple(self._custom)

    @property
    def recent_ids(self) -> Tuple[str, ...]:
        return tuple(self._recent)

    @property
    def categories(self):
        return CATEGORIES

    def all_templates(self) -> List[FurnitureTemplate]:
        return list(BUILT_IN_TEMPLATES) + self._custom

    def get(self, template_id: str) -> Optional[FurnitureTemplate]:
        return next((t for t in self.all_templates() if t.id == template_id), None)

    def by_category(self, category: str) -> List[FurnitureTemplate]:
        return [t for t in self.all_templates() if t.category == category]

    def recent_templates(self) -> List[FurnitureTemplate]:
        out = []
        for rid in self._recent:
            t = self.get(rid)
            if t is not None:
                out.append(t)
        return out

    def resolve(self, item: FurnitureItem) -> FurnitureTemplate:
        """Template behind a placed item, or one built from the item's own fields."""
        t = self.get(item.template_id)
        if t is not None:
            return t
        return FurnitureTemplate(item.template_id, item.name, item.width, item.depth,
                                 default_color=item.color, category="custom", is_built_in=False)

    # ---- user templates ----
    def add_template(self, name: str, width: float, depth: float, icon: str = "📦",
                     default_color: str = "#ef4444", category: str = "custom") -> Optional[FurnitureTemplate]:
        name = (name or "").strip()
        if not name:
            log.warning("template refused: empty name")
            return None
        if not (is_positive_number(width) and is_positive_number(depth)):
            log.warning("template %r refused: size %r x %r", name, width, depth)
            return None
        t = FurnitureTemplate(new_template_id(), name, float(width), float(depth),
                              icon, default_color, category, False)
        self._custom.append(t)
        self.changed.emit()
        return t

    def update_template(self, template_id: str, **changes) -> bool:
        if template_id in _BUILT_IN_IDS:
            return False
        pos = next((i for i, t in enumerate(self._custom) if t.id == template_id), None)
        if pos is None:
            return False
        changes = {k: v for k, v in changes.items() if k in _EDITABLE}
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                return False
        for k in ("width", "depth"):
            if k in changes and not is_positive_number(changes[k]):
                return False
        self._custom[pos] = replace(self._custom[pos], **changes)
        self.changed.emit()
        return True

    def remove_template(self, template_id: str) -> bool:
        if template_id in _BUILT_IN_IDS:
            return False
        before = len(self._custom)
        self._custom = [t for t in self._custom if t.id != template_id]
        if len(self._custom) == before:
            return False
        if template_id in self._recent:
            self._recent = [r for r in self._recent if r != template_id]
            self.recentChanged.emit()
        self.changed.emit()
        return True

    def duplicate_template(self, template_id: str) -> Optional[FurnitureTemplate]:
        t = self.get(template_id)
        if t is None:
            return None
        return self.add_template(f"{t.name} (Copy)", t.width, t.depth, t.icon, t.default_color, t.category)

    def add_to_recent(self, template_id: str):
        self._recent = ([template_id] + [r for r in self._recent if r != template_id])[:RECENT_TEMPLATES]
        self.recentChanged.emit()

    # ---- persistence ----
    def to_dict(self) -> Dict:
        return {"customTemplates": [asdict(t) for t in self._custom], "recentTemplateIds": list(self._recent)}

    def load_dict(self, data: Dict):
        """Restore user templates; malformed entries are skipped."""
        custom = []
        for rec in data.get("customTemplates", []) or []:
            try:
                t = FurnitureTemplate(**{**rec, "is_built_in": False})
            except TypeError as e:
                log.warning("skipping stored template %r: %s", rec, e)
                continue
            if t.id not in _BUILT_IN_IDS:
                custom.append(t)
        recent = [r for r in (data.get("recentTemplateIds", []) or []) if isinstance(r, str)]
        self._custom = custom
        self._recent = recent[:RECENT_TEMPLATES]
        self.changed.emit()
        self.recentChanged.emit()
