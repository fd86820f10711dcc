from __future__ import annotations
import json, logging
from typing import List, Optional

from PySide6.QtCore import QSettings

from .utils import RECENT_PROJECTS

log = logging.getLogger(__name__)

ORGANIZATION = "HousePlan"
APPLICATION = "Editor"

LOCALES = ("en", "es")
METRIC = "metric"
IMPERIAL = "imperial"

K_LOCALE = "prefs/locale"
K_SYSTEM = "prefs/measurementUnit"
K_RECENT = "recent"
K_LIBRARY = "furnitureLibrary"


class Preferences:
    """User preferences kept across sessions in QSettings.

    Pass a ready QSettings (e.g. an INI file) to keep them somewhere else.
    """

    def __init__(self, settings: Optional[QSettings] = None):
        self.st = settings if settings is not None else QSettings(ORGANIZATION, APPLICATION)

    # ---- locale / units ----
    @property
    def locale(self) -> Optional[str]:
        v = self.st.value(K_LOCALE, "", str)
        return v if v in LOCALES else None      # None: follow the system

    @locale.setter
    def locale(self, value: Optional[str]):
        if value is not None and value not in LOCALES:
            raise ValueError(f"unsupported locale {value!r}")
        self.st.setValue(K_LOCALE, value or "")

    @property
    def measurement_system(self) -> str:
        v = self.st.value(K_SYSTEM, METRIC, str)
        return v if v in (METRIC, IMPERIAL) else METRIC

    @measurement_system.setter
    def measurement_system(self, value: str):
        if value not in (METRIC, IMPERIAL):
            raise ValueError(f"unsupported measurement system {value!r}")
        self.st.setValue(K_SYSTEM, value)

    @property
    def default_unit(self) -> str:
        return "ft" if self.measurement_system == IMPERIAL else "m"

    # ---- recent projects ----
    def recent_projects(self) -> List[str]:
        files = self.st.value(K_RECENT, [], list) or []
        return [str(p) for p in files]

    def push_recent(self, path: str):
        files = [p for p in self.recent_projects() if p != path]
        files.insert(0, path)
        self.st.setValue(K_RECENT, files[:RECENT_PROJECTS])

    # ---- furniture library ----
    def save_library(self, library):
        self.st.setValue(K_LIBRARY, json.dumps(library.to_dict(), ensure_ascii=False))

    def load_library(self, library) -> bool:
        raw = self.st.value(K_LIBRARY, "", str)
        if not raw:
            return False
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("stored furniture library unreadable: %s", e)
            return False
        if not isinstance(data, dict):
            return False
        library.load_dict(data)
        return True

    def sync(self):
        self.st.sync()
