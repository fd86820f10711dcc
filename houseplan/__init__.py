from .utils import *
from .models import Mode, EntityKind, Point, Line, Polygon, FurnitureTemplate, FurnitureItem, Annotation, ProjectData
from .errors import HousePlanError, ProjectFormatError, DuplicateIdError
from .geometry import distance, polygon_area, pixels_to_unit, nice_scale_value, furniture_footprint
from .state import ProjectState
from .store import EntityStore
from .calibration import CalibrationProtocol
from .factory import EntityFactory
from .interaction import InteractionStateMachine
from .library import FurnitureLibrary, BUILT_IN_TEMPLATES
from .undo import UndoManager
from .scalebar import ScaleBar, scale_bar, format_length
from .settings import Preferences

__all__ = [
    "Mode", "EntityKind", "Point", "Line", "Polygon", "FurnitureTemplate", "FurnitureItem",
    "Annotation", "ProjectData",
    "HousePlanError", "ProjectFormatError", "DuplicateIdError",
    "distance", "polygon_area", "pixels_to_unit", "nice_scale_value", "furniture_footprint",
    "ProjectState", "EntityStore", "CalibrationProtocol", "EntityFactory",
    "InteractionStateMachine", "FurnitureLibrary", "BUILT_IN_TEMPLATES",
    "UndoManager", "ScaleBar", "scale_bar", "format_length", "Preferences",
]
