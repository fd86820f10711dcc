from __future__ import annotations
import math, random, string, time, uuid

# ===== Drawing defaults =====
LINE_COLOR = "#ef4444"
AREA_COLOR = "#10b981"
ANNOTATION_COLOR = "#1e293b"
ANNOTATION_TEXT = "New text"
ANNOTATION_FONT_SIZE = 14
REFERENCE_NAME = "Reference"

# ===== Interaction =====
MIN_LINE_PX = 5.0          # shorter drags are treated as clicks
ROTATION_STEP = 90.0

# ===== Calibration / units =====
DEFAULT_UNIT = "m"
AREA_PREFIX = "sq "

# ===== Limits =====
HISTORY_LIMIT = 100
RECENT_TEMPLATES = 5
RECENT_PROJECTS = 12

# ===== Scale bar =====
SCALE_BAR_TARGET_PX = 120.0


def normalize_rotation(deg: float) -> float:
    return ((deg % 360) + 360) % 360


def area_unit(unit: str) -> str:
    return AREA_PREFIX + unit


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def new_template_id() -> str:
    tail = "".join(random.choices(string.ascii_lowercase + string.digits, k=5))
    return f"custom-{int(time.time() * 1000)}-{tail}"


def is_positive_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) \
        and math.isfinite(value) and value > 0
