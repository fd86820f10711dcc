from __future__ import annotations
from dataclasses import dataclass

from .geometry import nice_scale_value
from .utils import SCALE_BAR_TARGET_PX


@dataclass(frozen=True)
class ScaleBar:
    width_px: int       # on-screen length of the bar
    value: float        # label value in ``unit``
    unit: str

    @property
    def label(self) -> str:
        v = self.value
        text = str(int(v)) if float(v).is_integer() else f"{v:.2f}".rstrip("0").rstrip(".")
        return f"{text} {self.unit}"


def _display_unit(value: float, unit: str):
    if unit == "m" and value < 1:
        return value * 100, "cm"
    if unit == "m" and value >= 1000:
        return value / 1000, "km"
    if unit == "cm" and value >= 100:
        return value / 100, "m"
    if unit == "ft" and value >= 5280:
        return value / 5280, "mi"
    return value, unit


def scale_bar(scale: float, zoom: float, unit: str, target_px: float = SCALE_BAR_TARGET_PX) -> ScaleBar:
    """Scale bar about ``target_px`` screen pixels long, labelled with a round length."""
    effective = scale * zoom                  # screen px per unit
    if effective <= 0:
        return ScaleBar(0, 0.0, unit)
    nice = nice_scale_value(target_px / effective)
    value, shown = _display_unit(nice, unit)
    return ScaleBar(round(nice * effective), value, shown)


def format_length(value, unit: str, digits: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:.{digits}f} {unit}"
